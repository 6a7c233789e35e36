"""Logging setup for Salon Billing"""
import json
import logging
import sys
from typing import Any, Dict, Optional

from config import LOG_FORMAT, LOG_LEVEL


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def init_logging(level: Optional[int] = None, fmt: str = LOG_FORMAT) -> None:
    """Attach a stdout handler to the root logger once."""
    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    if fmt.lower() == 'json':
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s | %(levelname)s | %(name)s | %(message)s'))
    root.setLevel(level or getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    root.addHandler(handler)
