"""Maps billable items to GST rates"""
import logging
from typing import Optional, Tuple

from .models import BillItem, BillItemKind, TaxCategory, TaxSettings

logger = logging.getLogger(__name__)

NO_TAX = 'no-tax'
SERVICE_CATEGORY = 'service'


def resolve_category(kind: BillItemKind, tax_category: Optional[str]) -> Optional[TaxCategory]:
    """
    Resolve the GST slab of an item.

    Services have no slab (None). Products without a category, or with one
    we do not recognise, fall back to the standard slab.
    """
    if kind is BillItemKind.SERVICE:
        return None

    category = TaxCategory.parse(tax_category)
    if category is None:
        if tax_category:
            logger.debug("Unknown tax category %r, using standard rate", tax_category)
        return TaxCategory.STANDARD
    return category


def classify(item: BillItem, settings: TaxSettings) -> Tuple[float, str]:
    """
    Determine the tax rate for an item.

    Returns:
        (tax_rate, category_label) where the label is the resolved slab,
        'service', or 'no-tax' when tax is disabled
    """
    if not settings.enable_tax:
        return 0.0, NO_TAX

    category = resolve_category(item.kind, item.tax_category)
    if category is None:
        return settings.service_tax_rate, SERVICE_CATEGORY
    return settings.product_rate(category), category.value


def get_tax_rate(kind, tax_category: Optional[str], settings: TaxSettings) -> float:
    """Tax rate (percent) for an item kind and optional product category."""
    if not settings.enable_tax:
        return 0.0

    category = resolve_category(BillItemKind.parse(kind), tax_category)
    if category is None:
        return settings.service_tax_rate
    return settings.product_rate(category)
