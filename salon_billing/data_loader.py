"""Data loading utilities for Salon Billing"""
import json
import logging
from datetime import datetime, date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .models import (
    BillItem,
    CommissionConfig,
    CommissionProfile,
    ItemBasedProfile,
    ItemRate,
    ProfileType,
    Sale,
    SaleItem,
    StaffMember,
    TargetBasedProfile,
    TargetTier,
    TaxSettings,
)

logger = logging.getLogger(__name__)

DATE_FORMATS = [
    '%Y-%m-%d', '%Y%m%d', '%d/%m/%Y', '%m/%d/%Y',
    '%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%d/%m/%Y %H:%M',
]

# Settings store field name -> TaxSettings attribute
TAX_SETTINGS_FIELDS = {
    'enableTax': 'enable_tax',
    'taxType': 'tax_type',
    'serviceTaxRate': 'service_tax_rate',
    'essentialProductRate': 'essential_product_rate',
    'intermediateProductRate': 'intermediate_product_rate',
    'standardProductRate': 'standard_product_rate',
    'luxuryProductRate': 'luxury_product_rate',
    'exemptProductRate': 'exempt_product_rate',
    'cgstRate': 'cgst_rate',
    'sgstRate': 'sgst_rate',
}


class DataLoadError(ValueError):
    """An input file could not be turned into billing records"""

    def __init__(self, source: str, message: str, row: Optional[int] = None):
        self.source = source
        self.row = row
        location = f"{source} (row {row})" if row is not None else source
        super().__init__(f"{location}: {message}")


def _get(data: Dict[str, Any], *keys, default=None):
    """First present key, accepting camelCase or snake_case spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _parse_date(value, time_value=None) -> Optional[datetime]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None

    parsed = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    elif isinstance(value, str):
        # Try to parse various date formats
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(value.strip(), fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if isinstance(parsed, pd.Timestamp):
        parsed = parsed.to_pydatetime()

    if time_value is not None and isinstance(time_value, str) and time_value.strip():
        try:
            clock = datetime.strptime(time_value.strip(), '%H:%M').time()
            parsed = datetime.combine(parsed.date(), clock)
        except ValueError:
            logger.debug("Ignoring unparseable time %r", time_value)
    return parsed


def _number(value, default: float = 0.0) -> float:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default
    if isinstance(value, str):
        value = value.replace(',', '').replace('₹', '').strip()
        if not value:
            return default
    return float(value)


def _text(value, default: str = '') -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default
    return str(value).strip()


class DataLoader:
    """
    Load sales, bills and settings from files.

    Stands in for the sales data and settings providers: the calculation
    modules never read files themselves.
    """

    # ============ SALES ============

    @staticmethod
    def sales_from_dataframe(df: pd.DataFrame, source: str = '<dataframe>') -> List[Sale]:
        """
        Build sales from one row per sold item.

        Expected columns:
        - Receipt (or Bill No): groups rows into sales
        - Date, Time (optional)
        - Item, Type: service, product, package, membership, prepaid
        - Quantity (optional, default 1), Price, Total (optional)
        - Tax (optional), Discount (optional)
        - Staff ID and/or Staff (name)
        - Client (optional)
        """
        # Normalize column names
        df = df.copy()
        df.columns = df.columns.str.strip().str.lower()

        sales: Dict[str, Sale] = {}
        for index, row in df.iterrows():
            row_number = index + 2  # header is row 1
            receipt = _text(row.get('receipt', row.get('bill no')))
            if not receipt:
                raise DataLoadError(source, "missing receipt number", row_number)

            try:
                price = _number(row.get('price'))
                quantity = int(_number(row.get('quantity'), 1))
                total = row.get('total')
                item = SaleItem(
                    id=f"{receipt}-{row_number}",
                    name=_text(row.get('item')),
                    item_type=_text(row.get('type')),
                    quantity=quantity,
                    price=price,
                    total=None if total is None or pd.isna(total) else _number(total),
                    staff_id=_text(row.get('staff id')) or None,
                    staff_name=_text(row.get('staff')) or None,
                    tax_amount=_number(row.get('tax')),
                    discount=_number(row.get('discount')),
                )
            except (TypeError, ValueError) as e:
                raise DataLoadError(source, f"invalid amount: {e}", row_number) from e

            if item.item_type is None:
                logger.warning("%s row %d: unknown item type %r", source, row_number, row.get('type'))

            sale = sales.get(receipt)
            if sale is None:
                sale_date = _parse_date(row.get('date'), row.get('time'))
                if sale_date is None:
                    raise DataLoadError(source, f"unparseable date {row.get('date')!r}", row_number)
                sale = Sale(
                    id=receipt,
                    receipt_number=receipt,
                    sale_date=sale_date,
                    client_name=_text(row.get('client')),
                )
                sales[receipt] = sale
            sale.items.append(item)

        logger.info("Loaded %d sales from %s", len(sales), source)
        return list(sales.values())

    @staticmethod
    def load_sales_from_excel(filepath: str) -> List[Sale]:
        df = pd.read_excel(filepath)
        return DataLoader.sales_from_dataframe(df, str(filepath))

    @staticmethod
    def load_sales_from_csv(filepath: str) -> List[Sale]:
        df = pd.read_csv(filepath)
        return DataLoader.sales_from_dataframe(df, str(filepath))

    @staticmethod
    def load_sales(filepath: str) -> List[Sale]:
        if Path(filepath).suffix.lower() == '.csv':
            return DataLoader.load_sales_from_csv(filepath)
        return DataLoader.load_sales_from_excel(filepath)

    # ============ BILLS ============

    @staticmethod
    def bill_items_from_dataframe(df: pd.DataFrame, source: str = '<dataframe>') -> List[BillItem]:
        """
        Build bill items from rows with columns Item, Type, Price,
        Quantity (optional) and Tax Category (optional).
        """
        df = df.copy()
        df.columns = df.columns.str.strip().str.lower()

        items = []
        for index, row in df.iterrows():
            try:
                items.append(BillItem(
                    id=_text(row.get('id'), str(index + 1)),
                    name=_text(row.get('item', row.get('name'))),
                    kind=_text(row.get('type'), 'service'),
                    price=_number(row.get('price')),
                    quantity=int(_number(row.get('quantity'), 1)),
                    tax_category=_text(row.get('tax category')) or None,
                ))
            except (TypeError, ValueError) as e:
                raise DataLoadError(source, f"invalid amount: {e}", index + 2) from e
        return items

    @staticmethod
    def load_bill_items(filepath: str) -> List[BillItem]:
        if Path(filepath).suffix.lower() == '.csv':
            df = pd.read_csv(filepath)
        else:
            df = pd.read_excel(filepath)
        return DataLoader.bill_items_from_dataframe(df, str(filepath))

    # ============ SETTINGS ============

    @staticmethod
    def _read_json(filepath: str):
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise DataLoadError(str(filepath), f"invalid JSON: {e}") from e

    @staticmethod
    def tax_settings_from_dict(data: Dict[str, Any]) -> TaxSettings:
        values = {}
        for camel, snake in TAX_SETTINGS_FIELDS.items():
            value = _get(data, camel, snake)
            if value is not None:
                values[snake] = value if snake in ('enable_tax', 'tax_type') else float(value)
        return TaxSettings(**values)

    @staticmethod
    def load_tax_settings(filepath: str) -> TaxSettings:
        return DataLoader.tax_settings_from_dict(DataLoader._read_json(filepath))

    @staticmethod
    def profile_from_dict(data: Dict[str, Any]) -> CommissionProfile:
        """
        Build a profile from its stored form.

        Expected format:
        {"id": "1", "name": "Product Incentive", "type": "target_based",
         "calculationInterval": "monthly", "qualifyingItems": ["Product"],
         "includeTax": false, "isActive": true, "cascadingCommission": true,
         "targetTiers": [{"from": 0, "to": 5000, "calculateBy": "percent", "value": 5}]}
        """
        common = dict(
            id=str(_get(data, 'id', '_id')),
            name=_get(data, 'name', default=''),
            description=_get(data, 'description', default=''),
            calculation_interval=_get(data, 'calculationInterval', 'calculation_interval', default='monthly'),
            qualifying_items=frozenset(_get(data, 'qualifyingItems', 'qualifying_items', default=[])),
            include_tax=bool(_get(data, 'includeTax', 'include_tax', default=False)),
            is_active=bool(_get(data, 'isActive', 'is_active', default=True)),
        )
        profile_type = ProfileType(_get(data, 'type', default=ProfileType.TARGET_BASED.value))

        if profile_type is ProfileType.TARGET_BASED:
            tiers = [
                TargetTier(
                    from_amount=float(tier['from']),
                    to_amount=float(tier['to']),
                    calculate_by=tier.get('calculateBy', tier.get('calculate_by', 'percent')),
                    value=float(tier['value']),
                )
                for tier in _get(data, 'targetTiers', 'target_tiers', default=[])
            ]
            return TargetBasedProfile(
                cascading_commission=bool(_get(data, 'cascadingCommission', 'cascading_commission', default=False)),
                target_tiers=tuple(tiers),
                **common,
            )

        rates = [
            ItemRate(
                item_type=_get(rate, 'itemType', 'item_type'),
                rate=float(rate['rate']),
                calculate_by=_get(rate, 'calculateBy', 'calculate_by', default='percent'),
            )
            for rate in _get(data, 'itemRates', 'item_rates', default=[])
        ]
        return ItemBasedProfile(item_rates=tuple(rates), **common)

    @staticmethod
    def load_profiles(filepath: str) -> List[CommissionProfile]:
        data = DataLoader._read_json(filepath)
        try:
            return [DataLoader.profile_from_dict(p) for p in data]
        except (KeyError, TypeError, ValueError) as e:
            raise DataLoadError(str(filepath), f"invalid commission profile: {e}") from e

    @staticmethod
    def load_staff(filepath: str) -> List[StaffMember]:
        """
        Load staff members from a JSON file.

        Expected format:
        [
            {"id": "s1", "name": "Asha", "commissionProfileIds": ["1", "2"]},
            ...
        ]
        """
        data = DataLoader._read_json(filepath)
        staff = []
        for entry in data:
            try:
                service_rate = _get(entry, 'serviceCommissionRate', 'service_commission_rate')
                product_rate = _get(entry, 'productCommissionRate', 'product_commission_rate')
                staff.append(StaffMember(
                    id=str(_get(entry, 'id', '_id')),
                    name=entry['name'],
                    commission_profile_ids=[
                        str(p) for p in _get(entry, 'commissionProfileIds', 'commission_profile_ids', default=[])
                    ],
                    service_commission_rate=None if service_rate is None else float(service_rate),
                    product_commission_rate=None if product_rate is None else float(product_rate),
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise DataLoadError(str(filepath), f"invalid staff member: {e}") from e
        return staff

    @staticmethod
    def commission_config_from_dict(data: Dict[str, Any]) -> CommissionConfig:
        defaults = CommissionConfig()
        minimum = _get(data, 'minimumCommission', 'minimum_commission')
        maximum = _get(data, 'maximumCommission', 'maximum_commission')
        return CommissionConfig(
            service_commission_rate=float(_get(data, 'serviceCommissionRate', 'service_commission_rate',
                                               default=defaults.service_commission_rate)),
            product_commission_rate=float(_get(data, 'productCommissionRate', 'product_commission_rate',
                                               default=defaults.product_commission_rate)),
            minimum_commission=None if minimum is None else float(minimum),
            maximum_commission=None if maximum is None else float(maximum),
        )

    @staticmethod
    def load_commission_config(filepath: str) -> CommissionConfig:
        return DataLoader.commission_config_from_dict(DataLoader._read_json(filepath))
