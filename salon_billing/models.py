"""Data models for Salon Billing"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, FrozenSet, List, Optional, Tuple

from config import (
    DEFAULT_TAX_RATES,
    DEFAULT_SERVICE_COMMISSION_RATE,
    DEFAULT_PRODUCT_COMMISSION_RATE,
)


class BillItemKind(str, Enum):
    """Kind of a billable line item"""
    SERVICE = 'service'
    PRODUCT = 'product'

    @classmethod
    def parse(cls, value) -> 'BillItemKind':
        # Anything that is not a service is billed as a product
        if isinstance(value, str) and value.strip().lower() == cls.SERVICE.value:
            return cls.SERVICE
        return cls.PRODUCT


class TaxCategory(str, Enum):
    """GST slab of a product"""
    ESSENTIAL = 'essential'
    INTERMEDIATE = 'intermediate'
    STANDARD = 'standard'
    LUXURY = 'luxury'
    EXEMPT = 'exempt'

    @classmethod
    def parse(cls, value) -> Optional['TaxCategory']:
        """Return the matching category, or None when unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ItemType(str, Enum):
    """Kind of a sold item, as seen by commission profiles"""
    SERVICE = 'service'
    PRODUCT = 'product'
    PACKAGE = 'package'
    MEMBERSHIP = 'membership'
    PREPAID = 'prepaid'

    @property
    def label(self) -> str:
        """Profile vocabulary name (Service, Product, ...)"""
        return self.value.capitalize()

    @classmethod
    def parse(cls, value) -> Optional['ItemType']:
        """Accept either 'service' or 'Service'; None when unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class CalculateBy(str, Enum):
    PERCENT = 'percent'
    FIXED = 'fixed'


class CalculationInterval(str, Enum):
    DAILY = 'daily'
    MONTHLY = 'monthly'


class ProfileType(str, Enum):
    TARGET_BASED = 'target_based'
    ITEM_BASED = 'item_based'


# ============ TAX ============

@dataclass(frozen=True)
class TaxSettings:
    """GST configuration supplied by the settings store.

    cgst_rate and sgst_rate are informational only: the computed tax of an
    item is always split half and half between CGST and SGST.
    """
    enable_tax: bool = True
    tax_type: str = 'gst'
    service_tax_rate: float = DEFAULT_TAX_RATES['service']
    essential_product_rate: float = DEFAULT_TAX_RATES['essential']
    intermediate_product_rate: float = DEFAULT_TAX_RATES['intermediate']
    standard_product_rate: float = DEFAULT_TAX_RATES['standard']
    luxury_product_rate: float = DEFAULT_TAX_RATES['luxury']
    exempt_product_rate: float = DEFAULT_TAX_RATES['exempt']
    cgst_rate: float = DEFAULT_TAX_RATES['cgst']
    sgst_rate: float = DEFAULT_TAX_RATES['sgst']

    def product_rate(self, category: TaxCategory) -> float:
        return {
            TaxCategory.ESSENTIAL: self.essential_product_rate,
            TaxCategory.INTERMEDIATE: self.intermediate_product_rate,
            TaxCategory.STANDARD: self.standard_product_rate,
            TaxCategory.LUXURY: self.luxury_product_rate,
            TaxCategory.EXEMPT: self.exempt_product_rate,
        }[category]

    def rate_fields(self) -> Dict[str, float]:
        """All percentage fields keyed by attribute name"""
        return {
            'service_tax_rate': self.service_tax_rate,
            'essential_product_rate': self.essential_product_rate,
            'intermediate_product_rate': self.intermediate_product_rate,
            'standard_product_rate': self.standard_product_rate,
            'luxury_product_rate': self.luxury_product_rate,
            'exempt_product_rate': self.exempt_product_rate,
            'cgst_rate': self.cgst_rate,
            'sgst_rate': self.sgst_rate,
        }


def default_tax_settings(**overrides) -> TaxSettings:
    """Reference GST settings, optionally overridden field by field."""
    return TaxSettings(**overrides)


@dataclass
class BillItem:
    """A billable line item, created per billing request"""
    id: str
    name: str
    kind: BillItemKind
    price: float
    quantity: int = 1
    tax_category: Optional[str] = None  # Only meaningful for products

    def __post_init__(self):
        self.kind = BillItemKind.parse(self.kind)

    @property
    def base_amount(self) -> float:
        return self.price * self.quantity


@dataclass
class ItemTaxResult:
    """Tax breakdown of one bill item"""
    item: BillItem
    tax_rate: float
    tax_category: str  # resolved slab, 'service', or 'no-tax'
    base_amount: float
    tax_amount: float
    cgst: float
    sgst: float
    igst: float
    total_amount: float


@dataclass
class BillTaxSummary:
    """Per-item tax results in billed order plus bill totals"""
    items: List[ItemTaxResult]
    total_base: float
    total_tax_amount: float
    total_cgst: float
    total_sgst: float
    total_igst: float
    total_amount: float
    item_count: int


# ============ COMMISSION PROFILES ============

@dataclass(frozen=True)
class TargetTier:
    """Revenue bracket of a target-based profile"""
    from_amount: float
    to_amount: float
    calculate_by: CalculateBy
    value: float

    def __post_init__(self):
        object.__setattr__(self, 'calculate_by', CalculateBy(self.calculate_by))


@dataclass(frozen=True)
class ItemRate:
    """Flat rate applied by an item-based profile"""
    item_type: ItemType
    rate: float
    calculate_by: CalculateBy

    def __post_init__(self):
        object.__setattr__(self, 'item_type', ItemType.parse(self.item_type))
        object.__setattr__(self, 'calculate_by', CalculateBy(self.calculate_by))


@dataclass(frozen=True)
class CommissionProfile:
    """Fields shared by every commission profile variant.

    Use TargetBasedProfile or ItemBasedProfile; the variant carries its own
    rule data so a profile can never hold both tiers and item rates.
    """
    profile_type: ClassVar[ProfileType]

    id: str
    name: str
    qualifying_items: FrozenSet[ItemType]
    calculation_interval: CalculationInterval = CalculationInterval.MONTHLY
    include_tax: bool = False
    is_active: bool = True
    description: str = ''

    def __post_init__(self):
        # Unknown labels are dropped: they can never match a sale item
        items = frozenset(
            t for t in (ItemType.parse(v) for v in self.qualifying_items) if t is not None
        )
        object.__setattr__(self, 'qualifying_items', items)
        object.__setattr__(self, 'calculation_interval', CalculationInterval(self.calculation_interval))

    def qualifies(self, item_type: Optional[ItemType]) -> bool:
        return item_type is not None and item_type in self.qualifying_items


@dataclass(frozen=True)
class TargetBasedProfile(CommissionProfile):
    """Commission from tiers over cumulative qualifying revenue.

    target_tiers must be sorted ascending by from_amount; they are not
    re-sorted during evaluation.
    """
    profile_type: ClassVar[ProfileType] = ProfileType.TARGET_BASED

    cascading_commission: bool = False
    target_tiers: Tuple[TargetTier, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, 'target_tiers', tuple(self.target_tiers))


@dataclass(frozen=True)
class ItemBasedProfile(CommissionProfile):
    """Commission from a flat rate per qualifying item type"""
    profile_type: ClassVar[ProfileType] = ProfileType.ITEM_BASED

    item_rates: Tuple[ItemRate, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, 'item_rates', tuple(self.item_rates))


# ============ SALES ============

@dataclass
class SaleItem:
    """A sold item attributed to a staff member"""
    id: str
    name: str
    item_type: Optional[ItemType]
    quantity: int = 1
    price: float = 0.0
    total: Optional[float] = None
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    tax_amount: float = 0.0
    discount: float = 0.0

    def __post_init__(self):
        self.item_type = ItemType.parse(self.item_type)
        if self.total is None:
            self.total = self.price * self.quantity - self.discount

    def is_attributed_to(self, staff_id: str) -> bool:
        return self.staff_id == staff_id or self.staff_name == staff_id


@dataclass
class Sale:
    """A completed transaction"""
    id: str
    sale_date: datetime
    items: List[SaleItem] = field(default_factory=list)
    receipt_number: str = ''
    client_name: str = ''


@dataclass
class StaffMember:
    """A staff member and the commission profiles assigned to them"""
    id: str
    name: str
    commission_profile_ids: List[str] = field(default_factory=list)
    # Legacy flat-rate overrides (percent)
    service_commission_rate: Optional[float] = None
    product_commission_rate: Optional[float] = None


# ============ COMMISSION RESULTS ============

@dataclass(frozen=True)
class CommissionConfig:
    """Legacy flat-rate commission settings (percentages)"""
    service_commission_rate: float = DEFAULT_SERVICE_COMMISSION_RATE
    product_commission_rate: float = DEFAULT_PRODUCT_COMMISSION_RATE
    minimum_commission: Optional[float] = None
    maximum_commission: Optional[float] = None


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class ProfileEvaluation:
    """Commission produced by one profile for one staff member"""
    profile_id: str
    profile_name: str
    commission: float
    revenue: float
    item_count: int
    revenue_by_item_type: Dict[ItemType, float] = field(default_factory=dict)


@dataclass
class FlatRateCommission:
    """Legacy flat-rate commission for one sale"""
    staff_id: str
    staff_name: str
    sale_id: str
    service_commission: float
    product_commission: float
    total_commission: float
    service_revenue: float
    product_revenue: float
    total_revenue: float
    service_count: int  # quantities
    product_count: int
    total_items: int  # line items


@dataclass
class StaffCommissionResult:
    """Commission summary for one staff member"""
    staff_id: str
    staff_name: str
    total_commission: float
    total_revenue: float
    total_transactions: int
    average_commission_per_transaction: float
    effective_commission_rate: float
    revenue_by_item_type: Dict[ItemType, float] = field(default_factory=dict)
    count_by_item_type: Dict[ItemType, int] = field(default_factory=dict)
    commission_by_item_type: Dict[ItemType, float] = field(default_factory=dict)
    profile_breakdown: List[ProfileEvaluation] = field(default_factory=list)
    mode: str = 'profile'  # 'profile' or 'flat_rate'

    @property
    def service_revenue(self) -> float:
        return self.revenue_by_item_type.get(ItemType.SERVICE, 0.0)

    @property
    def product_revenue(self) -> float:
        return self.revenue_by_item_type.get(ItemType.PRODUCT, 0.0)

    @property
    def service_commission(self) -> float:
        return self.commission_by_item_type.get(ItemType.SERVICE, 0.0)

    @property
    def product_commission(self) -> float:
        return self.commission_by_item_type.get(ItemType.PRODUCT, 0.0)

    @property
    def service_count(self) -> int:
        return self.count_by_item_type.get(ItemType.SERVICE, 0)

    @property
    def product_count(self) -> int:
        return self.count_by_item_type.get(ItemType.PRODUCT, 0)


DEFAULT_COMMISSION_PROFILES: List[CommissionProfile] = [
    TargetBasedProfile(
        id='1',
        name='Product Incentive',
        description='Commission based on product sales targets',
        calculation_interval=CalculationInterval.MONTHLY,
        qualifying_items=frozenset({ItemType.PRODUCT}),
        include_tax=False,
        cascading_commission=True,
        target_tiers=(
            TargetTier(0, 5000, CalculateBy.PERCENT, 5),
            TargetTier(5000, 10000, CalculateBy.PERCENT, 8),
        ),
    ),
    TargetBasedProfile(
        id='2',
        name='Service Incentive',
        description='Commission based on service sales targets',
        calculation_interval=CalculationInterval.MONTHLY,
        qualifying_items=frozenset({ItemType.SERVICE}),
        include_tax=True,
        cascading_commission=False,
        target_tiers=(
            TargetTier(0, 8000, CalculateBy.PERCENT, 7),
        ),
    ),
]
