"""GST calculation for Salon Billing"""
from typing import List

from .classifier import classify, get_tax_rate, NO_TAX, SERVICE_CATEGORY
from .models import (
    BillItem,
    BillTaxSummary,
    ItemTaxResult,
    TaxCategory,
    TaxSettings,
    ValidationResult,
)
from .money import round_currency, sum_currency
from config import CURRENCY_SYMBOL


def calculate_item_tax(item: BillItem, settings: TaxSettings) -> ItemTaxResult:
    """
    Calculate the GST breakdown of a single item.

    The computed tax is always split half and half into CGST and SGST
    (intra-state supply); IGST is always zero. Items are accepted as-is:
    negative prices or zero quantities are not rejected here.
    """
    base_amount = item.price * item.quantity
    tax_rate, category = classify(item, settings)

    tax_amount = base_amount * tax_rate / 100
    cgst = tax_amount / 2
    sgst = tax_amount / 2

    return ItemTaxResult(
        item=item,
        tax_rate=tax_rate,
        tax_category=category,
        base_amount=base_amount,
        tax_amount=tax_amount,
        cgst=cgst,
        sgst=sgst,
        igst=0.0,
        total_amount=base_amount + tax_amount,
    )


def calculate_bill_tax(items: List[BillItem], settings: TaxSettings) -> BillTaxSummary:
    """
    Calculate tax for every item of a bill and total it.

    Items are independent of each other and keep their billed order.
    Totals are the sums of the per-item fields, rounded to currency precision.
    """
    results = [calculate_item_tax(item, settings) for item in items]

    return BillTaxSummary(
        items=results,
        total_base=sum_currency(r.base_amount for r in results),
        total_tax_amount=sum_currency(r.tax_amount for r in results),
        total_cgst=sum_currency(r.cgst for r in results),
        total_sgst=sum_currency(r.sgst for r in results),
        total_igst=sum_currency(r.igst for r in results),
        total_amount=sum_currency(r.total_amount for r in results),
        item_count=len(results),
    )


def format_tax_breakdown(result: ItemTaxResult) -> str:
    """Human-readable CGST + SGST line for a receipt."""
    if result.tax_amount == 0:
        return 'No Tax'

    half_rate = result.tax_rate / 2
    return (
        f"CGST ({half_rate:.1f}%): {CURRENCY_SYMBOL}{round_currency(result.cgst):.2f} + "
        f"SGST ({half_rate:.1f}%): {CURRENCY_SYMBOL}{round_currency(result.sgst):.2f}"
    )


def tax_category_display_name(category: str, settings: TaxSettings = None) -> str:
    """Display name of a tax slab including its rate, e.g. 'Luxury (28%)'."""
    settings = settings or TaxSettings()
    if category == SERVICE_CATEGORY:
        return f"Service ({settings.service_tax_rate:g}%)"
    if category == NO_TAX:
        return 'No Tax'

    slab = TaxCategory.parse(category) or TaxCategory.STANDARD
    return f"{slab.value.capitalize()} ({settings.product_rate(slab):g}%)"


def validate_tax_settings(settings: TaxSettings) -> ValidationResult:
    """Check that every configured rate is a percentage in [0, 100]."""
    result = ValidationResult()
    for name, rate in settings.rate_fields().items():
        if rate < 0 or rate > 100:
            label = name.replace('_', ' ').capitalize()
            result.errors.append(f"{label} must be between 0 and 100")
    return result


class TaxCalculator:
    """
    Binds a TaxSettings instance to the tax functions.

    Convenience for callers billing many items against the same settings;
    the settings are never read from anywhere else.
    """

    def __init__(self, settings: TaxSettings):
        self.settings = settings

    def calculate_item(self, item: BillItem) -> ItemTaxResult:
        return calculate_item_tax(item, self.settings)

    def calculate_bill(self, items: List[BillItem]) -> BillTaxSummary:
        return calculate_bill_tax(items, self.settings)

    def get_tax_rate(self, kind, tax_category: str = None) -> float:
        return get_tax_rate(kind, tax_category, self.settings)
