"""Legacy flat-rate commission calculation for Salon Billing"""
from typing import List, Optional

from .models import (
    CommissionConfig,
    FlatRateCommission,
    ItemType,
    Sale,
    StaffCommissionResult,
    ValidationResult,
)
from .money import round_currency, sum_currency


class CommissionCalculator:
    """
    Calculates flat-rate commission for staff without commission profiles.

    Business Logic:
    ===============

    Per sale:
    - Service commission = service revenue * service rate %
    - Product commission = product revenue * product rate %
    - Other item types (packages, memberships, prepaid) earn nothing
    - Total is raised to the minimum, THEN lowered to the maximum, when set
      (a maximum below the minimum wins; validate the config first)

    Per staff member:
    - Sum the per-sale results of every sale the staff member worked on
    - Effective rate = total commission / total revenue * 100
    """

    def calculate_sale_commission(
        self,
        sale: Sale,
        config: CommissionConfig,
        staff_id: Optional[str] = None,
        staff_name: Optional[str] = None,
    ) -> FlatRateCommission:
        """
        Calculate commission for a single sale.

        Args:
            sale: The sale to calculate
            config: Flat rates and optional clamp bounds
            staff_id: Only count items attributed to this staff member;
                all items when None

        Returns:
            FlatRateCommission with amounts rounded to currency precision
        """
        items = sale.items
        if staff_id is not None:
            items = [item for item in items if item.is_attributed_to(staff_id)]

        service_items = [item for item in items if item.item_type is ItemType.SERVICE]
        product_items = [item for item in items if item.item_type is ItemType.PRODUCT]

        service_revenue = sum(item.total for item in service_items)
        product_revenue = sum(item.total for item in product_items)

        service_commission = service_revenue * config.service_commission_rate / 100
        product_commission = product_revenue * config.product_commission_rate / 100

        total_commission = service_commission + product_commission
        if config.minimum_commission is not None and total_commission < config.minimum_commission:
            total_commission = config.minimum_commission
        if config.maximum_commission is not None and total_commission > config.maximum_commission:
            total_commission = config.maximum_commission

        if staff_name is None:
            staff_name = next((item.staff_name for item in items if item.staff_name), staff_id or '')

        return FlatRateCommission(
            staff_id=staff_id or '',
            staff_name=staff_name,
            sale_id=sale.id,
            service_commission=round_currency(service_commission),
            product_commission=round_currency(product_commission),
            total_commission=round_currency(total_commission),
            service_revenue=round_currency(service_revenue),
            product_revenue=round_currency(product_revenue),
            total_revenue=round_currency(service_revenue + product_revenue),
            service_count=sum(item.quantity for item in service_items),
            product_count=sum(item.quantity for item in product_items),
            total_items=len(service_items) + len(product_items),
        )

    def calculate_multiple_sales_commission(
        self, sales: List[Sale], config: CommissionConfig, staff_id: Optional[str] = None
    ) -> List[FlatRateCommission]:
        return [self.calculate_sale_commission(sale, config, staff_id) for sale in sales]

    def calculate_staff_summary(
        self,
        sales: List[Sale],
        staff_id: str,
        config: CommissionConfig,
        staff_name: Optional[str] = None,
    ) -> Optional[StaffCommissionResult]:
        """
        Summarise flat-rate commission for one staff member.

        Returns:
            StaffCommissionResult, or None when the staff member has no items
            in any of the sales
        """
        staff_sales = [
            sale for sale in sales
            if any(item.is_attributed_to(staff_id) for item in sale.items)
        ]
        if not staff_sales:
            return None

        commissions = [
            self.calculate_sale_commission(sale, config, staff_id, staff_name)
            for sale in staff_sales
        ]

        total_commission = sum_currency(c.total_commission for c in commissions)
        total_revenue = sum_currency(c.total_revenue for c in commissions)
        transactions = len(commissions)

        return StaffCommissionResult(
            staff_id=staff_id,
            staff_name=commissions[0].staff_name or staff_id,
            total_commission=total_commission,
            total_revenue=total_revenue,
            total_transactions=transactions,
            average_commission_per_transaction=round_currency(total_commission / transactions),
            effective_commission_rate=(
                round_currency(total_commission / total_revenue * 100) if total_revenue else 0.0
            ),
            revenue_by_item_type={
                ItemType.SERVICE: sum_currency(c.service_revenue for c in commissions),
                ItemType.PRODUCT: sum_currency(c.product_revenue for c in commissions),
            },
            count_by_item_type={
                ItemType.SERVICE: sum(c.service_count for c in commissions),
                ItemType.PRODUCT: sum(c.product_count for c in commissions),
            },
            commission_by_item_type={
                ItemType.SERVICE: sum_currency(c.service_commission for c in commissions),
                ItemType.PRODUCT: sum_currency(c.product_commission for c in commissions),
            },
            mode='flat_rate',
        )

    @staticmethod
    def default_config() -> CommissionConfig:
        return CommissionConfig()


def validate_commission_config(config: CommissionConfig) -> ValidationResult:
    """
    Validate a flat-rate commission config.

    Never raises; returns every problem found as a readable message.
    """
    result = ValidationResult()

    if config.service_commission_rate < 0 or config.service_commission_rate > 100:
        result.errors.append('Service commission rate must be between 0 and 100')

    if config.product_commission_rate < 0 or config.product_commission_rate > 100:
        result.errors.append('Product commission rate must be between 0 and 100')

    if config.minimum_commission is not None and config.minimum_commission < 0:
        result.errors.append('Minimum commission must be positive')

    if config.maximum_commission is not None and config.maximum_commission < 0:
        result.errors.append('Maximum commission must be positive')

    if (config.minimum_commission is not None and config.maximum_commission is not None
            and config.minimum_commission > config.maximum_commission):
        result.errors.append('Minimum commission cannot be greater than maximum commission')

    return result
