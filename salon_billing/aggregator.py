"""Staff commission aggregation for Salon Billing"""
import logging
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .calculator import CommissionCalculator
from .models import (
    CalculationInterval,
    CommissionConfig,
    CommissionProfile,
    ItemType,
    ProfileEvaluation,
    Sale,
    StaffCommissionResult,
    StaffMember,
)
from .money import round_currency
from .profile_evaluator import ProfileEvaluator

logger = logging.getLogger(__name__)

DateBound = Union[date, datetime]


def profiles_by_staff(
    staff_members: Iterable[StaffMember], profiles: Iterable[CommissionProfile]
) -> Dict[str, List[CommissionProfile]]:
    """Resolve each staff member's assigned profile ids into profiles."""
    by_id = {profile.id: profile for profile in profiles}
    mapping = {}
    for staff in staff_members:
        assigned = []
        for profile_id in staff.commission_profile_ids:
            if profile_id in by_id:
                assigned.append(by_id[profile_id])
            else:
                logger.warning("Staff %s references unknown profile %s", staff.id, profile_id)
        mapping[staff.id] = assigned
    return mapping


class _StaffTotals:
    """Running per-staff sums, rounded once when the result is built"""

    def __init__(self):
        self.transactions = 0
        self.revenue_by_type: Dict[ItemType, float] = {}
        self.count_by_type: Dict[ItemType, int] = {}
        self.commission_by_type: Dict[ItemType, float] = {}
        self.breakdown: Dict[str, ProfileEvaluation] = {}

    def add_items(self, items) -> None:
        for item in items:
            if item.item_type is None:
                continue
            self.revenue_by_type[item.item_type] = self.revenue_by_type.get(item.item_type, 0.0) + item.total
            self.count_by_type[item.item_type] = self.count_by_type.get(item.item_type, 0) + 1

    def add_evaluation(self, evaluation: ProfileEvaluation) -> None:
        existing = self.breakdown.get(evaluation.profile_id)
        if existing is None:
            self.breakdown[evaluation.profile_id] = ProfileEvaluation(
                profile_id=evaluation.profile_id,
                profile_name=evaluation.profile_name,
                commission=evaluation.commission,
                revenue=evaluation.revenue,
                item_count=evaluation.item_count,
                revenue_by_item_type=dict(evaluation.revenue_by_item_type),
            )
        else:
            existing.commission = round_currency(existing.commission + evaluation.commission)
            existing.revenue = round_currency(existing.revenue + evaluation.revenue)
            existing.item_count += evaluation.item_count
            for item_type, amount in evaluation.revenue_by_item_type.items():
                existing.revenue_by_item_type[item_type] = round_currency(
                    existing.revenue_by_item_type.get(item_type, 0.0) + amount
                )

        # Attribute the profile's commission to item types by revenue share
        for item_type, amount in evaluation.revenue_by_item_type.items():
            share = evaluation.commission * amount / evaluation.revenue
            self.commission_by_type[item_type] = self.commission_by_type.get(item_type, 0.0) + share

    def build(self, staff: StaffMember) -> StaffCommissionResult:
        breakdown = list(self.breakdown.values())
        total_commission = round_currency(sum(p.commission for p in breakdown))
        total_revenue = round_currency(sum(self.revenue_by_type.values()))

        return StaffCommissionResult(
            staff_id=staff.id,
            staff_name=staff.name,
            total_commission=total_commission,
            total_revenue=total_revenue,
            total_transactions=self.transactions,
            average_commission_per_transaction=round_currency(total_commission / self.transactions),
            effective_commission_rate=(
                round_currency(total_commission / total_revenue * 100) if total_revenue else 0.0
            ),
            revenue_by_item_type={t: round_currency(v) for t, v in self.revenue_by_type.items()},
            count_by_item_type=dict(self.count_by_type),
            commission_by_item_type={t: round_currency(v) for t, v in self.commission_by_type.items()},
            profile_breakdown=breakdown,
            mode='profile',
        )


class CommissionAggregator:
    """
    Combines profile evaluations across sales, profiles and staff members.

    Every profile is evaluated against each sale on its own, so aggregating
    sales [A, B] gives the same totals as aggregating [A] and [B] separately.
    Staff members without an assigned profile use the legacy flat rates when
    a default config is given, and are left out otherwise. Staff members
    whose profiles are all inactive are still reported, with zero commission.
    """

    def __init__(self, default_config: Optional[CommissionConfig] = None):
        self.default_config = default_config
        self.evaluator = ProfileEvaluator()
        self.flat_rate = CommissionCalculator()

    def _flat_rate_config(self, staff: StaffMember) -> CommissionConfig:
        config = self.default_config
        return CommissionConfig(
            service_commission_rate=(
                staff.service_commission_rate
                if staff.service_commission_rate is not None
                else config.service_commission_rate
            ),
            product_commission_rate=(
                staff.product_commission_rate
                if staff.product_commission_rate is not None
                else config.product_commission_rate
            ),
            minimum_commission=config.minimum_commission,
            maximum_commission=config.maximum_commission,
        )

    def aggregate_staff(
        self,
        sales: Sequence[Sale],
        staff: StaffMember,
        profiles: Sequence[CommissionProfile],
    ) -> Optional[StaffCommissionResult]:
        """
        Commission summary for one staff member.

        Returns:
            StaffCommissionResult, or None when the staff member has no items
            in the given sales (or no profile and no default config)
        """
        if not profiles:
            if self.default_config is None:
                logger.debug("Staff %s has no commission profile, skipped", staff.id)
                return None
            return self.flat_rate.calculate_staff_summary(
                sales, staff.id, self._flat_rate_config(staff), staff_name=staff.name
            )

        active = [profile for profile in profiles if profile.is_active]
        if not active:
            logger.debug("Staff %s has only inactive profiles, reporting zero commission", staff.id)

        totals = _StaffTotals()
        for sale in sales:
            items = self.evaluator.staff_items(sale, staff.id)
            if not items:
                continue
            totals.transactions += 1
            totals.add_items(items)

            for profile in active:
                evaluation = self.evaluator.evaluate(staff.id, profile, [sale])
                if evaluation.revenue == 0:
                    continue
                totals.add_evaluation(evaluation)

        if totals.transactions == 0:
            return None
        return totals.build(staff)

    def aggregate(
        self,
        sales: Sequence[Sale],
        staff_members: Sequence[StaffMember],
        staff_profiles: Mapping[str, Sequence[CommissionProfile]],
    ) -> List[StaffCommissionResult]:
        """
        Commission summaries for every staff member, highest commission first.

        Staff members with equal commission keep their input order.
        """
        results = []
        for staff in staff_members:
            result = self.aggregate_staff(sales, staff, staff_profiles.get(staff.id, []))
            if result is not None:
                results.append(result)

        results.sort(key=lambda r: r.total_commission, reverse=True)
        logger.info("Aggregated commission for %d of %d staff over %d sales",
                    len(results), len(staff_members), len(sales))
        return results

    def aggregate_for_range(
        self,
        sales: Sequence[Sale],
        start: DateBound,
        end: DateBound,
        staff_members: Sequence[StaffMember],
        staff_profiles: Mapping[str, Sequence[CommissionProfile]],
    ) -> List[StaffCommissionResult]:
        return self.aggregate(
            filter_sales_by_date_range(sales, start, end), staff_members, staff_profiles
        )


def _as_datetime(bound: DateBound, end_of_day: bool) -> datetime:
    if isinstance(bound, datetime):
        return bound
    return datetime.combine(bound, time.max if end_of_day else time.min)


def filter_sales_by_date_range(sales: Iterable[Sale], start: DateBound, end: DateBound) -> List[Sale]:
    """
    Sales with start <= sale_date <= end.

    Plain dates cover the whole day, so end=date(2024, 1, 31) includes
    sales made at any time on the 31st.
    """
    start_at = _as_datetime(start, end_of_day=False)
    end_at = _as_datetime(end, end_of_day=True)
    return [sale for sale in sales if start_at <= sale.sale_date <= end_at]


def period_key(moment: datetime, interval: CalculationInterval) -> str:
    if CalculationInterval(interval) is CalculationInterval.DAILY:
        return moment.strftime('%Y-%m-%d')
    return moment.strftime('%Y-%m')


def group_sales_by_interval(sales: Iterable[Sale], interval: CalculationInterval) -> Dict[str, List[Sale]]:
    """Group sales into daily or monthly periods, in chronological order."""
    groups: Dict[str, List[Sale]] = {}
    for sale in sales:
        groups.setdefault(period_key(sale.sale_date, interval), []).append(sale)
    return {key: groups[key] for key in sorted(groups)}


def aggregate_staff_commission(
    sales: Sequence[Sale],
    staff_members: Sequence[StaffMember],
    staff_profiles: Mapping[str, Sequence[CommissionProfile]],
    default_config: Optional[CommissionConfig] = None,
) -> List[StaffCommissionResult]:
    return CommissionAggregator(default_config).aggregate(sales, staff_members, staff_profiles)


def aggregate_staff_commission_for_range(
    sales: Sequence[Sale],
    start: DateBound,
    end: DateBound,
    staff_members: Sequence[StaffMember],
    staff_profiles: Mapping[str, Sequence[CommissionProfile]],
    default_config: Optional[CommissionConfig] = None,
) -> List[StaffCommissionResult]:
    return CommissionAggregator(default_config).aggregate_for_range(
        sales, start, end, staff_members, staff_profiles
    )


def commission_breakdown(result: StaffCommissionResult) -> Dict[str, dict]:
    """Revenue, commission, effective rate and item count per item type."""
    def row(revenue, commission, count):
        return {
            'revenue': revenue,
            'commission': commission,
            'rate': round_currency(commission / revenue * 100) if revenue else 0.0,
            'count': count,
        }

    breakdown = {}
    for item_type in ItemType:
        if item_type not in result.revenue_by_item_type:
            continue
        breakdown[item_type.value] = row(
            result.revenue_by_item_type[item_type],
            result.commission_by_item_type.get(item_type, 0.0),
            result.count_by_item_type.get(item_type, 0),
        )
    breakdown['total'] = row(
        result.total_revenue,
        result.total_commission,
        sum(result.count_by_item_type.values()),
    )
    return breakdown
