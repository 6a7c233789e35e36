"""Commission profile evaluation for Salon Billing"""
import logging
from typing import Dict, FrozenSet, Iterable, List, Sequence, Tuple

from .models import (
    CalculateBy,
    CommissionProfile,
    ItemBasedProfile,
    ItemRate,
    ItemType,
    ProfileEvaluation,
    Sale,
    SaleItem,
    TargetBasedProfile,
    TargetTier,
    ValidationResult,
)
from .money import round_currency

logger = logging.getLogger(__name__)


class ProfileEvaluator:
    """
    Evaluates commission profiles against a staff member's sold items.

    Business Logic:
    ===============

    Profile revenue:
    - Only items attributed to the staff member count
    - Only items whose type is one of the profile's qualifying items count
    - Revenue is the sum of item totals; include_tax is informational only

    Target-based, non-cascading:
    - Pick the tier whose [from, to] contains the revenue
      (highest 'from' wins when tiers overlap)
    - Percent tiers apply to the WHOLE revenue, fixed tiers pay their value
    - No matching tier means no commission

    Target-based, cascading:
    - Every tier the revenue has reached pays on the part of the revenue
      inside its own band: min(revenue, to) - from
    - Fixed tiers pay their value once, when the band is entered

    Item-based:
    - Every item rate whose type qualifies applies to the WHOLE profile
      revenue, so overlapping rates stack

    There is no minimum/maximum clamp for profiles; express caps as tiers.
    """

    @staticmethod
    def staff_items(sale: Sale, staff_id: str) -> List[SaleItem]:
        """Items of a sale attributed to a staff member (by id or name)."""
        return [item for item in sale.items if item.is_attributed_to(staff_id)]

    @staticmethod
    def profile_revenue(
        items: Iterable[SaleItem], profile: CommissionProfile
    ) -> Tuple[float, int, Dict[ItemType, float]]:
        """
        Sum the revenue of the items a profile qualifies.

        Returns:
            (revenue, item_count, revenue_by_item_type)
        """
        by_type: Dict[ItemType, float] = {}
        item_count = 0

        for item in items:
            if not profile.qualifies(item.item_type):
                if item.item_type is None:
                    logger.debug("Item %s has no known type, skipped", item.id)
                continue
            by_type[item.item_type] = by_type.get(item.item_type, 0.0) + item.total
            item_count += 1

        return sum(by_type.values()), item_count, by_type

    @staticmethod
    def _apply(calculate_by: CalculateBy, value: float, amount: float) -> float:
        if calculate_by is CalculateBy.PERCENT:
            return amount * value / 100
        return value

    @classmethod
    def calculate_target_commission(
        cls,
        revenue: float,
        tiers: Sequence[TargetTier],
        cascading: bool = False,
    ) -> float:
        """
        Commission from revenue tiers.

        Args:
            revenue: Qualifying revenue
            tiers: Tiers sorted ascending by from_amount
            cascading: Progressive brackets when True

        Returns:
            Commission amount (unrounded)
        """
        if cascading:
            commission = 0.0
            for tier in tiers:
                if revenue < tier.from_amount:
                    continue
                overlap = min(revenue, tier.to_amount) - tier.from_amount
                # A band that is only touched at its lower edge pays nothing
                if overlap > 0:
                    commission += cls._apply(tier.calculate_by, tier.value, overlap)
            return commission

        matching = [t for t in tiers if t.from_amount <= revenue <= t.to_amount]
        if not matching:
            logger.debug("Revenue %.2f is outside every tier, no commission tier applies", revenue)
            return 0.0
        tier = max(matching, key=lambda t: t.from_amount)
        return cls._apply(tier.calculate_by, tier.value, revenue)

    @classmethod
    def calculate_item_rate_commission(
        cls,
        revenue: float,
        item_rates: Sequence[ItemRate],
        qualifying_items: FrozenSet[ItemType],
    ) -> float:
        """
        Commission from item rates.

        Each qualifying rate applies to the whole profile revenue, not to the
        revenue of its own item type.
        """
        commission = 0.0
        for item_rate in item_rates:
            if item_rate.item_type in qualifying_items:
                commission += cls._apply(item_rate.calculate_by, item_rate.rate, revenue)
        return commission

    @classmethod
    def commission_for_revenue(cls, profile: CommissionProfile, revenue: float) -> float:
        if isinstance(profile, TargetBasedProfile):
            return cls.calculate_target_commission(
                revenue, profile.target_tiers, profile.cascading_commission
            )
        if isinstance(profile, ItemBasedProfile):
            return cls.calculate_item_rate_commission(
                revenue, profile.item_rates, profile.qualifying_items
            )
        logger.warning("Profile %s has no commission rules, paying nothing", profile.id)
        return 0.0

    @classmethod
    def evaluate(
        cls, staff_id: str, profile: CommissionProfile, sales: Iterable[Sale]
    ) -> ProfileEvaluation:
        """
        Evaluate one profile for one staff member over one or more sales.

        Revenue is pooled across all given sales before tiers are applied.
        Inactive profiles are evaluated as well; filtering is the caller's job.
        """
        items = [item for sale in sales for item in cls.staff_items(sale, staff_id)]
        revenue, item_count, by_type = cls.profile_revenue(items, profile)

        commission = cls.commission_for_revenue(profile, revenue) if revenue else 0.0

        return ProfileEvaluation(
            profile_id=profile.id,
            profile_name=profile.name,
            commission=round_currency(commission),
            revenue=round_currency(revenue),
            item_count=item_count,
            revenue_by_item_type={t: round_currency(v) for t, v in by_type.items()},
        )


def evaluate_profile(staff_id: str, profile: CommissionProfile, sales: Iterable[Sale]) -> ProfileEvaluation:
    return ProfileEvaluator.evaluate(staff_id, profile, sales)


def validate_profile(profile: CommissionProfile) -> ValidationResult:
    """Check a profile before it is accepted from the administration screens."""
    result = ValidationResult()

    if not profile.qualifying_items:
        result.errors.append(f"Profile '{profile.name}' has no qualifying items")

    if isinstance(profile, TargetBasedProfile):
        if not profile.target_tiers:
            result.errors.append(f"Profile '{profile.name}' has no target tiers")
        previous_from = None
        for index, tier in enumerate(profile.target_tiers, 1):
            if tier.from_amount < 0:
                result.errors.append(f"Tier {index}: 'from' cannot be negative")
            if tier.from_amount >= tier.to_amount:
                result.errors.append(f"Tier {index}: 'from' must be less than 'to'")
            if tier.value < 0:
                result.errors.append(f"Tier {index}: value cannot be negative")
            if tier.calculate_by is CalculateBy.PERCENT and tier.value > 100:
                result.errors.append(f"Tier {index}: percentage cannot exceed 100")
            if previous_from is not None and tier.from_amount < previous_from:
                result.errors.append(f"Tier {index}: tiers must be sorted by 'from'")
            previous_from = tier.from_amount
    elif isinstance(profile, ItemBasedProfile):
        if not profile.item_rates:
            result.errors.append(f"Profile '{profile.name}' has no item rates")
        for index, item_rate in enumerate(profile.item_rates, 1):
            if item_rate.item_type is None:
                result.errors.append(f"Item rate {index}: unknown item type")
            elif item_rate.item_type not in profile.qualifying_items:
                result.errors.append(
                    f"Item rate {index}: {item_rate.item_type.label} is not a qualifying item"
                )
            if item_rate.rate < 0:
                result.errors.append(f"Item rate {index}: rate cannot be negative")
            if item_rate.calculate_by is CalculateBy.PERCENT and item_rate.rate > 100:
                result.errors.append(f"Item rate {index}: percentage cannot exceed 100")
    else:
        result.errors.append(f"Profile '{profile.name}' has no commission rules")

    return result
