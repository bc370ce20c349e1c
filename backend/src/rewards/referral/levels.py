"""Level progression and point-award rules.

Plain functions so services can apply them explicitly before a commit.
"""

MAX_LEVEL = 100
POINTS_PER_LEVEL = 5000

# Referral count needed for each boosted level, highest first
REFERRAL_LEVEL_THRESHOLDS = (
    (20, 4),
    (10, 3),
    (3, 2),
)

# Points credited to a referrer, by the referrer's level
REFERRAL_AWARD_BY_LEVEL = {
    1: 1000,
    2: 1400,
    3: 2000,
    4: 2500,
}
DEFAULT_REFERRAL_AWARD = 1000

# 4 points = 1 currency unit, for both the daily and the referral pool
POINTS_PER_CURRENCY_UNIT = 4


def level_for_points(points_earned: int) -> int:
    """Level derived from lifetime points."""
    return min(MAX_LEVEL, max(points_earned, 0) // POINTS_PER_LEVEL + 1)


def level_for_referrals(referral_count: int) -> int:
    """Level boost from the number of referral entries."""
    for threshold, level in REFERRAL_LEVEL_THRESHOLDS:
        if referral_count >= threshold:
            return level
    return 1


def recompute_level(current_level: int, points_earned: int, referral_count: int) -> int:
    """Highest of the current, points-derived and referral-derived levels."""
    return min(
        MAX_LEVEL,
        max(current_level or 1, level_for_points(points_earned), level_for_referrals(referral_count)),
    )


def referral_award(referrer_level: int) -> int:
    """Points credited to a referrer at the given level."""
    return REFERRAL_AWARD_BY_LEVEL.get(referrer_level, DEFAULT_REFERRAL_AWARD)


def points_to_currency(points: int) -> int:
    """Currency units for a point pool (floor division)."""
    return max(points, 0) // POINTS_PER_CURRENCY_UNIT
