#Purpose: Seasonal multipliers applied on top of the statistical forecast.
#Campus demand follows the timetable: morning/evening rush, lunch, quiet nights,
#and roughly 40% less traffic at weekends.

from __future__ import annotations

import math
from datetime import datetime

MORNING_RUSH = (7, 9)
EVENING_RUSH = (17, 19)
LUNCH = (12, 14)
LATE_NIGHT_FROM = 22
EARLY_MORNING_UNTIL = 5

WEEKEND_MULTIPLIER = 0.6


def time_of_day_multiplier(moment: datetime) -> float:
    hour = moment.hour

    if MORNING_RUSH[0] <= hour <= MORNING_RUSH[1]:
        return 1.5
    if EVENING_RUSH[0] <= hour <= EVENING_RUSH[1]:
        return 1.4
    if LUNCH[0] <= hour <= LUNCH[1]:
        return 1.2
    if hour >= LATE_NIGHT_FROM or hour <= EARLY_MORNING_UNTIL:
        return 0.3
    return 1.0


def day_of_week_multiplier(moment: datetime) -> float:
    # Monday=0 ... Saturday=5, Sunday=6
    if moment.weekday() >= 5:
        return WEEKEND_MULTIPLIER
    return 1.0


def seasonal_multiplier(moment: datetime) -> float:
    return time_of_day_multiplier(moment) * day_of_week_multiplier(moment)


def round_half_up(value: float) -> int:
    """2.5 -> 3, -2.5 -> -2. Python's round() would give 2 (banker's rounding)."""
    return int(math.floor(value + 0.5))
