"""Revenue attribution and monthly aggregation."""

from .aggregation import aggregate, calendar_day
from .attribution import attribute, count_visits_by_owner, distribute_monthly_fees
from .money import DECIMAL_MONEY, FLOAT_MONEY, MoneyArithmetic, get_money

__all__ = [
    "aggregate",
    "attribute",
    "calendar_day",
    "count_visits_by_owner",
    "distribute_monthly_fees",
    "get_money",
    "MoneyArithmetic",
    "DECIMAL_MONEY",
    "FLOAT_MONEY",
]
