# backend/zurt/services/billing_period.py
"""
Billing period arithmetic.

Periods use calendar months and years, not fixed durations. When the start
day does not exist in the target month the surplus days roll into the next
month (Jan 31 + 1 month -> Mar 3, or Mar 2 in a leap year; Feb 29 + 1 year ->
Mar 1). Time of day is preserved.
"""
import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Union

from zurt.core.constants import BillingPeriod
from zurt.core.exceptions import InvalidBillingPeriod


@dataclass(frozen=True)
class Period:
    start: datetime
    end: datetime


def parse_billing_period(value: Union[str, BillingPeriod, None]) -> BillingPeriod:
    """Normalize a cadence coming from a request; None means monthly"""
    if value is None:
        return BillingPeriod.MONTHLY
    try:
        return BillingPeriod(value)
    except ValueError:
        raise InvalidBillingPeriod(details={"billingPeriod": value})


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, rolling day overflow forward into the following month"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1

    days_in_month = calendar.monthrange(year, month)[1]
    if moment.day <= days_in_month:
        return moment.replace(year=year, month=month)

    first_of_month = moment.replace(year=year, month=month, day=1)
    return first_of_month + timedelta(days=moment.day - 1)


def compute_period(now: datetime, billing_period: BillingPeriod) -> Period:
    """Current billing period for a subscription starting at `now`"""
    if billing_period == BillingPeriod.MONTHLY:
        end = add_months(now, 1)
    elif billing_period == BillingPeriod.ANNUAL:
        end = add_months(now, 12)
    else:
        raise InvalidBillingPeriod(details={"billingPeriod": str(billing_period)})

    return Period(start=now, end=end)
