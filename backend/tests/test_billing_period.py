# tests/test_billing_period.py
"""
Billing period arithmetic
Tests: calendar month/year rollover, cadence parsing
"""
from datetime import datetime

import pytest

from zurt.core.constants import BillingPeriod
from zurt.core.exceptions import InvalidBillingPeriod
from zurt.services.billing_period import add_months, compute_period, parse_billing_period


class TestComputePeriod:

    def test_monthly_period_ends_one_calendar_month_later(self):
        now = datetime(2026, 3, 15, 10, 30)
        period = compute_period(now, BillingPeriod.MONTHLY)

        assert period.start == now
        assert period.end == datetime(2026, 4, 15, 10, 30)

    def test_annual_period_ends_one_calendar_year_later(self):
        now = datetime(2026, 3, 15, 10, 30)
        period = compute_period(now, BillingPeriod.ANNUAL)

        assert period.end == datetime(2027, 3, 15, 10, 30)

    def test_december_rolls_into_next_year(self):
        period = compute_period(datetime(2026, 12, 10), BillingPeriod.MONTHLY)
        assert period.end == datetime(2027, 1, 10)

    def test_month_end_overflow_rolls_forward(self):
        # February 2026 has 28 days: Jan 31 + 1 month spills 3 days into March
        period = compute_period(datetime(2026, 1, 31, 8, 0), BillingPeriod.MONTHLY)
        assert period.end == datetime(2026, 3, 3, 8, 0)

    def test_month_end_overflow_in_leap_year(self):
        assert add_months(datetime(2028, 1, 31), 1) == datetime(2028, 3, 2)

    def test_leap_day_annual_rolls_to_march(self):
        period = compute_period(datetime(2028, 2, 29, 12, 0), BillingPeriod.ANNUAL)
        assert period.end == datetime(2029, 3, 1, 12, 0)

    def test_thirty_first_into_thirty_day_month(self):
        assert add_months(datetime(2026, 3, 31), 1) == datetime(2026, 5, 1)

    @pytest.mark.parametrize("cadence", list(BillingPeriod))
    def test_end_is_always_after_start(self, cadence):
        for day in (1, 28, 29, 30, 31):
            now = datetime(2026, 1, day, 23, 59, 59)
            period = compute_period(now, cadence)
            assert period.end > period.start


class TestParseBillingPeriod:

    def test_defaults_to_monthly(self):
        assert parse_billing_period(None) == BillingPeriod.MONTHLY

    def test_accepts_known_values(self):
        assert parse_billing_period("annual") == BillingPeriod.ANNUAL
        assert parse_billing_period("monthly") == BillingPeriod.MONTHLY

    def test_rejects_unknown_values(self):
        with pytest.raises(InvalidBillingPeriod):
            parse_billing_period("weekly")
