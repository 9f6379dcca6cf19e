"""
Date utilities for curve construction.

Provides:
- Tenor parsing and tenor arithmetic ("2D", "3M", "5Y")
- Regular schedule generation for swap and CDS legs
"""

import calendar
import re
from datetime import date, timedelta
from typing import List, Optional, Tuple

from .conventions import (
    BusinessDayConvention,
    adjust_business_day,
    is_business_day,
)


class DateUtils:
    """Utility class for date manipulation in rates contexts."""

    # number + unit (D/W/M/Y)
    TENOR_PATTERN = re.compile(r'^(\d+)([DWMY])$', re.IGNORECASE)

    @staticmethod
    def parse_tenor(tenor: str) -> Tuple[int, str]:
        """
        Parse a tenor string into (amount, unit).

        Args:
            tenor: Tenor string like "1D", "3M", "2Y"

        Returns:
            Tuple of (amount, unit) where unit is D/W/M/Y

        Raises:
            ValueError: If tenor format is invalid
        """
        match = DateUtils.TENOR_PATTERN.match(tenor.upper().strip())
        if not match:
            raise ValueError(f"Invalid tenor format: {tenor}. Expected format like '3M', '2Y'")

        return int(match.group(1)), match.group(2).upper()

    @staticmethod
    def add_tenor(
        start: date,
        tenor: str,
        convention: BusinessDayConvention = BusinessDayConvention.UNADJUSTED,
        holidays: Optional[set] = None
    ) -> date:
        """
        Add a tenor to a date.

        "D" tenors count business days; W/M/Y tenors are calendar periods
        (end of month clipped) adjusted with the given convention.

        Args:
            start: Starting date
            tenor: Tenor string (e.g., "2D", "3M", "2Y")
            convention: Adjustment applied to W/M/Y results
            holidays: Optional holiday calendar

        Returns:
            End date
        """
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            result = start
            days_added = 0
            while days_added < amount:
                result += timedelta(days=1)
                if is_business_day(result, holidays):
                    days_added += 1
            return result

        if unit == 'W':
            result = start + timedelta(weeks=amount)
        elif unit == 'M':
            result = add_months(start, amount)
        else:
            result = add_months(start, 12 * amount)

        return adjust_business_day(result, convention, holidays)

    @staticmethod
    def tenor_to_years(tenor: str) -> float:
        """Approximate year fraction of a tenor (for sorting and guesses)."""
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            return amount / 365.0
        elif unit == 'W':
            return amount * 7 / 365.0
        elif unit == 'M':
            return amount / 12.0
        return float(amount)

    @staticmethod
    def generate_schedule(
        start: date,
        end: date,
        frequency: int,
        convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING,
        holidays: Optional[set] = None
    ) -> List[date]:
        """
        Generate payment dates between start (excluded) and end (included).

        Dates are rolled backward from end, so a broken period ends up as a
        short front stub.

        Args:
            start: Accrual start
            end: Maturity
            frequency: Payments per year (1=annual, 2=semi, 4=quarterly, 12=monthly)
            convention: Business day adjustment of the payment dates
            holidays: Holiday calendar

        Returns:
            List of adjusted payment dates
        """
        if frequency <= 0 or 12 % frequency:
            raise ValueError(f"Frequency must divide 12, got {frequency}")
        if end <= start:
            raise ValueError(f"Schedule end {end} must be after start {start}")

        months_per_period = 12 // frequency

        unadjusted = [end]
        periods = 1
        while True:
            prev_date = add_months(end, -months_per_period * periods)
            if prev_date <= start:
                break
            unadjusted.insert(0, prev_date)
            periods += 1

        return [adjust_business_day(d, convention, holidays) for d in unadjusted]


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clipping the day to the month's end."""
    index = d.month - 1 + months
    year = d.year + index // 12
    month = index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


__all__ = [
    "DateUtils",
    "add_months",
]
