"""
Financial year calendar.

A financial year runs from the first day of a fixed start
month (April by default) to the day before that month one
year later. It is labelled "YYYY-YY", e.g. 2024-25 covers
2024-04-01 through 2025-03-31.

Pure functions only. No database, no hidden clock: "today"
is a parameter that defaults to date.today().
"""

import re
from datetime import date, timedelta

from invoice_ledger.config import get_settings
from invoice_ledger.exceptions import ValidationError

FY_LABEL_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def _start_month(start_month: int | None) -> int:
    month = get_settings().FY_START_MONTH if start_month is None else start_month
    if not 1 <= month <= 12:
        raise ValidationError(
            f"Financial year start month must be 1-12, got {month}.",
            details={"start_month": month},
        )
    return month


def financial_year_of(day: date, start_month: int | None = None) -> str:
    """Label of the financial year that contains the given day."""
    month = _start_month(start_month)
    start_year = day.year if day.month >= month else day.year - 1
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def current_financial_year(
    today: date | None = None, start_month: int | None = None
) -> str:
    """Label of the financial year containing today."""
    return financial_year_of(today or date.today(), start_month)


def year_bounds(label: str, start_month: int | None = None) -> tuple[date, date]:
    """
    Return the inclusive (start, end) dates of a financial year.

    Raises ValidationError when the label is not "YYYY-YY" or
    when the short year is not the one following the start
    year ("2024-26" is rejected).
    """
    match = FY_LABEL_PATTERN.match(label or "")
    if not match:
        raise ValidationError(
            "Invalid financial year format. Expected YYYY-YY.",
            details={"year": label},
        )

    start_year = int(match.group(1))
    if not 1 <= start_year < 9999:
        raise ValidationError(
            f"Financial year {label} is out of range.",
            details={"year": label},
        )
    if int(match.group(2)) != (start_year + 1) % 100:
        raise ValidationError(
            f"Financial year {label} does not span consecutive years.",
            details={"year": label},
        )

    month = _start_month(start_month)
    start = date(start_year, month, 1)
    end = date(start_year + 1, month, 1) - timedelta(days=1)
    return start, end
