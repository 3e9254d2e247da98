from datetime import date


def format_date(value: date) -> str:
    """Format a date as day-month-year without zero padding, e.g. 5-3-2024."""
    return f"{value.day}-{value.month}-{value.year}"
