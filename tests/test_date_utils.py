from datetime import date

from date_utils import format_date


def test_format_date_is_day_month_year_unpadded():
    assert format_date(date(2024, 3, 5)) == "5-3-2024"
    assert format_date(date(1999, 12, 31)) == "31-12-1999"
