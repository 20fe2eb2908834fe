"""
Date helpers shared by the availability, pricing and booking code
"""

from datetime import date, datetime, timedelta

from travelhub.exceptions import ValidationError

DATE_FORMAT = '%Y-%m-%d'


def parse_date(value, field='date'):
    """Parse a YYYY-MM-DD string (or pass through a date)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f'{field} is required')
    try:
        return datetime.strptime(str(value)[:10], DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f'Invalid {field} format, expected YYYY-MM-DD')


def date_range(start, end):
    """Yield each day in [start, end)"""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def nights_between(start, end):
    return (end - start).days


def weekday_sunday_first(day):
    """0 = Sunday ... 6 = Saturday"""
    return (day.weekday() + 1) % 7


def today():
    return datetime.utcnow().date()
