from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

# Monday 00:00:00.000 -> Sunday 23:59:59.999
WEEK_LENGTH = timedelta(days=7)
_WEEK_END_OFFSET = WEEK_LENGTH - timedelta(milliseconds=1)


def to_utc(value: date | datetime) -> datetime:
    '''Normalize a date or datetime to an aware UTC datetime.

    Naive datetimes are taken to already be in UTC; plain dates map to
    midnight UTC.
    '''
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def week_start(value: date | datetime) -> datetime:
    '''Return the Monday 00:00:00.000 UTC that starts the week of `value`.

    Sunday belongs to the week that started six days earlier.
    '''
    moment = to_utc(value)
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    # datetime.weekday(): Monday == 0 ... Sunday == 6
    return midnight - timedelta(days=midnight.weekday())


def week_end(start: datetime) -> datetime:
    '''Return Sunday 23:59:59.999 of the week beginning at `start`.'''
    return to_utc(start) + _WEEK_END_OFFSET


def week_bounds(value: date | datetime) -> tuple[datetime, datetime]:
    start = week_start(value)
    return start, week_end(start)


def previous_week(start: datetime) -> tuple[datetime, datetime]:
    prev_start = to_utc(start) - WEEK_LENGTH
    return prev_start, week_end(prev_start)


def week_key(start: datetime) -> str:
    '''ISO date of the week start, used as the persisted selection key.'''
    return week_start(start).date().isoformat()
