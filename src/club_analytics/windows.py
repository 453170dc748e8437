"""
Time windows used to scope match-count aggregation.
"""
import calendar
from datetime import date, datetime, time, timedelta
from typing import NamedTuple, Optional, Tuple

PERIODS = ('today', 'week', 'month', 'custom', 'all')
KEY_SEPARATOR = '_'


def _parse_day(value) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        # Full ISO timestamps are accepted and truncated to their calendar day
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        return datetime.fromisoformat(text).date()


def _months_back(day: date, months: int = 1) -> date:
    """Same day-of-month `months` earlier, clamped to the target month's length."""
    year, month = day.year, day.month - months
    while month < 1:
        month += 12
        year -= 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


class TimeWindow(NamedTuple):
    period: str
    custom_start: Optional[date] = None
    custom_end: Optional[date] = None

    @classmethod
    def create(cls, period, custom_start=None, custom_end=None) -> 'TimeWindow':
        """Build a window, normalising custom bounds to calendar days.

        Bounds are dropped for every period except ``custom``.
        """
        if period not in PERIODS:
            raise ValueError(f"Unknown time period: {period!r}")
        if period != 'custom':
            return cls(period)
        return cls(period, _parse_day(custom_start), _parse_day(custom_end))

    def is_complete(self) -> bool:
        if self.period == 'custom':
            return self.custom_start is not None and self.custom_end is not None
        return self.period in PERIODS

    def to_key(self) -> str:
        start = self.custom_start.isoformat() if self.custom_start else ''
        end = self.custom_end.isoformat() if self.custom_end else ''
        return KEY_SEPARATOR.join((self.period, start, end))

    @classmethod
    def from_key(cls, key: str) -> 'TimeWindow':
        """Inverse of to_key.

        The period is split off the front and the end bound off the back, so the
        start bound is kept whole even if its text contains the separator.
        """
        if not isinstance(key, str) or key.count(KEY_SEPARATOR) < 2:
            raise ValueError(f"Malformed time window key: {key!r}")
        period, rest = key.split(KEY_SEPARATOR, 1)
        start, end = rest.rsplit(KEY_SEPARATOR, 1)
        return cls.create(period, start or None, end or None)

    def resolve(self, now: datetime) -> Optional[Tuple[Optional[datetime], Optional[datetime]]]:
        """Concrete [start, end] range for this window, inclusive at both ends.

        Returns (None, None) for ``all`` and None when the window cannot be
        resolved (a custom window missing a bound).
        """
        midnight = datetime.combine(now.date(), time.min)
        if self.period == 'all':
            return None, None
        if self.period == 'today':
            return midnight, now
        if self.period == 'week':
            return midnight - timedelta(days=7), now
        if self.period == 'month':
            return datetime.combine(_months_back(now.date()), time.min), now
        if self.period == 'custom' and self.is_complete():
            return (datetime.combine(self.custom_start, time.min),
                    datetime.combine(self.custom_end, time.max.replace(microsecond=999000)))
        return None

    def __str__(self):
        return self.to_key()


ALL_TIME = TimeWindow('all')
