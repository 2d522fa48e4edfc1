"""
Recurrence rules and the pure occurrence evaluator.

Each rule kind is its own frozen dataclass, so a rule that passed construction
is always well formed. Nothing in this module touches the database: the
evaluator works on any object exposing ``start_date``, ``end_date`` and
``rule``.

Weekdays are numbered 0 (Sunday) to 6 (Saturday) and calendar weeks start on
Sunday.
"""

import calendar
import functools
from dataclasses import dataclass
from datetime import date, timedelta
from typing import FrozenSet, Iterator, Optional, Union

from django.utils.dateparse import parse_date

from .errors import RecurrenceValidationError


TYPE_NONE = 'none'
TYPE_DAILY = 'daily'
TYPE_WEEKLY = 'weekly'
TYPE_MONTHLY = 'monthly'
TYPE_YEARLY = 'yearly'

RECURRENCE_TYPES = (TYPE_NONE, TYPE_DAILY, TYPE_WEEKLY, TYPE_MONTHLY, TYPE_YEARLY)

WEEKDAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

MAX_SET_POS = 5

MAX_COUNT = 10000


@dataclass(frozen=True)
class NoRecurrence:
    """Single occurrence on the series start date."""

    type = TYPE_NONE


@dataclass(frozen=True)
class RepeatingRule:
    """Fields shared by every repeating rule. ``end_date`` and ``count`` are exclusive."""

    interval: int = 1
    end_date: Optional[date] = None
    count: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.interval, int) or isinstance(self.interval, bool) or self.interval < 1:
            raise RecurrenceValidationError('Interval must be a positive integer')
        if self.end_date is not None and self.count is not None:
            raise RecurrenceValidationError('Recurrence cannot have both end_date and count')
        if self.count is not None and (
            not isinstance(self.count, int) or isinstance(self.count, bool) or self.count < 1
        ):
            raise RecurrenceValidationError('Count must be a positive integer')
        if self.count is not None and self.count > MAX_COUNT:
            raise RecurrenceValidationError(f'Count cannot exceed {MAX_COUNT}')


@dataclass(frozen=True)
class DailyRule(RepeatingRule):
    type = TYPE_DAILY


@dataclass(frozen=True)
class WeeklyRule(RepeatingRule):
    days_of_week: FrozenSet[int] = frozenset()

    type = TYPE_WEEKLY

    def __post_init__(self):
        super().__post_init__()
        _check_members(self.days_of_week, 0, 6, 'Days of week required for weekly recurrence')


@dataclass(frozen=True)
class MonthlyByDateRule(RepeatingRule):
    days_of_month: FrozenSet[int] = frozenset()

    type = TYPE_MONTHLY

    def __post_init__(self):
        super().__post_init__()
        _check_members(self.days_of_month, 1, 31, 'Days of month required for monthly recurrence')


@dataclass(frozen=True)
class MonthlyByWeekdayRule(RepeatingRule):
    """The n-th given weekday(s) of the month, e.g. 2nd and 4th Tuesday."""

    days_of_week: FrozenSet[int] = frozenset()
    by_set_pos: FrozenSet[int] = frozenset()

    type = TYPE_MONTHLY

    def __post_init__(self):
        super().__post_init__()
        _check_members(self.days_of_week, 0, 6, 'Days of week required for monthly recurrence')
        _check_members(self.by_set_pos, 1, MAX_SET_POS, 'Week positions required for monthly recurrence')


@dataclass(frozen=True)
class YearlyRule(RepeatingRule):
    """Same month and day as the series start."""

    type = TYPE_YEARLY


RecurrenceRule = Union[
    NoRecurrence, DailyRule, WeeklyRule, MonthlyByDateRule, MonthlyByWeekdayRule, YearlyRule
]


def _check_members(values, low, high, empty_message):
    if not values:
        raise RecurrenceValidationError(empty_message)
    for value in values:
        if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
            raise RecurrenceValidationError(f'{value!r} is not between {low} and {high}')


# Parsing / serialization

_SET_FIELDS = ('days_of_week', 'days_of_month', 'by_set_pos')
_TERMINATION_FIELDS = ('end_date', 'count')


def parse_recurrence(data) -> RecurrenceRule:
    """
    Build a rule from its stored/wire dict.

    Fields that do not apply to the rule type may be omitted, null or an empty
    list; anything else is rejected.

    Raises:
        RecurrenceValidationError: If the dict does not describe a valid rule
    """
    if isinstance(data, (NoRecurrence, RepeatingRule)):
        return data
    if not data:
        return NoRecurrence()
    if not isinstance(data, dict):
        raise RecurrenceValidationError('Recurrence must be an object')

    rule_type = data.get('type', TYPE_NONE)
    if rule_type not in RECURRENCE_TYPES:
        raise RecurrenceValidationError(f'Unknown recurrence type: {rule_type!r}')

    present = {key for key, value in data.items() if value not in (None, [], ())}
    unknown = present - {'type', 'interval', *_SET_FIELDS, *_TERMINATION_FIELDS}
    if unknown:
        raise RecurrenceValidationError(f'Unknown recurrence field(s): {", ".join(sorted(unknown))}')

    if rule_type == TYPE_NONE:
        _reject_fields(rule_type, present, _SET_FIELDS + _TERMINATION_FIELDS)
        return NoRecurrence()

    common = {
        'interval': data.get('interval') if data.get('interval') is not None else 1,
        'end_date': _parse_end_date(data.get('end_date')),
        'count': data.get('count'),
    }

    if rule_type == TYPE_DAILY:
        _reject_fields(rule_type, present, _SET_FIELDS)
        return DailyRule(**common)

    if rule_type == TYPE_WEEKLY:
        _reject_fields(rule_type, present, ('days_of_month', 'by_set_pos'))
        return WeeklyRule(days_of_week=_to_set(data.get('days_of_week')), **common)

    if rule_type == TYPE_MONTHLY:
        by_date = 'days_of_month' in present
        by_weekday = 'days_of_week' in present or 'by_set_pos' in present
        if by_date and by_weekday:
            raise RecurrenceValidationError(
                'Monthly recurrence takes either days_of_month or days_of_week with by_set_pos, not both'
            )
        if by_weekday:
            return MonthlyByWeekdayRule(
                days_of_week=_to_set(data.get('days_of_week')),
                by_set_pos=_to_set(data.get('by_set_pos')),
                **common
            )
        return MonthlyByDateRule(days_of_month=_to_set(data.get('days_of_month')), **common)

    _reject_fields(rule_type, present, _SET_FIELDS)
    return YearlyRule(**common)


def _reject_fields(rule_type, present, fields):
    misplaced = sorted(present.intersection(fields))
    if misplaced:
        raise RecurrenceValidationError(
            f'{", ".join(misplaced)} not allowed for {rule_type} recurrence'
        )


def _to_set(values) -> FrozenSet[int]:
    if values is None:
        return frozenset()
    if not isinstance(values, (list, tuple, set, frozenset)):
        raise RecurrenceValidationError('Expected a list of integers')
    try:
        return frozenset(values)
    except TypeError:
        raise RecurrenceValidationError('Expected a list of integers') from None


def _parse_end_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        parsed = parse_date(value)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None:
        raise RecurrenceValidationError(f'Invalid recurrence end_date: {value!r}')
    return parsed


def recurrence_to_dict(rule: RecurrenceRule) -> dict:
    """Inverse of parse_recurrence; JSON friendly."""
    data = {'type': rule.type}
    if isinstance(rule, NoRecurrence):
        return data

    data['interval'] = rule.interval
    for name in _SET_FIELDS:
        values = getattr(rule, name, None)
        if values:
            data[name] = sorted(values)
    if rule.end_date is not None:
        data['end_date'] = rule.end_date.isoformat()
    if rule.count is not None:
        data['count'] = rule.count
    return data


def describe(rule: RecurrenceRule) -> str:
    """Short human readable summary, used by the admin and CLI output."""
    if isinstance(rule, NoRecurrence):
        return 'Once'
    every = {TYPE_DAILY: 'day', TYPE_WEEKLY: 'week', TYPE_MONTHLY: 'month', TYPE_YEARLY: 'year'}[rule.type]
    text = f'Every {every}' if rule.interval == 1 else f'Every {rule.interval} {every}s'
    if isinstance(rule, (WeeklyRule, MonthlyByWeekdayRule)):
        text += ' on ' + ', '.join(WEEKDAY_NAMES[d] for d in sorted(rule.days_of_week))
    if isinstance(rule, MonthlyByWeekdayRule):
        text += ' (week ' + ', '.join(str(p) for p in sorted(rule.by_set_pos)) + ')'
    if isinstance(rule, MonthlyByDateRule):
        text += ' on day ' + ', '.join(str(d) for d in sorted(rule.days_of_month))
    if rule.end_date:
        text += f' until {rule.end_date.isoformat()}'
    elif rule.count:
        text += f', {rule.count} times'
    return text


# Date helpers

def sunday_weekday(day: date) -> int:
    """Weekday with 0 = Sunday."""
    return (day.weekday() + 1) % 7


def week_start(day: date) -> date:
    return day - timedelta(days=sunday_weekday(day))


def months_between(start: date, day: date) -> int:
    return (day.year - start.year) * 12 + (day.month - start.month)


def _add_months(start: date, months: int):
    index = start.month - 1 + months
    return start.year + index // 12, index % 12 + 1


def _is_set_position(day: date, positions) -> bool:
    position = (day.day - 1) // 7 + 1
    if position in positions:
        return True
    # A "5th" selector falls back to the last such weekday of a four-week month.
    days_in_month = calendar.monthrange(day.year, day.month)[1]
    return MAX_SET_POS in positions and position == 4 and day.day + 7 > days_in_month


# Evaluation

def matches_pattern(rule: RecurrenceRule, start: date, day: date) -> bool:
    """
    Whether ``day`` fits the rule's repeating pattern anchored at ``start``.

    Termination (``end_date``/``count``) is not considered here.
    """
    if isinstance(rule, NoRecurrence):
        return day == start
    if day < start:
        return False

    if isinstance(rule, DailyRule):
        return (day - start).days % rule.interval == 0

    if isinstance(rule, WeeklyRule):
        weeks = (week_start(day) - week_start(start)).days // 7
        return sunday_weekday(day) in rule.days_of_week and weeks % rule.interval == 0

    if isinstance(rule, MonthlyByDateRule):
        return (
            months_between(start, day) % rule.interval == 0
            and day.day in rule.days_of_month
        )

    if isinstance(rule, MonthlyByWeekdayRule):
        return (
            months_between(start, day) % rule.interval == 0
            and sunday_weekday(day) in rule.days_of_week
            and _is_set_position(day, rule.by_set_pos)
        )

    if isinstance(rule, YearlyRule):
        return (
            day.month == start.month
            and day.day == start.day
            and (day.year - start.year) % rule.interval == 0
        )

    return False


def _iter_candidates(rule: RecurrenceRule, start: date) -> Iterator[date]:
    """Ascending pattern matches from ``start`` until the calendar runs out."""
    if isinstance(rule, NoRecurrence):
        yield start
        return

    if isinstance(rule, DailyRule):
        step = timedelta(days=rule.interval)
        day = start
        while True:
            yield day
            try:
                day += step
            except OverflowError:
                return

    if isinstance(rule, WeeklyRule):
        offsets = sorted(rule.days_of_week)
        first_week = week_start(start)
        weeks = 0
        while True:
            try:
                week = first_week + timedelta(weeks=weeks)
                days = [week + timedelta(days=offset) for offset in offsets]
            except OverflowError:
                return
            for day in days:
                if day >= start:
                    yield day
            weeks += rule.interval

    if isinstance(rule, YearlyRule):
        for year in range(start.year, date.max.year + 1, rule.interval):
            try:
                yield date(year, start.month, start.day)
            except ValueError:
                continue
        return

    months = 0
    while True:
        year, month = _add_months(start, months)
        if year > date.max.year:
            return
        days_in_month = calendar.monthrange(year, month)[1]
        if isinstance(rule, MonthlyByDateRule):
            day_numbers = [d for d in sorted(rule.days_of_month) if d <= days_in_month]
        else:
            day_numbers = range(1, days_in_month + 1)
        for day_number in day_numbers:
            day = date(year, month, day_number)
            if day >= start and matches_pattern(rule, start, day):
                yield day
        months += rule.interval


@functools.lru_cache(maxsize=1024)
def _count_cutoff(rule: RepeatingRule, start: date) -> Optional[date]:
    """Date of the rule's last counted occurrence, or None if it never fires."""
    last = None
    for index, day in enumerate(_iter_candidates(rule, start), start=1):
        if rule.end_date is not None and day > rule.end_date:
            break
        last = day
        if index == rule.count:
            break
    return last


def rule_occurs_on(rule: RecurrenceRule, start: date, day: date) -> bool:
    """Pattern match plus the rule's own termination."""
    if not matches_pattern(rule, start, day):
        return False
    if isinstance(rule, NoRecurrence):
        return True
    if rule.end_date is not None and day > rule.end_date:
        return False
    if rule.count is not None:
        cutoff = _count_cutoff(rule, start)
        return cutoff is not None and day <= cutoff
    return True


def occurs_on(series, day: date) -> bool:
    """
    Whether ``series`` is scheduled on ``day``, ignoring exceptions.

    Args:
        series: Object with ``start_date``, ``end_date`` and ``rule``
        day: Calendar date to test

    Returns:
        True if the recurrence rule produces ``day`` within the series bounds
    """
    if series.end_date is not None and day > series.end_date:
        return False
    return rule_occurs_on(series.rule, series.start_date, day)


def iter_occurrences(rule: RecurrenceRule, start: date, until: Optional[date] = None) -> Iterator[date]:
    """
    Raw occurrences of ``rule`` in ascending order, honouring its termination.

    Args:
        rule: Recurrence rule
        start: Series start date
        until: Optional inclusive upper bound; required for indefinite rules
            unless the caller stops iterating itself
    """
    for index, day in enumerate(_iter_candidates(rule, start), start=1):
        if until is not None and day > until:
            return
        if not isinstance(rule, NoRecurrence):
            if rule.end_date is not None and day > rule.end_date:
                return
            if rule.count is not None and index > rule.count:
                return
        yield day


def count_before(rule: RecurrenceRule, start: date, day: date) -> int:
    """Number of raw occurrences strictly before ``day``."""
    return sum(1 for _ in iter_occurrences(rule, start, until=day - timedelta(days=1)))
