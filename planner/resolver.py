"""
Range resolution: expand planned days over a date range into occurrences.

Pure and read-only. Inputs only need ``id``, ``template_id``, ``start_date``,
``end_date``, ``rule`` and ``excepted_dates``, so plain objects work as well as
PlannedDay rows.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from itertools import groupby
from typing import FrozenSet, Iterable, List

from .errors import PlannerValidationError
from .ledger import is_excepted
from .recurrence import RecurrenceRule, occurs_on
from .types import DaySchedule, ResolvedOccurrence


ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class _SeriesView:
    start_date: date
    end_date: object
    rule: RecurrenceRule
    excepted_dates: FrozenSet[date]


def resolve(series_list: Iterable, range_start: date, range_end: date) -> List[ResolvedOccurrence]:
    """
    Occurrences of every series within ``[range_start, range_end]``.

    Args:
        series_list: Planned days (or equivalent objects)
        range_start: First date, inclusive
        range_end: Last date, inclusive

    Returns:
        ResolvedOccurrence list ordered by date, then by input order. Series
        sharing a date are all returned.

    Raises:
        PlannerValidationError: If the range is inverted
    """
    if range_start > range_end:
        raise PlannerValidationError('Start date must not be after end date', field='start')

    found = []
    for position, series in enumerate(series_list):
        # Parse the rule and read exceptions once per series, not once per day.
        view = _SeriesView(
            start_date=series.start_date,
            end_date=series.end_date,
            rule=series.rule,
            excepted_dates=frozenset(series.excepted_dates),
        )
        first = max(range_start, view.start_date)
        last = range_end if view.end_date is None else min(range_end, view.end_date)

        day = first
        while day <= last:
            if occurs_on(view, day) and not is_excepted(view, day):
                found.append((day, position, ResolvedOccurrence(
                    planned_day_id=series.id,
                    template_id=series.template_id,
                    date=day,
                    planned_day=series,
                )))
            if day == date.max:
                break
            day += ONE_DAY

    found.sort(key=lambda item: (item[0], item[1]))
    return [occurrence for _, _, occurrence in found]


def group_by_date(occurrences: List[ResolvedOccurrence]) -> List[DaySchedule]:
    """Group date-ordered occurrences per date; dates without any are omitted."""
    return [
        DaySchedule(date=day, occurrences=list(items))
        for day, items in groupby(occurrences, key=lambda occurrence: occurrence.date)
    ]
