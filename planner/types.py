"""
Data types and constants for the day planner.

This module contains:
- DTOs (Data Transfer Objects) for service layer operations
- Constants used across the application
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional


SCOPE_THIS = 'this'
SCOPE_THIS_AND_FUTURE = 'thisAndFuture'
SCOPE_ALL = 'all'

SCOPE_CHOICES = [
    (SCOPE_THIS, 'This occurrence'),
    (SCOPE_THIS_AND_FUTURE, 'This and future occurrences'),
    (SCOPE_ALL, 'All occurrences'),
]

VALID_SCOPES = frozenset(value for value, _ in SCOPE_CHOICES)

DEFAULT_MAX_RANGE_DAYS = 366

THIS_EDIT_NOTE = 'Modified from recurring event'
THIS_EDIT_REASON = 'Modified single occurrence'
THIS_DELETE_REASON = 'Deleted single occurrence'


@dataclass(frozen=True)
class ResolvedOccurrence:
    """One date on which a planned day is scheduled. Computed, never stored."""
    planned_day_id: int
    template_id: int
    date: date
    planned_day: Any = field(default=None, compare=False, repr=False)


@dataclass
class DaySchedule:
    """All occurrences that resolve to a single date."""
    date: date
    occurrences: List[ResolvedOccurrence]


@dataclass(frozen=True)
class SeriesEdit:
    """New template and/or recurrence for a scoped edit."""
    template: Any = None
    recurrence: Any = None

    @property
    def is_empty(self) -> bool:
        return self.template is None and self.recurrence is None


@dataclass
class PlannedDayUpdateData:
    """DTO for direct (non-scoped) planned day updates."""
    end_date: Optional[date] = None
    clear_end_date: bool = False
    recurrence: Optional[dict] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


@dataclass
class MutationResult:
    """Outcome of a scoped edit or delete."""
    scope: str
    planned_day: Any = None
    created: Any = None
    deleted: bool = False
