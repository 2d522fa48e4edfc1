"""
Service layer for day planner business logic.
Services are framework-agnostic and handle all business operations.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from . import ledger, mutations
from .errors import (
    Conflict,
    InvalidScope,
    NotFound,
    PersistenceFailure,
    PlannerValidationError,
    from_django_validation_error,
)
from .models import DayTemplate, PlannedDay
from .recurrence import parse_recurrence, recurrence_to_dict
from .resolver import group_by_date, resolve
from .types import (
    DEFAULT_MAX_RANGE_DAYS,
    VALID_SCOPES,
    DaySchedule,
    MutationResult,
    PlannedDayUpdateData,
    ResolvedOccurrence,
    SeriesEdit,
)

logger = logging.getLogger(__name__)


@transaction.atomic
def assign_template(
    user,
    template_id: int,
    start_date: date,
    recurrence: Optional[dict] = None,
    end_date: Optional[date] = None,
    notes: str = ''
) -> PlannedDay:
    """
    Assign a day template to the calendar.

    Args:
        user: Owner of the template and the new series
        template_id: DayTemplate id
        start_date: First date of the series
        recurrence: Recurrence dict (None = single date)
        end_date: Optional last date of the series
        notes: Free text

    Returns:
        Created PlannedDay instance

    Raises:
        NotFound: If the template does not exist or belongs to someone else
        PlannerValidationError: If the recurrence or bounds are invalid
    """
    template = _get_template(user, template_id)
    rule = parse_recurrence(recurrence)
    _validate_bounds(start_date, end_date)

    planned_day = PlannedDay(
        user=user,
        template=template,
        start_date=start_date,
        end_date=end_date,
        recurrence=recurrence_to_dict(rule),
        notes=(notes or '').strip(),
        is_active=True
    )
    _save(planned_day)

    logger.info(
        "Assigned template %s to %s as planned day %s (%s)",
        template.pk, start_date.isoformat(), planned_day.pk, rule.type
    )
    return planned_day


def get_occurrences(user, range_start: date, range_end: date) -> List[DaySchedule]:
    """
    Resolve the user's active planned days over a date range.

    Args:
        user: Owner
        range_start: First date, inclusive
        range_end: Last date, inclusive

    Returns:
        DaySchedule list, one per date that has at least one occurrence

    Raises:
        PlannerValidationError: If the range is inverted or too long
    """
    _validate_range(range_start, range_end)

    planned_days = list(
        PlannedDay.objects.for_user(user)
        .active()
        .overlapping(range_start, range_end)
        .with_exceptions()
    )
    return group_by_date(resolve(planned_days, range_start, range_end))


def get_occurrences_for_date(user, day: date) -> List[ResolvedOccurrence]:
    """Occurrences of the user's active planned days on a single date."""
    planned_days = list(
        PlannedDay.objects.for_user(user)
        .active()
        .overlapping(day, day)
        .with_exceptions()
    )
    return resolve(planned_days, day, day)


def get_planned_day(user, planned_day_id: int) -> PlannedDay:
    """
    Get one of the user's planned days with its exceptions.

    Raises:
        NotFound: If it does not exist or belongs to someone else
    """
    try:
        return PlannedDay.objects.for_user(user).with_exceptions().get(pk=planned_day_id)
    except PlannedDay.DoesNotExist:
        raise NotFound(f"Planned day {planned_day_id} not found") from None


def list_planned_days(user) -> List[PlannedDay]:
    return list(PlannedDay.objects.for_user(user).with_exceptions())


def edit_recurring(
    user,
    planned_day_id: int,
    scope: str,
    original_date: date,
    new_template_id: Optional[int] = None,
    new_recurrence: Optional[dict] = None,
    expected_version: Optional[int] = None
) -> MutationResult:
    """
    Edit one occurrence, an occurrence and the ones after it, or a whole series.

    Args:
        user: Owner
        planned_day_id: Series to edit
        scope: 'this', 'thisAndFuture' or 'all'
        original_date: Occurrence the edit applies from
        new_template_id: Replacement template id
        new_recurrence: Replacement recurrence dict
        expected_version: Version the caller last read; mismatch raises Conflict

    Returns:
        MutationResult
    """
    _validate_scope(scope)

    with transaction.atomic():
        planned_day = _lock_planned_day(user, planned_day_id, expected_version)
        template = None
        if new_template_id is not None:
            template = _get_template(user, new_template_id)
        edit = SeriesEdit(template=template, recurrence=new_recurrence)
        return mutations.apply(planned_day, scope, original_date, edit)


def delete_recurring(
    user,
    planned_day_id: int,
    scope: str,
    original_date: date,
    expected_version: Optional[int] = None
) -> MutationResult:
    """
    Delete one occurrence, an occurrence and the ones after it, or a whole series.

    Args:
        user: Owner
        planned_day_id: Series to delete from
        scope: 'this', 'thisAndFuture' or 'all'
        original_date: Occurrence the delete applies from
        expected_version: Version the caller last read; mismatch raises Conflict

    Returns:
        MutationResult
    """
    _validate_scope(scope)

    with transaction.atomic():
        planned_day = _lock_planned_day(user, planned_day_id, expected_version)
        return mutations.apply(planned_day, scope, original_date)


@transaction.atomic
def add_exception(
    user,
    planned_day_id: int,
    original_date: date,
    reason: str = '',
    expected_version: Optional[int] = None
) -> PlannedDay:
    """
    Remove a single date from a planned day.

    Returns:
        Updated PlannedDay instance

    Raises:
        DuplicateException: If the date already has an exception
    """
    planned_day = _lock_planned_day(user, planned_day_id, expected_version)
    ledger.add_exception(planned_day, original_date, reason=reason)
    planned_day.version += 1
    _save(planned_day)

    logger.info("Added exception on %s to planned day %s", original_date.isoformat(), planned_day.pk)
    return get_planned_day(user, planned_day.pk)


@transaction.atomic
def update_planned_day(
    user,
    planned_day_id: int,
    update_data: PlannedDayUpdateData,
    expected_version: Optional[int] = None
) -> PlannedDay:
    """
    Directly update series metadata without any split logic.

    Args:
        user: Owner
        planned_day_id: Series to update
        update_data: PlannedDayUpdateData with fields to update
        expected_version: Version the caller last read

    Returns:
        Updated PlannedDay instance
    """
    planned_day = _lock_planned_day(user, planned_day_id, expected_version)

    if update_data.clear_end_date:
        planned_day.end_date = None
    elif update_data.end_date is not None:
        planned_day.end_date = update_data.end_date

    if update_data.recurrence is not None:
        planned_day.recurrence = recurrence_to_dict(parse_recurrence(update_data.recurrence))

    fields_to_update = {
        'notes': update_data.notes.strip() if update_data.notes is not None else None,
        'is_active': update_data.is_active,
    }
    _apply_field_updates(planned_day, fields_to_update)

    planned_day.version += 1
    _save(planned_day)
    return get_planned_day(user, planned_day.pk)


@transaction.atomic
def delete_planned_day(user, planned_day_id: int) -> None:
    """Hard-delete a planned day and its exceptions."""
    planned_day = _lock_planned_day(user, planned_day_id)
    try:
        planned_day.delete()
    except DatabaseError as exc:
        logger.exception("Failed to delete planned day %s", planned_day_id)
        raise PersistenceFailure(f"Failed to delete planned day {planned_day_id}") from exc
    logger.info("Deleted planned day %s", planned_day_id)


def get_max_range_days() -> int:
    return getattr(settings, 'PLANNER_MAX_RANGE_DAYS', DEFAULT_MAX_RANGE_DAYS)


def _get_template(user, template_id) -> DayTemplate:
    try:
        return DayTemplate.objects.for_user(user).get(pk=template_id)
    except DayTemplate.DoesNotExist:
        raise NotFound(f"Template {template_id} not found") from None


def _lock_planned_day(user, planned_day_id, expected_version=None) -> PlannedDay:
    """Fetch a planned day under a row lock. Must run inside a transaction."""
    try:
        planned_day = (
            PlannedDay.objects.for_user(user)
            .select_for_update()
            .get(pk=planned_day_id)
        )
    except PlannedDay.DoesNotExist:
        raise NotFound(f"Planned day {planned_day_id} not found") from None

    if expected_version is not None and expected_version != planned_day.version:
        logger.warning(
            "Rejected stale write to planned day %s (expected version %s, found %s)",
            planned_day_id, expected_version, planned_day.version
        )
        raise Conflict(planned_day_id, expected_version, planned_day.version)
    return planned_day


def _validate_scope(scope: str) -> None:
    if scope not in VALID_SCOPES:
        raise InvalidScope(scope)


def _validate_bounds(start_date: date, end_date: Optional[date]) -> None:
    if end_date is not None and end_date < start_date:
        raise PlannerValidationError("End date cannot be before start date", field='end_date')


def _validate_range(range_start: date, range_end: date) -> None:
    """Validate the range is ordered and not longer than the configured maximum."""
    if range_start > range_end:
        raise PlannerValidationError("Start date must not be after end date", field='start')

    max_days = get_max_range_days()
    if range_end - range_start >= timedelta(days=max_days):
        raise PlannerValidationError(
            f"Date range cannot span more than {max_days} days", field='end'
        )


def _save(instance) -> None:
    """Save with validation, translating errors into planner errors."""
    try:
        instance.save()
    except DjangoValidationError as exc:
        raise from_django_validation_error(exc) from exc
    except DatabaseError as exc:
        logger.exception("Failed to save %s %s", type(instance).__name__, instance.pk)
        raise PersistenceFailure(f"Failed to save {type(instance).__name__}") from exc


def _apply_field_updates(obj, fields: dict) -> None:
    """Apply field updates to object if values are not None (DRY helper)."""
    for field_name, value in fields.items():
        if value is not None:
            setattr(obj, field_name, value)
