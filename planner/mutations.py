"""
Scoped edits and deletes of recurring planned days.

A mutation is planned in memory first (validation, new rows, field changes)
and then committed as a single transaction, so a split never leaves the old
series untruncated next to a new one.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from . import ledger
from .errors import (
    DuplicateException,
    InvalidScope,
    NotAnOccurrence,
    PartialMutationFailure,
    PersistenceFailure,
    PlannerValidationError,
    from_django_validation_error,
)
from .models import PlannedDay, PlannedDayException
from .recurrence import (
    NoRecurrence,
    count_before,
    parse_recurrence,
    recurrence_to_dict,
)
from .types import (
    SCOPE_ALL,
    SCOPE_THIS,
    SCOPE_THIS_AND_FUTURE,
    THIS_DELETE_REASON,
    THIS_EDIT_NOTE,
    THIS_EDIT_REASON,
    VALID_SCOPES,
    MutationResult,
    SeriesEdit,
)

logger = logging.getLogger(__name__)


class MutationPlan:
    """The writes of one scoped mutation, committed together."""

    def __init__(self, planned_day: PlannedDay, scope: str):
        self.planned_day = planned_day
        self.planned_day_id = planned_day.pk
        self.scope = scope
        self.exceptions: List[Tuple[date, str]] = []
        self.new_series: Optional[PlannedDay] = None
        self.moved_exception_dates: List[date] = []
        self.update_existing = False
        self.delete_existing = False

    @property
    def write_count(self) -> int:
        return (
            len(self.exceptions)
            + (1 if self.new_series is not None else 0)
            + (1 if self.update_existing or self.delete_existing else 0)
        )

    def commit(self) -> MutationResult:
        """
        Apply every planned write in one transaction.

        Raises:
            PartialMutationFailure: If a write failed after an earlier one succeeded
            PersistenceFailure: If the first write failed
        """
        completed = 0
        try:
            with transaction.atomic():
                for day, reason in self.exceptions:
                    ledger.add_exception(self.planned_day, day, reason=reason)
                    completed += 1

                if self.new_series is not None:
                    self.new_series.save()
                    completed += 1
                    if self.moved_exception_dates:
                        PlannedDayException.objects.filter(
                            planned_day=self.planned_day,
                            date__in=self.moved_exception_dates
                        ).update(planned_day=self.new_series)

                if self.delete_existing:
                    self.planned_day.delete()
                    completed += 1
                elif self.update_existing:
                    self.planned_day.version += 1
                    self.planned_day.save()
                    completed += 1
        except DatabaseError as exc:
            logger.exception(
                "Mutation %s on planned day %s failed after %d of %d write(s)",
                self.scope, self.planned_day_id, completed, self.write_count
            )
            if completed and self.write_count > 1:
                raise PartialMutationFailure(self.planned_day_id, self.scope, completed) from exc
            raise PersistenceFailure(
                f"Failed to apply {self.scope!r} to planned day {self.planned_day_id}"
            ) from exc

        return MutationResult(
            scope=self.scope,
            planned_day=None if self.delete_existing else self.planned_day,
            created=self.new_series,
            deleted=self.delete_existing,
        )


def apply(
    planned_day: PlannedDay,
    scope: str,
    original_date: date,
    edit: Optional[SeriesEdit] = None
) -> MutationResult:
    """
    Edit or delete part of a planned day series.

    Args:
        planned_day: PlannedDay instance, ideally locked by the caller
        scope: 'this', 'thisAndFuture' or 'all'
        original_date: The occurrence the user acted on
        edit: New template/recurrence; None means delete

    Returns:
        MutationResult describing what changed

    Raises:
        InvalidScope: If scope is not recognised
        NotAnOccurrence: If a 'this'/'thisAndFuture' date is not produced by the series
        DuplicateException: If a 'this' date was already removed
        PlannerValidationError: If the edit is empty or invalid
    """
    plan = build_plan(planned_day, scope, original_date, edit)
    result = plan.commit()
    logger.info(
        "Applied %s %s to planned day %s at %s",
        plan.scope, 'delete' if edit is None else 'edit', plan.planned_day_id, original_date.isoformat()
    )
    return result


def build_plan(
    planned_day: PlannedDay,
    scope: str,
    original_date: date,
    edit: Optional[SeriesEdit] = None
) -> MutationPlan:
    """Validate a scoped mutation and work out its writes without touching the database."""
    if scope not in VALID_SCOPES:
        raise InvalidScope(scope)

    new_rule = None
    if edit is not None:
        if edit.is_empty:
            raise PlannerValidationError(
                'An edit must change the template or the recurrence', field='new_template'
            )
        if edit.recurrence is not None:
            new_rule = parse_recurrence(edit.recurrence)

    if scope in (SCOPE_THIS, SCOPE_THIS_AND_FUTURE):
        if not planned_day.occurs_on(original_date):
            raise NotAnOccurrence(planned_day.pk, original_date)
        if scope == SCOPE_THIS_AND_FUTURE and original_date <= planned_day.start_date:
            # Truncating before the first occurrence would invert the bounds.
            scope = SCOPE_ALL

    plan = MutationPlan(planned_day, scope)

    if scope == SCOPE_THIS:
        if ledger.is_excepted(planned_day, original_date):
            raise DuplicateException(planned_day.pk, original_date)
        _plan_this(plan, original_date, edit)
    elif scope == SCOPE_THIS_AND_FUTURE:
        _plan_this_and_future(plan, original_date, edit, new_rule)
    else:
        _plan_all(plan, edit, new_rule)

    for instance in (plan.new_series, planned_day if plan.update_existing else None):
        if instance is not None:
            _validate(instance)
    return plan


def _plan_this(plan: MutationPlan, original_date: date, edit: Optional[SeriesEdit]) -> None:
    planned_day = plan.planned_day
    if edit is None:
        plan.exceptions.append((original_date, THIS_DELETE_REASON))
    else:
        plan.exceptions.append((original_date, THIS_EDIT_REASON))
        plan.new_series = PlannedDay(
            user_id=planned_day.user_id,
            template=edit.template or planned_day.template,
            start_date=original_date,
            end_date=original_date,
            recurrence=recurrence_to_dict(NoRecurrence()),
            notes=THIS_EDIT_NOTE,
            is_active=True,
        )
    plan.update_existing = True


def _plan_this_and_future(plan, original_date, edit, new_rule) -> None:
    planned_day = plan.planned_day
    previous_end = planned_day.end_date

    if edit is not None:
        old_rule = planned_day.rule
        if new_rule is None:
            new_rule = _remaining_rule(old_rule, planned_day.start_date, original_date)
        # Removed dates from the split onwards stay removed on the tail series.
        plan.moved_exception_dates = sorted(
            day for day in planned_day.excepted_dates if day >= original_date
        )
        plan.new_series = PlannedDay(
            user_id=planned_day.user_id,
            template=edit.template or planned_day.template,
            start_date=original_date,
            end_date=previous_end,
            recurrence=recurrence_to_dict(new_rule),
            notes=planned_day.notes,
            is_active=planned_day.is_active,
        )

    planned_day.end_date = original_date - timedelta(days=1)
    plan.update_existing = True


def _remaining_rule(rule, start_date: date, original_date: date):
    """Carry a count-limited rule over to a new start without extending it."""
    if isinstance(rule, NoRecurrence) or rule.count is None:
        return rule
    consumed = count_before(rule, start_date, original_date)
    data = recurrence_to_dict(rule)
    data['count'] = rule.count - consumed
    return parse_recurrence(data)


def _plan_all(plan: MutationPlan, edit: Optional[SeriesEdit], new_rule) -> None:
    planned_day = plan.planned_day
    if edit is None:
        plan.delete_existing = True
        return

    if edit.template is not None:
        planned_day.template = edit.template
    if new_rule is not None:
        planned_day.recurrence = recurrence_to_dict(new_rule)
    plan.update_existing = True


def _validate(instance: PlannedDay) -> None:
    try:
        instance.full_clean()
    except DjangoValidationError as exc:
        raise from_django_validation_error(exc) from exc
