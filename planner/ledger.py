"""Per-series exception ledger."""

from datetime import date

from django.db import IntegrityError, transaction

from .errors import DuplicateException, PlannerValidationError
from .models import PlannedDayException


def is_excepted(series, day: date) -> bool:
    """Whether ``day`` has been removed from ``series``."""
    return day in series.excepted_dates


def add_exception(
    planned_day,
    day: date,
    action: str = PlannedDayException.ACTION_DELETE,
    reason: str = ''
) -> PlannedDayException:
    """
    Record an exception for one date of a planned day.

    Args:
        planned_day: PlannedDay instance
        day: Date being overridden
        action: Only 'delete' is supported
        reason: Optional free text

    Returns:
        Created PlannedDayException instance

    Raises:
        DuplicateException: If the date already has an exception
        PlannerValidationError: If the action is not supported
    """
    if action != PlannedDayException.ACTION_DELETE:
        raise PlannerValidationError(f"Unsupported exception action: {action!r}", field='action')

    if planned_day.exceptions.filter(date=day).exists():
        raise DuplicateException(planned_day.pk, day)

    try:
        with transaction.atomic():
            return PlannedDayException.objects.create(
                planned_day=planned_day,
                date=day,
                action=action,
                reason=(reason or '').strip()
            )
    except IntegrityError as exc:
        raise DuplicateException(planned_day.pk, day) from exc
