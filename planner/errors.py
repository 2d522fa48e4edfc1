"""
Domain errors raised by the planner service layer.

Services stay framework-agnostic and raise these; the API layer maps them to
HTTP responses in handlers.py.
"""


class PlannerError(Exception):
    """Base class for all planner errors."""

    code = 'planner_error'


class PlannerValidationError(PlannerError, ValueError):
    """Input rejected before any write took place."""

    code = 'validation_error'

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class RecurrenceValidationError(PlannerValidationError):
    """Malformed recurrence rule."""

    code = 'invalid_recurrence'

    def __init__(self, message, field='recurrence'):
        super().__init__(message, field=field)


class InvalidScope(PlannerValidationError):
    code = 'invalid_scope'

    def __init__(self, scope):
        super().__init__(f'Invalid edit type: {scope!r}', field='edit_type')
        self.scope = scope


class NotAnOccurrence(PlannerValidationError):
    """A scoped mutation targeted a date the series does not occur on."""

    code = 'not_an_occurrence'

    def __init__(self, planned_day_id, day):
        super().__init__(
            f'Planned day {planned_day_id} does not occur on {day.isoformat()}',
            field='original_date',
        )
        self.planned_day_id = planned_day_id
        self.day = day


class NotFound(PlannerError):
    code = 'not_found'


class DuplicateException(PlannerError):
    """An exception is already recorded for that date."""

    code = 'duplicate_exception'

    def __init__(self, planned_day_id, day):
        super().__init__(
            f'Exception already exists for {day.isoformat()} on planned day {planned_day_id}'
        )
        self.planned_day_id = planned_day_id
        self.day = day


class Conflict(PlannerError):
    """The series changed since the caller read it."""

    code = 'conflict'

    def __init__(self, planned_day_id, expected_version, actual_version):
        super().__init__(
            f'Planned day {planned_day_id} was modified concurrently '
            f'(expected version {expected_version}, found {actual_version})'
        )
        self.planned_day_id = planned_day_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class PersistenceFailure(PlannerError):
    code = 'persistence_failure'


class PartialMutationFailure(PersistenceFailure):
    """
    A multi-write mutation failed after at least one write was issued.

    The surrounding transaction is rolled back, but operators should check the
    series named here in case the storage backend could not honour the
    rollback.
    """

    code = 'partial_mutation_failure'

    def __init__(self, planned_day_id, scope, writes_completed):
        super().__init__(
            f'Mutation {scope!r} on planned day {planned_day_id} failed after '
            f'{writes_completed} write(s); changes were rolled back'
        )
        self.planned_day_id = planned_day_id
        self.scope = scope
        self.writes_completed = writes_completed


def from_django_validation_error(exc) -> PlannerValidationError:
    """Flatten a django.core.exceptions.ValidationError into a planner error."""
    if hasattr(exc, 'message_dict'):
        field, messages = next(iter(exc.message_dict.items()))
        return PlannerValidationError(' '.join(messages), field=field)
    return PlannerValidationError(' '.join(exc.messages))
