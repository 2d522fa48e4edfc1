"""
Models for the day planner.

- DayTemplate is the reusable day plan a user assigns to dates (its content
  lives elsewhere; only the reference matters here)
- PlannedDay is one assignment of a template to the calendar: a series with a
  recurrence rule and date bounds
- PlannedDayException records per-date overrides of a series

Occurrences are never stored; they are resolved on demand from these rows.
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from . import recurrence
from .errors import RecurrenceValidationError
from .managers import DayTemplateManager, PlannedDayManager


def default_recurrence():
    return {'type': recurrence.TYPE_NONE}


class DayTemplate(models.Model):
    """A user's reusable day plan."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='day_templates'
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DayTemplateManager()

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class PlannedDay(models.Model):
    """
    A template assigned to the calendar, optionally repeating.

    ``recurrence`` holds the JSON form of a rule from planner.recurrence;
    ``end_date`` caps the series independently of the rule's own termination.
    Scoped edits go through planner.mutations rather than direct field writes.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='planned_days'
    )
    template = models.ForeignKey(
        DayTemplate,
        on_delete=models.CASCADE,
        related_name='planned_days'
    )

    start_date = models.DateField(
        help_text="First date of the series"
    )
    end_date = models.DateField(
        null=True,
        blank=True,
        help_text="Last date of the series (null = indefinite)"
    )
    recurrence = models.JSONField(default=default_recurrence)

    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default='')

    version = models.PositiveIntegerField(
        default=1,
        help_text="Incremented on every mutation, used to detect concurrent edits"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PlannedDayManager()

    class Meta:
        ordering = ['start_date', 'id']
        indexes = [
            models.Index(fields=['user', 'start_date', 'end_date'], name='planner_pla_user_id_2b1c5e_idx'),
            models.Index(fields=['user', 'is_active'], name='planner_pla_user_id_8f3a0d_idx'),
        ]

    def __str__(self):
        return f"{self.template} from {self.start_date.isoformat()} ({self.recurrence_summary})"

    @property
    def rule(self):
        """Parsed recurrence rule."""
        return recurrence.parse_recurrence(self.recurrence)

    @property
    def recurrence_summary(self):
        try:
            return recurrence.describe(self.rule)
        except RecurrenceValidationError:
            return 'Invalid recurrence'

    @property
    def excepted_dates(self):
        """Dates removed from the series. Uses prefetched exceptions when available."""
        return frozenset(
            exception.date
            for exception in self.exceptions.all()
            if exception.action == PlannedDayException.ACTION_DELETE
        )

    def occurs_on(self, day):
        """Whether the recurrence produces ``day``, ignoring exceptions."""
        return recurrence.occurs_on(self, day)

    def clean(self):
        """Validate bounds and recurrence shape."""
        super().clean()

        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({
                'end_date': 'End date cannot be before start date.'
            })

        try:
            rule = recurrence.parse_recurrence(self.recurrence)
        except RecurrenceValidationError as exc:
            raise ValidationError({'recurrence': str(exc)})
        self.recurrence = recurrence.recurrence_to_dict(rule)

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class PlannedDayException(models.Model):
    """
    A per-date override of a series.

    Only ``delete`` is produced today; ``modify`` is reserved for replacing a
    single occurrence's template in place.
    """

    ACTION_DELETE = 'delete'
    ACTION_MODIFY = 'modify'

    ACTION_CHOICES = [
        (ACTION_DELETE, 'Delete'),
        (ACTION_MODIFY, 'Modify'),
    ]

    planned_day = models.ForeignKey(
        PlannedDay,
        on_delete=models.CASCADE,
        related_name='exceptions'
    )
    date = models.DateField()
    action = models.CharField(
        max_length=10,
        choices=ACTION_CHOICES,
        default=ACTION_DELETE
    )
    reason = models.CharField(max_length=255, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['date']
        constraints = [
            models.UniqueConstraint(
                fields=['planned_day', 'date'],
                name='unique_exception_per_planned_day_date'
            ),
        ]

    def __str__(self):
        return f"{self.action} {self.date.isoformat()} on planned day {self.planned_day_id}"
