"""
Custom managers and querysets for planner models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining.
No business logic should be here - only query operations.
"""

from django.db import models


class DayTemplateQuerySet(models.QuerySet):
    """Custom queryset for DayTemplate model."""

    def for_user(self, user):
        """Get templates owned by ``user``."""
        return self.filter(user=user)


class DayTemplateManager(models.Manager):
    """Custom manager for DayTemplate model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return DayTemplateQuerySet(self.model, using=self._db)

    def for_user(self, user):
        """Get templates owned by ``user``."""
        return self.get_queryset().for_user(user)


class PlannedDayQuerySet(models.QuerySet):
    """Custom queryset for PlannedDay model with chainable methods."""

    def for_user(self, user):
        """Get planned days owned by ``user``."""
        return self.filter(user=user)

    def active(self):
        """Get all active planned days."""
        return self.filter(is_active=True)

    def overlapping(self, range_start, range_end):
        """
        Get planned days whose bounds intersect a date range.

        Args:
            range_start: date object
            range_end: date object (inclusive)
        """
        return self.filter(
            start_date__lte=range_end
        ).filter(
            models.Q(end_date__isnull=True) | models.Q(end_date__gte=range_start)
        )

    def with_exceptions(self):
        """Prefetch exceptions and the template for resolution."""
        return self.select_related('template').prefetch_related('exceptions')


class PlannedDayManager(models.Manager):
    """Custom manager for PlannedDay model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return PlannedDayQuerySet(self.model, using=self._db)

    def for_user(self, user):
        """Get planned days owned by ``user``."""
        return self.get_queryset().for_user(user)

    def active(self):
        """Get all active planned days."""
        return self.get_queryset().active()

    def overlapping(self, range_start, range_end):
        """
        Get planned days whose bounds intersect a date range.

        Args:
            range_start: date object
            range_end: date object (inclusive)
        """
        return self.get_queryset().overlapping(range_start, range_end)

    def with_exceptions(self):
        """Prefetch exceptions and the template for resolution."""
        return self.get_queryset().with_exceptions()
