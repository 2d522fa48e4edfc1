"""Tests for management commands."""

from datetime import date
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from planner import services
from planner.models import DayTemplate


class ShowScheduleCommandTests(TestCase):
    """Test the show_schedule management command."""

    def setUp(self):
        self.user = get_user_model().objects.create_user('alice', password='secret-pass')
        template = DayTemplate.objects.create(user=self.user, name='Focus day')
        self.planned_day = services.assign_template(
            self.user,
            template_id=template.pk,
            start_date=date(2024, 1, 1),
            recurrence={'type': 'weekly', 'days_of_week': [1]}
        )

    def test_prints_schedule(self):
        """Test the schedule is printed one line per date."""
        out = StringIO()
        call_command(
            'show_schedule', '--user=alice', '--start=2024-01-01', '--end=2024-01-31', stdout=out
        )

        output = out.getvalue()
        self.assertIn(f'2024-01-08: Focus day (#{self.planned_day.pk})', output)
        self.assertIn('5 scheduled day(s) between 2024-01-01 and 2024-01-31', output)

    def test_unknown_user(self):
        """Test an unknown user raises CommandError."""
        with self.assertRaises(CommandError):
            call_command('show_schedule', '--user=nobody', '--start=2024-01-01', '--end=2024-01-31')

    def test_invalid_range(self):
        """Test an inverted range or bad date raises CommandError."""
        with self.assertRaises(CommandError):
            call_command('show_schedule', '--user=alice', '--start=2024-02-01', '--end=2024-01-01')

        with self.assertRaises(CommandError):
            call_command('show_schedule', '--user=alice', '--start=yesterday', '--end=2024-01-01')
