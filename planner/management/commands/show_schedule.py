"""
Management command to print a user's resolved schedule for a date range.

Reporting jobs use the same read path, so this is also a quick way to check
what they will see.
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_date

from planner import services
from planner.errors import PlannerValidationError


class Command(BaseCommand):
    help = 'Print the planned days scheduled for a user over a date range'

    def add_arguments(self, parser):
        parser.add_argument(
            '--user',
            required=True,
            help='Username whose schedule to resolve'
        )
        parser.add_argument(
            '--start',
            required=True,
            help='First date (YYYY-MM-DD)'
        )
        parser.add_argument(
            '--end',
            required=True,
            help='Last date, inclusive (YYYY-MM-DD)'
        )

    def handle(self, *args, **options):
        user_model = get_user_model()
        try:
            user = user_model.objects.get(**{user_model.USERNAME_FIELD: options['user']})
        except user_model.DoesNotExist:
            raise CommandError(f"User {options['user']!r} does not exist")

        start = _parse(options['start'])
        end = _parse(options['end'])

        try:
            scheduled_days = services.get_occurrences(user, start, end)
        except PlannerValidationError as exc:
            raise CommandError(str(exc))

        for schedule in scheduled_days:
            names = ', '.join(
                f'{occurrence.planned_day.template.name} (#{occurrence.planned_day_id})'
                for occurrence in schedule.occurrences
            )
            self.stdout.write(f'{schedule.date.isoformat()}: {names}')

        self.stdout.write(
            self.style.SUCCESS(
                f'{len(scheduled_days)} scheduled day(s) between {start.isoformat()} and {end.isoformat()}'
            )
        )


def _parse(value):
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise CommandError(f'Invalid date: {value!r}')
    return parsed
