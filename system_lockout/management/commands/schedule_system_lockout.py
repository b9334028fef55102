"""
Management command to schedule a system-down lockout.

Usage:
    python manage.py schedule_system_lockout --in-one-minute
    python manage.py schedule_system_lockout --at 2025-01-15T00:00:00+08:00 --description "Price review"
"""

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from system_lockout.models import SystemTracking


class Command(BaseCommand):
    help = 'Schedules a system lockout'

    def add_arguments(self, parser):
        when = parser.add_mutually_exclusive_group(required=True)
        when.add_argument('--in-one-minute', action='store_true')
        when.add_argument('--at', help='ISO 8601 datetime of the lockout')
        parser.add_argument('--description', default=None)

    def handle(self, *args, **options):
        description = options['description']
        metadata = {'source': 'command'}

        if options['in_one_minute']:
            lockout = SystemTracking.schedule_lockout_in_one_minute(description, metadata)
        else:
            scheduled_at = parse_datetime(options['at'])
            if scheduled_at is None:
                raise CommandError(f"Invalid datetime: {options['at']}")
            if timezone.is_naive(scheduled_at):
                scheduled_at = timezone.make_aware(scheduled_at)
            lockout = SystemTracking.schedule_lockout(scheduled_at, description, metadata)

        self.stdout.write(
            self.style.SUCCESS(f'✓ Scheduled lockout {lockout.id} at {lockout.scheduled_at.isoformat()}')
        )
        self.stdout.write(f'Description: {lockout.description}')
