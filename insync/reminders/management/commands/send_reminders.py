from django.core.management.base import BaseCommand
from django.utils.dateparse import parse_date
from insync.reminders.notifications import run_all_reminders


class Command(BaseCommand):
    help = 'Send today\'s manual reminders and tomorrow\'s task reminders through the WhatsApp gateway'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            help='Run the sweep as if today were this date (YYYY-MM-DD)',
        )

    def handle(self, *args, **options):
        today = None
        if options.get('date'):
            today = parse_date(options['date'])
            if today is None:
                self.stdout.write(self.style.ERROR(f"Invalid date: {options['date']}"))
                return

        summary = run_all_reminders(today)

        manual = summary['manual']
        tasks = summary['tasks']
        self.stdout.write(
            f"Manual reminders: {manual['reminders']} processed, {manual['sent']} sent, {manual['failed']} failed"
        )
        self.stdout.write(
            f"Task reminders: {tasks['tasks']} tasks, {tasks['sent']} sent, {tasks['failed']} failed"
        )
        self.stdout.write(self.style.SUCCESS('Reminder sweep finished'))
