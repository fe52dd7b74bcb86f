from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Q
from insync.core.models import User
from insync.core.workspaces import LEGACY_WORKSPACE_ID
from insync.cashflow.models import Transaction
from insync.documents.models import Document
from insync.grievances.models import Grievance
from insync.projects.models import Project
from insync.reminders.models import Reminder

BACKFILL_MODELS = [User, Project, Document, Transaction, Grievance, Reminder]


class Command(BaseCommand):
    help = f'Assign the legacy workspace ({LEGACY_WORKSPACE_ID}) to records created before workspaces existed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run without making changes to see what would be updated',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        missing_workspace = Q(workspace_id__isnull=True) | Q(workspace_id='')
        total = 0
        with transaction.atomic():
            for model in BACKFILL_MODELS:
                queryset = model.objects.filter(missing_workspace)
                if dry_run:
                    count = queryset.count()
                else:
                    count = queryset.update(workspace_id=LEGACY_WORKSPACE_ID)
                total += count
                self.stdout.write(f'{model._meta.db_table}: {count} record(s)')

        action = 'would be assigned' if dry_run else 'assigned'
        self.stdout.write(self.style.SUCCESS(f'{total} record(s) {action} to workspace {LEGACY_WORKSPACE_ID}'))
