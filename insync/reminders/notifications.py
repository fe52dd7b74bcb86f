"""
Reminder sweep and the WhatsApp gateway (Fonnte) client.

Run once a day by the cron endpoint or `manage.py send_reminders`:

- manual reminders dated today (local time) go to every user in the
  directory whose role matches and who has a phone number; the reminder is
  deleted after its send loop whatever the outcome of the sends
- incomplete tasks due tomorrow are announced to every CEO and COO

Sends are fire-and-forget: a failed send is logged and never retried.
"""
import logging
import os
from datetime import timedelta

import requests
from django.conf import settings
from django.utils import timezone

from insync.core.models import User
from insync.core.roles import MANAGER_ROLES
from insync.projects.models import Project
from insync.projects.services import iter_tasks, from_storage_timestamp
from .models import Reminder

logger = logging.getLogger('insync.reminders')

TASK_REMINDER_TEMPLATE = 'PENGINGAT TUGAS: Tugas "{name}" akan jatuh tempo besok. Mohon segera ditindaklanjuti.'


def _setting(name, default=''):
    return getattr(settings, name, os.getenv(name, default))


def format_target(phone):
    """Local numbers start with 0; the gateway wants the country code instead"""
    phone = (phone or '').strip()
    if phone.startswith('0'):
        return _setting('FONNTE_COUNTRY_CODE', '62') + phone[1:]
    return phone


def send_message(target, message):
    """
    Send one text message through the gateway.

    Returns:
        True if the gateway accepted the message, False otherwise (never raises)
    """
    token = _setting('FONNTE_API_TOKEN')
    if not token:
        logger.error("Fonnte API token is not configured (FONNTE_API_TOKEN)")
        return False

    formatted_target = format_target(target)
    try:
        response = requests.post(
            _setting('FONNTE_API_URL', 'https://api.fonnte.com/send'),
            json={'target': formatted_target, 'message': message},
            headers={'Authorization': token, 'Content-Type': 'application/json'},
            timeout=_setting('FONNTE_TIMEOUT', 10),
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Error sending message to {formatted_target}: {str(e)}")
        return False

    if not response.ok:
        logger.error(f"Failed to send message to {formatted_target}: HTTP {response.status_code} {response.text[:200]}")
        return False
    logger.info(f"Sent message to {formatted_target}")
    return True


def recipients_for(roles):
    """Active users holding one of the roles and having a phone number, across every workspace"""
    users = User.objects.filter(role__in=roles, is_active=True)
    return list(users.exclude(phone__isnull=True).exclude(phone='').order_by('id'))


def send_manual_reminders(today=None):
    """Dispatch and delete every reminder dated today"""
    today = today or timezone.localdate()
    reminders = list(Reminder.objects.filter(reminder_date__date=today).order_by('reminder_date', 'id'))
    summary = {'reminders': 0, 'sent': 0, 'failed': 0}

    if not reminders:
        logger.info(f"No manual reminders scheduled for {today}")
        return summary

    for reminder in reminders:
        recipients = recipients_for([reminder.target_role])
        if recipients:
            logger.info(f"Sending reminder {reminder.id} to {len(recipients)} user(s) with role {reminder.target_role}")
            for user in recipients:
                if send_message(user.phone, reminder.message):
                    summary['sent'] += 1
                else:
                    summary['failed'] += 1
        else:
            logger.warning(f"No users with phone numbers found for role {reminder.target_role} (reminder {reminder.id})")

        # Dispatched: remove it so the next sweep does not send it again
        reminder_id = reminder.id
        reminder.delete()
        summary['reminders'] += 1
        logger.info(f"Manual reminder {reminder_id} processed and deleted")

    return summary


def tasks_due_on(day):
    """(project, milestone, task) for incomplete tasks whose due date falls on `day` (local date)"""
    due = []
    for project, milestone, task in iter_tasks(Project.objects.order_by('id')):
        if task.get('completed'):
            continue
        due_at = from_storage_timestamp(task.get('due_date'))
        if due_at is not None and timezone.localdate(due_at) == day:
            due.append((project, milestone, task))
    return due


def send_task_reminders(today=None):
    """Announce incomplete tasks due tomorrow to every CEO and COO"""
    today = today or timezone.localdate()
    tomorrow = today + timedelta(days=1)
    summary = {'tasks': 0, 'sent': 0, 'failed': 0}

    due_tasks = tasks_due_on(tomorrow)
    if not due_tasks:
        logger.info("No pending tasks are due tomorrow")
        return summary

    managers = recipients_for(MANAGER_ROLES)
    if not managers:
        logger.warning(f"No CEO or COO with a phone number; {len(due_tasks)} task(s) due tomorrow not announced")
        return summary

    logger.info(f"Announcing {len(due_tasks)} task(s) due tomorrow to {len(managers)} manager(s)")
    for _project, _milestone, task in due_tasks:
        summary['tasks'] += 1
        message = TASK_REMINDER_TEMPLATE.format(name=task.get('name'))
        for manager in managers:
            if send_message(manager.phone, message):
                summary['sent'] += 1
            else:
                summary['failed'] += 1

    return summary


def run_all_reminders(today=None):
    """Run both sweeps and return their summaries"""
    logger.info("Reminder sweep started")
    summary = {
        'manual': send_manual_reminders(today),
        'tasks': send_task_reminders(today),
    }
    logger.info(f"Reminder sweep finished: {summary}")
    return summary
