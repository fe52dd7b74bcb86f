"""
WSGI config for the InSync Hub backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'insync.config.settings')

application = get_wsgi_application()
