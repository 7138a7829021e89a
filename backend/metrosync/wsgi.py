"""WSGI config for the MetroSync backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'metrosync.settings.settings')

application = get_wsgi_application()
