"""WSGI entry point for the HR event suite backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hr_suite.settings")

application = get_wsgi_application()
