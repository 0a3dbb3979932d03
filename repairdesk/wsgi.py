"""
WSGI config for repairdesk project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "repairdesk.settings")

application = get_wsgi_application()
