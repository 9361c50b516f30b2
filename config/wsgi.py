"""
WSGI config for task_tracker project.

Only the REST API is served over WSGI; the realtime channel needs the ASGI
application in ``config.asgi``. Task mutations made through this entry point
are still published, but no client is connected to this process.

"""

import os

from django.core.wsgi import get_wsgi_application

if "DJANGO_SETTINGS_MODULE" not in os.environ:
    build_env = os.environ.get("BUILD_ENV", "local").lower()
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", f"config.settings.{build_env}")

application = get_wsgi_application()
