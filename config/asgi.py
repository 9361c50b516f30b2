"""
ASGI config for task_tracker project.

It exposes the ASGI callable as a module-level variable named ``application``.

For more information on this file, see
https://docs.djangoproject.com/en/dev/howto/deployment/asgi/

"""

import os

from django.apps import apps
from django.core.asgi import get_asgi_application

# If DJANGO_SETTINGS_MODULE is unset, select a sensible default based on BUILD_ENV
if "DJANGO_SETTINGS_MODULE" not in os.environ:
    build_env = os.environ.get("BUILD_ENV", "local").lower()
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", f"config.settings.{build_env}")

django_application = get_asgi_application()

from task_tracker.realtime.socketio import create_asgi_app  # noqa: E402

# Socket.IO must sit in front of Django because it uses BOTH:
# - HTTP long-polling (Engine.IO)
# - WebSocket upgrades
realtime = apps.get_app_config("realtime")
application = create_asgi_app(
    realtime.server,
    realtime.hub,
    other_asgi_app=django_application,
)
