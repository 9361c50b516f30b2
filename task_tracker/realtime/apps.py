from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class RealtimeConfig(AppConfig):
    name = "task_tracker.realtime"
    label = "realtime"
    verbose_name = _("Realtime")

    server = None
    hub = None

    def ready(self):
        from task_tracker.realtime.hub import RealtimeHub  # noqa: PLC0415
        from task_tracker.realtime.socketio import create_server  # noqa: PLC0415
        from task_tracker.realtime.socketio import register_handlers  # noqa: PLC0415

        self.server = create_server()
        self.hub = RealtimeHub(self.server)
        register_handlers(self.server, self.hub)
