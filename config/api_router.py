from django.conf import settings
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from task_tracker.tasks.api.views import TaskViewSet
from task_tracker.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("tasks", TaskViewSet, basename="tasks")


app_name = "api"
urlpatterns = router.urls
