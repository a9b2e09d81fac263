"""URL routing for equipment."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import EquipmentItemViewSet

router = DefaultRouter()
router.register(r"", EquipmentItemViewSet, basename="equipment")

urlpatterns = [path("", include(router.urls))]
