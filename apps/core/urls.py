# apps/core/urls.py
from django.urls import path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r"categories", views.CategoryViewSet, basename="category")
router.register(r"main-standards", views.MainStandardViewSet, basename="main-standard")
router.register(r"sub-standards", views.SubStandardViewSet, basename="sub-standard")
router.register(r"actions", views.ActionViewSet, basename="action")
router.register(r"action-plans", views.ActionPlanViewSet, basename="action-plan")
router.register(r"controls", views.ControlViewSet, basename="control")
router.register(r"control-tests", views.ControlTestViewSet, basename="control-test")
router.register(r"findings", views.FindingViewSet, basename="finding")
router.register(r"capas", views.CapaViewSet, basename="capa")

urlpatterns = [
    path("hierarchy/", views.HierarchyView.as_view(), name="hierarchy"),
    path("dashboard/", views.DashboardView.as_view(), name="dashboard"),
] + router.urls
