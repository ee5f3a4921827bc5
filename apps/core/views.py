# apps/core/views.py
import logging

from rest_framework import status as http
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView, exception_handler

from apps.core import errors, serializers
from apps.core.identity import actor_from_user
from apps.core.models import StatusChange
from apps.core.services import Outcome
from apps.internal_control import rollup
from apps.internal_control.approval import ActionPlanService
from apps.internal_control.lifecycle import CapaService, ControlService, ControlTestService, FindingService
from apps.standards import hierarchy
from apps.standards.models import SubStandardStatus
from apps.standards.services import (
    ActionService, CategoryService, MainStandardService, SubStandardService, record_sub_standard_status,
)

logger = logging.getLogger(__name__)

# Query parameters that never reach a service as filters.
RESERVED_PARAMS = {"plan", "format", "page"}


def compliance_exception_handler(exc, context):
    """Renders domain errors as JSON; everything else is left to DRF."""
    if isinstance(exc, errors.ComplianceError):
        if exc.status_code >= 500:
            logger.warning("%s: %s", type(exc).__name__, exc)
        return Response(exc.as_dict(), status=exc.status_code)
    return exception_handler(exc, context)


# ========================
# Request helpers
# ========================

class ComplianceViewMixin:

    def actor(self):
        return actor_from_user(self.request.user)

    def plan_id(self):
        plan = self.request.query_params.get("plan")
        if not plan and isinstance(self.request.data, dict):
            plan = self.request.data.get("plan_id")
        return plan

    def require_plan(self):
        plan = self.plan_id()
        if not plan:
            raise errors.ValidationError({"plan_id": "This field is required."})
        return plan

    def payload(self):
        data = dict(self.request.data.items()) if hasattr(self.request.data, "items") else {}
        data.pop("plan_id", None)
        return data

    def filters(self):
        return {k: v for k, v in self.request.query_params.items() if k not in RESERVED_PARAMS}


class RecordViewSet(ComplianceViewMixin, viewsets.ViewSet):
    """CRUD endpoints backed by a RecordService."""

    service_class = None
    serializer_class = None

    def service(self):
        plan = self.plan_id() if self.service_class.scoped else None
        return self.service_class(self.actor(), plan)

    def respond(self, result, status_code=http.HTTP_200_OK):
        if isinstance(result, Outcome):
            body = {"record": self.serializer_class(result.record).data, "warnings": result.warnings}
            return Response(body, status=status_code)
        return Response(self.serializer_class(result).data, status=status_code)

    def list(self, request):
        records = self.service().list(**self.filters())
        return Response(self.serializer_class(records, many=True).data)

    def retrieve(self, request, pk=None):
        return self.respond(self.service().get(pk))

    def create(self, request):
        return self.respond(self.service().create(self.payload()), http.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        return self.respond(self.service().update(pk, self.payload()))

    update = partial_update

    def destroy(self, request, pk=None):
        self.service().delete(pk)
        return Response(status=http.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        service = self.service()
        record = service.get(pk)
        changes = StatusChange.objects.filter(record_type=service.record_type, record_id=str(record.pk))
        if service.scoped:
            changes = changes.filter(organization_id=service.actor.organization_id, plan_id=service.plan_id)
        return Response(serializers.StatusChangeSerializer(changes, many=True).data)


# ========================
# Taxonomy
# ========================

class CategoryViewSet(RecordViewSet):
    service_class = CategoryService
    serializer_class = serializers.CategorySerializer

    @action(detail=True, methods=["get"])
    def progress(self, request, pk=None):
        actor = self.actor()
        category = self.service().get(pk)
        value = rollup.component_progress(category.pk, actor.organization_id, self.require_plan())
        return Response({"category_id": category.pk, "code": category.code, "average_progress": value})


class MainStandardViewSet(RecordViewSet):
    service_class = MainStandardService
    serializer_class = serializers.MainStandardSerializer


class SubStandardViewSet(RecordViewSet):
    service_class = SubStandardService
    serializer_class = serializers.SubStandardSerializer

    @action(detail=True, methods=["get", "put"], url_path="status")
    def org_status(self, request, pk=None):
        actor = self.actor()
        plan = self.require_plan()
        if request.method == "GET":
            sub_standard = self.service().get(pk)
            current = SubStandardStatus.objects.filter(
                sub_standard=sub_standard, organization_id=actor.organization_id, plan_id=plan,
            ).first()
            if current is None:
                raise errors.NotFound("SubStandardStatus", pk)
            return Response(serializers.SubStandardStatusSerializer(current).data)
        data = self.payload()
        result = record_sub_standard_status(
            actor, plan, pk,
            current_status_text=data.get("current_status_text"),
            provides_reasonable_assurance=data.get("provides_reasonable_assurance"),
        )
        return Response(serializers.SubStandardStatusSerializer(result).data)


class ActionViewSet(RecordViewSet):
    service_class = ActionService
    serializer_class = serializers.ActionSerializer


# ========================
# Action plans and lifecycle records
# ========================

class ActionPlanViewSet(RecordViewSet):
    service_class = ActionPlanService
    serializer_class = serializers.ActionPlanSerializer

    @action(detail=True, methods=["get"], url_path="rollup")
    def rollup_counts(self, request, pk=None):
        actor = self.actor()
        counts = rollup.aggregate_action_plan(pk, actor.organization_id, self.require_plan())
        return Response(counts.as_dict())

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        return self.respond(self.service().submit(pk, self.payload().get("comment", "")))

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self.respond(self.service().approve(pk, self.payload().get("comment", "")))

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        data = self.payload()
        return self.respond(self.service().reject(pk, data.get("reason") or data.get("comment", "")))


class ControlViewSet(RecordViewSet):
    service_class = ControlService
    serializer_class = serializers.ControlSerializer

    @action(detail=True, methods=["post"])
    def assess(self, request, pk=None):
        data = self.payload()
        control = self.service().assess(
            pk,
            design_effectiveness=data.get("design_effectiveness"),
            operating_effectiveness=data.get("operating_effectiveness"),
        )
        return self.respond(control)


class ControlTestViewSet(RecordViewSet):
    service_class = ControlTestService
    serializer_class = serializers.ControlTestSerializer


class FindingViewSet(RecordViewSet):
    service_class = FindingService
    serializer_class = serializers.FindingSerializer


class CapaViewSet(RecordViewSet):
    service_class = CapaService
    serializer_class = serializers.CapaSerializer


# ========================
# Tree and dashboard
# ========================

class HierarchyView(ComplianceViewMixin, APIView):

    def get(self, request):
        actor = self.actor()
        tree = hierarchy.load_hierarchy(
            actor.organization_id,
            self.require_plan(),
            responsible_unit=request.query_params.get("responsible_unit"),
            collaborating_unit=request.query_params.get("collaborating_unit"),
        )
        return Response(hierarchy.as_dict(tree))


class DashboardView(ComplianceViewMixin, APIView):

    def get(self, request):
        actor = self.actor()
        return Response(rollup.dashboard(actor.organization_id, self.require_plan()))
