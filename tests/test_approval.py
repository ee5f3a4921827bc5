import pytest

from apps.core import errors
from apps.core.models import StatusChange
from apps.internal_control.approval import ActionPlanService
from apps.internal_control.models import ActionPlan

from .conftest import PLAN, make_actor

pytestmark = pytest.mark.django_db


@pytest.fixture
def plan(make_action):
    action = make_action(responsible_units=["unit-a"])
    return ActionPlan.objects.get(action=action)


def test_full_approval_path(plan, coordinator, vice_president):
    ActionPlanService(coordinator, PLAN).submit(plan.pk)
    ActionPlanService(coordinator, PLAN).approve(plan.pk)
    approved = ActionPlanService(vice_president, PLAN).approve(plan.pk, comment="OK for 2025")

    assert approved.approval_status == "approved"
    assert approved.approved_by == vice_president.user_id
    assert approved.approved_at is not None
    assert approved.submitted_at is not None
    steps = list(
        StatusChange.objects.filter(record_type="ActionPlan", record_id=str(plan.pk), field="approval_status")
        .order_by("id").values_list("old_value", "new_value")
    )
    assert steps == [
        ("draft", "unit_pending"),
        ("unit_pending", "management_pending"),
        ("management_pending", "approved"),
    ]


def test_vice_president_cannot_give_unit_approval(plan, coordinator, vice_president):
    ActionPlanService(coordinator, PLAN).submit(plan.pk)
    with pytest.raises(errors.AuthorizationDenied):
        ActionPlanService(vice_president, PLAN).approve(plan.pk)
    plan.refresh_from_db()
    assert plan.approval_status == "unit_pending"


def test_coordinator_cannot_give_management_approval(plan, coordinator):
    service = ActionPlanService(coordinator, PLAN)
    service.submit(plan.pk)
    service.approve(plan.pk)
    with pytest.raises(errors.AuthorizationDenied):
        service.approve(plan.pk)


def test_rejection_needs_a_reason(plan, coordinator):
    service = ActionPlanService(coordinator, PLAN)
    service.submit(plan.pk)
    with pytest.raises(errors.ValidationError) as exc:
        service.reject(plan.pk, reason="  ")
    assert "comment" in exc.value.fields

    rejected = service.reject(plan.pk, reason="Dates are unrealistic")
    assert rejected.approval_status == "rejected"
    assert rejected.rejection_reason == "Dates are unrealistic"


def test_responsible_unit_member_can_resubmit(plan, coordinator, member):
    service = ActionPlanService(coordinator, PLAN)
    service.submit(plan.pk)
    service.reject(plan.pk, reason="Incomplete")

    resubmitted = ActionPlanService(member, PLAN).submit(plan.pk)
    assert resubmitted.approval_status == "unit_pending"
    assert resubmitted.rejection_reason == ""


def test_member_of_another_unit_cannot_submit(plan):
    outsider = make_actor("member", department_id="unit-x")
    with pytest.raises(errors.AuthorizationDenied):
        ActionPlanService(outsider, PLAN).submit(plan.pk)


def test_invalid_transition_is_a_validation_error(plan, vice_president):
    with pytest.raises(errors.ValidationError) as exc:
        ActionPlanService(vice_president, PLAN).approve(plan.pk)
    assert "approval_status" in exc.value.fields


def test_plan_fields_are_editable_but_approval_is_not(plan, coordinator):
    service = ActionPlanService(coordinator, PLAN)
    updated = service.update(plan.pk, {"progress_percentage": 40, "status": "in_progress"})
    assert updated.progress_percentage == 40
    assert updated.updated_by == coordinator.user_id

    with pytest.raises(errors.ValidationError) as exc:
        service.update(plan.pk, {"approval_status": "approved", "progress_percentage": 140})
    assert {"approval_status", "progress_percentage"} <= set(exc.value.fields)


def test_create_returns_the_existing_plan(plan, coordinator):
    again = ActionPlanService(coordinator, PLAN).create({"action_id": plan.action_id})
    assert again.pk == plan.pk


def test_members_are_refused_before_the_payload_is_checked(member):
    with pytest.raises(errors.AuthorizationDenied):
        ActionPlanService(member, PLAN).create({"bogus": 1})


def test_list_filters(plan, coordinator, make_action):
    make_action()
    service = ActionPlanService(coordinator, PLAN)
    service.submit(plan.pk)
    assert [p.pk for p in service.list(approval_status="unit_pending")] == [plan.pk]
    assert len(service.list()) == 2
