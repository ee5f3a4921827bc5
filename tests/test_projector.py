import datetime

import pytest

from apps.core import errors
from apps.internal_control import projector
from apps.internal_control.models import ActionPlan, CodeAllocation
from apps.standards.models import Action, SubStandardStatus
from apps.standards.services import ActionService, record_sub_standard_status

from .conftest import ORG, PLAN

pytestmark = pytest.mark.django_db


def test_creating_an_action_projects_its_plan(taxonomy, coordinator):
    outcome = ActionService(coordinator, PLAN).create({
        "sub_standard_id": taxonomy.ss_1.pk,
        "code": "1.1.1",
        "description": "Publish the code of ethics",
        "target_date": datetime.date(2025, 9, 30),
        "responsible_units": ["unit-b", "unit-a"],
        "collaborating_units": ["unit-c"],
    })

    assert outcome.warnings == []
    plan = ActionPlan.objects.get(action=outcome.record)
    assert plan.plan_code == "EP-001"
    assert plan.planned_actions == "Publish the code of ethics"
    assert plan.completion_date == datetime.date(2025, 9, 30)
    assert plan.responsible_unit == "unit-a"  # unit lists are stored sorted
    assert plan.collaborating_units == ["unit-c"]
    assert plan.status == "planned"
    assert plan.approval_status == "draft"
    assert plan.progress_percentage == 0
    assert plan.created_by == coordinator.user_id


def test_ensure_plan_is_idempotent(make_action):
    action = make_action()
    first = projector.ensure_plan(action.pk, ORG, PLAN)
    second = projector.ensure_plan(action.pk, ORG, PLAN)
    assert first.pk == second.pk
    assert ActionPlan.objects.filter(action=action).count() == 1


def test_concurrent_creator_converges_on_existing_plan(make_action, monkeypatch):
    action = make_action()
    existing = ActionPlan.objects.get(action=action)

    real_find = projector.find_plan
    misses = [None]  # the other request's insert is not visible to our first read

    def racing_find(*args):
        if misses:
            return misses.pop()
        return real_find(*args)

    monkeypatch.setattr(projector, "find_plan", racing_find)
    plan = projector.ensure_plan(action.pk, ORG, PLAN)
    assert plan.pk == existing.pk
    assert ActionPlan.objects.filter(action=action).count() == 1


def test_plan_code_still_in_use_is_not_handed_out_again(make_action):
    first = ActionPlan.objects.get(action=make_action())
    CodeAllocation.objects.filter(record_type="action_plan").delete()

    second = ActionPlan.objects.get(action=make_action())

    assert first.plan_code == "EP-001"
    assert second.plan_code == "EP-002"


def test_current_situation_is_a_snapshot(taxonomy, coordinator, make_action):
    record_sub_standard_status(coordinator, PLAN, taxonomy.ss_1.pk, current_status_text="Draft code exists")
    action = make_action()
    plan = ActionPlan.objects.get(action=action)
    assert plan.current_situation == "Draft code exists"

    record_sub_standard_status(coordinator, PLAN, taxonomy.ss_1.pk, current_status_text="Code published")
    plan.refresh_from_db()
    assert plan.current_situation == "Draft code exists"


def test_ensure_plan_for_unknown_action_is_not_found(taxonomy):
    with pytest.raises(errors.NotFound):
        projector.ensure_plan(999999, ORG, PLAN)


def test_ensure_plan_does_not_cross_plans(make_action):
    action = make_action()
    with pytest.raises(errors.NotFound):
        projector.ensure_plan(action.pk, ORG, "2026")


def test_action_edit_propagates_to_plan(make_action, coordinator):
    action = make_action(status="not_started")
    outcome = ActionService(coordinator, PLAN).update(action.pk, {
        "description": "Revised wording",
        "target_date": datetime.date(2025, 12, 31),
        "status": "in_progress",
    })

    assert outcome.warnings == []
    plan = ActionPlan.objects.get(action=action)
    assert plan.planned_actions == "Revised wording"
    assert plan.completion_date == datetime.date(2025, 12, 31)
    assert plan.status == "in_progress"
    assert plan.updated_by == coordinator.user_id


@pytest.mark.parametrize("action_status,plan_status", [
    ("not_started", "planned"),
    ("in_progress", "in_progress"),
    ("completed", "completed"),
    ("delayed", "delayed"),
])
def test_status_mapping_only_renames_not_started(action_status, plan_status):
    assert projector.plan_status_for(action_status) == plan_status


def test_missing_plan_becomes_a_warning(make_action, coordinator):
    action = make_action()
    ActionPlan.objects.filter(action=action).delete()

    outcome = ActionService(coordinator, PLAN).update(action.pk, {"target_date": datetime.date(2025, 11, 1)})

    assert len(outcome.warnings) == 1
    assert "not updated" in outcome.warnings[0]
    assert Action.objects.get(pk=action.pk).target_date == datetime.date(2025, 11, 1)


def test_sub_standard_status_is_upserted(taxonomy, coordinator):
    record_sub_standard_status(coordinator, PLAN, taxonomy.ss_1.pk, current_status_text="a")
    record_sub_standard_status(coordinator, PLAN, taxonomy.ss_1.pk, provides_reasonable_assurance=True)
    status = SubStandardStatus.objects.get(sub_standard=taxonomy.ss_1, organization_id=ORG, plan_id=PLAN)
    assert status.current_status_text == "a"
    assert status.provides_reasonable_assurance is True


def test_members_cannot_record_sub_standard_status(taxonomy, member):
    with pytest.raises(errors.AuthorizationDenied):
        record_sub_standard_status(member, PLAN, taxonomy.ss_1.pk, current_status_text="x")


def test_end_to_end_completion_propagates_date_and_status(taxonomy, coordinator):
    service = ActionService(coordinator, PLAN)
    action = service.create({
        "sub_standard_id": taxonomy.ss_1.pk, "code": "1.1.9", "description": "Train staff", "status": "not_started",
    }).record
    plan = projector.ensure_plan(action.pk, ORG, PLAN)
    assert plan.status == "planned"

    service.update(action.pk, {"status": "completed", "target_date": datetime.date(2025, 1, 1)})

    plan.refresh_from_db()
    assert plan.completion_date == datetime.date(2025, 1, 1)
    assert plan.status == "completed"
