import datetime

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.core.models import Profile
from apps.internal_control.models import ActionPlan, Control

from .conftest import ORG, PLAN

pytestmark = pytest.mark.django_db


def _client(role, username=None, department_id=""):
    user = get_user_model().objects.create_user(username=username or role, password="x")
    Profile.objects.create(user=user, organization_id=ORG, role=role, department_id=department_id)
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def api():
    return _client(Profile.ROLE_IC_COORDINATOR)


@pytest.fixture
def api_action(api, taxonomy):
    resp = api.post("/api/actions/", {
        "plan_id": PLAN,
        "sub_standard_id": taxonomy.ss_1.pk,
        "code": "1.1.1",
        "description": "Publish the code of ethics",
        "responsible_units": ["unit-a"],
    }, format="json")
    assert resp.status_code == 201, resp.content
    return resp.json()["record"]


def test_create_action_returns_record_and_warnings(api_action):
    assert api_action["code"] == "1.1.1"
    assert api_action["progress"] == 0
    assert ActionPlan.objects.filter(action_id=api_action["id"]).exists()


def test_validation_errors_list_every_field(api, api_action):
    resp = api.post(f"/api/controls/?plan={PLAN}", {"description": "?"}, format="json")
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "validation_error"
    assert body["retryable"] is False
    assert {"title", "action_id"} <= set(body["fields"])


def test_plan_is_required(api):
    resp = api.get("/api/controls/")
    assert resp.status_code == 400
    assert "plan_id" in resp.json()["fields"]


def test_delete_referenced_control_is_a_conflict(api, api_action):
    control = api.post(f"/api/controls/?plan={PLAN}", {"title": "Dual signature", "action_id": api_action["id"]},
                       format="json").json()
    resp = api.post(f"/api/control-tests/?plan={PLAN}", {
        "control_id": control["id"], "test_date": "2025-03-01", "result": "failed",
    }, format="json")
    assert resp.status_code == 201, resp.content

    resp = api.delete(f"/api/controls/{control['id']}/?plan={PLAN}")

    assert resp.status_code == 409
    assert resp.json()["record_type"] == "ControlTest"
    assert resp.json()["count"] == 1
    assert Control.objects.filter(pk=control["id"]).exists()


def test_assess_control(api, api_action):
    control = api.post(f"/api/controls/?plan={PLAN}", {"title": "Reconciliation", "action_id": api_action["id"]},
                       format="json").json()
    resp = api.post(f"/api/controls/{control['id']}/assess/?plan={PLAN}",
                    {"operating_effectiveness": "effective"}, format="json")
    assert resp.status_code == 200
    assert resp.json()["operating_effectiveness"] == "effective"
    assert resp.json()["design_effectiveness"] == "not_assessed"


def test_record_in_other_plan_is_not_found(api, api_action):
    resp = api.get(f"/api/actions/{api_action['id']}/?plan=2026")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_hierarchy_endpoint(api, api_action):
    resp = api.get(f"/api/hierarchy/?plan={PLAN}&responsible_unit=unit-a")
    assert resp.status_code == 200
    tree = resp.json()
    assert [c["code"] for c in tree] == ["KO"]
    action = tree[0]["main_standards"][0]["sub_standards"][0]["actions"][0]
    assert action["action_plan"]["plan_code"] == "EP-001"


def test_action_plan_rollup_and_approval(api, api_action):
    plan = ActionPlan.objects.get(action_id=api_action["id"])

    resp = api.get(f"/api/action-plans/{plan.pk}/rollup/?plan={PLAN}")
    assert resp.json() == {"controls": 0, "tests": 0, "findings": 0, "capas": 0}

    resp = api.post(f"/api/action-plans/{plan.pk}/submit/?plan={PLAN}", {}, format="json")
    assert resp.status_code == 200
    assert resp.json()["approval_status"] == "unit_pending"

    resp = api.post(f"/api/action-plans/{plan.pk}/reject/?plan={PLAN}", {}, format="json")
    assert resp.status_code == 400

    resp = api.post(f"/api/action-plans/{plan.pk}/reject/?plan={PLAN}", {"reason": "Too vague"}, format="json")
    assert resp.json()["approval_status"] == "rejected"

    resp = api.get(f"/api/action-plans/{plan.pk}/history/?plan={PLAN}")
    assert [h["new_value"] for h in resp.json() if h["field"] == "approval_status"] == ["rejected", "unit_pending"]


def test_capa_overdue_filter(api):
    past = (datetime.date.today() - datetime.timedelta(days=10)).isoformat()
    resp = api.post(f"/api/capas/?plan={PLAN}", {
        "title": "Late", "proposed_action": "Do it", "due_date": past, "status": "in_progress",
    }, format="json")
    assert resp.status_code == 201, resp.content
    assert resp.json()["derived_status"] == "overdue"

    resp = api.get(f"/api/capas/?plan={PLAN}&status=overdue")
    assert [c["title"] for c in resp.json()] == ["Late"]
    assert resp.json()[0]["status"] == "in_progress"


def test_members_read_but_cannot_write(api_action):
    member = _client(Profile.ROLE_MEMBER, username="reader")
    assert member.get(f"/api/actions/?plan={PLAN}").status_code == 200
    resp = member.post(f"/api/actions/?plan={PLAN}", {"code": "x", "description": "x"}, format="json")
    assert resp.status_code == 403
    assert resp.json()["error"] == "authorization_denied"


def test_user_without_profile_is_denied(db):
    user = get_user_model().objects.create_user(username="ghost", password="x")
    client = APIClient()
    client.force_authenticate(user=user)
    assert client.get(f"/api/dashboard/?plan={PLAN}").status_code == 403


def test_dashboard_and_category_progress(api, api_action, taxonomy):
    resp = api.get(f"/api/dashboard/?plan={PLAN}")
    assert resp.status_code == 200
    assert resp.json()["approvals"]["draft"] == 1

    resp = api.get(f"/api/categories/{taxonomy.env.pk}/progress/?plan={PLAN}")
    assert resp.json()["average_progress"] == 0


def test_sub_standard_status_endpoint(api, taxonomy):
    url = f"/api/sub-standards/{taxonomy.ss_1.pk}/status/?plan={PLAN}"
    assert api.get(url).status_code == 404

    resp = api.put(url, {"current_status_text": "Partly in place"}, format="json")
    assert resp.status_code == 200
    assert api.get(url).json()["current_status_text"] == "Partly in place"


def test_records_use_type_and_id_keys(api, api_action):
    resp = api.post(f"/api/controls/?plan={PLAN}", {
        "title": "Segregation of duties", "action_id": api_action["id"], "type": "detective",
    }, format="json")
    assert resp.status_code == 201, resp.content
    control = resp.json()
    assert control["type"] == "detective"
    assert control["action_id"] == api_action["id"]
    assert "control_type" not in control and "action" not in control
    assert Control.objects.get(pk=control["id"]).control_type == "detective"

    resp = api.get(f"/api/controls/?plan={PLAN}&action_id={api_action['id']}&type=detective")
    assert [c["id"] for c in resp.json()] == [control["id"]]

    finding = api.post(f"/api/findings/?plan={PLAN}", {
        "finding_title": "Same clerk books and pays", "severity": "medium", "control_id": control["id"],
    }, format="json").json()
    assert (finding["control_id"], finding["action_id"], finding["control_test_id"]) == (
        control["id"], api_action["id"], None,
    )

    capa = api.post(f"/api/capas/?plan={PLAN}", {
        "title": "Split roles", "proposed_action": "Reassign payments", "due_date": "2030-01-31",
        "finding_id": finding["id"], "type": "preventive",
    }, format="json").json()
    assert (capa["type"], capa["finding_id"], capa["action_id"]) == ("preventive", finding["id"], api_action["id"])
    assert "capa_type" not in capa

    assert api_action["sub_standard_id"]
    plan = api.get(f"/api/action-plans/?plan={PLAN}").json()[0]
    assert plan["action_id"] == api_action["id"]


def test_invalid_type_is_reported_under_its_payload_name(api, api_action):
    resp = api.post(f"/api/controls/?plan={PLAN}", {
        "title": "x", "action_id": api_action["id"], "type": "decorative",
    }, format="json")
    assert resp.status_code == 400
    assert "type" in resp.json()["fields"]
