import datetime
from types import SimpleNamespace

import pytest

from apps.core.identity import Actor
from apps.core.models import Profile
from apps.standards.models import Category, MainStandard, SubStandard

ORG = "org-1"
PLAN = "2025"


def make_actor(role, user_id=None, organization_id=ORG, department_id=""):
    return Actor(
        user_id=user_id or f"u-{role}",
        display_name=role.replace("_", " ").title(),
        role=role,
        organization_id=organization_id,
        department_id=department_id,
    )


@pytest.fixture
def admin():
    return make_actor(Profile.ROLE_ADMIN)


@pytest.fixture
def coordinator():
    return make_actor(Profile.ROLE_IC_COORDINATOR)


@pytest.fixture
def vice_president():
    return make_actor(Profile.ROLE_VICE_PRESIDENT)


@pytest.fixture
def member():
    return make_actor(Profile.ROLE_MEMBER, department_id="unit-a")


@pytest.fixture
def today():
    return datetime.date(2025, 6, 15)


@pytest.fixture
def taxonomy(db):
    """Two categories; only the first has standards below it."""
    env = Category.objects.create(code="KO", name="Control environment", order=1)
    risk = Category.objects.create(code="RDS", name="Risk assessment", order=2)
    ethics = MainStandard.objects.create(category=env, code="KOS 1", title="Ethics", order=1)
    duties = MainStandard.objects.create(category=env, code="KOS 2", title="Duties", order=2)
    ss_1 = SubStandard.objects.create(main_standard=ethics, code="1.1", title="Integrity", order=1)
    ss_2 = SubStandard.objects.create(main_standard=duties, code="2.1", title="Mission", order=1)
    return SimpleNamespace(env=env, risk=risk, ethics=ethics, duties=duties, ss_1=ss_1, ss_2=ss_2)


@pytest.fixture
def make_action(taxonomy, coordinator):
    """Creates an Action through ActionService so its plan is projected too."""
    from apps.standards.services import ActionService

    counter = {"n": 0}

    def _make(sub_standard=None, plan_id=PLAN, actor=None, **data):
        counter["n"] += 1
        payload = {
            "sub_standard_id": (sub_standard or taxonomy.ss_1).pk,
            "code": f"A{counter['n']}",
            "description": f"Action {counter['n']}",
        }
        payload.update(data)
        return ActionService(actor or coordinator, plan_id).create(payload).record

    return _make


@pytest.fixture
def make_control(coordinator):
    from apps.internal_control.lifecycle import ControlService

    def _make(action, **data):
        payload = {"title": "Dual signature on payments", "action_id": action.pk}
        payload.update(data)
        return ControlService(coordinator, action.plan_id).create(payload)

    return _make
