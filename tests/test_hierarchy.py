import datetime

import pytest

from apps.standards import hierarchy
from apps.standards.services import record_sub_standard_status

from .conftest import ORG, PLAN

pytestmark = pytest.mark.django_db


def _codes(tree):
    return {
        c.category.code: {
            m.main_standard.code: {s.sub_standard.code: [a.action.code for a in s.actions] for s in m.sub_standards}
            for m in c.main_standards
        }
        for c in tree
    }


def test_unfiltered_tree_keeps_empty_branches(taxonomy, make_action):
    make_action(code="1.1.1")

    tree = hierarchy.load_hierarchy(ORG, PLAN)

    assert _codes(tree) == {
        "KO": {"KOS 1": {"1.1": ["1.1.1"]}, "KOS 2": {"2.1": []}},
        "RDS": {},
    }


def test_filter_prunes_branches_without_matching_actions(taxonomy, make_action):
    make_action(code="1.1.1", responsible_units=["unit-a"])
    make_action(code="2.1.1", sub_standard=taxonomy.ss_2, responsible_units=["unit-b"])

    tree = hierarchy.load_hierarchy(ORG, PLAN, responsible_unit="unit-a")

    assert _codes(tree) == {"KO": {"KOS 1": {"1.1": ["1.1.1"]}}}


def test_everyone_scope_matches_any_unit(taxonomy, make_action):
    make_action(code="2.1.1", sub_standard=taxonomy.ss_2, all_units_responsible=True)

    tree = hierarchy.load_hierarchy(ORG, PLAN, responsible_unit="unit-z")

    assert _codes(tree) == {"KO": {"KOS 2": {"2.1": ["2.1.1"]}}}


def test_filter_on_collaborating_unit(taxonomy, make_action):
    make_action(code="1.1.1", collaborating_units=["unit-c"])
    make_action(code="1.1.2")

    tree = hierarchy.load_hierarchy(ORG, PLAN, collaborating_unit="unit-c")

    assert _codes(tree) == {"KO": {"KOS 1": {"1.1": ["1.1.1"]}}}


def test_filter_with_no_match_returns_empty_tree(taxonomy, make_action):
    make_action(responsible_units=["unit-a"])
    assert hierarchy.load_hierarchy(ORG, PLAN, responsible_unit="unit-q") == []


def test_other_organizations_actions_are_not_loaded(taxonomy, make_action):
    make_action(code="1.1.1")
    tree = hierarchy.load_hierarchy("org-2", PLAN)
    assert all(not list(c.iter_actions()) for c in tree)


def test_nodes_carry_plan_counts_progress_and_status(taxonomy, make_action, make_control, coordinator, today):
    record_sub_standard_status(coordinator, PLAN, taxonomy.ss_1.pk, current_status_text="Partly in place")
    action = make_action(progress_percent=30, target_date=datetime.date(2025, 6, 1))
    make_control(action)

    tree = hierarchy.load_hierarchy(ORG, PLAN, today=today)

    sub = tree[0].main_standards[0].sub_standards[0]
    assert sub.status.current_status_text == "Partly in place"
    node = sub.actions[0]
    assert node.plan.plan_code == "EP-001"
    assert node.counts.controls == 1
    assert node.progress == 30
    assert node.overdue is True
    assert tree[0].main_standards[1].sub_standards[0].status is None


def test_query_count_does_not_grow_with_actions(taxonomy, make_action, django_assert_max_num_queries):
    for _ in range(10):
        make_action(sub_standard=taxonomy.ss_2)
    make_action()

    with django_assert_max_num_queries(10):
        hierarchy.load_hierarchy(ORG, PLAN)


def test_as_dict_resolves_unit_names(taxonomy, make_action, settings):
    settings.COMPLIANCE_UNIT_RESOLVER = "tests.test_hierarchy.fake_resolver"
    make_action(code="1.1.1", responsible_units=["unit-a"])

    data = hierarchy.as_dict(hierarchy.load_hierarchy(ORG, PLAN, responsible_unit="unit-a"))

    action = data[0]["main_standards"][0]["sub_standards"][0]["actions"][0]
    assert action["code"] == "1.1.1"
    assert action["responsible"] == {"all_units": False, "units": [{"id": "unit-a", "name": "Finance"}]}
    assert action["action_plan"]["approval_status"] == "draft"
    assert action["counts"] == {"controls": 0, "tests": 0, "findings": 0, "capas": 0}


def fake_resolver(unit_ids):
    return {"unit-a": "Finance"}
