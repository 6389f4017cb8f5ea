"""Tests for version labels and the publish engine."""

from app.services.normalizer import normalize_rule
from app.services.versioning import build_version, next_version_label, publish_version


def make_rule(version_count=1):
    versions = [{"id": str(i), "version": f"v{i}.0"} for i in range(version_count, 0, -1)]
    return normalize_rule({
        "id": "r1",
        "ruleId": "RL-1",
        "name": "Base",
        "status": "draft",
        "logic": {"groups": [{"conditions": [{"field": "amount", "value": 1}]}]},
        "versions": versions,
        "currentVersion": f"v{version_count}.0",
    })


def test_next_version_label_counts_versions():
    assert next_version_label(make_rule(1)) == "v2.0"
    assert next_version_label(make_rule(3)) == "v4.0"


def test_next_version_label_uses_requested_verbatim():
    assert next_version_label(make_rule(1), "release-7") == "release-7"
    assert next_version_label(make_rule(1), "  ") == "v2.0"


def test_build_version_snapshots_logic():
    logic = {"groups": [{"conditions": []}]}

    version = build_version("v2.0", logic, "notes", "Dana")
    logic["groups"].append("mutated")

    assert version.is_active is True
    assert version.is_draft is False
    assert version.logic_snapshot == {"groups": [{"conditions": []}]}
    assert version.created_by == "Dana"


def test_publish_version_does_not_touch_input_rule():
    rule = make_rule(1)
    before = rule.model_copy(deep=True)

    published = publish_version(rule, {"logic": {"groups": []}}, actor="Dana")

    assert rule == before
    assert published.current_version == "v2.0"
    assert published.status == "active"
    assert [v.is_active for v in published.versions] == [True, False]
    assert published.versions[1].logic_snapshot == before.versions[0].logic_snapshot


def test_publish_version_accepts_snake_case_payload():
    published = publish_version(make_rule(1), {"condition_summary": "amount > 1"}, actor="Dana")

    assert published.condition_summary == "amount > 1"


def test_publishing_an_existing_label_keeps_one_active_version():
    published = publish_version(make_rule(2), {"version": "v1.0"}, actor="Dana")

    assert [v.version for v in published.versions] == ["v1.0", "v2.0", "v1.0"]
    assert [v.is_active for v in published.versions] == [True, False, False]
    assert published.active_version.id == published.versions[0].id
