"""Tests for rule normalization."""

import copy

import pytest

from app.core.config import settings
from app.db.seed_data import SAMPLE_RULES
from app.schemas.rule import Rule
from app.services.normalizer import canonicalize_keys, normalize_rule


def test_empty_record_gets_defaults():
    rule = normalize_rule({})

    assert rule.name == "Untitled Rule"
    assert rule.description == ""
    assert rule.category == "transaction"
    assert rule.severity == "medium"
    assert rule.status == "draft"
    assert rule.tags == []
    assert rule.logic == {"groups": []}
    assert rule.triggers_24h == 0
    assert rule.trigger_delta == 0
    assert rule.owner_name == settings.DEFAULT_ACTOR
    assert rule.rule_id.startswith("RL-")
    assert rule.id


def test_missing_versions_synthesize_genesis():
    rule = normalize_rule({"logic": {"groups": [{"conditions": []}]}})

    assert len(rule.versions) == 1
    genesis = rule.versions[0]
    assert genesis.version == "v1.0"
    assert genesis.is_active is True
    assert genesis.is_draft is True
    assert genesis.logic_snapshot == {"groups": [{"conditions": []}]}
    assert rule.current_version == "v1.0"


@pytest.mark.parametrize("raw", [None, "not a rule", 42, ["a", "b"]])
def test_non_mapping_input_never_raises(raw):
    rule = normalize_rule(raw)
    assert isinstance(rule, Rule)
    assert rule.name == "Untitled Rule"


def test_owner_name_fallback_chain():
    assert normalize_rule({"ownerName": "A", "owner": "B", "createdBy": "C"}).owner_name == "A"
    assert normalize_rule({"owner": "B", "createdBy": "C"}).owner_name == "B"
    assert normalize_rule({"createdBy": "C"}).owner_name == "C"

    rule = normalize_rule({"owner": "B"})
    assert rule.created_by == "B"


def test_snake_case_aliases_are_accepted():
    rule = normalize_rule({
        "rule_id": "RL-7",
        "condition_summary": "amount > 10",
        "triggers_24h": "12",
        "trigger_delta": 3.5,
        "current_version": "v1.0",
    })

    assert rule.rule_id == "RL-7"
    assert rule.condition_summary == "amount > 10"
    assert rule.triggers_24h == 12
    assert rule.trigger_delta == 3.5
    assert rule.current_version == "v1.0"


def test_blank_rule_id_is_replaced():
    assert normalize_rule({"ruleId": "   "}).rule_id.startswith("RL-")


def test_unknown_enumerations_and_bad_numbers_default():
    rule = normalize_rule({"status": "bogus", "severity": "extreme", "triggers24h": "abc", "triggerDelta": None})

    assert rule.status == "draft"
    assert rule.severity == "medium"
    assert rule.triggers_24h == 0
    assert rule.trigger_delta == 0


def test_tags_are_deduplicated_strings():
    assert normalize_rule({"tags": ["a", "b", "a", 3]}).tags == ["a", "b", "3"]
    assert normalize_rule({"tags": "a,b"}).tags == []


def test_input_is_not_mutated():
    raw = {"name": "Velocity", "versions": [{"version": "v1.0"}], "logic": {"groups": []}}
    before = copy.deepcopy(raw)

    normalize_rule(raw)

    assert raw == before


def test_is_active_defaults_to_current_version():
    rule = normalize_rule({
        "currentVersion": "v2.0",
        "versions": [{"id": "1", "version": "v1.0"}, {"id": "2", "version": "v2.0"}],
    })

    flags = {v.version: v.is_active for v in rule.versions}
    assert flags == {"v1.0": False, "v2.0": True}
    assert rule.active_version.version == "v2.0"


def test_is_active_defaults_to_first_entry_without_current_version():
    rule = normalize_rule({"versions": [{"version": "v3.0"}, {"version": "v2.0"}]})

    assert rule.current_version == "v3.0"
    assert [v.is_active for v in rule.versions] == [True, False]


def test_only_current_version_stays_active():
    rule = normalize_rule({
        "currentVersion": "v2.0",
        "versions": [
            {"id": "2", "version": "v2.0", "isActive": True},
            {"id": "1", "version": "v1.0", "isActive": True},
        ],
    })

    assert [v.is_active for v in rule.versions] == [True, False]


def test_dangling_current_version_is_repointed():
    rule = normalize_rule({
        "currentVersion": "v9.0",
        "versions": [
            {"id": "2", "version": "v2.0", "isActive": False},
            {"id": "1", "version": "v1.0", "isActive": True},
        ],
    })

    assert rule.current_version == "v1.0"
    assert [v.is_active for v in rule.versions] == [False, True]


def test_version_entries_get_defaults():
    rule = normalize_rule({
        "ownerName": "Dana",
        "logic": {"groups": ["x"]},
        "versions": [{}, "junk", {"version": "v1.0"}],
    })

    assert len(rule.versions) == 1
    version = rule.versions[0]
    assert version.id == "3"
    assert version.created_by == "Dana"
    assert version.notes == ""
    assert version.is_draft is False
    assert version.logic_snapshot == {"groups": ["x"]}


@pytest.mark.parametrize("raw", SAMPLE_RULES + [{}, {"versions": [{"version": "v2.0"}, {"version": "v1.0"}]}])
def test_normalization_is_idempotent(raw):
    once = normalize_rule(raw)
    twice = normalize_rule(once)
    from_dump = normalize_rule(once.model_dump(by_alias=True))

    assert twice == once
    assert from_dump == once


def test_canonicalize_keys_maps_known_spellings():
    assert canonicalize_keys({"rule_id": "RL-1", "name": "x", "last_updated": "now"}) == {
        "ruleId": "RL-1",
        "name": "x",
        "lastUpdated": "now",
    }


@pytest.mark.parametrize("value", [10**400, -10**400, "inf", "-inf", "nan", float("inf"), float("nan")])
def test_out_of_range_numbers_default_to_zero(value):
    rule = normalize_rule({"triggers24h": value, "triggerDelta": value})

    assert rule.triggers_24h == 0
    assert rule.trigger_delta == 0


def test_logic_keys_are_coerced_to_plain_json():
    rule = normalize_rule({"logic": {1: "x"}, "versions": [{"version": "v1.0", "logic_snapshot": {2: "y"}}]})

    assert rule.logic == {"1": "x"}
    assert rule.versions[0].logic_snapshot == {"2": "y"}


@pytest.mark.parametrize("logic", [{(1, 2): "x"}, {"groups": [object()]}])
def test_unserializable_logic_falls_back_to_default(logic):
    rule = normalize_rule({"logic": logic, "versions": [{"version": "v1.0", "logic_snapshot": logic}]})

    assert rule.logic == {"groups": []}
    assert rule.versions[0].logic_snapshot == {"groups": []}


def test_version_flags_only_accept_booleans():
    rule = normalize_rule({
        "currentVersion": "v1.0",
        "versions": [
            {"version": "v2.0", "isActive": "true", "isDraft": "false"},
            {"version": "v1.0", "isActive": "false", "isDraft": 1},
        ],
    })

    assert [v.is_active for v in rule.versions] == [False, True]
    assert [v.is_draft for v in rule.versions] == [False, False]
