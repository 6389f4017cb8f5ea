"""
Version bookkeeping for rules: labels, immutable snapshots and publishing.

A published version is always prepended (most recent first) and becomes the
only active one; earlier snapshots are never edited.
"""

import copy
from collections.abc import Mapping
from typing import Any, Dict, Optional

from app.schemas.rule import Rule, RuleStatus, RuleVersion
from app.services.normalizer import canonicalize_keys, new_identifier, normalize_rule, utc_now_iso

# Top-level fields a publish payload may overwrite
PUBLISHED_FIELDS = ("name", "description", "category", "severity", "tags", "conditionSummary", "logic")


def next_version_label(rule: Rule, requested: Optional[str] = None) -> str:
    """Use the requested label verbatim, otherwise v{count + 1}.0."""
    if requested is not None and str(requested).strip():
        return str(requested)
    return f"v{len(rule.versions) + 1:.1f}"


def build_version(label: str, logic: Dict[str, Any], notes: str, created_by: str) -> RuleVersion:
    return RuleVersion(
        id=new_identifier(),
        version=label,
        created_at=utc_now_iso(),
        created_by=created_by,
        notes=notes,
        is_active=True,
        is_draft=False,
        logic_snapshot=copy.deepcopy(logic),
    )


def publish_version(rule: Rule, payload: Mapping, actor: str) -> Rule:
    """Return a copy of rule with a new active version built from payload."""
    payload = canonicalize_keys(payload or {})
    logic = payload.get("logic")
    if not isinstance(logic, Mapping):
        logic = rule.logic

    new_version = build_version(
        label=next_version_label(rule, payload.get("version")),
        logic=logic,
        notes=payload.get("notes") or "",
        created_by=actor,
    )

    record = rule.model_dump(by_alias=True)
    for version in record["versions"]:
        version["isActive"] = False
    record["versions"].insert(0, new_version.model_dump(by_alias=True))
    record["currentVersion"] = new_version.version

    for field in PUBLISHED_FIELDS:
        if payload.get(field) is not None:
            record[field] = copy.deepcopy(payload[field])
    record["status"] = RuleStatus.ACTIVE.value
    record["lastUpdated"] = utc_now_iso()

    return normalize_rule(record)
