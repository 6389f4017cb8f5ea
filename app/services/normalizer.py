"""
Normalization of loosely shaped rule records into the canonical Rule model.

Every write in the repository passes through normalize_rule, so records read
from storage, seeded from sample data, or posted by the dashboard all end up
with the same fully defaulted shape. Aliases are resolved once here; the rest
of the code base only sees Rule and RuleVersion.
"""

import copy
import json
import logging
import math
import time
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.core.config import settings
from app.schemas.rule import Rule, RuleSeverity, RuleStatus, RuleVersion, default_logic

logger = logging.getLogger(__name__)

# Canonical key -> accepted spellings, in resolution order
RULE_ALIASES = {
    "ruleId": ("ruleId", "rule_id"),
    "currentVersion": ("currentVersion", "current_version"),
    "conditionSummary": ("conditionSummary", "condition_summary"),
    "triggers24h": ("triggers24h", "triggers_24h"),
    "triggerDelta": ("triggerDelta", "trigger_delta"),
    "lastUpdated": ("lastUpdated", "last_updated"),
    "createdBy": ("createdBy", "created_by"),
    "ownerName": ("ownerName", "owner_name"),
}

VERSION_ALIASES = {
    "createdAt": ("createdAt", "created_at"),
    "createdBy": ("createdBy", "created_by"),
    "isActive": ("isActive", "is_active"),
    "isDraft": ("isDraft", "is_draft"),
    "logic_snapshot": ("logic_snapshot", "logicSnapshot"),
}

OWNER_ALIASES = ("ownerName", "owner", "createdBy")

_STATUSES = {status.value for status in RuleStatus}
_SEVERITIES = {severity.value for severity in RuleSeverity}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_identifier() -> str:
    return uuid.uuid4().hex


def timestamp_rule_id() -> str:
    return f"RL-{int(time.time() * 1000)}"


def _first_present(record: Mapping, keys) -> Any:
    """Return the first value under any of keys that is not None."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _non_blank(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    return value if value.strip() else None


def _number(value: Any, default: float = 0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _choice(value: Any, allowed: set, default: str, field: str) -> str:
    value = getattr(value, "value", value)
    if isinstance(value, str) and value in allowed:
        return value
    if value is not None:
        logger.debug(f"Replacing unknown {field} {value!r} with {default!r}")
    return default


def coerce_status(value: Any) -> str:
    """Known status value, or draft."""
    return _choice(value, _STATUSES, RuleStatus.DRAFT.value, "status")


def _tags(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    seen = []
    for tag in value:
        tag = str(tag)
        if tag not in seen:
            seen.append(tag)
    return seen


def _logic(value: Any, fallback: Dict[str, Any]) -> Dict[str, Any]:
    """Plain JSON copy of a logic tree, or a copy of fallback if it has none."""
    if not isinstance(value, Mapping):
        return copy.deepcopy(fallback)
    try:
        tree = json.loads(json.dumps(value))
    except (TypeError, ValueError, OverflowError):
        logger.debug("Replacing logic tree that is not plain JSON with the default")
        return copy.deepcopy(fallback)
    return tree if isinstance(tree, dict) else copy.deepcopy(fallback)


def _flag(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _as_record(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True)
    if isinstance(raw, Mapping):
        return copy.deepcopy(dict(raw))
    return {}


def canonicalize_keys(record: Mapping, aliases: Mapping = RULE_ALIASES) -> Dict[str, Any]:
    """Rewrite known alternate spellings in a partial record to their canonical key.

    Used before merging a patch over a stored rule so that a snake_case key in
    the patch replaces the stored camelCase value instead of sitting beside it.
    """
    result = {}
    for key, value in record.items():
        for canonical, spellings in aliases.items():
            if key in spellings:
                key = canonical
                break
        result[key] = value
    return result


def _normalize_versions(raw_versions: Any, current: Optional[str], owner_name: str,
                        logic: Dict[str, Any]) -> List[Dict[str, Any]]:
    if not isinstance(raw_versions, (list, tuple)):
        return []

    versions = []
    for idx, entry in enumerate(raw_versions):
        entry = _as_record(entry)
        if not entry:
            continue
        entry = canonicalize_keys(entry, VERSION_ALIASES)
        label = _non_blank(entry.get("version")) or "v1.0"
        is_active = _flag(entry.get("isActive"))
        if is_active is None:
            is_active = label == current if current is not None else idx == 0
        versions.append({
            "id": _text(entry.get("id"), str(idx + 1)),
            "version": label,
            "createdAt": _text(entry.get("createdAt"), utc_now_iso()),
            "createdBy": _text(entry.get("createdBy"), owner_name),
            "notes": _text(entry.get("notes"), ""),
            "isActive": is_active,
            "isDraft": _flag(entry.get("isDraft")) or False,
            "logic_snapshot": _logic(entry.get("logic_snapshot"), logic),
        })
    return versions


def _reconcile_active(versions: List[Dict[str, Any]], current: Optional[str]) -> str:
    """Flag exactly one version active and return the authoritative label."""
    labels = [v["version"] for v in versions]
    if current is None or current not in labels:
        flagged = next((v for v in versions if v["isActive"]), versions[0])
        current = flagged["version"]

    promoted = False
    for version in versions:
        version["isActive"] = not promoted and version["version"] == current
        promoted = promoted or version["isActive"]
    return current


def normalize_rule(raw: Any) -> Rule:
    """Coerce an arbitrary record into a canonical Rule.

    Never raises and never mutates its input. Missing or unusable fields are
    filled with defaults; a genesis version is synthesized when the record has
    no version history. The version whose label equals currentVersion is the
    only one flagged active, which makes the output a fixed point:
    normalize_rule(normalize_rule(r)) == normalize_rule(r).
    """
    record = canonicalize_keys(_as_record(raw))

    owner_name = _text(_first_present(record, OWNER_ALIASES), settings.DEFAULT_ACTOR)
    logic = _logic(record.get("logic"), default_logic())
    status = coerce_status(record.get("status"))
    current = _non_blank(record.get("currentVersion"))

    versions = _normalize_versions(record.get("versions"), current, owner_name, logic)
    if not versions:
        versions = [{
            "id": "1",
            "version": current or "v1.0",
            "createdAt": utc_now_iso(),
            "createdBy": owner_name,
            "notes": "",
            "isActive": True,
            "isDraft": status == RuleStatus.DRAFT.value,
            "logic_snapshot": copy.deepcopy(logic),
        }]
    current = _reconcile_active(versions, current)

    return Rule(
        id=_non_blank(record.get("id")) or new_identifier(),
        rule_id=_non_blank(record.get("ruleId")) or timestamp_rule_id(),
        name=_text(record.get("name"), "Untitled Rule"),
        description=_text(record.get("description"), ""),
        category=_text(record.get("category"), "transaction"),
        severity=_choice(record.get("severity"), _SEVERITIES, RuleSeverity.MEDIUM.value, "severity"),
        status=status,
        triggers_24h=int(_number(record.get("triggers24h"))),
        trigger_delta=_number(record.get("triggerDelta")),
        last_updated=_text(record.get("lastUpdated"), utc_now_iso()),
        created_by=_text(record.get("createdBy"), owner_name),
        owner_name=owner_name,
        tags=_tags(record.get("tags")),
        logic=logic,
        versions=[RuleVersion(**version) for version in versions],
        current_version=current,
        condition_summary=_text(record.get("conditionSummary"), ""),
    )
