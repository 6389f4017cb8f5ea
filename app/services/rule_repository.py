"""
Rule repository: CRUD, status transitions and version history over a RuleStore.

Every operation is a coroutine. After the optional simulated latency it runs
load -> mutate -> save without awaiting, so on one event loop no other
operation can observe a half-applied write. Results are always copies.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, List, Optional

from app.core.config import settings
from app.core.error_handling import NotFoundError
from app.schemas.rule import Rule, RuleStatus, RuleVersion
from app.services.normalizer import (
    canonicalize_keys,
    coerce_status,
    new_identifier,
    normalize_rule,
    timestamp_rule_id,
    utc_now_iso,
)
from app.services.rule_store import RuleStore
from app.services.versioning import publish_version

logger = logging.getLogger(__name__)

# Artificial per-operation delays, in milliseconds
LATENCY_MS = {
    "list": 120,
    "get": 100,
    "create": 150,
    "update": 120,
    "delete": 80,
    "status": 80,
    "versions": 60,
    "notes": 60,
    "clone": 90,
    "publish": 100,
}

# Keys an update patch may not touch
PROTECTED_FIELDS = ("id", "versions", "currentVersion")


def _find(rules: List[Rule], identifier: str, match_rule_id: bool = False) -> Optional[int]:
    for idx, rule in enumerate(rules):
        if rule.id == identifier or (match_rule_id and rule.rule_id == identifier):
            return idx
    return None


class RuleRepository:
    def __init__(self, store: RuleStore, simulate_latency: bool = None, actor: str = None):
        self.store = store
        self.simulate_latency = settings.SIMULATE_LATENCY if simulate_latency is None else simulate_latency
        self.actor = actor or settings.DEFAULT_ACTOR

    async def _delay(self, operation: str):
        if self.simulate_latency:
            await asyncio.sleep(LATENCY_MS[operation] / 1000)

    def _warn_duplicate_rule_id(self, rules: List[Rule], rule: Rule):
        if any(other.rule_id == rule.rule_id and other.id != rule.id for other in rules):
            logger.warning(f"Rule ID {rule.rule_id} is already used by another rule")

    async def list_rules(self) -> List[Rule]:
        """Return every rule, most recently created first."""
        await self._delay("list")
        return [rule.model_copy(deep=True) for rule in self.store.load()]

    async def get_rule(self, rule_id: str) -> Rule:
        """Get a rule by its id or its business rule ID."""
        await self._delay("get")
        rules = self.store.load()
        idx = _find(rules, rule_id, match_rule_id=True)
        if idx is None:
            raise NotFoundError("rule", rule_id)
        return rules[idx].model_copy(deep=True)

    async def create_rule(self, data: Mapping) -> Rule:
        """Create a rule with a fresh id and an active v1.0 genesis version."""
        await self._delay("create")
        rules = self.store.load()
        data = canonicalize_keys(data or {})

        owner_name = data.get("ownerName") or data.get("owner") or self.actor
        status = coerce_status(data.get("status"))
        logic = data.get("logic") if isinstance(data.get("logic"), Mapping) else {"groups": []}
        now = utc_now_iso()

        rule = normalize_rule({
            **data,
            "id": new_identifier(),
            "ruleId": data.get("ruleId") or timestamp_rule_id(),
            "name": data.get("name") or "New Rule",
            "status": status,
            "triggers24h": 0,
            "triggerDelta": 0,
            "lastUpdated": now,
            "createdBy": data.get("createdBy") or self.actor,
            "ownerName": owner_name,
            "logic": logic,
            "versions": [{
                "id": "1",
                "version": "v1.0",
                "createdAt": now,
                "createdBy": self.actor,
                "notes": "",
                "isActive": True,
                "isDraft": status == RuleStatus.DRAFT.value,
                "logic_snapshot": logic,
            }],
            "currentVersion": "v1.0",
        })
        self._warn_duplicate_rule_id(rules, rule)

        self.store.save([rule] + rules)
        logger.info(f"Created rule {rule.rule_id} ({rule.id})")
        return rule.model_copy(deep=True)

    async def update_rule(self, rule_id: str, patch: Mapping) -> Rule:
        """Merge a partial record over a rule and re-normalize the result."""
        await self._delay("update")
        rules = self.store.load()
        idx = _find(rules, rule_id)
        if idx is None:
            raise NotFoundError("rule", rule_id)

        patch = canonicalize_keys(patch or {})
        # The internal id is assigned once; history only grows through publish
        for key in PROTECTED_FIELDS:
            patch.pop(key, None)
        merged = {**rules[idx].model_dump(by_alias=True), **patch, "lastUpdated": utc_now_iso()}
        rules[idx] = normalize_rule(merged)

        self.store.save(rules)
        logger.info(f"Updated rule {rules[idx].rule_id} ({rule_id})")
        return rules[idx].model_copy(deep=True)

    async def delete_rule(self, rule_id: str) -> None:
        """Remove a rule by id. Deleting an unknown id is a no-op."""
        await self._delay("delete")
        rules = self.store.load()
        remaining = [rule for rule in rules if rule.id != rule_id]
        self.store.save(remaining)
        if len(remaining) != len(rules):
            logger.info(f"Deleted rule {rule_id}")

    async def set_status(self, rule_id: str, status: Any) -> Rule:
        """Overwrite only the status and lastUpdated fields of a rule."""
        await self._delay("status")
        status = RuleStatus(status).value
        rules = self.store.load()
        idx = _find(rules, rule_id)
        if idx is None:
            raise NotFoundError("rule", rule_id)

        rules[idx].status = status
        rules[idx].last_updated = utc_now_iso()

        self.store.save(rules)
        logger.info(f"Rule {rules[idx].rule_id} is now {status}")
        return rules[idx].model_copy(deep=True)

    async def list_versions(self, rule_id: str) -> List[RuleVersion]:
        """Version history of a rule, most recent first; empty if the rule is unknown."""
        await self._delay("versions")
        rules = self.store.load()
        idx = _find(rules, rule_id)
        if idx is None:
            return []
        return [version.model_copy(deep=True) for version in rules[idx].versions]

    async def update_version_notes(self, version_id: str, notes: str) -> RuleVersion:
        await self._delay("notes")
        rules = self.store.load()
        for rule in rules:
            for version in rule.versions:
                if version.id == version_id:
                    version.notes = notes
                    self.store.save(rules)
                    return version.model_copy(deep=True)
        raise NotFoundError("version", version_id)

    async def clone_rule(self, rule_id: str) -> Rule:
        """Duplicate a rule under a new id, keeping its version history."""
        await self._delay("clone")
        rules = self.store.load()
        idx = _find(rules, rule_id, match_rule_id=True)
        if idx is None:
            raise NotFoundError("rule", rule_id)

        base = rules[idx]
        cloned = normalize_rule({
            **base.model_dump(by_alias=True),
            "id": new_identifier(),
            "ruleId": f"{base.rule_id}-CLONE",
            "name": f"{base.name} (Clone)",
            "lastUpdated": utc_now_iso(),
        })
        self._warn_duplicate_rule_id(rules, cloned)

        self.store.save([cloned] + rules)
        logger.info(f"Cloned rule {base.rule_id} as {cloned.rule_id}")
        return cloned.model_copy(deep=True)

    async def publish_rule(self, rule_id: str, payload: Mapping) -> Rule:
        """Append a new active version and mark the rule active."""
        await self._delay("publish")
        rules = self.store.load()
        idx = _find(rules, rule_id, match_rule_id=True)
        if idx is None:
            raise NotFoundError("rule", rule_id)

        rules[idx] = publish_version(rules[idx], payload, actor=self.actor)

        self.store.save(rules)
        logger.info(f"Published {rules[idx].rule_id} {rules[idx].current_version}")
        return rules[idx].model_copy(deep=True)
