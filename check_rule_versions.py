#!/usr/bin/env python
"""
Check every stored rule against the version history invariants:
a non-empty history, exactly one active version, and an active version
whose label matches currentVersion.

Usage:
    python check_rule_versions.py
"""

import json
import sys
from typing import Any, Dict, List

from app.core.config import settings
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.services.rule_store import SQLAlchemyStorage

def find_version_problems(record: Dict[str, Any]) -> List[str]:
    """List the invariant violations of one raw stored rule record."""
    if not isinstance(record, dict):
        return ["not a rule record"]
    versions = record.get("versions")
    if not isinstance(versions, list) or not versions:
        return ["no versions"]
    if not all(isinstance(v, dict) for v in versions):
        return ["malformed version entries"]

    problems = []
    active = [v for v in versions if v.get("isActive")]
    if len(active) != 1:
        problems.append(f"{len(active)} active versions")
    current = record.get("currentVersion")
    if active and active[0].get("version") != current:
        problems.append(f"active version {active[0].get('version')} != currentVersion {current}")
    ids = [str(v.get("id")) for v in versions]
    if len(set(ids)) != len(ids):
        problems.append("duplicate version ids")
    return problems

def check_rule_versions(storage=None) -> int:
    if storage is None:
        init_db()
        storage = SQLAlchemyStorage(SessionLocal)
    payload = storage.read(settings.STORAGE_KEY)
    if payload is None:
        print(f"Slot '{settings.STORAGE_KEY}' is empty; nothing to check.")
        return 0

    try:
        records = json.loads(payload)
    except ValueError as e:
        print(f"Error: stored rules are not valid JSON: {str(e)}")
        return 1

    if not isinstance(records, list):
        print(f"Error: stored rules must be a list, got {type(records).__name__}")
        return 1

    failures = 0
    for record in records:
        problems = find_version_problems(record)
        label = f"{record.get('ruleId')} ({record.get('id')})" if isinstance(record, dict) else repr(record)
        if problems:
            failures += 1
            print(f"- {label}: {', '.join(problems)}")
        else:
            print(f"- {label}: ok, current {record.get('currentVersion')}, {len(record['versions'])} versions")

    print(f"\nChecked {len(records)} rules, {failures} with problems.")
    return 1 if failures else 0

if __name__ == "__main__":
    sys.exit(check_rule_versions())
