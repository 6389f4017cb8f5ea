"""Test configuration for the rule store tests.

This module provides pytest fixtures for building stores and repositories on
in-memory storage.
"""

import os

# Keep the app module from creating a database file on import
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest

from app.services.analytics import RulePerformanceService
from app.services.audit import AuditLogService
from app.services.rule_repository import RuleRepository
from app.services.rule_store import InMemoryStorage, RuleStore


@pytest.fixture
def storage() -> InMemoryStorage:
    """Return empty in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def seeded_store(storage) -> RuleStore:
    """Create a store that seeds itself with the sample rules."""
    return RuleStore(storage, key="test_rules")


@pytest.fixture
def empty_store(storage) -> RuleStore:
    """Create a store whose seed collection is empty."""
    return RuleStore(storage, key="test_rules", seed=lambda: [])


@pytest.fixture
def repository(empty_store) -> RuleRepository:
    """Create a repository over an initially empty store."""
    return RuleRepository(empty_store, simulate_latency=False, actor="Tester")


@pytest.fixture
def seeded_repository(seeded_store) -> RuleRepository:
    """Create a repository over the sample rules."""
    return RuleRepository(seeded_store, simulate_latency=False, actor="Tester")


@pytest.fixture
def performance_service() -> RulePerformanceService:
    return RulePerformanceService(simulate_latency=False)


@pytest.fixture
def audit_service() -> AuditLogService:
    return AuditLogService()
