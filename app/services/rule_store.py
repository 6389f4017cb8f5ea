"""
Persistent store for the rule collection.

The whole collection lives in one named slot as a single JSON document that is
read and replaced wholesale. The slot itself is provided by a storage backend:
a row in the `storage_slots` table, or a dict for tests and ephemeral runs.
"""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.error_handling import CorruptStateError
from app.db.seed_data import SAMPLE_RULES
from app.models.storage import StorageSlot
from app.schemas.rule import Rule
from app.services.normalizer import normalize_rule

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, payload: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStorage:
    """Dict-backed slots, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._slots: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def write(self, key: str, payload: str) -> None:
        self._slots[key] = payload

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)


class SQLAlchemyStorage:
    """Slots stored as rows of the storage_slots table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def read(self, key: str) -> Optional[str]:
        session: Session = self.session_factory()
        try:
            slot = session.get(StorageSlot, key)
            return slot.payload if slot else None
        finally:
            session.close()

    def write(self, key: str, payload: str) -> None:
        session: Session = self.session_factory()
        try:
            session.merge(StorageSlot(key=key, payload=payload))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete(self, key: str) -> None:
        session: Session = self.session_factory()
        try:
            session.query(StorageSlot).filter(StorageSlot.key == key).delete()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def sample_rules() -> List[Dict[str, Any]]:
    return SAMPLE_RULES


class RuleStore:
    """Load/save the full rule collection, seeding it on first use."""

    def __init__(
        self,
        backend: StorageBackend,
        key: str = None,
        seed: Callable[[], Iterable[Any]] = sample_rules,
    ):
        self.backend = backend
        self.key = key or settings.STORAGE_KEY
        self.seed = seed

    def _decode(self, payload: str) -> List[Rule]:
        try:
            records = json.loads(payload)
        except ValueError as e:
            raise CorruptStateError(f"Stored rules are not valid JSON: {str(e)}") from e
        if not isinstance(records, list):
            raise CorruptStateError(f"Stored rules must be a list, got {type(records).__name__}")
        try:
            return [normalize_rule(record) for record in records]
        except Exception as e:
            raise CorruptStateError(f"Stored rule could not be normalized: {str(e)}") from e

    def load(self) -> List[Rule]:
        """Return the persisted collection, or the normalized seed collection.

        Each call decodes a fresh object graph, so callers may mutate the
        result freely; nothing reaches storage without save().
        """
        payload = self.backend.read(self.key)
        if payload is not None:
            try:
                return self._decode(payload)
            except CorruptStateError as e:
                logger.warning(f"Discarding corrupt rule store '{self.key}' and reseeding: {str(e)}")

        seeded = [normalize_rule(record) for record in self.seed()]
        self.save(seeded)
        logger.info(f"Seeded rule store '{self.key}' with {len(seeded)} rules")
        return self._decode(self.backend.read(self.key))

    def save(self, rules: Iterable[Rule]) -> None:
        payload = json.dumps([rule.model_dump(by_alias=True) for rule in rules])
        self.backend.write(self.key, payload)

    def reset(self) -> None:
        """Drop the persisted collection; the next load reseeds."""
        self.backend.delete(self.key)
