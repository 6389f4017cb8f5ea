"""
Audit log views: filtered, paginated listings and CSV export of the current page.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List

import pandas as pd

from app.db.seed_data import generate_audit_log_items
from app.schemas.analytics import AuditFilters, AuditLogItem, Page
from app.services.analytics import paginate

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["id", "created_at", "actor_email", "action", "entity_type", "entity_id", "entity_label"]

EQUALITY_FILTERS = ("action", "entity_type", "actor_email", "entity_id")


class AuditLogService:
    def __init__(self, source: Callable[[], Iterable[Dict[str, Any]]] = generate_audit_log_items):
        self.source = source

    def _filtered(self, filters: AuditFilters) -> List[AuditLogItem]:
        items = [AuditLogItem(**item) for item in self.source()]
        for name in EQUALITY_FILTERS:
            wanted = getattr(filters, name)
            if wanted:
                items = [item for item in items if getattr(item, name) == wanted]
        # ISO-8601 strings compare chronologically; undated entries always pass
        if filters.date_from:
            items = [i for i in items if not i.created_at or i.created_at >= filters.date_from]
        if filters.date_to:
            items = [i for i in items if not i.created_at or i.created_at <= filters.date_to]
        return items

    def get_audit_logs(self, filters: AuditFilters = None) -> Page[AuditLogItem]:
        filters = filters or AuditFilters()
        result = paginate(self._filtered(filters), filters.page, filters.limit)
        return Page[AuditLogItem](total=result.total, items=result.items)

    def export_audit_logs(self, filters: AuditFilters = None) -> str:
        """Render the filtered page as CSV text."""
        page = self.get_audit_logs(filters)
        rows = [item.model_dump(include=set(EXPORT_COLUMNS)) for item in page.items]
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        logger.info(f"Exporting {len(df)} audit log rows")
        return df.to_csv(index=False, lineterminator="\n")
