from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from medcert.application.dto.auth_dto import SessionContext
from medcert.application.services.statistics_service import StatisticsService
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.session import session_scope
from medcert.infrastructure.spreadsheet.statistics_export import build_statistics_workbook

logger = logging.getLogger(__name__)


def _sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ReportingService:
    def __init__(
        self,
        statistics_service: StatisticsService | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.statistics_service = statistics_service or StatisticsService(session_factory=session_factory)
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory

    def export_statistics_xlsx(self, file_path: str | Path, actor: SessionContext) -> dict[str, Any]:
        file_path = Path(file_path)
        summary = self.statistics_service.get_summary(actor)
        wb = build_statistics_workbook(summary)

        file_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(file_path)
        report_hash = _sha256_file(file_path)

        with self.session_factory() as session:
            self.audit_repo.add_event(
                session,
                user_id=actor.user_id,
                entity_type="statistics",
                entity_id="xlsx",
                action="export_statistics",
                payload_json=json.dumps(
                    {"path": str(file_path), "regions": len(summary.regions), "sha256": report_hash},
                    ensure_ascii=False,
                ),
            )
        logger.info("Statistics exported: %s (%s regions)", file_path, len(summary.regions))
        return {
            "path": str(file_path),
            "regions": len(summary.regions),
            "sha256": report_hash,
        }
