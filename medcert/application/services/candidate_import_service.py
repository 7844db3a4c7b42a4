from __future__ import annotations

import json
import logging
import zipfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from openpyxl.utils.exceptions import InvalidFileException

from medcert.application.dto.auth_dto import SessionContext
from medcert.application.dto.candidate_dto import ImportCandidatesRequest, ImportReason, ImportResult
from medcert.application.dto.validation import validate_request
from medcert.application.errors import NotFoundError, ValidationError
from medcert.application.services.access_guard import AccessGuard
from medcert.config import settings
from medcert.domain.constants import ImportMode
from medcert.domain.rules.certification_rules import is_slot_vacant, reset_certificates
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.candidate_repo import CandidateRepository
from medcert.infrastructure.db.repositories.region_repo import RegionRepository
from medcert.infrastructure.db.session import session_scope
from medcert.infrastructure.spreadsheet.candidate_import import read_candidate_names

logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 2

NO_VACANCIES_MESSAGE = (
    "Нет свободных слотов для заполнения. Выберите режим «Перезаписать список» "
    "или добавьте слоты в настройках региона."
)


class CandidateImportService:
    """Fills candidate slots of one region and profession from a list of names.

    ``add`` fills vacant slots in order; ``overwrite`` rewrites every slot
    and clears the ones left without a row.
    """

    def __init__(
        self,
        candidate_repo: CandidateRepository | None = None,
        region_repo: RegionRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
        chunk_size: int | None = None,
    ) -> None:
        self.candidate_repo = candidate_repo or CandidateRepository()
        self.region_repo = region_repo or RegionRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory
        self.chunk_size = chunk_size or settings.import_chunk_size
        self.guard = AccessGuard(audit_repo=self.audit_repo, session_factory=session_factory)

    def import_excel(
        self,
        file_path: str | Path,
        *,
        region_id: int | None,
        profession: str,
        mode: str,
        actor: SessionContext,
    ) -> ImportResult:
        try:
            names = read_candidate_names(file_path)
        except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
            logger.warning("Cannot read import workbook %s: %s", file_path, exc)
            raise ValidationError("Некорректный файл Excel") from exc
        return self.import_names(region_id=region_id, profession=profession, mode=mode, names=names, actor=actor)

    def import_names(
        self,
        *,
        region_id: int | None,
        profession: str,
        mode: str,
        names: Sequence[Any],
        actor: SessionContext,
    ) -> ImportResult:
        with self.guard.recording_denials(actor, entity_type="candidate", action="import_candidates"):
            self.guard.require(actor, "import_candidates")
            request = validate_request(
                ImportCandidatesRequest,
                {
                    "region_id": region_id,
                    "profession": profession,
                    "mode": mode,
                    "names": ["" if name is None else str(name) for name in names],
                },
            )
            target_region = self.guard.scoped_region_id(actor, request.region_id)
            if target_region is None:
                raise ValidationError("Для администратора укажите регион")

            with self.session_factory() as session:
                if self.region_repo.get_by_id(session, target_region) is None:
                    raise NotFoundError("Регион не найден")
                slots = self.candidate_repo.list_slots(session, target_region, request.profession)
                rows = [(idx + FIRST_DATA_ROW, name.strip()) for idx, name in enumerate(request.names)]

                if request.mode == ImportMode.ADD:
                    result = self._add(session, slots, rows)
                else:
                    result = self._overwrite(session, slots, rows)

                self.audit_repo.add_event(
                    session,
                    user_id=actor.user_id,
                    entity_type="candidate",
                    entity_id=str(target_region),
                    action="import_candidates",
                    payload_json=json.dumps(
                        {
                            "profession": str(request.profession),
                            "mode": str(request.mode),
                            "imported": result.imported,
                            "skipped": result.skipped,
                        }
                    ),
                )
        logger.info(
            "Candidates imported: region=%s profession=%s mode=%s imported=%s skipped=%s",
            target_region,
            request.profession,
            request.mode,
            result.imported,
            result.skipped,
        )
        return result

    def _add(self, session, slots: list, rows: list[tuple[int, str]]) -> ImportResult:
        rows = [(row_index, name) for row_index, name in rows if name]
        vacancies = [slot for slot in slots if is_slot_vacant(slot.full_name)]
        reasons: list[ImportReason] = []
        imported = 0

        for position, (row_index, name) in enumerate(rows):
            if position >= len(vacancies):
                if vacancies:
                    reasons.append(ImportReason(row_index=row_index, reason="Нет свободного слота"))
                continue
            self.candidate_repo.apply_changes(vacancies[position], {"full_name": name})
            imported += 1
            self._flush_chunk(session, imported)
        session.flush()

        if not vacancies and rows:
            reasons.append(
                ImportReason(
                    row_index=0,
                    reason=(
                        f"Нет свободных слотов для региона и профессии (всего слотов: {len(slots)}). "
                        "Используйте режим «Перезаписать список» или добавьте слоты в настройках региона."
                    ),
                )
            )
        return ImportResult(
            imported=imported,
            skipped=max(0, len(rows) - imported),
            reasons=reasons,
            vacancies_count=len(vacancies),
            message=NO_VACANCIES_MESSAGE if rows and imported == 0 else None,
        )

    def _overwrite(self, session, slots: list, rows: list[tuple[int, str]]) -> ImportResult:
        imported = 0
        for position, slot in enumerate(slots):
            name = rows[position][1] if position < len(rows) else ""
            values: dict[str, Any] = {"full_name": name}
            if not name:
                values.update(reset_certificates())
            else:
                imported += 1
            self.candidate_repo.apply_changes(slot, values)
            self._flush_chunk(session, position + 1)
        session.flush()

        reasons = [
            ImportReason(row_index=row_index, reason="Строка за пределами количества слотов")
            for row_index, _ in rows[len(slots) :]
        ]
        return ImportResult(imported=imported, skipped=max(0, len(rows) - imported), reasons=reasons)

    def _flush_chunk(self, session, processed: int) -> None:
        if processed % self.chunk_size == 0:
            session.flush()
