from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any, cast

from medcert.application.dto.auth_dto import SessionContext
from medcert.application.dto.statistics_dto import (
    FunnelStep,
    ProblemRegion,
    ProblemRegions,
    ProfessionMetrics,
    RegionMetrics,
    SlotMetrics,
    StatisticsSummary,
)
from medcert.application.services.access_guard import AccessGuard
from medcert.domain.calculations.progress_metrics import (
    build_funnel,
    compute_slot_metrics,
    profession_breakdown,
    top_regions,
    total_failed,
    total_no_show,
)
from medcert.domain.models.candidate import CertificationState, SlotRecord
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.candidate_repo import CandidateRepository
from medcert.infrastructure.db.repositories.region_repo import RegionRepository
from medcert.infrastructure.db.session import session_scope


class StatisticsService:
    def __init__(
        self,
        region_repo: RegionRepository | None = None,
        candidate_repo: CandidateRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.region_repo = region_repo or RegionRepository()
        self.candidate_repo = candidate_repo or CandidateRepository()
        self.session_factory = session_factory
        self.guard = AccessGuard(audit_repo=audit_repo, session_factory=session_factory)

    def get_summary(self, actor: SessionContext) -> StatisticsSummary:
        with self.guard.recording_denials(actor, entity_type="statistics", action="get_summary"):
            self.guard.require(actor, "view_statistics")
            region_filter = self.guard.scoped_region_id(actor)

        with self.session_factory() as session:
            regions = self.region_repo.list_regions(session, region_filter, order_by_name=True)
            candidates = self.candidate_repo.list_candidates(session, region_id=region_filter, with_results=True)
            records = [
                SlotRecord(
                    region_id=cast(int, c.region_id),
                    profession=cast(str, c.profession),
                    full_name=cast(str, c.full_name),
                    pinfl=cast(str, c.pinfl),
                    state=CertificationState.from_candidate(c),
                )
                for c in candidates
            ]
            region_names = [(cast(int, r.id), cast(str, r.name)) for r in regions]

        by_region: dict[int, list[SlotRecord]] = defaultdict(list)
        for record in records:
            by_region[record.region_id].append(record)

        global_metrics = compute_slot_metrics(records)
        region_rows: list[dict[str, Any]] = []
        for region_id, name in region_names:
            metrics = compute_slot_metrics(by_region.get(region_id, []))
            region_rows.append({"id": region_id, "name": name, **metrics})

        problem_rows = [
            {
                "region_id": row["id"],
                "region_name": row["name"],
                "total_no_show": total_no_show(row["modules"]),
                "total_failed": total_failed(row["modules"]),
                "vacant": row["vacant"],
            }
            for row in region_rows
        ]

        return StatisticsSummary(
            global_metrics=SlotMetrics(**global_metrics),
            funnel=[FunnelStep(**step) for step in build_funnel(global_metrics)],
            regions=[RegionMetrics(**row) for row in region_rows],
            professions={
                profession: ProfessionMetrics(**values)
                for profession, values in profession_breakdown(records).items()
            },
            problem_regions=ProblemRegions(
                no_show=[ProblemRegion(**row) for row in top_regions(problem_rows, "total_no_show")],
                failed=[ProblemRegion(**row) for row in top_regions(problem_rows, "total_failed")],
                vacant=[ProblemRegion(**row) for row in top_regions(problem_rows, "vacant")],
            ),
        )
