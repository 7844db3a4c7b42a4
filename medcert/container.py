from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from medcert.application.services.auth_service import AuthService
from medcert.application.services.candidate_import_service import CandidateImportService
from medcert.application.services.candidate_service import CandidateService
from medcert.application.services.module_service import ModuleService
from medcert.application.services.region_service import RegionService
from medcert.application.services.reporting_service import ReportingService
from medcert.application.services.statistics_service import StatisticsService
from medcert.application.services.user_admin_service import UserAdminService
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.candidate_repo import CandidateRepository
from medcert.infrastructure.db.repositories.module_result_repo import ModuleResultRepository
from medcert.infrastructure.db.repositories.region_repo import RegionRepository
from medcert.infrastructure.db.repositories.user_repo import UserRepository
from medcert.infrastructure.db.session import session_scope


@dataclass
class Container:
    user_repo: UserRepository
    audit_repo: AuditLogRepository
    region_repo: RegionRepository
    candidate_repo: CandidateRepository
    result_repo: ModuleResultRepository

    auth_service: AuthService
    user_admin_service: UserAdminService
    region_service: RegionService
    candidate_service: CandidateService
    candidate_import_service: CandidateImportService
    module_service: ModuleService
    statistics_service: StatisticsService
    reporting_service: ReportingService


def build_container(session_factory: Callable = session_scope) -> Container:
    user_repo = UserRepository()
    audit_repo = AuditLogRepository()
    region_repo = RegionRepository()
    candidate_repo = CandidateRepository()
    result_repo = ModuleResultRepository()

    auth_service = AuthService(user_repo=user_repo, audit_repo=audit_repo, session_factory=session_factory)
    user_admin_service = UserAdminService(
        user_repo=user_repo,
        region_repo=region_repo,
        audit_repo=audit_repo,
        session_factory=session_factory,
    )
    region_service = RegionService(
        region_repo=region_repo,
        candidate_repo=candidate_repo,
        result_repo=result_repo,
        user_repo=user_repo,
        audit_repo=audit_repo,
        session_factory=session_factory,
    )
    candidate_service = CandidateService(
        candidate_repo=candidate_repo,
        region_repo=region_repo,
        audit_repo=audit_repo,
        session_factory=session_factory,
    )
    candidate_import_service = CandidateImportService(
        candidate_repo=candidate_repo,
        region_repo=region_repo,
        audit_repo=audit_repo,
        session_factory=session_factory,
    )
    module_service = ModuleService(
        candidate_repo=candidate_repo,
        result_repo=result_repo,
        audit_repo=audit_repo,
        session_factory=session_factory,
    )
    statistics_service = StatisticsService(
        region_repo=region_repo,
        candidate_repo=candidate_repo,
        audit_repo=audit_repo,
        session_factory=session_factory,
    )
    reporting_service = ReportingService(
        statistics_service=statistics_service,
        audit_repo=audit_repo,
        session_factory=session_factory,
    )

    return Container(
        user_repo=user_repo,
        audit_repo=audit_repo,
        region_repo=region_repo,
        candidate_repo=candidate_repo,
        result_repo=result_repo,
        auth_service=auth_service,
        user_admin_service=user_admin_service,
        region_service=region_service,
        candidate_service=candidate_service,
        candidate_import_service=candidate_import_service,
        module_service=module_service,
        statistics_service=statistics_service,
        reporting_service=reporting_service,
    )
