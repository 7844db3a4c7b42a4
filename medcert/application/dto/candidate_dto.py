from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from medcert.domain.constants import ImportMode, ModuleState, ModuleStatus, Profession


class CandidateUpdateRequest(BaseModel):
    """Partial update; only the keys present in the payload are applied."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    full_name: str | None = None
    pinfl: str | None = None
    profession: Profession | None = None
    region_id: int | None = None
    brigade_id: int | None = None
    cert1: bool | None = None
    cert1_note: str | None = None
    cert2: bool | None = None
    cert2_note: str | None = None
    cert3: bool | None = None
    cert3_note: str | None = None
    cert4: bool | None = None
    cert4_note: str | None = None


class CandidateSearchRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    region_id: int | None = None
    brigade_id: int | None = None
    profession: Profession | None = None
    search: str | None = None


class ModuleResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    candidate_id: int
    module_number: int
    status: ModuleStatus
    attempt_number: int
    is_retake: bool


class CandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    pinfl: str
    profession: Profession
    region_id: int
    brigade_id: int
    cert1: bool
    cert1_note: str | None = None
    cert2: bool
    cert2_note: str | None = None
    cert3: bool
    cert3_note: str | None = None
    cert4: bool
    cert4_note: str | None = None
    module_results: list[ModuleResultResponse] = Field(default_factory=list)


class ModuleCandidateRow(BaseModel):
    candidate: CandidateResponse
    visible: bool
    eligible: bool
    latest_status: ModuleStatus | None = None
    state: ModuleState


class ImportCandidatesRequest(BaseModel):
    region_id: int | None = None
    profession: Profession
    mode: ImportMode
    names: list[str] = Field(default_factory=list)


class ImportReason(BaseModel):
    row_index: int
    reason: str


class ImportResult(BaseModel):
    imported: int
    skipped: int
    reasons: list[ImportReason] = Field(default_factory=list)
    vacancies_count: int | None = None
    message: str | None = None
