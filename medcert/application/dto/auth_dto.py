from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionContext(BaseModel):
    """Actor passed explicitly into every service operation."""

    model_config = ConfigDict(frozen=True)

    user_id: int | None = None
    login: str
    role: Literal["admin", "region"]
    region_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)
    region_id: int


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: int
    login: str | None = None
    password: str | None = Field(default=None, min_length=8)
    region_id: int | None = None
    clear_region: bool = False

    @model_validator(mode="after")
    def _check_region(self) -> UpdateUserRequest:
        if self.clear_region and self.region_id is not None:
            raise ValueError("Нельзя одновременно указать и сбросить регион")
        return self


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: int
    new_password: str = Field(..., min_length=8)
    deactivate: bool = False


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    login: str
    role: Literal["admin", "region"]
    region_id: int | None = None
    is_active: bool
    created_at: datetime | None = None
