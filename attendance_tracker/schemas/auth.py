"""Pydantic schemas for login and issued tokens."""

from __future__ import annotations

from pydantic import BaseModel, model_validator

from attendance_tracker.schemas.worker import WorkerRead


class LoginRequest(BaseModel):
    email: str
    password: str


class WorkerLoginRequest(BaseModel):
    """Workers may sign in with either their e-mail or their worker id."""

    email: str | None = None
    id: str | None = None
    password: str

    @model_validator(mode="after")
    def _identifier_required(self) -> "WorkerLoginRequest":
        if not (self.email or self.id):
            raise ValueError("Email/ID and password are required")
        return self


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    user: WorkerRead


class WorkerLoginResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    worker: WorkerRead
