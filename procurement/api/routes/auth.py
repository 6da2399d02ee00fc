from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from procurement.dependencies.services import UserServiceDep
from procurement.users.service import AuthenticationError

router = APIRouter(prefix="/auth", tags=["auth"])


class AuthRequest(BaseModel):
    login: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("", response_model=AuthResponse)
async def authenticate(payload: AuthRequest, service: UserServiceDep) -> AuthResponse:
    try:
        token = await service.issue_token(payload.login, payload.password)
    except AuthenticationError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return AuthResponse(access_token=token)
