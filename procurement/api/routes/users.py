from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict

from procurement.dependencies.auth import CurrentUser
from procurement.workflow.roles import Role

router = APIRouter(prefix="/user", tags=["users"])


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    role: Role


@router.get("", response_model=UserResponse)
async def get_current_user_profile(user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(user)
