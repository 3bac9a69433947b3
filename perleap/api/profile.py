"""Own-profile endpoints.

GET   /v1/profiles/me  load own profile
PUT   /v1/profiles/me  create or replace own profile (role fixed on first write)
PATCH /v1/profiles/me  edit display fields
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from perleap.api.dependencies import CurrentUser, StoreDep
from perleap.models.profile import Profile
from perleap.services import profile_service

router = APIRouter(prefix="/v1/profiles", tags=["profiles"])


class ProfileOut(BaseModel):
    user_id: str
    email: str
    full_name: str | None
    role: str
    profile_picture_url: str | None
    created_at: int
    updated_at: int


class PutProfileIn(BaseModel):
    role: str
    full_name: str | None = Field(default=None, max_length=255)


class PatchProfileIn(BaseModel):
    full_name: str | None = Field(default=None, max_length=255)
    profile_picture_url: str | None = None


def profile_out(p: Profile) -> ProfileOut:
    return ProfileOut(
        user_id=str(p.user_id),
        email=p.email,
        full_name=p.full_name,
        role=p.role,
        profile_picture_url=p.profile_picture_url,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


@router.get("/me", response_model=ProfileOut)
async def get_my_profile(principal: CurrentUser, store: StoreDep) -> ProfileOut:
    return profile_out(await profile_service.get_own(store, principal))


@router.put("/me", response_model=ProfileOut)
async def put_my_profile(
    body: PutProfileIn, principal: CurrentUser, store: StoreDep
) -> ProfileOut:
    profile = await profile_service.put_own(
        store, principal, role=body.role, full_name=body.full_name
    )
    return profile_out(profile)


@router.patch("/me", response_model=ProfileOut)
async def patch_my_profile(
    body: PatchProfileIn, principal: CurrentUser, store: StoreDep
) -> ProfileOut:
    changes = body.model_dump(exclude_unset=True)
    return profile_out(await profile_service.patch_own(store, principal, changes))
