from __future__ import annotations

import logging
from dataclasses import replace

from perleap.core.errors import ForbiddenError, NotFoundError, ValidationError
from perleap.db.store import Store
from perleap.models.clock import now_ts
from perleap.models.principal import Principal
from perleap.models.profile import PROFILE_ROLES, Profile

logger = logging.getLogger(__name__)


async def get_own(store: Store, principal: Principal) -> Profile:
    profile = await store.profiles.get(principal.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


async def require_teacher(store: Store, principal: Principal) -> Profile:
    profile = await store.profiles.get(principal.user_id)
    if profile is None or not profile.is_teacher:
        logger.warning("Teacher profile required: user=%s", principal.user_id)
        raise ForbiddenError("Only teachers can perform this action")
    return profile


async def put_own(
    store: Store, principal: Principal, *, role: str, full_name: str | None
) -> Profile:
    """Create the caller's profile, or replace its editable fields.

    The role is fixed by the first write; email always comes from the token.
    """
    if role not in PROFILE_ROLES:
        raise ValidationError(f"role must be one of {', '.join(PROFILE_ROLES)}")

    existing = await store.profiles.get(principal.user_id)
    if existing is None:
        if not principal.email:
            raise ValidationError("Token carries no email claim")
        profile = Profile.new(
            user_id=principal.user_id,
            email=principal.email,
            role=role,
            full_name=full_name,
        )
        logger.info("Created profile user=%s role=%s", profile.user_id, role)
        return await store.profiles.save(profile)

    if existing.role != role:
        logger.warning(
            "Rejected role change user=%s %s->%s", existing.user_id, existing.role, role
        )
        raise ValidationError("Profile role cannot be changed")

    updated = replace(
        existing,
        email=principal.email or existing.email,
        full_name=full_name,
        updated_at=now_ts(),
    )
    return await store.profiles.save(updated)


async def patch_own(store: Store, principal: Principal, changes: dict) -> Profile:
    profile = await get_own(store, principal)
    allowed = {"full_name", "profile_picture_url"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    if not changes:
        return profile
    return await store.profiles.save(replace(profile, **changes, updated_at=now_ts()))
