from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from perleap.db import engine as db_engine
from perleap.db.store import Store, pg_store
from perleap.models.principal import Principal
from perleap.services import token_service
from perleap.services.llm_client import ChatCompletionClient

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal:
    """Validate the bearer token and return the caller's Principal.

    Used as a FastAPI dependency on every protected endpoint. The user id is
    also recorded on request.state for the request log line.
    """
    if credentials is None:
        logger.warning("Request without bearer token rejected")
        raise _unauthorized("Unauthorized - Please sign in")

    try:
        claims = token_service.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    try:
        user_id = UUID(claims["sub"])
    except (TypeError, ValueError):
        logger.warning("Token with non-UUID subject rejected")
        raise _unauthorized("Invalid token") from None

    principal = Principal(user_id=user_id, email=claims.get("email"))
    request.state.user_id = principal.user_id
    logger.debug("Token validated for user=%s", principal.user_id)
    return principal


async def get_store(request: Request) -> AsyncIterator[Store]:
    """Yield the repositories for this request.

    PostgreSQL when DATABASE_URL is configured (one session per request,
    committed on success), otherwise the process-wide in-memory store.
    """
    if db_engine.async_session_factory is None:
        yield request.app.state.memory_store
        return
    async with db_engine.session_scope() as session:
        yield pg_store(session)


def get_llm(request: Request) -> ChatCompletionClient:
    return request.app.state.llm


CurrentUser = Annotated[Principal, Depends(require_user)]
StoreDep = Annotated[Store, Depends(get_store)]
LlmDep = Annotated[ChatCompletionClient, Depends(get_llm)]
