"""Tutoring chat endpoint.

POST /v1/chat  {activityId, message, conversationHistory} -> {success, response}
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from perleap.api.dependencies import CurrentUser, LlmDep, StoreDep
from perleap.services import tutor_service
from perleap.services.tutor_service import HistoryEntry

router = APIRouter(prefix="/v1/chat", tags=["chat"])


class HistoryEntryIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str | None = None
    content: str | None = None


class ChatIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    activity_id: UUID = Field(alias="activityId")
    message: str = ""
    conversation_history: list[HistoryEntryIn] = Field(
        default_factory=list, alias="conversationHistory"
    )


class ChatOut(BaseModel):
    success: bool
    response: str


@router.post("", response_model=ChatOut)
async def chat(body: ChatIn, principal: CurrentUser, store: StoreDep, llm: LlmDep) -> ChatOut:
    answer = await tutor_service.reply(
        store,
        llm,
        principal,
        activity_id=body.activity_id,
        message=body.message,
        history=[HistoryEntry(h.role, h.content) for h in body.conversation_history],
    )
    return ChatOut(success=True, response=answer)
