"""Activity run endpoints: a student's attempt and its transcript."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from perleap.api.dependencies import CurrentUser, StoreDep
from perleap.models.run import ActivityRun
from perleap.services import run_service

router = APIRouter(prefix="/v1/runs", tags=["runs"])


class RunCreateIn(BaseModel):
    activity_id: UUID


class MessageIn(BaseModel):
    role: str
    content: str = Field(min_length=1)


class ChatTurnOut(BaseModel):
    role: str
    content: str
    timestamp: int


class RunOut(BaseModel):
    id: str
    activity_id: str
    student_id: str
    status: str
    messages: list[ChatTurnOut]
    created_at: int
    started_at: int | None
    completed_at: int | None


def run_out(r: ActivityRun) -> RunOut:
    return RunOut(
        id=str(r.id),
        activity_id=str(r.activity_id),
        student_id=str(r.student_id),
        status=r.status,
        messages=[ChatTurnOut(**t.to_json()) for t in r.messages],
        created_at=r.created_at,
        started_at=r.started_at,
        completed_at=r.completed_at,
    )


@router.post("", response_model=RunOut, status_code=status.HTTP_201_CREATED)
async def create_run(body: RunCreateIn, principal: CurrentUser, store: StoreDep) -> RunOut:
    return run_out(await run_service.create_run(store, principal, body.activity_id))


@router.get("", response_model=list[RunOut])
async def list_my_runs(
    principal: CurrentUser, store: StoreDep, course_id: UUID | None = None
) -> list[RunOut]:
    runs = await run_service.list_own_runs(store, principal, course_id)
    return [run_out(r) for r in runs]


@router.get("/{run_id}", response_model=RunOut)
async def get_run(run_id: UUID, principal: CurrentUser, store: StoreDep) -> RunOut:
    return run_out(await run_service.get_run(store, principal, run_id))


@router.post("/{run_id}/start", response_model=RunOut)
async def start_run(run_id: UUID, principal: CurrentUser, store: StoreDep) -> RunOut:
    return run_out(await run_service.start_run(store, principal, run_id))


@router.post("/{run_id}/messages", response_model=RunOut)
async def append_message(
    run_id: UUID, body: MessageIn, principal: CurrentUser, store: StoreDep
) -> RunOut:
    run = await run_service.append_message(
        store, principal, run_id, role=body.role, content=body.content
    )
    return run_out(run)


@router.post("/{run_id}/complete", response_model=RunOut)
async def complete_run(run_id: UUID, principal: CurrentUser, store: StoreDep) -> RunOut:
    return run_out(await run_service.complete_run(store, principal, run_id))
