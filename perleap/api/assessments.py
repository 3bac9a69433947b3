"""Assessment endpoints.

POST /v1/assessments                       assess a completed run
GET  /v1/assessments/{run_id}              read a run's assessment
GET  /v1/courses/{course_id}/assessments   all assessments of a course (owner)
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from perleap.api.dependencies import CurrentUser, LlmDep, StoreDep
from perleap.models.assessment import Assessment
from perleap.services import assessment_service
from perleap.services.assessment_service import ActivityData, TranscriptMessage

router = APIRouter(tags=["assessments"])


class ChatMessageIn(BaseModel):
    content: str
    type: str
    timestamp: Any = None


class ActivityDataIn(BaseModel):
    title: str
    goal: str | None = None
    subject: str | None = None
    grade_level: str | None = None


class AssessIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    run_id: UUID = Field(alias="runId")
    chat_messages: list[ChatMessageIn] = Field(alias="chatMessages")
    activity_data: ActivityDataIn = Field(alias="activityData")


class AssessmentOut(BaseModel):
    id: str
    activity_run_id: str
    student_id: str
    course_id: str
    soft_table: list[dict[str, Any]]
    cra_table: list[dict[str, Any]]
    student_feedback: str
    teacher_feedback: str | None
    recommendations: dict[str, Any]
    chat_context: list[dict[str, Any]]
    full_assessment: str
    created_at: int


class AssessResultOut(BaseModel):
    success: bool
    assessment: AssessmentOut | None = None
    message: str | None = None


def assessment_out(a: Assessment) -> AssessmentOut:
    return AssessmentOut(
        id=str(a.id),
        activity_run_id=str(a.activity_run_id),
        student_id=str(a.student_id),
        course_id=str(a.course_id),
        soft_table=a.soft_table,
        cra_table=a.cra_table,
        student_feedback=a.student_feedback,
        teacher_feedback=a.teacher_feedback,
        recommendations=a.recommendations,
        chat_context=a.chat_context,
        full_assessment=a.full_assessment,
        created_at=a.created_at,
    )


@router.post("/v1/assessments", response_model=AssessResultOut)
async def create_assessment(
    body: AssessIn, principal: CurrentUser, store: StoreDep, llm: LlmDep
) -> AssessResultOut:
    outcome = await assessment_service.assess(
        store,
        llm,
        principal,
        run_id=body.run_id,
        transcript=[
            TranscriptMessage(m.content, m.type, m.timestamp) for m in body.chat_messages
        ],
        activity_data=ActivityData(**body.activity_data.model_dump()),
    )
    return AssessResultOut(
        success=True,
        assessment=assessment_out(outcome.assessment) if outcome.assessment else None,
        message=outcome.message,
    )


@router.get("/v1/assessments/{run_id}", response_model=AssessmentOut)
async def get_assessment(run_id: UUID, principal: CurrentUser, store: StoreDep) -> AssessmentOut:
    return assessment_out(await assessment_service.get_for_run(store, principal, run_id))


@router.get("/v1/courses/{course_id}/assessments", response_model=list[AssessmentOut])
async def list_course_assessments(
    course_id: UUID, principal: CurrentUser, store: StoreDep
) -> list[AssessmentOut]:
    assessments = await assessment_service.list_for_course(store, principal, course_id)
    return [assessment_out(a) for a in assessments]
