"""Pedagogical assessment of completed activity runs.

The model is asked for strict JSON describing the Student Wave Function: a
SOFT table (five soft-skill dimensions), a CRA table (content areas),
feedback and recommendations. The reply is validated against a pydantic
schema and rejected as UpstreamError if it does not fit. Activities run
under the teacher-persona title are exempt and never assessed.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as SchemaError

from perleap.core.config import SETTINGS
from perleap.core.errors import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from perleap.core.metrics import ASSESSMENTS_CREATED, ASSESSMENTS_SKIPPED
from perleap.db.store import Store
from perleap.models.assessment import SOFT_DIMENSIONS, Assessment
from perleap.models.principal import Principal
from perleap.models.run import STUDENT_SPEAKERS
from perleap.services import access
from perleap.services.llm_client import ChatCompletionClient

logger = logging.getLogger(__name__)

MAX_TOKENS = 2000
EXEMPT_MESSAGE = "Chat session completed successfully"
DONE_MESSAGE = "Assessment completed successfully"

SYSTEM_MESSAGE = (
    "You are Agent Perleap, a pedagogical assessment expert. Always respond "
    "with structured, actionable assessments in the exact JSON format requested."
)

_COLORS = dict(SOFT_DIMENSIONS)


# --- Model output schema ---


class SoftRow(BaseModel):
    dimension: str
    color: str = ""
    developmental_stage: int = Field(ge=1, le=100)
    motivational_level: int = Field(ge=1, le=100)
    leap_probability: int = Field(ge=1, le=100)
    mindset_phase: Literal["Up", "Down"]
    context: str

    @model_validator(mode="after")
    def _known_dimension(self) -> SoftRow:
        if self.dimension not in _COLORS:
            raise ValueError(f"unknown SOFT dimension {self.dimension!r}")
        self.color = _COLORS[self.dimension]
        return self


class CraRow(BaseModel):
    area: str = Field(min_length=1)
    ks_component: str = Field(min_length=1)
    current_level: int = Field(ge=0, le=100)
    current_level_description: str = ""
    actionable_challenges: str = Field(min_length=1)


class Recommendations(BaseModel):
    soft: str = Field(min_length=1)
    content: str = Field(min_length=1)


class AssessmentReport(BaseModel):
    soft_table: list[SoftRow]
    cra_table: list[CraRow] = Field(min_length=1)
    student_feedback: str = Field(min_length=1)
    teacher_feedback: str | None = None
    recommendations: Recommendations

    @model_validator(mode="after")
    def _each_dimension_once(self) -> AssessmentReport:
        seen = [row.dimension for row in self.soft_table]
        if sorted(seen) != sorted(_COLORS):
            raise ValueError(
                "soft_table must contain each of "
                + ", ".join(_COLORS)
                + f" exactly once (got {seen})"
            )
        order = list(_COLORS)
        self.soft_table.sort(key=lambda row: order.index(row.dimension))
        return self


# --- Request shapes ---


@dataclass(frozen=True, slots=True)
class TranscriptMessage:
    content: str
    type: str
    timestamp: Any = None

    def to_json(self) -> dict[str, Any]:
        return {"content": self.content, "type": self.type, "timestamp": self.timestamp}


@dataclass(frozen=True, slots=True)
class ActivityData:
    title: str
    goal: str | None = None
    subject: str | None = None
    grade_level: str | None = None


@dataclass(frozen=True, slots=True)
class AssessmentOutcome:
    message: str
    assessment: Assessment | None = None


def is_exempt(title: str | None, pattern: str | None = None) -> bool:
    """True for teacher-persona activities, which are never assessed."""
    pattern = (pattern or SETTINGS.exempt_activity_pattern).lower()
    return bool(title) and pattern in title.lower()


def render_prompt(activity: ActivityData, transcript: list[TranscriptMessage]) -> str:
    conversation = "\n".join(
        f"{'Student' if m.type in STUDENT_SPEAKERS else 'Assistant'}: {m.content}" for m in transcript
    )
    dimensions = "\n".join(f"{name} ({color})" for name, color in SOFT_DIMENSIONS)
    return f"""You are Agent "Perleap", a pedagogical assistant expert in the Quantum Education Doctrine.
Your role is to assess students after they complete an activity, using the Student Wave Function (SWF) model.
The SWF consists of two tables: Soft Related Abilities (SOFT) and Content Related Abilities (CRA).

Step 1 - Soft Assessment (SOFT Table)
Analyze the student's performance and interaction during the activity in terms of soft abilities.
Produce exactly one row for each dimension, in this order:
{dimensions}
Each row has: Developmental Stage (D: 1-100), Motivational Level (M: 1-100),
Leap Probability (L: 1-100%), Mindset Phase (P: Up/Down) and Overall Context (C: short description).

Step 2 - Content Assessment (CRA Table)
Break down the student's Content Related Abilities for the completed activity.
Produce one row per subject or skill area with: Area/Domain, K/S Component (specific skill or
knowledge), Current Level (CL: 0-100 plus a short description of proficiency) and
Actionable Challenges (AC: the specific next challenge to practice).

Step 3 - Feedback
Provide growth-oriented, empowering and non-judgmental feedback.
Feedback for the student: focus on progress, strengths, and one area to improve.
Feedback for the teacher (if relevant): observations about teaching effectiveness, engagement, or pacing.

Step 4 - Recommendations
Provide one key recommendation for improvement in each dimension (soft and content).

Output format
Respond with a single JSON object and nothing else, matching exactly:
{{
  "soft_table": [
    {{"dimension": "Cognitive", "color": "White", "developmental_stage": 1-100,
      "motivational_level": 1-100, "leap_probability": 1-100,
      "mindset_phase": "Up" or "Down", "context": "..."}}
  ],
  "cra_table": [
    {{"area": "...", "ks_component": "...", "current_level": 0-100,
      "current_level_description": "...", "actionable_challenges": "..."}}
  ],
  "student_feedback": "...",
  "teacher_feedback": "..." or null,
  "recommendations": {{"soft": "...", "content": "..."}}
}}

Activity Information:
Title: {activity.title}
Goal: {activity.goal or ''}
Subject: {activity.subject or ''}
Grade Level: {activity.grade_level or ''}

Chat Conversation:
{conversation}

Please provide a comprehensive assessment based on this interaction."""


_FENCE = re.compile(r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL | re.IGNORECASE)


def parse_report(raw: str) -> AssessmentReport:
    """Decode and validate the model's JSON. Raises UpstreamError on any mismatch."""
    fenced = _FENCE.match(raw)
    text = fenced.group(1) if fenced else raw
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Assessment reply is not valid JSON: %s", e)
        raise UpstreamError("AI service returned a malformed assessment") from e
    try:
        return AssessmentReport.model_validate(data)
    except SchemaError as e:
        logger.error("Assessment reply failed schema validation: %s", e.errors())
        raise UpstreamError("AI service returned a malformed assessment") from e


async def assess(
    store: Store,
    llm: ChatCompletionClient,
    principal: Principal,
    *,
    run_id: UUID,
    transcript: list[TranscriptMessage],
    activity_data: ActivityData,
) -> AssessmentOutcome:
    if is_exempt(activity_data.title):
        ASSESSMENTS_SKIPPED.inc()
        logger.info("Skipping assessment for teacher-persona activity run=%s", run_id)
        return AssessmentOutcome(message=EXEMPT_MESSAGE)

    run, activity, course = await access.require_run(
        store, principal.user_id, run_id, access.READ
    )
    if not run.is_completed:
        raise ValidationError("Activity run is not completed")
    if await store.assessments.get_by_run(run_id) is not None:
        raise ConflictError("Assessment already exists for this run")

    raw = await llm.complete(
        [
            {"role": "system", "content": SYSTEM_MESSAGE},
            {"role": "user", "content": render_prompt(activity_data, transcript)},
        ],
        model=SETTINGS.assessment_model,
        max_tokens=MAX_TOKENS,
        json_mode=True,
        purpose="assessment",
    )
    report = parse_report(raw)

    if activity is None or course is None:
        logger.error("Run %s has no parent activity/course; cannot store assessment", run_id)
        raise PersistenceError("Failed to fetch activity data")

    assessment = Assessment.new(
        activity_run_id=run_id,
        student_id=run.student_id,
        course_id=course.id,
        soft_table=[row.model_dump() for row in report.soft_table],
        cra_table=[row.model_dump() for row in report.cra_table],
        student_feedback=report.student_feedback,
        teacher_feedback=report.teacher_feedback,
        recommendations=report.recommendations.model_dump(),
        chat_context=[m.to_json() for m in transcript],
        full_assessment=raw,
    )
    await store.assessments.add(assessment)
    ASSESSMENTS_CREATED.inc()
    logger.info("Stored assessment id=%s run=%s course=%s", assessment.id, run_id, course.id)
    return AssessmentOutcome(message=DONE_MESSAGE, assessment=assessment)


async def get_for_run(store: Store, principal: Principal, run_id: UUID) -> Assessment:
    await access.require_run(store, principal.user_id, run_id, access.READ)
    assessment = await store.assessments.get_by_run(run_id)
    if assessment is None:
        raise NotFoundError("Assessment not found")
    return assessment


async def list_for_course(
    store: Store, principal: Principal, course_id: UUID
) -> list[Assessment]:
    await access.require_course(store, principal.user_id, course_id, access.WRITE)
    return await store.assessments.list_by_course(course_id)
