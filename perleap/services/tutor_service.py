"""Tutoring chat: the model answers in the voice of the course's teacher.

Stateless. The caller sends recent history with each message; transcripts are
persisted separately through the runs endpoints.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from uuid import UUID

from perleap.core.config import SETTINGS
from perleap.core.errors import ValidationError
from perleap.db.store import Store
from perleap.models.activity import Activity
from perleap.models.course import Course
from perleap.models.principal import Principal
from perleap.models.run import STUDENT_SPEAKERS
from perleap.services import access
from perleap.services.llm_client import ChatCompletionClient

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
MAX_TOKENS = 800
TEMPERATURE = 0.7
PRESENCE_PENALTY = 0.1
FREQUENCY_PENALTY = 0.1


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    role: str | None
    content: str | None


def build_system_prompt(teacher_name: str, course: Course, activity: Activity) -> str:
    subject = course.subject
    grade = course.grade_level
    return f"""You are {teacher_name}, an experienced and passionate {subject} teacher for Grade {grade}.

COURSE CONTEXT:
- Course: {course.title}
- Subject: {subject}
- Grade Level: Grade {grade}
- Course Description: {course.description or 'No description available'}

ACTIVITY CONTEXT:
- Activity: {activity.title}
- Goal: {activity.goal or 'General learning support'}
- Focus: {activity.custom_focus or subject}
- Content: {activity.activity_content or 'Interactive learning session'}

TEACHING PERSONA:
You are speaking AS {teacher_name}, the actual teacher of this course. You should:
- Respond as if you are personally teaching this student
- Reference your expertise in {subject}
- Stay focused on the course content and curriculum for Grade {grade}
- Be encouraging, supportive, and educational
- Ask follow-up questions to assess understanding
- Provide clear, age-appropriate explanations suitable for Grade {grade} students
- Guide students through topics step by step
- Use "I" when referring to yourself as the teacher

IMPORTANT: Only discuss topics related to {subject} and this {course.title} course. If students ask about other subjects, politely redirect them to focus on our {subject} coursework.

Always maintain the persona of {teacher_name}, their dedicated {subject} teacher."""


def build_messages(
    system_prompt: str, history: list[HistoryEntry], message: str
) -> list[dict[str, str]]:
    """System prompt, the last HISTORY_LIMIT usable turns, then the new message.

    The window is taken before incomplete entries are dropped, so a malformed
    entry still uses up a slot.
    """
    messages = [{"role": "system", "content": system_prompt}]
    for entry in history[-HISTORY_LIMIT:]:
        if not entry.role or not entry.content:
            continue
        role = "user" if entry.role in STUDENT_SPEAKERS else "assistant"
        messages.append({"role": role, "content": entry.content})
    messages.append({"role": "user", "content": message})
    return messages


_BOLD = re.compile(r"\*\*(.+?)\*\*|__(.+?)__", re.DOTALL)
_ITALIC = re.compile(r"(?<!\*)\*(?!\s)([^*\n]+?)(?<!\s)\*(?!\*)")
_STRAY_STARS = re.compile(r"\*{2,}")
_HEADING = re.compile(r"^[ \t]*#+(?:[ \t]+|$)", re.MULTILINE)
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.MULTILINE)
_BLANK_RUN = re.compile(r"\n{3,}")


def format_response(text: str) -> str:
    """Strip markdown emphasis and headings, and tidy whitespace."""
    text = _BOLD.sub(lambda m: m.group(1) if m.group(1) is not None else m.group(2), text)
    text = _ITALIC.sub(r"\1", text)
    text = _STRAY_STARS.sub("", text)
    text = _HEADING.sub("", text)
    text = _TRAILING_SPACE.sub("", text)
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


async def reply(
    store: Store,
    llm: ChatCompletionClient,
    principal: Principal,
    *,
    activity_id: UUID,
    message: str,
    history: list[HistoryEntry],
) -> str:
    if not message.strip():
        raise ValidationError("Message is required")

    activity, course = await access.require_activity(
        store, principal.user_id, activity_id, access.READ
    )
    teacher = await store.profiles.get(course.teacher_id)
    teacher_name = teacher.display_name if teacher is not None else "Teacher"

    messages = build_messages(build_system_prompt(teacher_name, course, activity), history, message)
    logger.info(
        "Tutor reply for activity=%s (history=%d, sent=%d)",
        activity_id,
        len(history),
        len(messages) - 2,
    )
    raw = await llm.complete(
        messages,
        model=SETTINGS.chat_model,
        max_tokens=MAX_TOKENS,
        temperature=TEMPERATURE,
        presence_penalty=PRESENCE_PENALTY,
        frequency_penalty=FREQUENCY_PENALTY,
        purpose="chat",
    )
    return format_response(raw)
