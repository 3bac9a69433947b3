from __future__ import annotations

import uuid

from perleap.models.activity import Activity
from perleap.models.course import Course
from perleap.services.tutor_service import (
    HistoryEntry,
    build_messages,
    build_system_prompt,
    format_response,
)

# ---- format_response ----


def test_bold_and_underscore_bold_are_unwrapped() -> None:
    assert format_response("**Gravity** pulls __down__.") == "Gravity pulls down."


def test_italic_is_unwrapped_but_bullets_survive() -> None:
    text = "An *object* at rest\n* stays at rest"
    assert format_response(text) == "An object at rest\n* stays at rest"


def test_headings_are_removed_at_any_level() -> None:
    text = "# One\n  ## Two\n###### Six\n####### Seven\nnot # a heading"
    assert format_response(text) == "One\nTwo\nSix\nSeven\nnot # a heading"


def test_bare_heading_markers_are_removed() -> None:
    assert format_response("##\nHello") == "Hello"
    assert format_response("Intro\n###\nBody") == "Intro\n\nBody"
    assert format_response("#hashtag stays") == "#hashtag stays"


def test_blank_runs_collapse_and_edges_trim() -> None:
    assert format_response("\n\nA   \n\n\n\n\nB  \n") == "A\n\nB"


def test_leftover_double_stars_removed() -> None:
    assert "**" not in format_response("unclosed **bold and ***triple")


# ---- build_messages ----


def test_history_window_applies_before_filtering() -> None:
    history = [HistoryEntry("student", f"m{i}") for i in range(9)]
    history += [HistoryEntry(None, "dropped"), HistoryEntry("student", "")]
    history += [HistoryEntry("assistant", "last")]

    messages = build_messages("sys", history, "now")
    contents = [m["content"] for m in messages]
    assert contents[0] == "sys"
    assert contents[-1] == "now"
    # 12 entries -> window of the last 10 (m2..last), two of which are incomplete.
    assert contents[1:-1] == [f"m{i}" for i in range(2, 9)] + ["last"]


def test_short_history_is_kept_whole() -> None:
    messages = build_messages("sys", [HistoryEntry("student", "a")], "b")
    assert messages == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "a"},
        {"role": "user", "content": "b"},
    ]


# ---- build_system_prompt ----


def test_system_prompt_defaults_for_missing_fields() -> None:
    course = Course.new(
        teacher_id=uuid.uuid4(), title="Chem", subject="Chemistry", grade_level="11"
    )
    activity = Activity.new(course_id=course.id, title="Bonds")
    prompt = build_system_prompt("Teacher", course, activity)
    assert "- Course Description: No description available" in prompt
    assert "- Goal: General learning support" in prompt
    assert "- Focus: Chemistry" in prompt
    assert "- Content: Interactive learning session" in prompt
    assert prompt.endswith("Always maintain the persona of Teacher, their dedicated Chemistry teacher.")
