"""Facilitator script: system prompt and per-stage instruction texts.

Pure text builders with no I/O, shared by the facilitator reactor and the
idea summary service.
"""

from __future__ import annotations

from storibloom.domain.models.stage import Stage, parse_stage

ISSUES: tuple[str, ...] = (
    "Law Enforcement Profiling",
    "Food Deserts",
    "Red Lining",
    "Homelessness",
    "Wealth Gap",
)

ABSTRACT_WORDS = 250

CLOSING_NOTE = (
    "Time is up and the room is now closed. Thank you for writing together; "
    "your presenter has the final abstract."
)


def _normalize_topic(topic: object) -> str | None:
    if not isinstance(topic, str):
        return None
    topic = topic.strip()
    return topic or None


def facilitator_system_prompt(topic: object = None) -> str:
    """Build the system prompt for every facilitator completion.

    Args:
        topic: The room's chosen issue, if any.
    """
    chosen = _normalize_topic(topic)
    return "\n".join(
        [
            "You are the host of a timed collaborative writing workshop: "
            "warm, witty, encouraging, concise and concrete.",
            f"Teams write a tight {ABSTRACT_WORDS}-word abstract for a short "
            f"story on ONE of: {', '.join(ISSUES)}.",
            "",
            "Rules:",
            "- Stay strictly on-task; decline off-topic requests and redirect.",
            "- Keep messages short (1-4 sentences). Use bullets for summaries.",
            "- Use inclusive language; avoid jargon; be specific.",
            "- Never expose private data or anything outside the session.",
            "",
            f"Current topic: {chosen or 'Not selected, prompt them to choose one.'}",
        ]
    )


def _time_hint(seconds_left: int | None) -> str:
    if seconds_left is None:
        return ""
    return f"You've got ~{max(1, seconds_left // 60)} min."


def stage_greeting(
    stage: object, topic: object = None, seconds_left: int | None = None
) -> str:
    """Instruction message posted once when a room enters a stage.

    Args:
        stage: Stage member or raw stage name.
        topic: The room's chosen issue, if any.
        seconds_left: Remaining stage budget, rendered as a minutes hint.

    Returns:
        Message text. Unknown stages get a generic nudge.
    """
    parsed = parse_stage(stage)
    subject = _normalize_topic(topic) or "our chosen issue"
    hint = _time_hint(seconds_left)

    if parsed is Stage.LOBBY:
        parts = ["We'll begin shortly. Get comfy and decide on a topic.", hint]
    elif parsed is Stage.DISCOVERY:
        parts = [
            f"Discovery: free chat on {subject}.",
            "Share observations, sparks and lived context. I'll track ideas.",
            hint,
        ]
    elif parsed is Stage.IDEA_DUMP:
        parts = [
            "Idea Dump: bullet points only, no debate.",
            "Go wide on themes, characters, conflicts and settings; "
            "I'll keep a rolling summary.",
            hint,
        ]
    elif parsed is Stage.PLANNING:
        parts = [
            "Planning: pick a direction.",
            "Lock protagonist, goal, stakes, setting and tone.",
            hint,
        ]
    elif parsed is Stage.ROUGH_DRAFT:
        parts = [
            f"Rough Draft: I'll generate the first {ABSTRACT_WORDS}-word draft "
            "from your ideas and plan.",
            hint,
        ]
    elif parsed is Stage.EDITING:
        parts = [
            "Editing: refine clarity, voice and pacing. Propose precise edits.",
            hint,
        ]
    elif parsed is Stage.FINAL:
        parts = [
            "Final: last tweaks only. When satisfied, type done or submit.",
            hint,
        ]
    elif parsed is Stage.CLOSED:
        parts = [CLOSING_NOTE]
    else:
        parts = [f"Stage changed to {stage}. Let's keep momentum."]
    return " ".join(part for part in parts if part)


def rough_draft_prompt(idea_summary: str, plan_notes: list[str]) -> str:
    """Task prompt for the first rough draft."""
    plan = "\n".join(plan_notes)
    return (
        f"Ideas:\n{idea_summary}\n\nPlan notes:\n{plan}\n\n"
        f"Compose a complete, cohesive abstract of about {ABSTRACT_WORDS} words."
    )


def idea_summary_prompt(contributions: list[str]) -> str:
    """Task prompt for the rolling idea summary."""
    return (
        "Summarize key ideas so far as tight bullets (themes, characters, "
        "conflicts, settings, constraints). Keep it brief and specific.\n\n"
        + "\n".join(contributions)
    )


def parse_bullets(text: str) -> list[str]:
    """Split a bullet summary into note lines.

    Leading ``-`` or ``•`` markers and blank lines are dropped.
    """
    notes = []
    for line in text.splitlines():
        line = line.strip()
        if line[:1] in ("-", "•"):
            line = line[1:].strip()
        if line:
            notes.append(line)
    return notes


GUIDING_QUESTIONS_FALLBACK = "What tiny changes would sharpen clarity, stakes, or flow?"

FINAL_SUBMITTED_NOTE = "Final draft ready. Submitting to your presenter now."


def guiding_questions_prompt() -> str:
    """Task prompt for the questions posted after the rough draft."""
    return (
        "Ask 2-3 crisp questions to quickly improve the rough draft. "
        "Keep them specific and practical."
    )


def final_edit_prompt(draft: str, edits: list[str]) -> str:
    """Task prompt applying the FINAL stage's edit requests to the draft."""
    return (
        f"Apply the following edits to produce a clean ~{ABSTRACT_WORDS}-word "
        f"abstract.\n\nRough:\n{draft}\n\nEdits:\n" + "\n".join(edits)
        + "\n\nReturn abstract text only."
    )


def exact_length_prompt(text: str, words: int = ABSTRACT_WORDS) -> str:
    """Task prompt asking for a rewrite of exactly ``words`` words."""
    return (
        f"Rewrite the following as a single cohesive abstract of exactly {words} "
        "words, no more or less. Make it concise, vivid, and complete. "
        f"Return ONLY the abstract text.\nText:\n{text}"
    )


def length_fix_prompt(text: str, actual: int, words: int = ABSTRACT_WORDS) -> str:
    """Second-pass prompt when a rewrite missed the word count."""
    return (
        f"Your last output had {actual} words. Rewrite to EXACTLY {words} words, "
        "preserving coherence and flow. Return ONLY the abstract text.\n\n"
        f"{text}"
    )


def word_count(text: object) -> int:
    """Count whitespace-separated words; non-strings count as zero."""
    if not isinstance(text, str):
        return 0
    return len(text.split())
