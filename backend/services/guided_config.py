"""
Guided configuration wizard.

Content steps run in order describe(0) -> clarify(1) -> brief(2) -> guide(3).
The clarify step only exists when the describe analysis asked for it; when
it doesn't, navigation skips index 1 in both directions. After the guide
step the user must look at the settings tab once before the review screen.
"""
from typing import List, Optional

from schemas import GuidedConfigState, GuidedSettingsUpdate
from services.errors import ValidationError

CONTENT_STEPS = [
    {"id": "describe", "title": "Describe"},
    {"id": "clarify", "title": "Clarify"},
    {"id": "brief", "title": "Research Brief"},
    {"id": "guide", "title": "Interview Guide"},
]

DESCRIBE, CLARIFY, BRIEF, GUIDE = 0, 1, 2, 3
MAX_STEP = GUIDE


def new_state(project_id: Optional[str] = None) -> GuidedConfigState:
    state = GuidedConfigState()
    state.settings.project_id = project_id
    return state


def visible_steps(state: GuidedConfigState) -> List[dict]:
    if state.needs_clarification:
        return list(CONTENT_STEPS)
    return [s for s in CONTENT_STEPS if s["id"] != "clarify"]


def visible_step_index(state: GuidedConfigState, internal_step: int) -> int:
    if not state.needs_clarification and internal_step > 0:
        return internal_step - 1
    return internal_step


def can_go_next(state: GuidedConfigState) -> bool:
    if state.current_step == DESCRIBE:
        return bool(state.context_dump.strip())
    if state.current_step == CLARIFY:
        return True  # answers are optional
    if state.current_step == BRIEF:
        return bool(state.interview_context.strip())
    if state.current_step == GUIDE:
        return state.interview_guide is not None
    return False


def next_button_text(state: GuidedConfigState) -> str:
    if state.current_step == GUIDE:
        return "Continue to Review" if state.settings_reviewed else "Review Settings"
    return "Continue"


def settings_need_attention(state: GuidedConfigState) -> bool:
    return not state.settings_reviewed or not state.settings.title


def go_next(state: GuidedConfigState) -> str:
    """
    Advance the wizard. Returns what happened: "advanced", "settings"
    (switched to the settings tab for review) or "review" (ready for the
    review screen).
    """
    if not can_go_next(state):
        raise ValidationError(f"Step '{CONTENT_STEPS[state.current_step]['id']}' is not complete")

    if state.current_step < MAX_STEP:
        next_step = state.current_step + 1
        if not state.needs_clarification and next_step == CLARIFY:
            next_step = BRIEF
        if state.current_step not in state.completed_steps:
            state.completed_steps.append(state.current_step)
        state.current_step = next_step
        return "advanced"

    if not state.settings_reviewed:
        state.active_tab = "settings"
        return "settings"
    return "review"


def go_previous(state: GuidedConfigState) -> str:
    if state.current_step == DESCRIBE:
        return "unchanged"
    prev_step = state.current_step - 1
    if not state.needs_clarification and prev_step == CLARIFY:
        prev_step = DESCRIBE
    state.current_step = prev_step
    return "moved"


def update_settings(state: GuidedConfigState, update: GuidedSettingsUpdate) -> GuidedConfigState:
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in changes.items():
        setattr(state.settings, key, value)
    if changes:
        state.settings_reviewed = True
    return state


def review_problems(state: GuidedConfigState) -> List[str]:
    """What still blocks publishing; empty when the draft is ready."""
    problems = []
    if not state.settings.title.strip():
        problems.append("Title is required")
    if not state.settings.project_id:
        problems.append("Choose a project")
    if state.interview_guide is None:
        problems.append("Interview guide is missing")
    return problems


def describe_state(state: GuidedConfigState) -> dict:
    """State plus the derived navigation values the client renders."""
    return {
        "state": state.model_dump(),
        "visible_steps": visible_steps(state),
        "visible_current_step": visible_step_index(state, state.current_step),
        "visible_completed_steps": [visible_step_index(state, s) for s in state.completed_steps],
        "can_go_next": can_go_next(state),
        "next_button_text": next_button_text(state),
        "settings_need_attention": settings_need_attention(state),
    }
