"""
Bounded undo/redo stacks.

`past` holds older snapshots with the newest last; `future` holds undone
snapshots with the next redo first. Both are capped at `limit` and drop the
oldest entry on overflow. Snapshots are immutable `Steps` tuples, so they are
stored as-is.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from form_builder.schemas.fields import Steps
from form_builder.state.model import FormState


def push_bounded(stack: Tuple[Steps, ...], snapshot: Steps, limit: int) -> Tuple[Steps, ...]:
    return (*stack, snapshot)[-limit:]


def prepend_bounded(stack: Tuple[Steps, ...], snapshot: Steps, limit: int) -> Tuple[Steps, ...]:
    return (snapshot, *stack)[:limit]


def _clamp_step(index: int, steps: Steps) -> int:
    return min(max(index, 0), len(steps) - 1)


def checkpoint(state: FormState, limit: int) -> Dict[str, Any]:
    """Update that records the current steps in `past` and clears `future`."""
    return {"past": push_bounded(state.past, state.steps, limit), "future": ()}


def undo(state: FormState, limit: int) -> Optional[Dict[str, Any]]:
    if not state.past:
        return None
    previous = state.past[-1]
    return {
        "steps": previous,
        "past": state.past[:-1],
        "future": prepend_bounded(state.future, state.steps, limit),
        "selected_field_id": None,
        "current_step": _clamp_step(state.current_step, previous),
    }


def redo(state: FormState, limit: int) -> Optional[Dict[str, Any]]:
    if not state.future:
        return None
    following = state.future[0]
    return {
        "steps": following,
        "future": state.future[1:],
        "past": push_bounded(state.past, state.steps, limit),
        "selected_field_id": None,
        "current_step": _clamp_step(state.current_step, following),
    }
