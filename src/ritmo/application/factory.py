"""
Engine Factory
Centralizes construction of a learner engine and its collaborators.
"""

from collections.abc import Callable
from datetime import datetime

from ritmo.application.clock import ReviewClock
from ritmo.application.config import EngineConfig
from ritmo.application.engine import LearnerEngine
from ritmo.application.events import EventDispatcher, Listener
from ritmo.domain.state import LearnerState


def create_engine(
    state: LearnerState,
    config: EngineConfig | None = None,
    now_fn: Callable[[], datetime] | None = None,
    listeners: list[Listener] | None = None,
) -> LearnerEngine:
    """
    Returns an engine bound to the given learner state.

    Every engine gets its own clock and dispatcher.
    """
    return LearnerEngine(
        state=state,
        config=config or EngineConfig(),
        clock=ReviewClock(now_fn),
        dispatcher=EventDispatcher(listeners),
    )


def new_learner_state(learner_id: str) -> LearnerState:
    return LearnerState(learner_id=learner_id)
