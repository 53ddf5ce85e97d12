# registry_core/common/transitions.py
from __future__ import annotations

import logging
from typing import Mapping

logger = logging.getLogger(__name__)


class StateConflict(ValueError):
    """Business rule violation that is a conflict with current state (HTTP 409)."""


class TransitionError(StateConflict):
    pass


def ensure_transition(
    machine: Mapping[str, set[str] | frozenset[str]],
    *,
    entity: str,
    current: str,
    target: str,
) -> None:
    """
    Raise TransitionError unless current -> target is an edge of the machine.
    Terminal states map to an empty set (or are absent).
    """
    if target in machine.get(current, ()):
        return
    logger.warning("rejected transition entity=%s from=%s to=%s", entity, current, target)
    raise TransitionError(f"Cannot move {entity} from '{current}' to '{target}'.")
