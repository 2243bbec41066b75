# src/taskboard/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..views.board import BoardState
from .inflight import InFlightTracker
from .live import LiveQueryBus
from .ports import TaskRepo, UserRepo


@dataclass
class AppState:
    # Settings object (real Settings or a SimpleNamespace in tests).
    settings: Any

    tasks: TaskRepo
    users: UserRepo
    bus: LiveQueryBus

    board: BoardState = field(default_factory=BoardState)
    inflight: InFlightTracker = field(default_factory=InFlightTracker)
