"""
Commands from the input side, applied at the next frame boundary.

Widgets never touch the simulation directly. They put commands here and the
session drains the queue once at the start of each frame, so parameters stay
fixed for the whole integration step.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Union


class ParameterKind(str, Enum):
    LENGTH1 = "l1"
    LENGTH2 = "l2"
    MASS1 = "m1"
    MASS2 = "m2"


@dataclass(frozen=True)
class SetParameter:
    kind: ParameterKind
    value: float


@dataclass(frozen=True)
class Reset:
    pass


Command = Union[SetParameter, Reset]


class CommandQueue:
    """FIFO of pending commands."""

    def __init__(self) -> None:
        self._pending: Deque[Command] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def put(self, command: Command) -> None:
        if not isinstance(command, (SetParameter, Reset)):
            raise ValueError(f"not a command: {command!r}")
        self._pending.append(command)

    def drain(self) -> List[Command]:
        """Remove and return all pending commands in submission order."""
        commands = list(self._pending)
        self._pending.clear()
        return commands
