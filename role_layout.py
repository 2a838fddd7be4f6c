# role_layout.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

# Discord allows at most 5 buttons in one action row
MAX_BUTTONS_PER_ROW = 5


@dataclass(frozen=True)
class RoleOption:
    id: int
    name: str


@dataclass(frozen=True)
class Control:
    custom_id: str
    label: str


ControlRow = Tuple[Control, ...]
ControlGrid = Tuple[ControlRow, ...]


def role_control(role: RoleOption) -> Control:
    return Control(custom_id=str(role.id), label=role.name)


def layout(roles: Sequence[RoleOption]) -> ControlGrid:
    """Split roles into rows of buttons, keeping their order.

    Callers guarantee 1-9 roles, so this never fails.
    """
    rows, current = [], []
    for role in roles:
        if len(current) == MAX_BUTTONS_PER_ROW:
            rows.append(tuple(current))
            current = []
        current.append(role_control(role))
    if current:
        rows.append(tuple(current))

    return tuple(rows)
