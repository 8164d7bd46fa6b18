"""
galaxyactions.py
================
Reversible edits over an immutable Project, and the reducer that applies them.

Every edit is one of ten frozen action types.  Each carries just enough data to
apply itself and to produce its exact inverse through ``invert()``:

  SetCanvasAction          old_value / new_value blobs      swap
  CreateSolarSystemAction  solar_system, index              DeleteSolarSystemAction
  DeleteSolarSystemAction  solar_system, index              CreateSolarSystemAction
  UpdateSolarSystemAction  old_value / new_value            swap
  Create/DeleteHyperlane   connection, index                each other
  Create/DeleteWormhole    connection, index                each other
  Create/DeleteNebula      nebula, index                    each other

``index`` is the position in the owning tuple.  On a create, ``None`` appends
and an integer inserts there (clamped to the tuple length).  On a delete it
records where the item sat so that undoing the delete puts it back in place.

Usage
-----
    from galaxyactions import ActionHistory, CreateSolarSystemAction
    history = ActionHistory(project)
    history.push([CreateSolarSystemAction(solar_system)])
    history.undo()
    project = history.project
"""

from __future__ import annotations

import dataclasses
from typing import List, Optional, Sequence, Tuple, TypeVar, Union, assert_never, get_args

from galaxymodel import (
    Connection,
    Nebula,
    Project,
    SolarSystem,
    SolarSystemId,
)


# ---------------------------------------------------------------------------
# Action types
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class SetCanvasAction:
    old_value: bytes
    new_value: bytes

    def invert(self) -> SetCanvasAction:
        return SetCanvasAction(old_value=self.new_value, new_value=self.old_value)


@dataclasses.dataclass(frozen=True)
class CreateSolarSystemAction:
    solar_system: SolarSystem
    index: Optional[int] = None

    def invert(self) -> DeleteSolarSystemAction:
        return DeleteSolarSystemAction(self.solar_system, self.index)


@dataclasses.dataclass(frozen=True)
class DeleteSolarSystemAction:
    solar_system: SolarSystem
    index: Optional[int] = None

    def invert(self) -> CreateSolarSystemAction:
        return CreateSolarSystemAction(self.solar_system, self.index)


@dataclasses.dataclass(frozen=True)
class UpdateSolarSystemAction:
    old_value: SolarSystem
    new_value: SolarSystem

    def invert(self) -> UpdateSolarSystemAction:
        return UpdateSolarSystemAction(old_value=self.new_value, new_value=self.old_value)


@dataclasses.dataclass(frozen=True)
class CreateHyperlaneAction:
    connection: Connection
    index: Optional[int] = None

    def invert(self) -> DeleteHyperlaneAction:
        return DeleteHyperlaneAction(self.connection, self.index)


@dataclasses.dataclass(frozen=True)
class DeleteHyperlaneAction:
    connection: Connection
    index: Optional[int] = None

    def invert(self) -> CreateHyperlaneAction:
        return CreateHyperlaneAction(self.connection, self.index)


@dataclasses.dataclass(frozen=True)
class CreateWormholeAction:
    connection: Connection
    index: Optional[int] = None

    def invert(self) -> DeleteWormholeAction:
        return DeleteWormholeAction(self.connection, self.index)


@dataclasses.dataclass(frozen=True)
class DeleteWormholeAction:
    connection: Connection
    index: Optional[int] = None

    def invert(self) -> CreateWormholeAction:
        return CreateWormholeAction(self.connection, self.index)


@dataclasses.dataclass(frozen=True)
class CreateNebulaAction:
    nebula: Nebula
    index: Optional[int] = None

    def invert(self) -> DeleteNebulaAction:
        return DeleteNebulaAction(self.nebula, self.index)


@dataclasses.dataclass(frozen=True)
class DeleteNebulaAction:
    nebula: Nebula
    index: Optional[int] = None

    def invert(self) -> CreateNebulaAction:
        return CreateNebulaAction(self.nebula, self.index)


Action = Union[
    SetCanvasAction,
    CreateSolarSystemAction,
    DeleteSolarSystemAction,
    UpdateSolarSystemAction,
    CreateHyperlaneAction,
    DeleteHyperlaneAction,
    CreateWormholeAction,
    DeleteWormholeAction,
    CreateNebulaAction,
    DeleteNebulaAction,
]

ACTION_TYPES = get_args(Action)


# ---------------------------------------------------------------------------
# Applier
# ---------------------------------------------------------------------------

T = TypeVar("T")


def _insert(items: Tuple[T, ...], item: T, index: Optional[int]) -> Tuple[T, ...]:
    if index is None:
        return items + (item,)
    index = min(max(index, 0), len(items))
    return items[:index] + (item,) + items[index:]


def _insert_unique(items: Tuple[T, ...], item: T, index: Optional[int]) -> Tuple[T, ...]:
    # connections compare symmetrically, so this also rejects (b, a) for (a, b)
    if item in items:
        return items
    return _insert(items, item, index)


def apply_action(project: Project, action: Action) -> Project:
    """Return the project that results from applying a single action.

    Deleting something that is not there is a silent no-op.
    """
    if isinstance(action, SetCanvasAction):
        return project.replace(canvas=action.new_value)
    elif isinstance(action, CreateSolarSystemAction):
        return project.replace(
            solar_systems=_insert(project.solar_systems, action.solar_system, action.index)
        )
    elif isinstance(action, DeleteSolarSystemAction):
        return project.replace(
            solar_systems=tuple(
                s for s in project.solar_systems if s.id != action.solar_system.id
            )
        )
    elif isinstance(action, UpdateSolarSystemAction):
        new_value = action.new_value
        return project.replace(
            solar_systems=tuple(
                new_value if s.id == new_value.id else s for s in project.solar_systems
            )
        )
    elif isinstance(action, CreateHyperlaneAction):
        return project.replace(
            hyperlanes=_insert_unique(project.hyperlanes, action.connection, action.index)
        )
    elif isinstance(action, DeleteHyperlaneAction):
        return project.replace(
            hyperlanes=tuple(c for c in project.hyperlanes if c != action.connection)
        )
    elif isinstance(action, CreateWormholeAction):
        return project.replace(
            wormholes=_insert_unique(project.wormholes, action.connection, action.index)
        )
    elif isinstance(action, DeleteWormholeAction):
        return project.replace(
            wormholes=tuple(c for c in project.wormholes if c != action.connection)
        )
    elif isinstance(action, CreateNebulaAction):
        return project.replace(
            nebulas=_insert(project.nebulas, action.nebula, action.index)
        )
    elif isinstance(action, DeleteNebulaAction):
        return project.replace(
            nebulas=tuple(n for n in project.nebulas if n != action.nebula)
        )
    elif isinstance(action, ACTION_TYPES):
        # unreachable while every member of Action has a branch above
        assert_never(action)
    raise TypeError(f"not an action: {action!r}")


def apply_actions(project: Project, actions: Sequence[Action]) -> Project:
    """Fold *actions* left-to-right over *project*."""
    for action in actions:
        project = apply_action(project, action)
    return project


def invert_actions(actions: Sequence[Action]) -> List[Action]:
    """The batch that exactly undoes *actions*."""
    return [action.invert() for action in reversed(actions)]


def undo_actions(project: Project, actions: Sequence[Action]) -> Project:
    return apply_actions(project, invert_actions(actions))


# ---------------------------------------------------------------------------
# Batch builders
# ---------------------------------------------------------------------------

def delete_all_solar_systems(project: Project) -> List[Action]:
    # last to first, so each recorded index is still valid when applied and
    # the inverted batch recreates the systems in their original order
    return [
        DeleteSolarSystemAction(solar_system, i)
        for i, solar_system in reversed(list(enumerate(project.solar_systems)))
    ]


def delete_all_hyperlanes(project: Project) -> List[Action]:
    return [
        DeleteHyperlaneAction(connection, i)
        for i, connection in reversed(list(enumerate(project.hyperlanes)))
    ]


def delete_all_wormholes(project: Project) -> List[Action]:
    return [
        DeleteWormholeAction(connection, i)
        for i, connection in reversed(list(enumerate(project.wormholes)))
    ]


def delete_all_nebulas(project: Project) -> List[Action]:
    return [
        DeleteNebulaAction(nebula, i)
        for i, nebula in reversed(list(enumerate(project.nebulas)))
    ]


def delete_solar_system_actions(
    project: Project, solar_system_id: SolarSystemId
) -> List[Action]:
    """Delete a system together with every hyperlane and wormhole touching it.

    Raises KeyError if the system does not exist.
    """
    solar_system = project.get_solar_system(solar_system_id)
    actions: List[Action] = [
        DeleteHyperlaneAction(c, i)
        for i, c in reversed(list(enumerate(project.hyperlanes)))
        if c.touches(solar_system_id)
    ]
    actions += [
        DeleteWormholeAction(c, i)
        for i, c in reversed(list(enumerate(project.wormholes)))
        if c.touches(solar_system_id)
    ]
    actions.append(
        DeleteSolarSystemAction(solar_system, project.solar_systems.index(solar_system))
    )
    return actions


# ---------------------------------------------------------------------------
# Undo / redo history
# ---------------------------------------------------------------------------

class ActionHistory:
    """The current project plus done/undone stacks of action batches."""

    def __init__(self, project: Project) -> None:
        self.project = project
        self._done: List[List[Action]] = []
        self._undone: List[List[Action]] = []

    @property
    def can_undo(self) -> bool:
        return len(self._done) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._undone) > 0

    def push(self, actions: Sequence[Action]) -> Project:
        """Apply a new batch and record it.  Clears the redo stack."""
        actions = list(actions)
        self.project = apply_actions(self.project, actions)
        self._done.append(actions)
        self._undone = []
        return self.project

    def undo(self) -> Project:
        if not self._done:
            raise RuntimeError("No actions to undo.")
        actions = self._done.pop()
        self._undone.append(actions)
        self.project = undo_actions(self.project, actions)
        return self.project

    def redo(self) -> Project:
        if not self._undone:
            raise RuntimeError("No actions to redo.")
        actions = self._undone.pop()
        self._done.append(actions)
        self.project = apply_actions(self.project, actions)
        return self.project

    def reset(self, project: Project) -> None:
        """Switch to another project, forgetting all history."""
        self.project = project
        self._done = []
        self._undone = []
