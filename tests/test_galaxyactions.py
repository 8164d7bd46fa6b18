"""Tests for reversible actions, the applier and undo/redo history."""

import pytest

from galaxyactions import (
    ACTION_TYPES,
    ActionHistory,
    CreateHyperlaneAction,
    CreateNebulaAction,
    CreateSolarSystemAction,
    CreateWormholeAction,
    DeleteHyperlaneAction,
    DeleteNebulaAction,
    DeleteSolarSystemAction,
    DeleteWormholeAction,
    SetCanvasAction,
    UpdateSolarSystemAction,
    apply_actions,
    delete_all_hyperlanes,
    delete_all_nebulas,
    delete_all_solar_systems,
    delete_solar_system_actions,
    invert_actions,
    undo_actions,
)
from galaxymodel import Connection, Coordinate, Nebula, SolarSystem, SpawnType
from tests.helpers import make_project


NEW_SYSTEM = SolarSystem(10, Coordinate(700, 700))
NEW_NEBULA = Nebula(Coordinate(600, 600), 50)


def applicable_actions(project):
    """One applicable instance of every action variant for *project*."""
    s1 = project.get_solar_system(1)
    return [
        SetCanvasAction(old_value=project.canvas, new_value=b"painted"),
        CreateSolarSystemAction(NEW_SYSTEM),
        DeleteSolarSystemAction(s1, 1),
        UpdateSolarSystemAction(
            old_value=s1, new_value=SolarSystem(1, s1.coordinate, SpawnType.ENABLED)
        ),
        CreateHyperlaneAction(Connection(0, 3)),
        DeleteHyperlaneAction(Connection(2, 1), 1),
        CreateWormholeAction(Connection(1, 2)),
        DeleteWormholeAction(Connection(3, 0), 0),
        CreateNebulaAction(NEW_NEBULA),
        DeleteNebulaAction(project.nebulas[0], 0),
    ]


class TestInvert:
    """Test that every action has an exact inverse."""

    def test_every_variant_covered(self, sample_project):
        """The fixture list holds one action of each of the ten variants."""
        actions = applicable_actions(sample_project)
        assert {type(a) for a in actions} == set(ACTION_TYPES)
        assert len(ACTION_TYPES) == 10

    def test_double_invert_is_identity(self, sample_project):
        for action in applicable_actions(sample_project):
            assert action.invert().invert() == action

    def test_invert_pairs(self):
        """Creates and deletes invert into each other, updates swap values."""
        assert CreateSolarSystemAction(NEW_SYSTEM).invert() == DeleteSolarSystemAction(NEW_SYSTEM)
        assert DeleteNebulaAction(NEW_NEBULA, 2).invert() == CreateNebulaAction(NEW_NEBULA, 2)
        swapped = SetCanvasAction(b"a", b"b").invert()
        assert (swapped.old_value, swapped.new_value) == (b"b", b"a")

    def test_invert_actions_reverses_order(self):
        batch = [CreateSolarSystemAction(NEW_SYSTEM), CreateNebulaAction(NEW_NEBULA)]
        assert invert_actions(batch) == [
            DeleteNebulaAction(NEW_NEBULA),
            DeleteSolarSystemAction(NEW_SYSTEM),
        ]


class TestApply:
    """Test the effect of each action on a project."""

    def test_set_canvas(self, sample_project):
        p = apply_actions(sample_project, [SetCanvasAction(sample_project.canvas, b"x")])
        assert p.canvas == b"x"

    def test_create_appends(self, sample_project):
        p = apply_actions(sample_project, [CreateSolarSystemAction(NEW_SYSTEM)])
        assert p.solar_systems[-1] == NEW_SYSTEM
        assert len(p.solar_systems) == len(sample_project.solar_systems) + 1

    def test_create_at_index(self, sample_project):
        p = apply_actions(sample_project, [CreateSolarSystemAction(NEW_SYSTEM, 0)])
        assert p.solar_systems[0] == NEW_SYSTEM

    def test_delete_by_id(self, sample_project):
        """Deleting matches on id, not on the full value."""
        stale = SolarSystem(2, Coordinate(0, 0), SpawnType.ENABLED)
        p = apply_actions(sample_project, [DeleteSolarSystemAction(stale)])
        assert [s.id for s in p.solar_systems] == [0, 1, 3]

    def test_update_replaces_by_id(self, sample_project):
        old = sample_project.get_solar_system(1)
        new = SolarSystem(1, old.coordinate, SpawnType.ENABLED)
        p = apply_actions(sample_project, [UpdateSolarSystemAction(old, new)])
        assert p.get_solar_system(1) == new
        assert p.solar_systems.index(new) == 1

    def test_delete_connection_symmetric(self, sample_project):
        """A reversed connection deletes the stored one."""
        p = apply_actions(sample_project, [DeleteHyperlaneAction(Connection(1, 0))])
        assert Connection(0, 1) not in p.hyperlanes
        assert len(p.hyperlanes) == 2

    def test_create_duplicate_connection_ignored(self, sample_project):
        """No duplicate connections under symmetric equality."""
        p = apply_actions(sample_project, [CreateHyperlaneAction(Connection(1, 0))])
        assert p.hyperlanes == sample_project.hyperlanes

    def test_delete_missing_is_noop(self, sample_project):
        p = apply_actions(sample_project, [
            DeleteSolarSystemAction(NEW_SYSTEM),
            DeleteWormholeAction(Connection(5, 6)),
            DeleteNebulaAction(NEW_NEBULA),
        ])
        assert p == sample_project

    def test_original_untouched(self, sample_project):
        """Applying never mutates the input project."""
        before = sample_project.replace()
        apply_actions(sample_project, applicable_actions(sample_project))
        assert sample_project == before

    def test_not_an_action(self, sample_project):
        with pytest.raises(TypeError):
            apply_actions(sample_project, ["CreateSolarSystemAction"])


class TestRoundTrip:
    """Test that undoing an applied batch restores the original project."""

    def test_each_variant(self, sample_project):
        for action in applicable_actions(sample_project):
            applied = apply_actions(sample_project, [action])
            assert applied != sample_project
            assert undo_actions(applied, [action]) == sample_project, action

    def test_whole_batch(self, sample_project):
        batch = applicable_actions(sample_project)
        applied = apply_actions(sample_project, batch)
        assert undo_actions(applied, batch) == sample_project

    def test_delete_all_restores_order(self, sample_project):
        """Bulk deletes go last-to-first so undo rebuilds the original order."""
        batch = [
            *delete_all_hyperlanes(sample_project),
            *delete_all_nebulas(sample_project),
            *delete_all_solar_systems(sample_project),
        ]
        applied = apply_actions(sample_project, batch)
        assert applied.solar_systems == ()
        assert applied.hyperlanes == ()
        assert undo_actions(applied, batch) == sample_project

    def test_create_then_delete_scenario(self):
        """Create then delete on an empty project leaves it empty."""
        empty = make_project()
        s1 = SolarSystem(1, Coordinate(5, 5))
        p = apply_actions(empty, [CreateSolarSystemAction(s1)])
        p = apply_actions(p, [DeleteSolarSystemAction(s1)])
        assert p.solar_systems == ()
        assert p == empty


class TestCascadingDelete:
    """Test deleting a system together with its connections."""

    def test_removes_touching_connections(self, sample_project):
        batch = delete_solar_system_actions(sample_project, 0)
        p = apply_actions(sample_project, batch)
        assert p.find_solar_system(0) is None
        assert all(not c.touches(0) for c in p.hyperlanes + p.wormholes)
        assert p.hyperlanes == (Connection(1, 2),)

    def test_undo_restores_everything(self, sample_project):
        batch = delete_solar_system_actions(sample_project, 0)
        p = apply_actions(sample_project, batch)
        assert undo_actions(p, batch) == sample_project

    def test_missing_system(self, sample_project):
        with pytest.raises(KeyError):
            delete_solar_system_actions(sample_project, 42)


class TestActionHistory:
    """Test the done/undone stacks."""

    def test_undo_redo(self, sample_project):
        history = ActionHistory(sample_project)
        assert not history.can_undo and not history.can_redo

        history.push([CreateSolarSystemAction(NEW_SYSTEM)])
        after = history.project
        assert history.can_undo

        assert history.undo() == sample_project
        assert history.can_redo and not history.can_undo

        assert history.redo() == after
        assert history.can_undo and not history.can_redo

    def test_push_clears_redo(self, sample_project):
        history = ActionHistory(sample_project)
        history.push([CreateSolarSystemAction(NEW_SYSTEM)])
        history.undo()
        history.push([CreateNebulaAction(NEW_NEBULA)])
        assert not history.can_redo

    def test_underflow_fails_fast(self, sample_project):
        history = ActionHistory(sample_project)
        with pytest.raises(RuntimeError, match="undo"):
            history.undo()
        with pytest.raises(RuntimeError, match="redo"):
            history.redo()

    def test_reset_forgets_history(self, sample_project):
        history = ActionHistory(sample_project)
        history.push([CreateSolarSystemAction(NEW_SYSTEM)])
        history.reset(make_project())
        assert not history.can_undo
        assert history.project.solar_systems == ()
