"""Tests for the project value types."""

import dataclasses

import numpy as np
import pytest

from galaxycanvas import convert_blob_to_image_data
from galaxymodel import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    Connection,
    Coordinate,
    GeneratorSettings,
    Nebula,
    Project,
    SolarSystem,
    SpawnType,
    js_round,
)
from tests.helpers import make_project


class TestCoordinate:
    """Test coordinate math and the export transform."""

    def test_distance(self):
        """Distance is Euclidean."""
        assert Coordinate(0, 0).distance_to(Coordinate(3, 4)) == 5.0

    def test_export_transform_centres_and_mirrors(self):
        """The canvas centre maps to the origin and x is mirrored."""
        centre = Coordinate(CANVAS_WIDTH / 2, CANVAS_HEIGHT / 2)
        assert centre.to_export_coordinate() == Coordinate(0, 0)
        assert Coordinate(100, 100).to_export_coordinate() == Coordinate(400, -400)

    def test_export_transform_reversible(self):
        """from_export_coordinate undoes to_export_coordinate."""
        c = Coordinate(123.5, 876.25)
        assert Coordinate.from_export_coordinate(c.to_export_coordinate()) == c

    def test_rounding_is_half_up(self):
        """to_rounded rounds .5 upwards, like the export format expects."""
        assert Coordinate(2.5, 3.4).to_rounded() == Coordinate(3, 3)
        assert js_round(0.5) == 1
        assert js_round(-0.5) == 0

    def test_equality_and_hash_by_value(self):
        """Equal coordinates hash alike."""
        assert Coordinate(1, 2) == Coordinate(1.0, 2.0)
        assert len({Coordinate(1, 2), Coordinate(1, 2)}) == 1


class TestConnection:
    """Test symmetric connection identity."""

    def test_symmetric_equality(self):
        """(a, b) and (b, a) are the same connection."""
        assert Connection(3, 7) == Connection(7, 3)
        assert Connection(3, 7) != Connection(3, 8)

    def test_hash_agrees_with_equality(self):
        """A set collapses reversed duplicates."""
        assert len({Connection(1, 2), Connection(2, 1), Connection(1, 3)}) == 2

    def test_key_is_sorted(self):
        """key is the sorted id pair."""
        assert Connection(9, 2).key == (2, 9)

    def test_frozen(self):
        """Connections are immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            Connection(1, 2).a = 5


class TestSolarSystemAndNebula:
    """Test entity construction rules."""

    def test_default_spawn_type(self):
        """New systems are not spawns."""
        s = SolarSystem(0, Coordinate(1, 1))
        assert s.spawn_type == SpawnType.DISABLED
        assert not s.is_spawn

    def test_spawn_type_from_string(self):
        """Plain strings are converted to SpawnType."""
        s = SolarSystem(0, Coordinate(1, 1), "preferred")
        assert s.spawn_type is SpawnType.PREFERRED
        assert s.is_spawn

    def test_unknown_spawn_type_rejected(self):
        with pytest.raises(ValueError):
            SolarSystem(0, Coordinate(1, 1), "sometimes")

    def test_nebula_radius_positive(self):
        """Nebula radius must be strictly positive."""
        with pytest.raises(ValueError):
            Nebula(Coordinate(0, 0), 0)
        with pytest.raises(ValueError):
            Nebula(Coordinate(0, 0), -3)
        assert Nebula(Coordinate(0, 0), 1).radius == 1


class TestGeneratorSettings:
    """Test settings defaults and validation."""

    def test_defaults(self):
        s = GeneratorSettings()
        assert s.number_of_systems == 600
        assert s.min_distance_between_systems == 10
        assert s.hyperlane_connectivity == 0.5
        assert s.hyperlane_max_distance == 100
        assert s.allow_disconnected is False

    def test_connectivity_clamped(self):
        """Connectivity outside [0, 1] is clamped, not rejected."""
        assert GeneratorSettings(hyperlane_connectivity=1.7).hyperlane_connectivity == 1.0
        assert GeneratorSettings(hyperlane_connectivity=-2).hyperlane_connectivity == 0.0

    @pytest.mark.parametrize("field", [
        "number_of_systems",
        "min_distance_between_systems",
        "hyperlane_max_distance",
    ])
    def test_negative_values_rejected(self, field):
        with pytest.raises(ValueError):
            GeneratorSettings(**{field: -1})


class TestProject:
    """Test project lookups and construction."""

    def test_get_solar_system(self, sample_project):
        assert sample_project.get_solar_system(2).coordinate == Coordinate(150, 200)

    def test_get_missing_solar_system(self, sample_project):
        with pytest.raises(KeyError):
            sample_project.get_solar_system(99)
        assert sample_project.find_solar_system(99) is None

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            Project(name="", canvas=b"")

    def test_live_connections_skip_dangling(self):
        """Connections to missing systems are filtered at read time."""
        project = make_project(
            coords=[(0, 0), (10, 0)],
            hyperlanes=[(0, 1), (1, 5)],
            wormholes=[(0, 7)],
        )
        assert project.live_hyperlanes() == (Connection(0, 1),)
        assert project.live_wormholes() == ()

    def test_make_empty(self):
        """An empty project carries a transparent canvas of the canvas size."""
        project = Project.make_empty("Blank")
        assert project.solar_systems == ()
        assert project.hyperlanes == ()
        rgba = convert_blob_to_image_data(project.canvas)
        assert rgba.shape == (CANVAS_HEIGHT, CANVAS_WIDTH, 4)
        assert not np.any(rgba)

    def test_value_equality(self, sample_project):
        """Projects compare by value."""
        assert sample_project == sample_project.replace()
        assert sample_project != sample_project.replace(name="Other")
