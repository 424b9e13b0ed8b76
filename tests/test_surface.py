import pytest

from MutateAggregates.mutation.surface import (
    LongLatSurfaceDetection,
    RadialSurfaceDetection,
    surface_detection,
)
from MutateAggregates.mutation.placement import surface_units


def test_longlat_skips_inner_unit(argon_octahedron):
    detector = LongLatSurfaceDetection()
    surface = detector.detect(argon_octahedron.cartesian(), argon_octahedron.atoms_per_unit)
    assert surface == [0, 1, 2, 3, 4, 5]


def test_radial_skips_inner_unit(argon_octahedron):
    detector = RadialSurfaceDetection()
    surface = detector.detect(argon_octahedron.cartesian(), argon_octahedron.atoms_per_unit)
    assert surface == [0, 1, 2, 3, 4, 5]


def test_single_unit_is_surface():
    assert LongLatSurfaceDetection().detect([[0.0, 0.0, 0.0]], [1]) == [0]
    assert RadialSurfaceDetection().detect([[0.0, 0.0, 0.0]], [1]) == [0]


def test_surface_units_maps_back(argon_octahedron):
    # ignoring unit 1, indices refer to the full geometry
    surface = surface_units(argon_octahedron, 1, RadialSurfaceDetection(fraction=0.0))
    assert surface == [0, 2, 3, 4, 5, 6]


def test_surface_detection_by_name():
    assert surface_detection("LongLat").name == "longlat"
    assert surface_detection("radial").name == "radial"
    with pytest.raises(ValueError):
        surface_detection("alpha-shape")
    with pytest.raises(ValueError):
        RadialSurfaceDetection(fraction=2.0)
