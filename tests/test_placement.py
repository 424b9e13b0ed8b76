import numpy
import pytest

from MutateAggregates.aggregate import Geometry, MolecularUnit
from MutateAggregates.aggregate.elements import RadiusTable
from MutateAggregates.collision import PairwiseCollisionEngine
from MutateAggregates.mutation.placement import (
    SearchBox,
    setup_grid,
    bounding_box_grid,
    partner_grid,
    surface_radial,
    surface_triangulated,
)
from MutateAggregates.mutation.workspace import MutationCounters

from conftest import argon


def argon_dimer(com, half_length):
    return MolecularUnit(
        ["Ar", "Ar"], [[0.0, 0.0, half_length], [0.0, 0.0, -half_length]], com=com
    )


def with_dimer(positions, com, half_length):
    units = [MolecularUnit(["Ar"], [p]) for p in positions]
    units.append(argon_dimer(com, half_length))
    return Geometry(units)


def test_grid_setup(argon_pair):
    box = setup_grid(argon_pair)
    assert box.avg_spacing == pytest.approx(3.0 / (3.0 * 2.0 ** (1.0 / 3.0)))
    assert list(box.points_per_axis()) == [8, 1, 1]
    points = box.points()
    assert points.shape == (8, 3)
    assert numpy.allclose(points[:, 0], numpy.arange(8) * 0.375)
    assert numpy.allclose(points[:, 1:], 0.0)


def test_grid_padding(argon_pair):
    box = setup_grid(argon_pair, range_mod_factor=0.5)
    pad = 0.5 * box.avg_spacing
    assert numpy.allclose(box.begin, [-pad, -pad, -pad])
    assert numpy.allclose(box.end, [3.0 + pad, pad, pad])


def test_scale_factor_changes_geometry(argon_pair):
    setup_grid(argon_pair, scale_factor=2.0)
    assert numpy.allclose(argon_pair.coms(), [[0.0, 0.0, 0.0], [6.0, 0.0, 0.0]])


def test_empty_box():
    box = SearchBox([0.0, 0.0, 0.0], [0.0, 0.0, 0.0], 0.0)
    assert box.points().shape == (0, 3)


def test_bounding_box_grid(argon_pair):
    engine = PairwiseCollisionEngine(radii=RadiusTable.uniform(0.85))
    counters = MutationCounters()
    candidates = bounding_box_grid(argon_pair, 1, engine, 1.0, counters=counters)
    assert len(candidates) == 1
    assert numpy.allclose(candidates[0], [1.875, 0.0, 0.0])
    # points within the average spacing of the old position are not checked
    assert counters.collision_checks == 6
    assert numpy.allclose(argon_pair.coms()[1], [3.0, 0.0, 0.0])


def test_partner_grid(argon_pair):
    engine = PairwiseCollisionEngine(radii=RadiusTable.uniform(0.85))
    counters = MutationCounters()
    candidates = partner_grid(argon_pair, 1, 0, engine, 1.0, counters=counters)
    assert 0 < len(candidates) <= counters.collision_checks
    distances = numpy.linalg.norm(candidates, axis=1)
    # inside the sphere around the partner but not colliding with it
    assert numpy.all(distances <= 5.0)
    assert numpy.all(distances > 1.7)
    # not too close to the old position
    assert numpy.all(numpy.linalg.norm(numpy.array(candidates) - [3.0, 0.0, 0.0], axis=1) > 1.0)
    assert any(numpy.allclose(c, [-5.0, 0.0, 0.0]) for c in candidates)
    assert numpy.allclose(argon_pair.coms()[1], [3.0, 0.0, 0.0])
    with pytest.raises(ValueError):
        partner_grid(argon_pair, 1, 1, engine, 1.0)


def test_surface_radial(unit_radii):
    geometry = with_dimer(
        [[3.0, 0.0, 0.0], [-3.0, 0.0, 0.0], [0.0, 3.0, 0.0]], [0.0, 0.0, 0.0], 0.5
    )
    engine = PairwiseCollisionEngine(radii=RadiusTable.uniform(0.5))
    candidates = surface_radial(geometry, 3, [0, 1, 2], engine, 1.0)
    assert numpy.allclose(
        candidates, [[4.1, 0.0, 0.0], [-4.1, 0.0, 0.0], [0.0, 4.1, 0.0]]
    )
    assert numpy.allclose(geometry.coms()[3], [0.0, 0.0, 0.0])


def test_surface_radial_rejects_old_position():
    geometry = with_dimer([[3.0, 0.0, 0.0]], [4.1, 0.0, 0.0], 0.5)
    engine = PairwiseCollisionEngine(radii=RadiusTable.uniform(0.5))
    assert surface_radial(geometry, 1, [0], engine, 1.0) == []


def test_surface_triangulated_centroid():
    triangle = [[2.0, 0.0, 0.0], [-1.0, 1.732, 0.0], [-1.0, -1.732, 0.0]]
    geometry = with_dimer(triangle, [0.0, 0.0, -10.0], 1.0)
    engine = PairwiseCollisionEngine(radii=RadiusTable.uniform(0.5))
    candidates = surface_triangulated(geometry, 3, [0, 1, 2], engine, 1.0)
    assert numpy.allclose(candidates, [[0.0, 0.0, 0.0]])


def test_surface_triangulated_pushes_outwards():
    triangle = [[2.0, 0.0, 4.0], [-1.0, 1.732, 4.0], [-1.0, -1.732, 4.0], [0.0, 0.0, 4.0]]
    geometry = with_dimer(triangle, [0.0, 0.0, -10.0], 1.0)
    engine = PairwiseCollisionEngine(radii=RadiusTable.uniform(0.5))
    candidates = surface_triangulated(geometry, 4, [0, 1, 2], engine, 1.0)
    assert numpy.allclose(candidates, [[0.0, 0.0, 6.2]])


def test_surface_triangulated_skips_large_triangles():
    triangle = [[20.0, 0.0, 0.0], [-10.0, 17.32, 0.0], [-10.0, -17.32, 0.0]]
    geometry = with_dimer(triangle, [0.0, 0.0, -10.0], 1.0)
    engine = PairwiseCollisionEngine(radii=RadiusTable.uniform(0.5))
    assert surface_triangulated(geometry, 3, [0, 1, 2], engine, 1.0) == []
