import numpy
import pytest

from MutateAggregates.aggregate.bonds import BondInfo, UNCERTAIN
from MutateAggregates.collision import (
    CollisionInfo,
    PairwiseCollisionEngine,
    GridCollisionEngine,
    collision_engine,
    pairwise_distances,
)

from conftest import argon


@pytest.mark.parametrize("name", ["pairwise", "grid"])
def test_close_atoms_collide(name, unit_radii):
    engine = collision_engine(name, radii=unit_radii)
    close = argon([[0.0, 0.0, 0.0], [1.5, 0.0, 0.0]])
    far = argon([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    info = engine.check(close, 1.0)
    assert info.has_collision
    assert info.collisions == [(0, 1)]
    assert not engine.check_only(far, 1.0)


@pytest.mark.parametrize("name", ["pairwise", "grid"])
def test_touching_atoms_collide(name, unit_radii):
    engine = collision_engine(name, radii=unit_radii)
    assert engine.check_only(argon([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]]), 1.0)


def test_blow_factor_scales_threshold(unit_radii):
    engine = PairwiseCollisionEngine(radii=unit_radii)
    geometry = argon([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    assert not engine.check_only(geometry, 1.0)
    assert engine.check_only(geometry, 1.6)
    with pytest.raises(ValueError):
        engine.check(geometry, 0.0)


@pytest.mark.parametrize("name", ["pairwise", "grid"])
def test_bonded_pairs_never_collide(name, unit_radii):
    engine = collision_engine(name, radii=unit_radii)
    geometry = argon([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    bonds = BondInfo(3)
    bonds.set_bond(0, 1)
    bonds.set_bond(0, 2, UNCERTAIN)
    info = engine.check(geometry, 1.0, bonds=bonds)
    assert info.collisions == [(1, 2)]


def test_distance_matrix_is_symmetric(unit_radii):
    rng = numpy.random.default_rng(7)
    geometry = argon(rng.uniform(-4.0, 4.0, (10, 3)))
    info = PairwiseCollisionEngine(radii=unit_radii).check(geometry, 1.0)
    assert info.complete
    assert numpy.allclose(info.distances, info.distances.T)
    assert numpy.allclose(info.distances, pairwise_distances(geometry.cartesian()))
    assert numpy.allclose(numpy.diag(info.distances), 0.0)


def test_grid_agrees_with_pairwise(unit_radii):
    rng = numpy.random.default_rng(11)
    pairwise = PairwiseCollisionEngine(radii=unit_radii)
    grid = GridCollisionEngine(radii=unit_radii)
    for _ in range(5):
        geometry = argon(rng.uniform(-6.0, 6.0, (30, 3)))
        for blow in (0.8, 1.0, 1.3):
            expected = pairwise.check(geometry, blow).collisions
            assert grid.check(geometry, blow).collisions == expected


def test_grid_distances_of_checked_pairs(unit_radii):
    geometry = argon([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [50.0, 0.0, 0.0]])
    info = GridCollisionEngine(radii=unit_radii).check(geometry, 1.0)
    assert not info.complete
    assert info.distances[0, 1] == pytest.approx(1.0)
    assert info.distances[1, 0] == pytest.approx(1.0)
    assert info.distances[0, 2] == 0.0


def test_collision_info_is_reused_without_stale_state(unit_radii):
    engine = PairwiseCollisionEngine(radii=unit_radii)
    info = CollisionInfo(2)
    big = argon(numpy.zeros((5, 3)) + numpy.arange(5)[:, numpy.newaxis])
    engine.check(big, 1.0, info=info)
    assert info.capacity >= 5
    assert info.has_collision
    small = argon([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    engine.check(small, 1.0, info=info)
    assert info.size == 2
    assert info.capacity >= 5
    assert info.distances.shape == (2, 2)
    assert not info.has_collision
    assert info.distances[0, 1] == pytest.approx(3.0)


def test_too_few_bonds_rejected(unit_radii):
    engine = PairwiseCollisionEngine(radii=unit_radii)
    geometry = argon([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    with pytest.raises(ValueError):
        engine.check(geometry, 1.0, bonds=BondInfo(1))


def test_unknown_engine():
    with pytest.raises(ValueError):
        collision_engine("octree")
