import numpy
import pytest

from MutateAggregates.aggregate import Geometry, Environment
from MutateAggregates.aggregate.elements import RadiusTable
from MutateAggregates.collision import PairwiseCollisionEngine, pairwise_distances
from MutateAggregates.collision.dissociation import check_for_dissociation
from MutateAggregates.mutation import PackingMutation, packing_order
from MutateAggregates.mutation.workspace import MutationCounters, Workspace

from conftest import argon


def _packer(**kwargs):
    radii = RadiusTable.uniform(1.0)
    options = dict(
        order="ascending",
        engine=PairwiseCollisionEngine(radii=radii),
        blow_coll=1.0,
        blow_diss=2.0,
    )
    options.update(kwargs)
    return PackingMutation(**options)


def _assert_packed(geometry, radii):
    assert not PairwiseCollisionEngine(radii=radii).check_only(geometry, 1.0)
    assert not check_for_dissociation(
        pairwise_distances(geometry.cartesian()),
        geometry.atom_types,
        geometry.atom_numbers,
        2.0,
        radii=radii,
    )
    assert numpy.allclose(geometry.coms()[:, 2], 0.0)


def test_packing_grows_and_resets_box():
    geometry = argon(numpy.arange(15, dtype=float).reshape((5, 3)) * 7.0)
    packer = _packer(
        initial_box=0.0,
        attempts_before_inflation=1,
        tries_before_reset=1,
        max_resets=10000,
        box_increment=3.704,
    )
    counters = MutationCounters()
    result = packer.mutate(
        geometry,
        rng=numpy.random.default_rng(1),
        workspace=Workspace(),
        counters=counters,
    )
    assert counters.packing_inflations >= 1
    assert counters.packing_resets >= 1
    assert counters.packing_failures == 0
    assert counters.mutations == 1
    assert result.signature() == geometry.signature()
    assert result.fitness is None
    _assert_packed(result, RadiusTable.uniform(1.0))


def test_packing_gives_up_after_max_resets():
    # the box never grows, so no unit but the first one fits
    geometry = argon(numpy.arange(9, dtype=float).reshape((3, 3)) * 3.0)
    packer = _packer(
        initial_box=0.0,
        box_increment=0.0,
        attempts_before_inflation=1,
        tries_before_reset=2,
        max_resets=3,
    )
    counters = MutationCounters()
    result = packer.mutate(geometry, rng=numpy.random.default_rng(3), counters=counters)
    assert result is not None
    assert result.signature() == geometry.signature()
    assert counters.packing_failures == 2
    assert counters.packing_resets == 2 * 3
    assert counters.mutations == 1


def test_packing_default_settings():
    rng = numpy.random.default_rng(4)
    geometry = argon(rng.uniform(-10.0, 10.0, (8, 3)))
    counters = MutationCounters()
    result = _packer(order="random").mutate(geometry, rng=rng, counters=counters)
    assert counters.packing_failures == 0
    _assert_packed(result, RadiusTable.uniform(1.0))


def test_packing_is_reproducible():
    geometry = argon(numpy.arange(12, dtype=float).reshape((4, 3)) * 3.0)
    first = _packer().mutate(geometry, rng=numpy.random.default_rng(9))
    second = _packer().mutate(geometry, rng=numpy.random.default_rng(9))
    assert numpy.allclose(first.cartesian(), second.cartesian())


def test_packing_molecules_keeps_bonds():
    coords = [
        [0.0, 0.0, 0.0], [0.0, 0.0, 1.2],
        [5.0, 0.0, 0.0], [5.0, 0.0, 1.2],
        [0.0, 5.0, 0.0],
    ]
    geometry = Geometry.from_cartesian(["C", "O", "C", "O", "Ar"], coords, [2, 2, 1])
    result = _packer(order="bysize").mutate(geometry, rng=numpy.random.default_rng(2))
    assert result.bonds == geometry.bonds
    assert result.signature() == geometry.signature()
    # the units are rigid
    for old, new in zip(geometry.units, result.units):
        assert new.diameter() == pytest.approx(old.diameter())


def test_environment_is_placed():
    geometry = argon(numpy.arange(9, dtype=float).reshape((3, 3)) * 3.0)
    geometry.environment = Environment(["Ar"], [[0.0, 0.0, 30.0]], max_offset=0.5)
    result = _packer().mutate(geometry, rng=numpy.random.default_rng(6))
    assert result.environment is not None
    assert result.environment is not geometry.environment
    assert numpy.all(numpy.fabs(result.environment.offset) <= 0.5)
    assert result.environment.fits(result, 1.0, radii=RadiusTable.uniform(1.0))


def test_packing_order():
    geometry = Geometry.from_cartesian(
        ["Ar", "C", "O", "O", "N", "N"],
        [[0.0, 0.0, 0.0], [5.0, 0.0, 0.0], [6.16, 0.0, 0.0], [3.84, 0.0, 0.0],
         [0.0, 5.0, 0.0], [0.0, 6.1, 0.0]],
        [1, 3, 2],
    )
    rng = numpy.random.default_rng(0)
    assert packing_order(geometry, "ascending", rng) == [0, 1, 2]
    assert packing_order(geometry, "bysize", rng) == [1, 2, 0]
    assert sorted(packing_order(geometry, "random", rng)) == [0, 1, 2]
    with pytest.raises(ValueError):
        packing_order(geometry, "alphabetical", rng)


def test_invalid_settings():
    with pytest.raises(ValueError):
        PackingMutation(order="spiral")
    with pytest.raises(ValueError):
        PackingMutation(max_resets=0)
    with pytest.raises(ValueError):
        PackingMutation(blow_diss=0.0)
    with pytest.raises(ValueError):
        PackingMutation(box_increment=-1.0)
