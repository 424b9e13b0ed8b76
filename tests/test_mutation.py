import numpy
import pytest

from MutateAggregates.aggregate.elements import RadiusTable
from MutateAggregates.collision import PairwiseCollisionEngine, collision_engine
from MutateAggregates.energy import NoOptimization, evaluate
from MutateAggregates.energy.lj import LennardJonesBackend
from MutateAggregates.mutation import (
    GeometryMutation,
    find_best_point,
    worst_energy_unit,
)
from MutateAggregates.mutation.workspace import MutationCounters, Workspace

from conftest import argon


def _worst_on_grid(backend, **kwargs):
    radii = RadiusTable.uniform(0.85)
    options = dict(
        selection="worstenergy",
        search="grid",
        engine=PairwiseCollisionEngine(radii=radii),
        scale_factor=1.0,
        range_mod_factor=0.0,
    )
    options.update(kwargs)
    return GeometryMutation(backend, **options)


def _lj_cluster():
    return argon(
        [
            [0.0, 0.0, 0.0],
            [3.8, 0.0, 0.0],
            [1.9, 3.29, 0.0],
            [1.9, 1.097, 3.1],
            [-1.9, 3.29, 0.0],
            [9.0, 0.0, 0.0],
        ]
    )


def test_worst_unit_moves_to_best_point(argon_pair, comx_backend):
    mutation = _worst_on_grid(comx_backend)
    counters = MutationCounters()
    result = mutation.mutate(argon_pair, counters=counters)
    assert numpy.allclose(result.coms(), [[0.0, 0.0, 0.0], [1.875, 0.0, 0.0]])
    assert result.fitness == pytest.approx(1.875)
    assert counters.mutations == 1
    assert counters.candidates == 1
    # the input is left alone
    assert numpy.allclose(argon_pair.coms()[1], [3.0, 0.0, 0.0])


def test_unit_moves_next_to_partner(argon_pair, comx_backend):
    mutation = _worst_on_grid(comx_backend, search="partner")
    result = mutation.mutate(argon_pair)
    assert numpy.allclose(result.coms(), [[0.0, 0.0, 0.0], [-5.0, 0.0, 0.0]])
    assert result.fitness == pytest.approx(-5.0)


def test_cluster_is_scaled_only_once(comx_backend):
    positions = numpy.array(
        [
            [1.0, 1.0, 1.0],
            [5.0, 1.0, 1.0],
            [1.0, 5.0, 1.0],
            [1.0, 1.0, 5.0],
            [5.0, 5.0, 1.0],
            [5.0, 1.0, 5.0],
        ]
    )
    geometry = argon(positions)
    mutation = _worst_on_grid(comx_backend, scale_factor=1.5, nr_moves=3)
    counters = MutationCounters()
    result = mutation.mutate(geometry, counters=counters)
    assert counters.mutations == 1
    coms = result.coms()
    scaled_once = [numpy.allclose(c, 1.5 * p) for c, p in zip(coms, positions)]
    scaled_twice = [numpy.allclose(c, 2.25 * p) for c, p in zip(coms, positions)]
    # three moves leave at least three units in place
    assert sum(scaled_once) >= 3
    assert not any(scaled_twice)


def _record_selected(mutation, monkeypatch):
    selected = []
    original = mutation._candidates

    def candidates(geometry, unit, *args):
        selected.append(unit)
        return original(geometry, unit, *args)

    monkeypatch.setattr(mutation, "_candidates", candidates)
    return selected


@pytest.mark.parametrize("mark_unmovable, expected", [(True, [1, 0]), (False, [1, 1])])
def test_mark_unmovable(argon_pair, comx_backend, monkeypatch, mark_unmovable, expected):
    mutation = _worst_on_grid(comx_backend, nr_moves=2, mark_unmovable=mark_unmovable)
    selected = _record_selected(mutation, monkeypatch)
    mutation.mutate(argon_pair)
    assert selected == expected


def test_fully_relaxed_optimizes_before_every_move(argon_pair, comx_backend):
    mutation = _worst_on_grid(
        comx_backend,
        optimizer=NoOptimization(comx_backend),
        fully_relaxed=True,
        nr_moves=2,
    )
    counters = MutationCounters()
    result = mutation.mutate(argon_pair, counters=counters)
    assert counters.local_optimizations == 2
    assert result.fitness == pytest.approx(evaluate(comx_backend, result)[0])


def test_dissociating_candidates_are_rejected(argon_pair, comx_backend):
    mutation = _worst_on_grid(comx_backend, check_dissociation=True, blow_diss=1.0)
    counters = MutationCounters()
    result = mutation.mutate(argon_pair, counters=counters)
    assert result is not argon_pair
    assert numpy.allclose(result.coms(), argon_pair.coms())
    assert counters.failed_mutations == 1


def test_unmutated_copy_if_nothing_fits(argon_pair, comx_backend):
    mutation = GeometryMutation(
        comx_backend, engine=PairwiseCollisionEngine(radii=RadiusTable.uniform(10.0))
    )
    counters = MutationCounters()
    result = mutation.mutate(argon_pair, counters=counters)
    assert result is not None
    assert result is not argon_pair
    assert numpy.allclose(result.coms(), argon_pair.coms())
    assert counters.failed_mutations == 1
    assert counters.mutations == 0


def test_colliding_input_is_discarded(comx_backend):
    geometry = argon([[0.0, 0.0, 0.0], [0.5, 0.0, 0.0], [5.0, 0.0, 0.0]])
    mutation = GeometryMutation(comx_backend, collision_check_first=True)
    counters = MutationCounters()
    assert mutation.mutate(geometry, counters=counters) is None
    assert counters.discarded == 1


def test_structure_is_invariant():
    geometry = _lj_cluster()
    before = geometry.copy()
    backend = LennardJonesBackend(epsilon=1.0, sigma=3.4)
    for search in ("grid", "surface", "triangulated", "partner"):
        for selection in ("leastconnected", "worstenergy"):
            mutation = GeometryMutation(
                backend,
                selection=selection,
                search=search,
                engine=collision_engine("grid"),
                nr_moves=2,
            )
            result = mutation.mutate(geometry, workspace=Workspace(geometry.nr_atoms))
            assert result.signature() == geometry.signature()
            assert result.bonds == geometry.bonds
            assert not PairwiseCollisionEngine().check_only(result, 1.0)
    assert numpy.allclose(geometry.coms(), before.coms())


def test_least_connected_unit_is_relocated():
    geometry = _lj_cluster()
    backend = LennardJonesBackend(epsilon=1.0, sigma=3.4)
    mutation = GeometryMutation(backend, selection="leastconnected", search="grid")
    result = mutation.mutate(geometry)
    # the far away atom has no contacts and is moved closer
    assert not numpy.allclose(result.coms()[5], geometry.coms()[5])
    assert numpy.allclose(result.coms()[:5], geometry.coms()[:5])
    assert result.fitness == pytest.approx(evaluate(backend, result)[0])
    assert result.fitness < evaluate(backend, geometry)[0]


def test_optimize_first_uses_optimizer(argon_pair, comx_backend):
    mutation = _worst_on_grid(
        comx_backend, optimizer=NoOptimization(comx_backend), optimize_first=True
    )
    counters = MutationCounters()
    mutation.mutate(argon_pair, counters=counters)
    assert counters.local_optimizations == 1


def test_failing_backend_does_not_propagate(argon_pair, failing_backend):
    mutation = _worst_on_grid(failing_backend)
    result = mutation.mutate(argon_pair)
    assert result is not None
    assert result.signature() == argon_pair.signature()


def test_find_best_point(argon_pair, comx_backend):
    candidates = [[5.0, 0.0, 0.0], [4.0, 1.0, 0.0], [4.0, 2.0, 0.0], [6.0, 0.0, 0.0]]
    counters = MutationCounters()
    energy, point = find_best_point(comx_backend, candidates, argon_pair, 1, counters)
    assert energy == pytest.approx(4.0)
    # first of equally good points
    assert numpy.allclose(point, [4.0, 1.0, 0.0])
    assert counters.energy_evaluations == 4
    assert numpy.allclose(argon_pair.coms()[1], [3.0, 0.0, 0.0])
    with pytest.raises(ValueError):
        find_best_point(comx_backend, [], argon_pair, 1)


def test_worst_energy_unit():
    assert worst_energy_unit([1.0, 3.0, 3.0, 2.0]) == 1
    assert worst_energy_unit([1.0, 3.0, 3.0, 2.0], exclude=[1]) == 2
    assert worst_energy_unit([1.0, 3.0], exclude=[0, 1]) is None


def test_invalid_configuration(comx_backend):
    with pytest.raises(TypeError):
        GeometryMutation(None)
    with pytest.raises(ValueError):
        GeometryMutation(comx_backend, selection="random")
    with pytest.raises(ValueError):
        GeometryMutation(comx_backend, search="everywhere")
    with pytest.raises(ValueError):
        GeometryMutation(comx_backend, blow_coll=0.0)
    with pytest.raises(ValueError):
        GeometryMutation(comx_backend, nr_moves=0)
    with pytest.raises(TypeError):
        GeometryMutation(comx_backend, fully_relaxed=True)


def test_description_and_copy(comx_backend):
    mutation = GeometryMutation(comx_backend, search="surface")
    assert "surface detection: longlat" in mutation.description()
    clone = mutation.copy()
    assert clone is not mutation
    assert clone.search == "surface"
