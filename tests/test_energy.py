import numpy
import pytest

from MutateAggregates import BackendError
from MutateAggregates.aggregate import Geometry
from MutateAggregates.energy import (
    NONCONVERGED_ENERGY,
    LocalOptimizer,
    NoOptimization,
    evaluate,
    sanitize_energy,
)
from MutateAggregates.energy.lj import LennardJonesBackend
from MutateAggregates.mutation.workspace import MutationCounters

from conftest import argon


def test_lj_minimum():
    sigma = 3.4
    rmin = 2.0 ** (1.0 / 6.0) * sigma
    geometry = argon([[0.0, 0.0, 0.0], [rmin, 0.0, 0.0]])
    total, parts = evaluate(LennardJonesBackend(epsilon=2.0, sigma=sigma), geometry)
    assert total == pytest.approx(-2.0)
    assert numpy.allclose(parts, [-1.0, -1.0])


def test_lj_parts_sum_to_total():
    rng = numpy.random.default_rng(8)
    geometry = Geometry.from_cartesian(
        ["Ar"] * 6, rng.uniform(-5.0, 5.0, (6, 3)), [2, 1, 3]
    )
    backend = LennardJonesBackend(sigma=3.0, parameters={18: (0.5, 3.4)})
    total, parts = evaluate(backend, geometry)
    assert len(parts) == 3
    assert numpy.sum(parts) == pytest.approx(total)


def test_lj_ignores_intramolecular_pairs():
    geometry = Geometry.from_cartesian(
        ["Ar", "Ar"], [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]], [2]
    )
    total, parts = evaluate(LennardJonesBackend(), geometry)
    assert total == 0.0


def test_lj_overlapping_units():
    backend = LennardJonesBackend()
    geometry = argon([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    with pytest.raises(BackendError):
        backend.energy(
            geometry.cartesian(),
            geometry.atom_types,
            geometry.atom_numbers,
            geometry.atoms_per_unit,
            geometry.bonds,
        )
    total, parts = evaluate(backend, geometry)
    assert total == NONCONVERGED_ENERGY
    assert numpy.all(parts == NONCONVERGED_ENERGY)


def test_sanitize_energy():
    assert sanitize_energy(-3.5) == -3.5
    assert sanitize_energy(float("nan")) == NONCONVERGED_ENERGY
    assert sanitize_energy(float("inf")) == NONCONVERGED_ENERGY
    assert sanitize_energy(-1.0e11) == NONCONVERGED_ENERGY
    assert sanitize_energy(-5.0, lowest=-1.0) == NONCONVERGED_ENERGY


def test_backend_failure_is_normalised(argon_pair, failing_backend):
    counters = MutationCounters()
    total, parts = evaluate(failing_backend, argon_pair, counters=counters)
    assert total == NONCONVERGED_ENERGY
    assert list(parts) == [NONCONVERGED_ENERGY] * 2
    assert counters.energy_evaluations == 1


def test_no_optimization(argon_pair, comx_backend):
    result = NoOptimization(comx_backend).optimize(argon_pair)
    assert result is not argon_pair
    assert result.fitness == pytest.approx(3.0)
    assert argon_pair.fitness is None
    with pytest.raises(TypeError):
        LocalOptimizer(None)


def test_openbabel_backend():
    pytest.importorskip("maagbel")
    from MutateAggregates.energy.openbabel import OpenBabelBackend

    geometry = Geometry.from_cartesian(
        ["O", "H", "H", "O", "H", "H"],
        [
            [0.0, 0.0, 0.1173],
            [0.0, 0.7572, -0.4692],
            [0.0, -0.7572, -0.4692],
            [3.0, 0.0, 0.1173],
            [3.0, 0.7572, -0.4692],
            [3.0, -0.7572, -0.4692],
        ],
        [3, 3],
    )
    total, parts = evaluate(OpenBabelBackend(forcefield="uff"), geometry)
    assert total != NONCONVERGED_ENERGY
    assert len(parts) == 2
