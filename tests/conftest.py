import numpy
import pytest

from MutateAggregates import BackendError
from MutateAggregates.aggregate import Geometry
from MutateAggregates.aggregate.elements import RadiusTable
from MutateAggregates.energy import FitnessBackend


class ComXBackend(FitnessBackend):
    """Every unit contributes the x coordinate of its first atom."""

    name = "comx"

    def energy(self, coordinates, atom_types, atom_numbers, atoms_per_unit, bonds):
        first = numpy.concatenate(([0], numpy.cumsum(atoms_per_unit)[:-1])).astype(int)
        parts = numpy.asarray(coordinates, dtype=float)[first, 0]
        return float(numpy.sum(parts)), parts


class FailingBackend(FitnessBackend):
    name = "failing"

    def energy(self, coordinates, atom_types, atom_numbers, atoms_per_unit, bonds):
        raise BackendError("SCF did not converge")


def argon(positions):
    """A cluster of single argon atoms."""
    positions = numpy.array(positions, dtype=float).reshape((-1, 3))
    return Geometry.from_cartesian(
        ["Ar"] * len(positions), positions, [1] * len(positions)
    )


@pytest.fixture
def unit_radii():
    return RadiusTable.uniform(1.0)


@pytest.fixture
def comx_backend():
    return ComXBackend()


@pytest.fixture
def failing_backend():
    return FailingBackend()


@pytest.fixture
def argon_pair():
    return argon([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])


@pytest.fixture
def argon_chain():
    return argon([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [4.0, 0.0, 0.0]])


@pytest.fixture
def argon_octahedron():
    """Six argon atoms on the axes around a central one."""
    return argon(
        [
            [3.0, 0.0, 0.0],
            [-3.0, 0.0, 0.0],
            [0.0, 3.0, 0.0],
            [0.0, -3.0, 0.0],
            [0.0, 0.0, 3.0],
            [0.0, 0.0, -3.0],
            [0.0, 0.0, 0.0],
        ]
    )
