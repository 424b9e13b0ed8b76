"""Interfaces to energy backends and local optimizers.

A fitness backend computes the total energy of a cluster and its
decomposition into one contribution per molecular unit. A local optimizer
relaxes a cluster and returns the relaxed copy.

Backends may fail. Use evaluate to call a backend: any non-finite or
unphysically low energy as well as a raised BackendError is logged and
replaced by NONCONVERGED_ENERGY so that such geometries are never preferred.
"""

# This file is part of MutateAggregates.
#
# Copyright (C) 2016 by the MutateAggregates developers
#
# MutateAggregates is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# MutateAggregates is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with MutateAggregates.  If not, see <http://www.gnu.org/licenses/>.
import copy
import logging

logger = logging.getLogger(__name__)

import numpy

from .. import BackendError

global NONCONVERGED_ENERGY
# energy assigned to all geometries whose energy could not be determined
NONCONVERGED_ENERGY = 1.0e10
global LOWEST_PHYSICAL_ENERGY
# energies below this are considered to be the result of a failed computation
LOWEST_PHYSICAL_ENERGY = -1.0e10


class FitnessBackend(object):
    """Base class of all energy backends."""

    name = None

    def energy(self, coordinates, atom_types, atom_numbers, atoms_per_unit, bonds):
        """Compute the energy of a cluster.

        Args:
            coordinates: (numpy array, shape (N,3)) Cartesian coordinates
            atom_types: (list of strings) element symbols
            atom_numbers: (numpy array of ints) atomic numbers
            atoms_per_unit: (list of ints) partitioning of atoms into units
            bonds: (BondInfo) bond information

        Returns:
            tuple of the total energy and a numpy array with one energy
            contribution per unit

        Raises:
            MutateAggregates.BackendError.
        """
        raise NotImplementedError("Derived classes have to implement this.")

    def description(self):
        return self.name

    def copy(self):
        return copy.deepcopy(self)


class LocalOptimizer(object):
    """Base class of all local optimizers.

    Every optimizer has a backend that provides energies for the relaxed
    geometries.
    """

    def __init__(self, backend):
        if backend is None:
            raise TypeError("A local optimizer needs an energy backend.")
        self.backend = backend

    def optimize(self, geometry):
        """Relax a geometry.

        Args:
            geometry: (MutateAggregates.aggregate.Geometry) will not be
                changed

        Returns:
            the relaxed copy of geometry with its fitness set
        """
        raise NotImplementedError("Derived classes have to implement this.")

    def description(self):
        return "%s(%s)" % (self.__class__.__name__, self.backend.description())

    def copy(self):
        return copy.deepcopy(self)


class NoOptimization(LocalOptimizer):
    """A local optimizer that only evaluates the energy."""

    def optimize(self, geometry):
        result = geometry.copy()
        result.fitness = evaluate(self.backend, result)[0]
        return result


def sanitize_energy(value, lowest=LOWEST_PHYSICAL_ENERGY):
    """Replace failed energies by NONCONVERGED_ENERGY.

    Args:
        value: (float) an energy
        lowest: (float) energies below this are considered failed

    Returns:
        value or NONCONVERGED_ENERGY
    """
    if not numpy.isfinite(value) or value < lowest:
        return NONCONVERGED_ENERGY
    return float(value)


def evaluate(backend, geometry, counters=None, lowest=LOWEST_PHYSICAL_ENERGY):
    """Compute the energy of a geometry with a backend.

    Failures of the backend never propagate. Instead, the total energy and
    all per-unit contributions are set to NONCONVERGED_ENERGY.

    Args:
        backend: (FitnessBackend) the backend
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        counters: (MutateAggregates.mutation.workspace.MutationCounters) if
            given, energy evaluations are counted there
        lowest: (float) see sanitize_energy

    Returns:
        tuple of the total energy and a numpy array of per-unit energies
    """
    if counters is not None:
        counters.energy_evaluations += 1
    failed = (NONCONVERGED_ENERGY, numpy.full(geometry.nr_units, NONCONVERGED_ENERGY))
    try:
        total, parts = backend.energy(
            geometry.cartesian(),
            geometry.atom_types,
            geometry.atom_numbers,
            geometry.atoms_per_unit,
            geometry.bonds,
        )
    except BackendError as e:
        logger.warning("Energy backend %s failed: %s" % (backend.description(), e))
        return failed
    sane = sanitize_energy(total, lowest=lowest)
    if sane == NONCONVERGED_ENERGY:
        logger.warning(
            "Energy backend %s returned unusable energy %s."
            % (backend.description(), str(total))
        )
        return failed
    parts = numpy.array(
        [sanitize_energy(p, lowest=lowest) for p in parts], dtype=float
    )
    return sane, parts


from .lj import LennardJonesBackend
