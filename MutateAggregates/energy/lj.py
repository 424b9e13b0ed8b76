"""A Lennard-Jones energy backend for rigid molecular units.

Only interactions between atoms of different units are taken into account.
Every unit is assigned half of each pair interaction it takes part in, so
the per-unit energies add up to the total energy.

Pair parameters are combined with the Lorentz-Berthelot rules from per
element values. The defaults are reduced units (epsilon=1, sigma=1) for all
elements.
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
import logging

logger = logging.getLogger(__name__)

import numpy

from . import FitnessBackend
from .. import BackendError


class LennardJonesBackend(FitnessBackend):
    name = "lj"

    def __init__(self, epsilon=1.0, sigma=1.0, parameters=None):
        """Constructor.

        Args:
            epsilon: (float) well depth for all elements not in parameters
            sigma: (float) zero crossing distance for all elements not in
                parameters
            parameters: (dictionary) atomic number->(epsilon, sigma)
        """
        if epsilon < 0.0 or sigma <= 0.0:
            raise ValueError("Need non-negative epsilon and positive sigma.")
        self.epsilon = epsilon
        self.sigma = sigma
        self.parameters = dict(parameters) if parameters is not None else {}

    def _pair_parameters(self, atom_numbers):
        params = numpy.array(
            [self.parameters.get(n, (self.epsilon, self.sigma)) for n in atom_numbers],
            dtype=float,
        ).reshape((-1, 2))
        eps = numpy.sqrt(params[:, 0][:, numpy.newaxis] * params[:, 0][numpy.newaxis, :])
        sig = 0.5 * (params[:, 1][:, numpy.newaxis] + params[:, 1][numpy.newaxis, :])
        return eps, sig

    def energy(self, coordinates, atom_types, atom_numbers, atoms_per_unit, bonds):
        coordinates = numpy.asarray(coordinates, dtype=float)
        owner = numpy.repeat(numpy.arange(len(atoms_per_unit)), atoms_per_unit)
        diff = coordinates[:, numpy.newaxis, :] - coordinates[numpy.newaxis, :, :]
        dist = numpy.sqrt(numpy.sum(diff * diff, axis=2))
        inter = owner[:, numpy.newaxis] != owner[numpy.newaxis, :]
        if numpy.any(dist[inter] == 0.0):
            raise BackendError("Atoms of different units are on top of each other.")
        eps, sig = self._pair_parameters(atom_numbers)
        with numpy.errstate(divide="ignore", invalid="ignore"):
            sr6 = (sig / dist) ** 6
            pair = 4.0 * eps * (sr6 * sr6 - sr6)
        pair = numpy.where(inter, pair, 0.0)
        # each pair appears twice in the full matrix, once for every partner
        atomic = 0.5 * numpy.sum(pair, axis=1)
        parts = numpy.zeros(len(atoms_per_unit))
        numpy.add.at(parts, owner, atomic)
        return float(numpy.sum(parts)), parts
