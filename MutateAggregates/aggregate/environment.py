"""A rigid environment (e.g., a surface or a cavity) bound to a cluster.

The environment's atoms are positioned relative to the centroid of the COMs
of the cluster it is bound to, shifted by an offset. Mutations only use two
hooks of an environment: a random re-initialisation of that offset and a
check whether the cluster fits into the environment without collisions.
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

from .elements import atomic_number, DEFAULT_RADII


class Environment(object):
    def __init__(self, atom_types, coordinates, offset=None, max_offset=1.0):
        """Constructor.

        Args:
            atom_types: (list of strings) element symbols of the environment
            coordinates: (array-like, shape (N,3)) coordinates relative to
                the cluster's centroid
            offset: (array-like, 3 floats) current displacement
            max_offset: (float) re-initialisation draws every component of
                the offset uniformly from [-max_offset,max_offset]
        """
        self.atom_types = tuple(atom_types)
        self.atom_numbers = numpy.array(
            [atomic_number(t) for t in self.atom_types], dtype=int
        )
        self.coordinates = numpy.array(coordinates, dtype=float).reshape((-1, 3))
        if len(self.atom_types) != self.coordinates.shape[0]:
            raise ValueError("Number of atom types and positions differ.")
        if max_offset < 0.0:
            raise ValueError("Maximum offset must not be negative.")
        self.offset = numpy.zeros(3) if offset is None else numpy.array(offset, dtype=float)
        self.max_offset = max_offset

    def cartesian(self, geometry):
        """Cartesian coordinates of the environment for a given cluster."""
        centroid = numpy.mean(geometry.coms(), axis=0)
        return self.coordinates + centroid + self.offset

    def reinitialize(self, geometry, rng):
        """Randomly place the environment with respect to the cluster."""
        self.offset = rng.uniform(-self.max_offset, self.max_offset, 3)

    def fits(self, geometry, blow, radii=None):
        """Check whether no cluster atom collides with an environment atom.

        Args:
            geometry: (MutateAggregates.aggregate.Geometry) the cluster
            blow: (float) blow factor for the radii
            radii: (RadiusTable) radii to use. Defaults to covalent radii.

        Returns:
            True if there is no collision
        """
        if radii is None:
            radii = DEFAULT_RADII
        cluster = geometry.cartesian()
        env = self.cartesian(geometry)
        diff = cluster[:, numpy.newaxis, :] - env[numpy.newaxis, :, :]
        dist2 = numpy.sum(diff * diff, axis=2)
        cutoff = blow * (
            radii.radii(geometry.atom_numbers)[:, numpy.newaxis]
            + radii.radii(self.atom_numbers)[numpy.newaxis, :]
        )
        return not numpy.any(dist2 <= cutoff * cutoff)

    def copy(self):
        return copy.deepcopy(self)
