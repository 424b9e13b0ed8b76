"""Detect collisions (atomic overlaps) in molecular clusters.

Two atoms i and j that are not bonded collide if their distance d satisfies
d <= blow*(radius(i)+radius(j)). Bonded pairs (including uncertain bonds) are
never reported. Two engines are provided:

  - PairwiseCollisionEngine: checks all pairs at once using numpy and
    always provides the full distance matrix
  - GridCollisionEngine: sorts atoms into cubic cells and only checks pairs
    of atoms in neighbouring cells. Gives the same result but only the
    distances of checked pairs are known.

Both report their results in a CollisionInfo object. Such an object can be
kept and reused by the caller to avoid reallocating memory for every check.
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

from ..aggregate.elements import DEFAULT_RADII


class CollisionInfo(object):
    """Result of a collision check and reusable scratch buffer.

    The distance matrix is a view of a buffer whose capacity only ever
    grows. After resize_and_clear(n), no state of a previous check remains
    visible.
    """

    def __init__(self, capacity=0):
        self._buffer = numpy.zeros((capacity, capacity), dtype=float)
        self._size = 0
        self.collisions = []
        self.complete = False

    @property
    def capacity(self):
        return self._buffer.shape[0]

    @property
    def size(self):
        return self._size

    def resize_and_clear(self, nr_atoms):
        """Prepare this object for a check of a geometry with nr_atoms atoms.

        The buffer is only reallocated if nr_atoms exceeds the capacity.
        """
        if nr_atoms > self.capacity:
            self._buffer = numpy.zeros((nr_atoms, nr_atoms), dtype=float)
        self._size = nr_atoms
        self._buffer[:nr_atoms, :nr_atoms] = 0.0
        self.collisions = []
        self.complete = False

    @property
    def distances(self):
        """Symmetric matrix of interatomic distances (a view).

        Only fully populated if complete is True. Otherwise, only pairs
        that have been checked are set and all others are 0.
        """
        return self._buffer[: self._size, : self._size]

    @property
    def has_collision(self):
        return len(self.collisions) > 0

    def report_collision(self, i, j):
        self.collisions.append((i, j))


def pairwise_distances(coordinates):
    """Full matrix of distances between all points, shape (N,N)."""
    coordinates = numpy.asarray(coordinates, dtype=float)
    diff = coordinates[:, numpy.newaxis, :] - coordinates[numpy.newaxis, :, :]
    return numpy.sqrt(numpy.sum(diff * diff, axis=2))


class CollisionEngine(object):
    """Base class of all collision engines.

    Derived classes implement check_coordinates.
    """

    name = None

    def __init__(self, radii=None):
        """Constructor.

        Args:
            radii: (RadiusTable) radii to use. Defaults to covalent radii.
        """
        self.radii = DEFAULT_RADII if radii is None else radii

    def check_coordinates(self, coordinates, numbers, blow, bonds, info=None):
        """Check Cartesian coordinates for collisions.

        Args:
            coordinates: (numpy array, shape (N,3)) Cartesian coordinates
            numbers: (iterable of ints) atomic numbers
            blow: (float) blow factor for the radii
            bonds: (BondInfo) bond information over at least N atoms. Only
                the first N atoms are considered.
            info: (CollisionInfo) will be resized, cleared and filled. A
                new one is created if not given.

        Returns:
            the CollisionInfo object
        """
        raise NotImplementedError("Derived classes have to implement this.")

    def check(self, geometry, blow, bonds=None, info=None):
        """Check a geometry for collisions.

        Args:
            geometry: (MutateAggregates.aggregate.Geometry) the cluster
            blow: (float) blow factor for the radii
            bonds: (BondInfo) defaults to the geometry's bonds
            info: (CollisionInfo) see check_coordinates

        Returns:
            a CollisionInfo object
        """
        if bonds is None:
            bonds = geometry.bonds
        return self.check_coordinates(
            geometry.cartesian(), geometry.atom_numbers, blow, bonds, info=info
        )

    def check_only(self, geometry, blow, bonds=None, info=None):
        """Whether a geometry has at least one collision."""
        return self.check(geometry, blow, bonds=bonds, info=info).has_collision

    def _prepare(self, coordinates, numbers, blow, bonds, info):
        if blow <= 0.0:
            raise ValueError("Blow factor for collision detection must be positive.")
        coordinates = numpy.asarray(coordinates, dtype=float).reshape((-1, 3))
        nr_atoms = coordinates.shape[0]
        if bonds.nr_atoms < nr_atoms:
            raise ValueError(
                "Bond information is for %d atoms but %d atoms are to be checked."
                % (bonds.nr_atoms, nr_atoms)
            )
        if info is None:
            info = CollisionInfo(nr_atoms)
        info.resize_and_clear(nr_atoms)
        return coordinates, self.radii.radii(numbers), info


class PairwiseCollisionEngine(CollisionEngine):
    """Check all pairs of atoms at once."""

    name = "pairwise"

    def check_coordinates(self, coordinates, numbers, blow, bonds, info=None):
        coordinates, rad, info = self._prepare(coordinates, numbers, blow, bonds, info)
        nr_atoms = coordinates.shape[0]
        diff = coordinates[:, numpy.newaxis, :] - coordinates[numpy.newaxis, :, :]
        dist2 = numpy.sum(diff * diff, axis=2)
        cutoff = blow * (rad[:, numpy.newaxis] + rad[numpy.newaxis, :])
        colliding = dist2 <= cutoff * cutoff
        colliding &= numpy.logical_not(bonds.bond_matrix()[:nr_atoms, :nr_atoms])
        colliding = numpy.triu(colliding, k=1)
        info.distances[:, :] = numpy.sqrt(dist2)
        info.complete = True
        for i, j in zip(*numpy.nonzero(colliding)):
            info.report_collision(int(i), int(j))
        return info


from .grid import GridCollisionEngine
from .dissociation import check_for_dissociation

global ENGINES
ENGINES = {
    PairwiseCollisionEngine.name: PairwiseCollisionEngine,
    GridCollisionEngine.name: GridCollisionEngine,
}


def collision_engine(name="pairwise", radii=None):
    """Create a collision engine by name ("pairwise" or "grid")."""
    try:
        return ENGINES[name.lower()](radii=radii)
    except KeyError:
        raise ValueError(
            "Unknown collision engine '%s'. I know: %s"
            % (name, ", ".join(sorted(ENGINES)))
        )
