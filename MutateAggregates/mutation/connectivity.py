"""Rank the units of a cluster by how strongly they are connected to the rest.

Bonds are detected from interatomic distances with a (usually generous)
blow factor. For every atom, the number of bonds to atoms of other units is
added to the count of the atom's unit. Since both partners of such a bond
contribute, the sum over all units is always even.

Loosely bound units are the most promising ones to relocate.
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

from ..aggregate.bonds import bond_matrix_from_coordinates


class ConnectivityRanking(object):
    """Units ordered by ascending number of contacts to other units.

    Units with the same number of contacts keep their original order.
    """

    def __init__(self, counts):
        """Constructor.

        Args:
            counts: (iterable of ints) number of contacts for every unit
        """
        self._counts = [int(c) for c in counts]
        self.entries = sorted(enumerate(self._counts), key=lambda e: e[1])

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def __getitem__(self, idx):
        return self.entries[idx]

    def counts(self):
        """Contact counts indexed by unit."""
        return list(self._counts)

    def order(self):
        """Unit indices, least connected first."""
        return [unit for unit, _ in self.entries]

    def descending(self):
        """(unit, count) pairs, most connected first, ties in original order."""
        return sorted(enumerate(self._counts), key=lambda e: -e[1])

    def least_connected(self, exclude=()):
        """Get the least connected unit that is not excluded.

        Args:
            exclude: (collection of ints) units that may not be chosen, e.g.,
                those that have already been moved

        Returns:
            the unit index or None if all units are excluded
        """
        for unit, _ in self.entries:
            if unit not in exclude:
                return unit
        return None

    def move_partner(self, mover):
        """The least connected unit other than mover (None if there is none)."""
        for unit, _ in self.entries:
            if unit != mover:
                return unit
        return None

    def __repr__(self):
        return "ConnectivityRanking(%s)" % (str(self.entries))


def contact_counts(geometry, blow, radii=None):
    """Count the intermolecular bonds of every unit.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        blow: (float) blow factor for bond detection
        radii: (RadiusTable) radii to use. Defaults to covalent radii.

    Returns:
        numpy array of ints, one per unit
    """
    bonded = bond_matrix_from_coordinates(
        geometry.cartesian(), geometry.atom_numbers, blow, radii=radii
    )
    owner = geometry.atom_owners()
    bonded &= owner[:, numpy.newaxis] != owner[numpy.newaxis, :]
    counts = numpy.zeros(geometry.nr_units, dtype=int)
    numpy.add.at(counts, owner, numpy.sum(bonded, axis=1))
    return counts


def rank_units(geometry, blow, radii=None):
    """Rank the units of a geometry by connectivity.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        blow: (float) blow factor for bond detection
        radii: (RadiusTable) radii to use. Defaults to covalent radii.

    Returns:
        a ConnectivityRanking object
    """
    ranking = ConnectivityRanking(contact_counts(geometry, blow, radii=radii))
    logger.debug("Connectivity ranking: %s" % (str(ranking.entries)))
    return ranking
