"""Detect whether a cluster has fallen apart.

Two atoms are considered connected if their distance d satisfies
blow*(radius(i)+radius(j)) >= d. A cluster is dissociated if not all atoms
can be reached from the first one along such connections.
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


def check_for_dissociation(distances, atom_types, atom_numbers, blow, radii=None):
    """Check whether a cluster is dissociated using a depth-first search.

    Args:
        distances: (numpy array, shape (N,N)) complete interatomic distances
        atom_types: (list of strings) element symbols, only used for
            logging
        atom_numbers: (iterable of ints) atomic numbers
        blow: (float) blow factor for the radii
        radii: (RadiusTable) radii to use. Defaults to covalent radii.

    Returns:
        True if the cluster is dissociated
    """
    if blow <= 0.0:
        raise ValueError("Blow factor for dissociation detection must be positive.")
    if radii is None:
        radii = DEFAULT_RADII
    rad = radii.radii(atom_numbers)
    nr_atoms = len(rad)
    if nr_atoms < 2:
        return False
    connected = blow * (rad[:, numpy.newaxis] + rad[numpy.newaxis, :]) >= distances
    visited = numpy.zeros(nr_atoms, dtype=bool)
    visited[0] = True
    stack = [0]
    while stack:
        atom = stack.pop()
        for other in numpy.nonzero(connected[atom] & ~visited)[0]:
            visited[other] = True
            stack.append(other)
    dissociated = not numpy.all(visited)
    if dissociated:
        logger.debug(
            "Cluster dissociated, %d of %d atoms unreachable, e.g., %s."
            % (
                nr_atoms - numpy.count_nonzero(visited),
                nr_atoms,
                atom_types[int(numpy.argmin(visited))],
            )
        )
    return dissociated
