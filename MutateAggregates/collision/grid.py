"""Cell-list based collision detection.

Atoms are sorted into cubic cells whose edge length is the largest possible
collision distance. Two atoms can then only collide if they are in the same
or in neighbouring cells.
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
import itertools
import logging

logger = logging.getLogger(__name__)

import numpy

from . import CollisionEngine

global NEIGHBOUR_CELLS
NEIGHBOUR_CELLS = list(itertools.product((-1, 0, 1), repeat=3))


class GridCollisionEngine(CollisionEngine):
    """Check only pairs of atoms in neighbouring cells."""

    name = "grid"

    def check_coordinates(self, coordinates, numbers, blow, bonds, info=None):
        coordinates, rad, info = self._prepare(coordinates, numbers, blow, bonds, info)
        nr_atoms = coordinates.shape[0]
        if nr_atoms < 2:
            return info
        cellsize = 2.0 * blow * numpy.amax(rad)
        if cellsize <= 0.0:
            return info
        cells = {}
        indices = numpy.floor(coordinates / cellsize).astype(int)
        for atom, idx in enumerate(indices):
            cells.setdefault(tuple(idx), []).append(atom)
        bondmat = bonds.bond_matrix()
        distances = info.distances
        for (cx, cy, cz), members in cells.items():
            for dx, dy, dz in NEIGHBOUR_CELLS:
                others = cells.get((cx + dx, cy + dy, cz + dz))
                if others is None:
                    continue
                for i in members:
                    for j in others:
                        # every pair is handled once, from its smaller index
                        if j <= i:
                            continue
                        diff = coordinates[i] - coordinates[j]
                        dist2 = numpy.dot(diff, diff)
                        distances[i, j] = distances[j, i] = numpy.sqrt(dist2)
                        if bondmat[i, j]:
                            continue
                        cutoff = blow * (rad[i] + rad[j])
                        if dist2 <= cutoff * cutoff:
                            info.report_collision(i, j)
        info.collisions.sort()
        return info
