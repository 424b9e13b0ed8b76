"""Bond information of molecular clusters.

A BondInfo object stores a symmetric tri-state adjacency over all atoms of a
cluster: two atoms are either not bonded, bonded or in an uncertain bonding
situation. Uncertain bonds are treated like bonds everywhere, i.e., bonded
and uncertain pairs are both exempt from collision checks.

Bond information is created once per topology and only read during
mutations.
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

from .elements import DEFAULT_RADII

NOBOND = 0
BONDED = 1
UNCERTAIN = 2

global BOND_TYPES
BOND_TYPES = (NOBOND, BONDED, UNCERTAIN)


class BondInfo(object):
    """Symmetric tri-state bond matrix over atom indices."""

    def __init__(self, nr_atoms):
        if nr_atoms < 0:
            raise ValueError("Number of atoms must not be negative.")
        self._types = numpy.zeros((nr_atoms, nr_atoms), dtype=numpy.int8)

    @property
    def nr_atoms(self):
        return self._types.shape[0]

    def bond_type(self, i, j):
        return int(self._types[i, j])

    def has_bond(self, i, j):
        """Whether atoms i and j are bonded (uncertain bonds count)."""
        return self._types[i, j] != NOBOND

    def set_bond(self, i, j, bondtype=BONDED):
        """Set the bond state of a pair of atoms (symmetrically).

        Args:
            i: (int) index of the first atom
            j: (int) index of the second atom
            bondtype: (int) one of NOBOND, BONDED or UNCERTAIN

        Raises:
            ValueError.
        """
        if bondtype not in BOND_TYPES:
            raise ValueError("Unknown bond type %s." % (str(bondtype)))
        if i == j:
            raise ValueError("An atom cannot be bonded to itself.")
        self._types[i, j] = bondtype
        self._types[j, i] = bondtype

    def bond_matrix(self):
        """Boolean matrix that is True for all bonded (or uncertain) pairs."""
        return self._types != NOBOND

    def subset(self, atoms):
        """Create a BondInfo for a subset of the atoms.

        Args:
            atoms: (list of ints) indices of the atoms to keep in that order

        Returns:
            a new BondInfo object
        """
        atoms = numpy.asarray(atoms, dtype=int)
        result = BondInfo(len(atoms))
        result._types[:, :] = self._types[numpy.ix_(atoms, atoms)]
        return result

    def copy(self):
        result = BondInfo(0)
        result._types = numpy.copy(self._types)
        return result

    def __eq__(self, other):
        if not isinstance(other, BondInfo):
            return NotImplemented
        return numpy.array_equal(self._types, other._types)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __repr__(self):
        return "BondInfo(nr_atoms=%d, bonds=%d)" % (
            self.nr_atoms,
            int(numpy.count_nonzero(self._types)) // 2,
        )


def bond_matrix_from_coordinates(coordinates, numbers, blow, radii=None):
    """Compute which atoms are bonded purely from distances.

    Two atoms i and j are considered bonded if their distance is less than
    or equal to blow*(radius(i)+radius(j)).

    Args:
        coordinates: (numpy array, shape (N,3)) Cartesian coordinates
        numbers: (iterable of ints) atomic numbers
        blow: (float) blow factor for the radii
        radii: (RadiusTable) radii to use. Defaults to covalent radii.

    Returns:
        a symmetric boolean numpy array with shape (N,N) with False on the
        diagonal
    """
    if blow <= 0.0:
        raise ValueError("Blow factor for bond detection must be positive.")
    if radii is None:
        radii = DEFAULT_RADII
    coordinates = numpy.asarray(coordinates, dtype=float)
    rad = radii.radii(numbers)
    diff = coordinates[:, numpy.newaxis, :] - coordinates[numpy.newaxis, :, :]
    dist = numpy.sqrt(numpy.sum(diff * diff, axis=2))
    cutoff = blow * (rad[:, numpy.newaxis] + rad[numpy.newaxis, :])
    bonded = dist <= cutoff
    numpy.fill_diagonal(bonded, False)
    return bonded


def detect_bonds(geometry, blow, radii=None, intramolecular_only=True):
    """Create bond information for a geometry from interatomic distances.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        blow: (float) blow factor for the radii
        radii: (RadiusTable) radii to use. Defaults to covalent radii.
        intramolecular_only: (bool) only detect bonds between atoms of the
            same molecular unit. Use this to create the bond information of
            a cluster of molecules.

    Returns:
        a BondInfo object
    """
    bonded = bond_matrix_from_coordinates(
        geometry.cartesian(), geometry.atom_numbers, blow, radii=radii
    )
    if intramolecular_only:
        owner = geometry.atom_owners()
        bonded &= owner[:, numpy.newaxis] == owner[numpy.newaxis, :]
    result = BondInfo(geometry.nr_atoms)
    result._types[bonded] = BONDED
    return result
