"""Definitions of the Geometry and MolecularUnit classes and some auxilliary functions.

A Geometry is an ordered sequence of molecular units. Each molecular unit
has a fixed identity (its atoms' types) and a reference frame centered at its
center of mass. The external degrees of freedom of a unit are its center of
mass (COM) and its orientation, given as 3 Euler angles. Cartesian
coordinates are obtained by rotating the reference frame and translating it
to the COM. A single-atom unit is simply located at its COM.

All lengths are in Angstroms, all angles in radians.

The Euler angles (phi, omega, psi) describe a rotation about the z-axis by
psi, followed by a rotation about the x-axis by omega, followed by a rotation
about the z-axis by phi.
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

from .elements import atomic_number, atomic_mass, element_symbol
from .bonds import BondInfo, detect_bonds

global DEFAULT_BOND_BLOW
# blow factor used to detect intramolecular bonds if none are given
DEFAULT_BOND_BLOW = 1.2


def _RotMatrixAboutAxisByAngle(axis, angle):
    """Generate a rotation matrix about an arbitrary axis by an arbitrary angle.

    Angle has to be in radians. The rotation is counterclockwise when looking
    down the axis towards the origin.
    """
    mat = numpy.identity(3, dtype=float)
    s = numpy.sin(angle)
    c = numpy.cos(angle)
    t = 1.0 - c

    vtmp = numpy.array(axis, dtype=float)
    if not (len(vtmp.shape) == 1 and vtmp.shape[0] == 3):
        raise ValueError(
            "Given axis must have shape (3,) but it has shape " + str(vtmp.shape)
        )
    if numpy.linalg.norm(vtmp) > 0.001:
        vtmp /= numpy.linalg.norm(vtmp)

        x, y, z = vtmp

        mat[0][0] = t * x * x + c
        mat[0][1] = t * x * y - s * z
        mat[0][2] = t * x * z + s * y

        mat[1][0] = t * y * x + s * z
        mat[1][1] = t * y * y + c
        mat[1][2] = t * y * z - s * x

        mat[2][0] = t * z * x - s * y
        mat[2][1] = t * z * y + s * x
        mat[2][2] = t * z * z + c

    return mat


def euler_matrix(euler):
    """Rotation matrix for Euler angles (phi, omega, psi)."""
    phi, omega, psi = euler
    return numpy.dot(
        _RotMatrixAboutAxisByAngle((0.0, 0.0, 1.0), phi),
        numpy.dot(
            _RotMatrixAboutAxisByAngle((1.0, 0.0, 0.0), omega),
            _RotMatrixAboutAxisByAngle((0.0, 0.0, 1.0), psi),
        ),
    )


def random_eulers(rng):
    """Draw random Euler angles.

    phi and psi are drawn from [-pi,pi], omega from [-pi/2,pi/2].

    Args:
        rng: (numpy.random.Generator) source of randomness

    Returns:
        a numpy array of 3 floats
    """
    return rng.uniform(-1.0, 1.0, 3) * numpy.array(
        [numpy.pi, 0.5 * numpy.pi, numpy.pi]
    )


class MolecularUnit(object):
    """A rigid (or semi-flexible) molecule that is part of a cluster."""

    def __init__(
        self,
        atom_types,
        reference,
        com=None,
        euler=None,
        charges=None,
        spins=None,
        name=None,
    ):
        """Constructor.

        The reference coordinates are shifted so that their center of mass is
        at the origin. If no COM is given, the center of mass of the given
        reference coordinates is used, i.e., a unit created from Cartesian
        coordinates alone reproduces those coordinates.

        Args:
            atom_types: (list of strings) element symbols
            reference: (array-like, shape (N,3)) coordinates of the atoms
            com: (array-like, 3 floats) center of mass
            euler: (array-like, 3 floats) Euler angles
            charges: (list of floats) per-atom charges, default all 0
            spins: (list of floats) per-atom spins, default all 0
            name: (string) an identifier for this kind of unit
        """
        self.atom_types = tuple(atom_types)
        if len(self.atom_types) == 0:
            raise ValueError("A molecular unit needs at least one atom.")
        self.atom_numbers = numpy.array(
            [atomic_number(t) for t in self.atom_types], dtype=int
        )
        reference = numpy.array(reference, dtype=float).reshape((-1, 3))
        if reference.shape[0] != len(self.atom_types):
            raise ValueError(
                "Got %d atom types but %d positions."
                % (len(self.atom_types), reference.shape[0])
            )
        masses = numpy.array([atomic_mass(n) for n in self.atom_numbers])
        center = numpy.dot(masses, reference) / numpy.sum(masses)
        self.reference = reference - center
        self.com = numpy.array(center if com is None else com, dtype=float)
        self.euler = numpy.zeros(3) if euler is None else numpy.array(euler, dtype=float)
        nr_atoms = len(self.atom_types)
        self.charges = (
            numpy.zeros(nr_atoms) if charges is None else numpy.array(charges, dtype=float)
        )
        self.spins = (
            numpy.zeros(nr_atoms) if spins is None else numpy.array(spins, dtype=float)
        )
        self.name = name if name is not None else "".join(self.atom_types)

    @property
    def nr_atoms(self):
        return len(self.atom_types)

    def set_com(self, com):
        self.com = numpy.array(com, dtype=float)

    def set_euler(self, euler):
        self.euler = numpy.array(euler, dtype=float)

    def cartesian(self):
        """Cartesian coordinates of all atoms, shape (N,3)."""
        if self.nr_atoms == 1:
            return self.com.reshape((1, 3)).copy()
        return numpy.dot(self.reference, euler_matrix(self.euler).T) + self.com

    def update_cartesian(self, coordinates):
        """Refit this unit to new Cartesian coordinates of its atoms.

        The new coordinates become the reference frame, the orientation is
        reset and the COM is recomputed. The unit's identity is unchanged.
        This is used after a (flexible) local optimization.
        """
        coordinates = numpy.array(coordinates, dtype=float).reshape((-1, 3))
        if coordinates.shape[0] != self.nr_atoms:
            raise ValueError(
                "Unit has %d atoms but %d positions were given."
                % (self.nr_atoms, coordinates.shape[0])
            )
        masses = numpy.array([atomic_mass(n) for n in self.atom_numbers])
        center = numpy.dot(masses, coordinates) / numpy.sum(masses)
        self.reference = coordinates - center
        self.com = center
        self.euler = numpy.zeros(3)

    def diameter(self):
        """Twice the largest distance of any atom from the COM."""
        return 2.0 * numpy.amax(numpy.linalg.norm(self.reference, axis=1))

    def copy(self):
        return copy.deepcopy(self)

    def __repr__(self):
        return "MolecularUnit(%s, com=%s)" % (self.name, str(self.com.tolist()))


class Geometry(object):
    """An ordered sequence of molecular units with bond information.

    A geometry optionally carries an Environment, an identifier and its
    fitness (energy).
    """

    def __init__(self, units, bonds=None, environment=None, ident=0, fitness=None):
        """Constructor.

        Args:
            units: (list of MolecularUnit) the units, will not be copied
            bonds: (BondInfo) bond information over all atoms. If None,
                intramolecular bonds are detected from the geometry using
                DEFAULT_BOND_BLOW.
            environment: (MutateAggregates.aggregate.environment.Environment)
                an optional environment bound to this cluster
            ident: (int) an identifier
            fitness: (float) the energy of this geometry if known
        """
        self.units = list(units)
        if bonds is None:
            bonds = detect_bonds(self, DEFAULT_BOND_BLOW, intramolecular_only=True)
        elif bonds.nr_atoms != self.nr_atoms:
            raise ValueError(
                "Bond information is for %d atoms but geometry has %d atoms."
                % (bonds.nr_atoms, self.nr_atoms)
            )
        self.bonds = bonds
        self.environment = environment
        self.ident = ident
        self.fitness = fitness

    @classmethod
    def from_cartesian(cls, atom_types, coordinates, atoms_per_unit, bonds=None):
        """Create a geometry from Cartesian coordinates.

        Args:
            atom_types: (list of strings) element symbols of all atoms
            coordinates: (array-like, shape (N,3)) coordinates of all atoms
            atoms_per_unit: (list of ints) how many consecutive atoms make up
                each unit. The sum has to equal the number of atoms.
            bonds: (BondInfo) see constructor

        Returns:
            a Geometry object
        """
        coordinates = numpy.array(coordinates, dtype=float).reshape((-1, 3))
        if sum(atoms_per_unit) != len(atom_types) or len(atom_types) != len(
            coordinates
        ):
            raise ValueError(
                "Partitioning into units does not match the number of atoms."
            )
        units = []
        start = 0
        for count in atoms_per_unit:
            if count <= 0:
                raise ValueError("Every unit needs at least one atom.")
            units.append(
                MolecularUnit(
                    atom_types[start : start + count],
                    coordinates[start : start + count],
                )
            )
            start += count
        return cls(units, bonds=bonds)

    @property
    def nr_units(self):
        return len(self.units)

    @property
    def nr_atoms(self):
        return sum(u.nr_atoms for u in self.units)

    @property
    def atoms_per_unit(self):
        return [u.nr_atoms for u in self.units]

    @property
    def atom_types(self):
        return [t for u in self.units for t in u.atom_types]

    @property
    def atom_numbers(self):
        if len(self.units) == 0:
            return numpy.zeros(0, dtype=int)
        return numpy.concatenate([u.atom_numbers for u in self.units])

    def offsets(self):
        """Index of the first atom of every unit plus the total atom count."""
        return numpy.concatenate(([0], numpy.cumsum(self.atoms_per_unit))).astype(int)

    def atom_indices(self, unit):
        """The indices of all atoms belonging to a unit."""
        offsets = self.offsets()
        return numpy.arange(offsets[unit], offsets[unit + 1])

    def atom_owners(self):
        """For every atom, the index of the unit it belongs to."""
        return numpy.repeat(numpy.arange(self.nr_units), self.atoms_per_unit)

    def cartesian(self):
        """Cartesian coordinates of all atoms, shape (N,3)."""
        if len(self.units) == 0:
            return numpy.zeros((0, 3))
        return numpy.concatenate([u.cartesian() for u in self.units])

    def coms(self):
        """The COMs of all units, shape (n,3)."""
        return numpy.array([u.com for u in self.units], dtype=float).reshape((-1, 3))

    def set_coms(self, coms):
        for u, c in zip(self.units, coms):
            u.set_com(c)

    def subset(self, units):
        """Create a new geometry consisting of copies of some units.

        Bonds are taken over. The environment is not.

        Args:
            units: (list of ints) indices of the units in the desired order

        Returns:
            a Geometry object
        """
        offsets = self.offsets()
        atoms = [a for u in units for a in range(offsets[u], offsets[u + 1])]
        return Geometry(
            [self.units[u].copy() for u in units],
            bonds=self.bonds.subset(atoms),
            ident=self.ident,
        )

    def signature(self):
        """Everything that must not change during a mutation.

        Returns:
            a tuple of the number of atoms, the number of units and a tuple of
            the atom types of every unit
        """
        return (
            self.nr_atoms,
            self.nr_units,
            tuple(u.atom_types for u in self.units),
        )

    def copy(self):
        return copy.deepcopy(self)

    def __repr__(self):
        return "Geometry(ident=%s, units=%d, atoms=%d, fitness=%s)" % (
            str(self.ident),
            self.nr_units,
            self.nr_atoms,
            str(self.fitness),
        )


def molecular_sizes(geometry):
    """Number of atoms of every unit of a geometry."""
    return [u.nr_atoms for u in geometry.units]


from . import environment
from .environment import Environment
