"""Energy backend and local optimizer using OpenBabel force fields.

This requires the maagbel Python bindings to OpenBabel. The total energy
of a cluster is the force field energy of all its atoms. The energy of a
unit is its removal energy, i.e., the total energy minus the energy of the
cluster without that unit. Bonds are perceived by OpenBabel from the
Cartesian coordinates.

Run "python -c 'from maagbel import pybel; print(pybel.forcefields)'" to get
a list of supported force fields.
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

from . import FitnessBackend, LocalOptimizer, evaluate
from .. import BackendError, MissingModuleError

try:
    import maagbel
    from maagbel import pybel
except ImportError:
    maagbel = None
    logger.warning("Could not import maagbel, OpenBabel force fields unavailable.")

E_UNIT_CONVERSION = {
    "kJ/mol->meV": 10.36427,
    "kcal/mol->meV": 43.36411,
    "meV->kJ/mol": 1.0 / 10.36427,
    "meV->kcal/mol": 1.0 / 43.36411,
    "kJ/mol->kcal/mol": 1.0 / 4.184,
    "kcal/mol->kJ/mol": 4.184,
}


def _assert_maagbel():
    if maagbel is None:
        raise MissingModuleError(
            "Functionality requested that needs maagbel but it could not be imported."
        )


def _xyz_string(coordinates, atom_types):
    lines = ["%d" % (len(atom_types)), "MutateAggregates"]
    for t, (x, y, z) in zip(atom_types, coordinates):
        lines.append("%s    %.10f    %.10f    %.10f" % (t, x, y, z))
    return "\n".join(lines) + "\n"


class OpenBabelBackend(FitnessBackend):
    name = "openbabel"

    def __init__(self, forcefield="uff", unit="meV"):
        """Constructor.

        Args:
            forcefield: (string) name of the force field
            unit: (string) energy unit, one of "kJ/mol", "kcal/mol" and
                "meV"

        Raises:
            MutateAggregates.MissingModuleError, ValueError.
        """
        _assert_maagbel()
        if forcefield not in pybel.forcefields:
            raise ValueError("Force field %s not known to maagbel." % (forcefield))
        self.forcefield = forcefield
        self.unit = unit

    def description(self):
        return "openbabel:%s" % (self.forcefield)

    def molecule(self, coordinates, atom_types):
        """Create an OpenBabel molecule and set up the force field for it.

        Returns:
            tuple of the OBMol and the force field object

        Raises:
            MutateAggregates.BackendError.
        """
        mol = pybel.readstring("xyz", _xyz_string(coordinates, atom_types))
        obmol = mol.OBMol
        ff = maagbel.OBForceField.FindForceField(self.forcefield)
        if ff is None or not ff.Setup(obmol):
            raise BackendError("Error setting up forcefield %s." % (self.forcefield))
        return obmol, ff

    def _conversion(self, ff):
        ffunit = ff.GetUnit()
        if ffunit == self.unit:
            return 1.0
        try:
            return E_UNIT_CONVERSION[ffunit + "->" + self.unit]
        except KeyError as e:
            raise ValueError(
                "Unknown target (%s) or origin (%s) unit. I know: 'kJ/mol', 'kcal/mol' and 'meV'."
                % (self.unit, ffunit),
                e,
            )

    def _total(self, coordinates, atom_types):
        obmol, ff = self.molecule(coordinates, atom_types)
        return ff.Energy(False) * self._conversion(ff)

    def energy(self, coordinates, atom_types, atom_numbers, atoms_per_unit, bonds):
        coordinates = numpy.asarray(coordinates, dtype=float)
        atom_types = list(atom_types)
        total = self._total(coordinates, atom_types)
        owner = numpy.repeat(numpy.arange(len(atoms_per_unit)), atoms_per_unit)
        parts = numpy.zeros(len(atoms_per_unit))
        if len(atoms_per_unit) == 1:
            parts[0] = total
            return total, parts
        for unit in range(len(atoms_per_unit)):
            keep = owner != unit
            rest = self._total(
                coordinates[keep], [t for t, k in zip(atom_types, keep) if k]
            )
            parts[unit] = total - rest
        return total, parts


class OpenBabelOptimizer(LocalOptimizer):
    """Relax clusters by a steepest descent in an OpenBabel force field.

    All atoms are free to move during the optimization. Afterwards, every
    unit's COM and reference frame are refitted to the relaxed coordinates.
    """

    def __init__(self, backend, steps=500):
        if not isinstance(backend, OpenBabelBackend):
            raise TypeError("OpenBabelOptimizer needs an OpenBabelBackend.")
        if steps <= 0:
            raise ValueError("Number of optimization steps must be positive.")
        LocalOptimizer.__init__(self, backend)
        self.steps = steps

    def optimize(self, geometry):
        result = geometry.copy()
        try:
            obmol, ff = self.backend.molecule(result.cartesian(), result.atom_types)
        except BackendError as e:
            logger.warning("Local optimization not possible: %s" % (e))
            result.fitness = evaluate(self.backend, result)[0]
            return result
        ff.SteepestDescent(self.steps)
        ff.GetCoordinates(obmol)
        coordinates = numpy.array([a.coords for a in pybel.Molecule(obmol).atoms])
        offsets = result.offsets()
        for idx, unit in enumerate(result.units):
            unit.update_cartesian(coordinates[offsets[idx] : offsets[idx + 1]])
        result.fitness = evaluate(self.backend, result)[0]
        return result
