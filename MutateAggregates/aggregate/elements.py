"""Element data needed to handle molecular clusters.

Element symbols, atomic numbers, covalent radii (in Angstroms) and atomic
masses are read from the file data/elements.dat shipped with this package.
Radii are used by the collision, dissociation and bond detection routines.
Use a RadiusTable to override them (e.g., to use a uniform radius).
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
import os
import re
import logging

logger = logging.getLogger(__name__)

import numpy

from .. import get_data_dir


def _read_element_table(filename):
    """Read the element table. Not for use by the user.

    Args:
        filename: (string) path to the element table

    Returns:
        tuple of 3 dictionaries: symbol->number, number->radius and
        number->mass
    """
    numbers = {}
    radii = {}
    masses = {}
    with open(filename, "r") as f:
        for line in f:
            line = line.split("#", 1)[0].strip()
            if len(line) == 0:
                continue
            symbol, number, radius, mass = line.split()
            number = int(number)
            numbers[symbol] = number
            radii[number] = float(radius)
            masses[number] = float(mass)
    return numbers, radii, masses


global ATOMIC_NUMBERS, COVALENT_RADII, ATOMIC_MASSES
ATOMIC_NUMBERS, COVALENT_RADII, ATOMIC_MASSES = _read_element_table(
    os.path.join(get_data_dir(), "elements.dat")
)
global ELEMENT_SYMBOLS
ELEMENT_SYMBOLS = {v: k for k, v in ATOMIC_NUMBERS.items()}


def atomic_number(symbol):
    """Get the atomic number of an element.

    Explicit trailing labels such as in "C12" or "O_w" are ignored and the case
    of the symbol does not matter. A label must start with a digit or a
    non-letter character, i.e., "Ow" is not read as oxygen.

    Args:
        symbol: (string) the element symbol

    Returns:
        the atomic number as int

    Raises:
        ValueError.
    """
    match = re.match(r"^([A-Za-z]{1,2})(?:[_\W\d].*)?$", str(symbol))
    if match is not None:
        name = match.group(1).capitalize()
        if name in ATOMIC_NUMBERS:
            return ATOMIC_NUMBERS[name]
    raise ValueError("Unknown element symbol '%s'." % (symbol))


def atomic_mass(number):
    """Get the mass of an element by its atomic number."""
    try:
        return ATOMIC_MASSES[number]
    except KeyError:
        raise ValueError("No mass known for atomic number %d." % (number))


def element_symbol(number):
    """Get the symbol of an element by its atomic number."""
    try:
        return ELEMENT_SYMBOLS[number]
    except KeyError:
        raise ValueError("No element known with atomic number %d." % (number))


class RadiusTable(object):
    """Lookup of atomic radii by atomic number.

    By default, covalent radii are used. Single entries can be overridden and
    a default value for all unknown elements can be given. A lookup of an
    element for which no radius is known is a programming error and raises a
    ValueError.
    """

    def __init__(self, radii=None, default=None, overrides=None):
        """Constructor.

        Args:
            radii: (dictionary) atomic number->radius. Defaults to the
                covalent radii shipped with this package.
            default: (float) radius of all elements not in radii
            overrides: (dictionary) atomic number->radius, takes precedence
                over radii
        """
        if radii is None:
            radii = COVALENT_RADII
        self.table = dict(radii)
        if overrides is not None:
            self.table.update(overrides)
        if default is not None and default < 0.0:
            raise ValueError("Default radius must not be negative.")
        self.default = default

    @classmethod
    def uniform(cls, radius):
        """Create a table that assigns the same radius to every element."""
        return cls(radii={}, default=radius)

    def radius(self, number):
        """Get the radius of a single element by atomic number."""
        value = self.table.get(number, self.default)
        if value is None:
            raise ValueError("No radius known for atomic number %d." % (number))
        return value

    def radii(self, numbers):
        """Get the radii of several elements.

        Args:
            numbers: (iterable of ints) atomic numbers

        Returns:
            a numpy array of radii
        """
        return numpy.array([self.radius(n) for n in numbers], dtype=float)


global DEFAULT_RADII
DEFAULT_RADII = RadiusTable()
