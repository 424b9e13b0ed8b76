"""A useful collection of functions to read in different data files.

Supported file types are:
  - geometry: xyz (optionally split into molecular units)
  - config files: section-less ini-style files
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
import configparser
from io import StringIO
import logging

logger = logging.getLogger(__name__)

import numpy

from .. import FiletypeException


class NoOptionInConfigFileError(Exception):
    """Exception that is raised if a necessary option is not found in a config file.
    """

    pass


def read_xyz(filename):
    """Read in an xyz-file.

    Args:
        filename: (string) the path to the file from which data is to be read in

    Returns:
        tuple of a list of element names, a numpy array of the Cartesian
        coordinates (shape (N,3)) and the comment line
    """
    with open(filename, "r") as f:
        # read the lines in the given file into the variable lines
        # and remove the trailing newline characters by using .rstrip()
        lines = [line.rstrip() for line in f]

    # try to get the number of atoms in the molecule
    # if this does not succeed, the file is probably not a valid
    # xyz-file
    try:
        nr_atoms = int(lines[0])
    except (ValueError, IndexError):
        raise ValueError(
            "This is probably not a valid xyz-file since the first line does not contain an integer."
        )
    comment = lines[1] if len(lines) > 1 else ""

    # the first two lines of an xyz file are not necessary, hence, they are removed
    # also ignore the last lines if there are more than the first line specifies
    lines = lines[2 : nr_atoms + 2]
    if len(lines) < nr_atoms:
        raise ValueError(
            "The xyz-file declares %d atoms but only %d are present."
            % (nr_atoms, len(lines))
        )

    # the first coloumn is the element, the next three the coordinates
    try:
        coordinates = numpy.array(
            [list(map(float, line.split()[1:4])) for line in lines], dtype=float
        ).reshape((-1, 3))
    except ValueError as e:
        raise ValueError("Could not read coordinates from xyz-file.", e)
    names = [line.split()[0] for line in lines]
    return names, coordinates, comment


def read_geometry(filename, atoms_per_unit=None, fileformat=None):
    """Read a cluster geometry.

    Args:
        filename: (string) the path to the file
        atoms_per_unit: (list of ints or int) how many consecutive atoms make
            up each unit. A single int means that all units have that many
            atoms. None means that every atom is a unit of its own.
        fileformat: (string) format of the file. Autodetected from the file
            extension if not given. Only "xyz" is supported.

    Returns:
        an object of MutateAggregates.aggregate.Geometry

    Raises:
        MutateAggregates.FiletypeException, ValueError.
    """
    from ..aggregate import Geometry

    if fileformat is None:
        fileformat = filename.rsplit(".", 1)[-1] if "." in filename else ""
    if fileformat.lower() != "xyz":
        raise FiletypeException(
            "File type '%s' of file %s unknown, only xyz is supported."
            % (fileformat, filename)
        )
    names, coordinates, comment = read_xyz(filename)
    if atoms_per_unit is None:
        atoms_per_unit = [1] * len(names)
    elif isinstance(atoms_per_unit, int):
        if atoms_per_unit <= 0 or len(names) % atoms_per_unit != 0:
            raise ValueError(
                "Cannot split %d atoms into units of %d atoms."
                % (len(names), atoms_per_unit)
            )
        atoms_per_unit = [atoms_per_unit] * (len(names) // atoms_per_unit)
    return Geometry.from_cartesian(names, coordinates, list(atoms_per_unit))


def _string_to_boolean(string):
    """Convert a string to boolean, case-insensitively.

    Args:
        string: (string) string representation of a boolean value

    Raises:
        TypeError.
    """
    v = str(string).lower()
    if v in ["true", "false"]:
        return v == "true"
    else:
        raise TypeError("Not a boolean: %s" % (string))


# taken from http://stackoverflow.com/questions/2885190/using-pythons-configparser-to-read-a-file-without-section-name
# and modified to be less elaborate
class SectionlessConfigParser(configparser.ConfigParser):
    """Extends ConfigParser to allow files without sections.

    This is done by wrapping read files and prepending them with a placeholder
    section, which defaults to '__DEFAULT__'.

    Create an object of this class using the function
    MutateAggregates.collection.read.read_config_file
    """

    def __init__(self, nocase=False, sep=None, *args, **kwargs):
        """Constructor.

        No arguments required. Do not use directly. Use
        MutateAggregates.collection.read.read_config_file instead
        """
        self.nocase = nocase
        self.sep = sep
        configparser.ConfigParser.__init__(self, *args, **kwargs)

    def optionxform(self, optionstr):
        # keep the case of keys, case handling is done while reading
        return optionstr

    def _readfp(self, fp, *args, **kwargs):
        """Open the config file and read it in.

        Args:
            fp: (string) config file name
        """
        sep = self.sep if self.sep is not None else "="

        def translate(line):
            parts = line.split(sep, 1)
            if self.nocase:
                parts[0] = parts[0].lower()
            return "=".join(parts)

        with open(fp, "r") as stream:
            lines = (translate(l) for l in stream.readlines())
            fakefile = StringIO("[__DEFAULT__]\n" + "\n".join(lines))
        self.read_file(fakefile, *args, **kwargs)

    def _convert(self, func, name, *args, **kwargs):
        """Convert an entry using a function.

        Args:
            func: (function) this function is applied to the value associated
                with the key name
            name: (string) key whose associated value will be returned

        Returns:
            the converted value

        Raises:
            TypeError.
        """
        try:
            v = self.get("__DEFAULT__", name, *args, **kwargs)
        except configparser.InterpolationMissingOptionError as e:
            errorstring = (
                "Keyword '%s' requested (which defaults to the value of keyword '%s') but no value could be found."
                % (e.option, e.reference)
            )
            raise NoOptionInConfigFileError(errorstring)
        except configparser.NoOptionError as e:
            errorstring = "Keyword '%s' requested but no value could be found." % (
                e.option
            )
            raise NoOptionInConfigFileError(errorstring)
        try:
            return func(v)
        except TypeError as e:
            raise TypeError(
                "Value associated with keyword '%s' is of wrong type." % name, e
            )

    def get_int(self, name, *args, **kwargs):
        """Get an integer.

        Returns:
            the value associated with the key name converted to integer.

        Raises:
            ValueError.
        """
        try:
            return self._convert(int, name, *args, **kwargs)
        except ValueError as e:
            raise ValueError(
                "Value associated with keyword '%s' could not be converted to int."
                % name,
                e,
            )

    def get_float(self, name, *args, **kwargs):
        """Get a floating point value.

        Returns:
            the value associated with the key name converted to float.

        Raises:
            ValueError.
        """
        try:
            return self._convert(float, name, *args, **kwargs)
        except ValueError as e:
            raise ValueError(
                "Value associated with keyword '%s' could not be converted to float."
                % name,
                e,
            )

    def get_boolean(self, name, *args, **kwargs):
        """Get a boolean.

        Returns:
            the value associated with the key name converted to bool.

        Raises:
            ValueError.
        """
        try:
            return self._convert(_string_to_boolean, name, *args, **kwargs)
        except TypeError as e:
            raise ValueError(
                "Value associated with keyword '%s' could not be converted to boolean."
                % name,
                e,
            )

    def get_str(self, name, *args, **kwargs):
        """Get a string.

        Returns:
            the value associated with the key name converted to string.
        """
        return self._convert(str, name, *args, **kwargs)

    def _allitems(self, *args, **kwargs):
        """Get all items in the config file.

        Returns:
            a list of (keyword, value) tuples in the config file
        """
        try:
            return self.items("__DEFAULT__", *args, **kwargs)
        except configparser.InterpolationMissingOptionError as e:
            errorstring = (
                "Keyword '%s' requested (which defaults to the value of keyword '%s') but no value could be found."
                % (e.option, e.reference)
            )
            raise NoOptionInConfigFileError(errorstring)

    def check_against(self, options):
        """Check options against the content of the config file.

        Args:
            options: (list of strings) options that are expected in the config
                file. options may contain more entries that what are
                expected but any option in the config file but not in options
                will be returned.

        Returns:
            a list of strings that contain lines with keyword and value of
            those keywords that are not in options but in the config file
        """
        return ["%-20s = %s" % o for o in self._allitems() if not o[0] in options]


def read_config_file(filename, defaults=None, nocase=False, sep=None):
    """Read in a section-less config file.

    Use methods "get_str('name')" of the returned object to get a string object
    corresponding to the key "name".  Other functions defined: get_int,
    get_float, get_boolean, _allitems (return all items as tuples in a
    list). Types appropriate to the name will be returned.

    Args:
        filename: (string) the name of the config file to read in
        defaults: (dictionary) a dictionary providing default values
        nocase: (bool) whether or not to ignore the case of the keywords
        sep: (string) if using a non-standard cfg-file separator, specify it here

    Returns:
        an object of MutateAggregates.collection.read.SectionlessConfigParser
    """
    # info on how to do this has been taken from:
    # http://stackoverflow.com/questions/2885190/using-pythons-configparser-to-read-a-file-without-section-name
    parser = SectionlessConfigParser(defaults=defaults, nocase=nocase, sep=sep)
    parser._readfp(filename)
    return parser
