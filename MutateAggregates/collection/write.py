"""A handy collection of functions to write different filetypes.
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
import re
import logging

logger = logging.getLogger(__name__)


class CommentError(Exception):
    """Raised if a comment is not valid."""

    pass


def print_xyz(filename, names, coordinates, width="10.6", comment=None, append=False):
    """Write data to an xyz-file.

    A comment can be added. If no comment is given, the filename will be taken
    as the comment.

    Args:
        filename: (string) the name of the file (will be overwritten if it
            exists already unless append is True) or an already existing file
            descriptor. This way, you can print to special files like stdout
            or stderr. Use sys.stdout or sys.stderr for this purpose.
        names: (list of strings) a list of strings containing the names of the atoms.
        coordinates: (list of 3-element lists) contains the cartesian coordinates.
        width: (string) a format string that will be used to convert floats to
            strings. Defaults to "10.6".
        comment: (string) The content of the comment line as one string.
            Do not use newline characters.
        append: (bool) append to the file instead of overwriting it, e.g., to
            write a trajectory
    """
    if comment is not None and re.search(r"\n", comment) is not None:
        raise CommentError(
            "Specified comment contains a newline, which is not supported."
        )
    if isinstance(filename, str):
        f = open(filename, "a" if append else "w")
        name = filename
    else:  # assume file handle
        f = filename
        try:
            name = f.name
        except AttributeError:
            raise TypeError(
                "Specified file is neither a file descriptor nor a filename."
            )
    if comment is None:
        comment = name
    try:
        f.write(str(len(names)) + "\n" + comment + "\n")
        for i in range(0, len(names)):
            tempstring = (
                "%s    %" + width + "f    %" + width + "f    %" + width + "f\n"
            ) % (names[i], coordinates[i][0], coordinates[i][1], coordinates[i][2])
            f.write(tempstring)
    finally:
        if isinstance(filename, str):
            f.close()


def print_geometry(filename, geometry, comment=None, append=False):
    """Write a cluster geometry to an xyz-file.

    If no comment is given but the geometry's fitness is known, the comment
    will be "Energy: <fitness>".

    Args:
        filename: see print_xyz
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        comment: see print_xyz
        append: see print_xyz
    """
    if comment is None and geometry.fitness is not None:
        comment = "Energy: " + str(geometry.fitness)
    print_xyz(
        filename, geometry.atom_types, geometry.cartesian(), comment=comment, append=append
    )
