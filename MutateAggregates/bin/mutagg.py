"""This is the executable for the MutateAggregates.mutation submodule.

Usage is as "mutagg [OPTIONS] CONFIGFILE1 [CONFIGFILE2] [...]"

See the documentation for MutateAggregates.mutation for further details.
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
import sys

import numpy

from MutateAggregates import get_data_dir, ConfigurationError
from MutateAggregates.collection.read import read_config_file, read_geometry
from MutateAggregates.collection.read import NoOptionInConfigFileError
from MutateAggregates.collection.write import print_geometry
from MutateAggregates.energy import evaluate, NoOptimization
from MutateAggregates.energy.lj import LennardJonesBackend
from MutateAggregates.mutation import mutation_from_config
from MutateAggregates.mutation.workspace import MutationCounters, Workspace


class WrongJobtypeError(Exception):
    pass


global SHORTHELPTEXT
# The short help text message
SHORTHELPTEXT = r"""Usage:
    mutagg [OPTIONS] CONFIGFILE1 [CONFIGFILE2] [...]

Command line OPTIONS:
    --help                  print this message
    --longhelp              print a long help message (which is also the default config
                            file). Comments in this message explain the meanings
    --argon-example         mutate a small argon cluster in your current directory
"""

global LONGHELPTEXT
## the long help text message (also a default config file)
LONGHELPTEXT = r"""# This is an example config file that also tries to give some explanations about what
# all the parameters do.
# Use the program as "mutagg CONFIGFILE1 [CONFIGFILE2] [...]
# Keywords are case-insensitive.
# All lines starting with # are comments and can be removed.

# ##VALUES NEEDED BY ALL JOBTYPES###
# declare the jobtype. NO DEFAULT SO IT MUST BE PROVIDED. Values are:
#    mutate: relocate units of the cluster to better positions (short: m)
#    pack:   pack all units anew in the x-y plane (short: p)
jobtype             = mutate
# the cluster geometry (xyz-file). NO DEFAULT SO IT MUST BE PROVIDED.
geometry            = cluster.xyz
# how many consecutive atoms in the geometry make up one molecular unit. Either a
# single number (all units have the same size) or a comma-separated list of numbers.
# optional, default: 1
atoms_per_unit      = 1
# the file to which all mutated geometries are written. optional, default:
# mutated.xyz
output              = mutated.xyz
# how many mutations of the input geometry shall be performed. optional, default: 1
nr_mutations        = 1
# seed for the random number generator. Leave empty for a random seed. optional,
# default: EMPTY
seed                =
# only check the config file but do not perform any mutation. optional, default: False
config_check        = False

# ##COLLISION AND DISSOCIATION DETECTION###
# which collision engine to use. Possible values are:
#    pairwise: check all pairs of atoms
#    grid:     only check atoms in neighbouring cells (faster for big clusters)
# optional, default: pairwise
collision_engine    = pairwise
# two atoms collide if their distance is below blow_coll times the sum of their
# covalent radii. optional, default: 1.0
blow_coll           = 1.0
# two atoms are considered connected for dissociation detection if their distance is
# below blow_diss times the sum of their covalent radii. optional, default: 3.0
blow_diss           = 3.0
# use the same radius (in Angstroms) for all elements instead of covalent radii. Leave
# empty to use covalent radii. optional, default: EMPTY
uniform_radius      =

# ##VALUES FOR JOBTYPE mutate###
# the energy backend. Possible values are:
#    lj:        Lennard-Jones potential between atoms of different units
#    openbabel: a force field from OpenBabel (requires maagbel)
# optional, default: lj
backend             = lj
# Lennard-Jones parameters used for all elements. optional, defaults: 1.0, 1.0
lj_epsilon          = 1.0
lj_sigma            = 1.0
# OpenBabel force field. optional, default: uff
forcefield          = uff
# the local optimizer. Possible values are:
#    none:      no optimization at all
#    openbabel: steepest descent in the OpenBabel force field (requires backend
#               openbabel)
# optional, default: none
optimizer           = none
# number of steps for the local optimizer. optional, default: 500
optsteps            = 500
# how to select the unit to relocate. Possible values are:
#    leastconnected: the unit with the fewest contacts to other units
#    worstenergy:    the unit with the highest energy contribution
# optional, default: leastconnected
selection           = leastconnected
# where to search for new positions. Possible values are:
#    grid:         a grid spanning the cluster
#    surface:      right above surface units
#    triangulated: in pockets between three surface units
#    partner:      within 5 Angstroms of the least connected other unit
# optional, default: grid
search              = grid
# how to detect surface units. Possible values are longlat and radial. optional,
# default: longlat
surface_detection   = longlat
# two atoms are in contact for the connectivity analysis if their distance is below
# blow_bonds times the sum of their covalent radii. optional, default: 1.8
blow_bonds          = 1.8
# how many units shall be relocated. optional, default: 1
nr_moves            = 1
# never select the same unit twice in one mutation. optional, default: True
mark_unmovable      = True
# locally optimize the cluster before every relocation. optional, default: False
fully_relaxed       = False
# locally optimize the input once before anything else. optional, default: False
optimize_first      = False
# discard the input if it has collisions (after the optional optimization). optional,
# default: False
collision_check_first = False
# reject positions that cause the cluster to dissociate. optional, default: False
check_dissociation  = False
# grid search only: scale all COMs by this much once to make room inside the cluster.
# optional, default: 1.0
scale_factor        = 1.0
# grid search only: extend the grid beyond the cluster by this much times the average
# spacing of the units. optional, default: 0.5
range_mod_factor    = 0.5

# ##VALUES FOR JOBTYPE pack###
# the order in which units are packed. Possible values are ascending, random and
# bysize. optional, default: bysize
packing_order       = bysize
# consecutive collisions before the packing box is inflated. optional, default: 500
attempts_before_inflation = 500
# failed trials before the packing box is reset. optional, default: 10000
tries_before_reset  = 10000
# resets of the packing box before a unit is left where it is. optional, default: 5
max_resets          = 5
# maximum random increment of the packing box in Angstroms. optional, default: 3.704
box_increment       = 3.704
"""


def _print_example():
    """Print an example config file for mutagg to stdout."""
    print(LONGHELPTEXT)


def _print_help():
    """Print the help message"""
    print(SHORTHELPTEXT)


global DEFAULT_CONFIG
## default config options
DEFAULT_CONFIG = {
    "atoms_per_unit": "1",
    "attempts_before_inflation": "500",
    "backend": "lj",
    "blow_bonds": "1.8",
    "blow_coll": "1.0",
    "blow_diss": "3.0",
    "box_increment": "3.704",
    "check_dissociation": "False",
    "collision_check_first": "False",
    "collision_engine": "pairwise",
    "config_check": "False",
    "forcefield": "uff",
    "fully_relaxed": "False",
    "lj_epsilon": "1.0",
    "lj_sigma": "1.0",
    "mark_unmovable": "True",
    "max_resets": "5",
    "nr_moves": "1",
    "nr_mutations": "1",
    "optimize_first": "False",
    "optimizer": "none",
    "optsteps": "500",
    "output": "mutated.xyz",
    "package_data_dir": get_data_dir(),
    "packing_order": "bysize",
    "range_mod_factor": "0.5",
    "scale_factor": "1.0",
    "search": "grid",
    "seed": "",
    "selection": "leastconnected",
    "surface_detection": "longlat",
    "tries_before_reset": "10000",
    "uniform_radius": "",
}

global MANDATORY_OPTIONS
# Mandatory options for certain jobtypes.
#
# The following options have to be provided in the config file for the
# following jobtypes:
#
#  - jobtype: always
#  - geometry: always
MANDATORY_OPTIONS = {
    "mutate": ["geometry", "jobtype"],
    "pack": ["geometry", "jobtype"],
}


def _atoms_per_unit(value):
    """Convert the value of the keyword atoms_per_unit."""
    entries = [int(v) for v in value.split(",") if len(v.strip()) > 0]
    if len(entries) == 1:
        return entries[0]
    return entries


def _backend(parser):
    """Create the energy backend and local optimizer declared in a config file."""
    name = parser.get_str("backend").lower()
    if name == "lj":
        backend = LennardJonesBackend(
            epsilon=parser.get_float("lj_epsilon"), sigma=parser.get_float("lj_sigma")
        )
    elif name == "openbabel":
        from MutateAggregates.energy.openbabel import OpenBabelBackend

        backend = OpenBabelBackend(forcefield=parser.get_str("forcefield"))
    else:
        raise ConfigurationError("Unknown backend '%s'. I know: lj, openbabel" % (name))
    optname = parser.get_str("optimizer").lower()
    if optname == "none":
        optimizer = NoOptimization(backend)
    elif optname == "openbabel":
        from MutateAggregates.energy.openbabel import OpenBabelOptimizer

        optimizer = OpenBabelOptimizer(backend, steps=parser.get_int("optsteps"))
    else:
        raise ConfigurationError(
            "Unknown optimizer '%s'. I know: none, openbabel" % (optname)
        )
    return backend, optimizer


def run_main(parser, check_only=False):
    """Perform the mutations declared in a parsed config file.

    Args:
        parser: (MutateAggregates.collection.read.SectionlessConfigParser)
            the parsed config file
        check_only: (bool) only create all objects but do not mutate anything

    Returns:
        an object of MutateAggregates.mutation.workspace.MutationCounters
    """
    geometry = read_geometry(
        parser.get_str("geometry"),
        atoms_per_unit=_atoms_per_unit(parser.get_str("atoms_per_unit")),
    )
    backend, optimizer = _backend(parser)
    operator = mutation_from_config(parser, backend=backend, optimizer=optimizer)
    seed = parser.get_str("seed")
    rng = numpy.random.default_rng(int(seed) if len(seed.strip()) > 0 else None)
    counters = MutationCounters()
    if check_only:
        return counters
    print(operator.description())
    geometry.fitness = evaluate(backend, geometry, counters=counters)[0]
    print("Energy of input geometry: %s" % (str(geometry.fitness)))
    workspace = Workspace(geometry.nr_atoms)
    output = parser.get_str("output")
    written = 0
    for count in range(parser.get_int("nr_mutations")):
        result = operator.mutate(geometry, rng=rng, workspace=workspace, counters=counters)
        if result is None:
            print("Mutation %d: input discarded." % (count + 1))
            continue
        if result.fitness is None:
            result.fitness = evaluate(backend, result, counters=counters)[0]
        print("Mutation %d: energy %s" % (count + 1, str(result.fitness)))
        print_geometry(output, result, append=written > 0)
        written += 1
    print("Statistics: %s" % (str(counters)))
    return counters


def _main(input_file):
    # default config
    config = DEFAULT_CONFIG
    options = [o for o in config] + list(
        set([mo for mopts in MANDATORY_OPTIONS.values() for mo in mopts])
    )
    parser = read_config_file(input_file, defaults=config, nocase=True)
    # jobtypes have long and short names but both shall be treated the same so the
    # following is a mapping of the long and short forms to a unified form
    jobtype_dict = {"mutate": "mutate", "m": "mutate", "pack": "pack", "p": "pack"}
    try:
        jobtype = jobtype_dict[parser.get_str("jobtype").lower()]
    except KeyError as e:
        raise WrongJobtypeError(
            "Given short or long form does not match any known jobtype: %s" % (e)
        )
    parser.set("__DEFAULT__", "jobtype", jobtype)
    # check whether all mandatory options are present
    missing_options = []
    for opt in MANDATORY_OPTIONS[jobtype]:
        try:
            parser.get_str(opt)
        except NoOptionInConfigFileError:
            missing_options.append(opt)
    if len(missing_options) > 0:
        print(
            "ERROR: could not find the following mandatory options in the config file:",
            file=sys.stderr,
        )
        for o in missing_options:
            print(o, file=sys.stderr)
        raise NoOptionInConfigFileError("Incomplete input.")
    del missing_options
    unknown_options = parser.check_against(options)
    if len(unknown_options) > 0:
        print(
            "WARNING: the following are unknown lines in the config file:",
            file=sys.stderr,
        )
        for o in unknown_options:
            print(o, file=sys.stderr)
        print(file=sys.stderr)
    del unknown_options
    check_only = parser.get_boolean("config_check")
    if check_only:
        print("This is a check of the config file.")
    print("Running %s..." % (jobtype))
    run_main(parser, check_only=check_only)
    print("...finished %s\n" % (jobtype))
    if check_only:
        print("Config file seems fine.")


def entrypoint():
    if len(sys.argv) == 1:
        _print_example()
        print("\n\nHelp message:")
        _print_help()
    else:
        for arg in sys.argv[1:]:
            if arg == "--help":
                _print_help()
            elif arg == "--longhelp":
                _print_example()
            elif arg == "--argon-example":
                sample_script = os.path.join(get_data_dir(), "argon.cfg")
                geometry = os.path.join(get_data_dir(), "argon.xyz")
                print("Running example mutation using config file: {}".format(sample_script))
                print("Using geometry file: {}".format(geometry))
                _main(sample_script)
            else:
                _main(arg)


if __name__ == "__main__":
    entrypoint()
