"""Collision-validated mutation operators for cluster geometries.

Two operators are provided:
  - GeometryMutation: relocate the least connected or the energetically worst
    unit(s) to the best collision-free position found on a grid or at the
    cluster's surface
  - PackingMutation: pack all units anew in the x-y plane

Both expose mutate(geometry, rng, workspace, counters), description() and
copy(). Use mutation_from_config to create an operator from a config file.
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

from .. import ConfigurationError
from ..aggregate.elements import RadiusTable
from ..collision import collision_engine
from .workspace import MutationCounters, Workspace
from .connectivity import ConnectivityRanking, rank_units, contact_counts
from .surface import surface_detection
from .directed import GeometryMutation, find_best_point, worst_energy_unit
from .packing import PackingMutation, packing_order

global JOBTYPES
JOBTYPES = ("mutate", "pack")


def _radii_from_config(parser):
    uniform = parser.get_str("uniform_radius")
    if uniform.lower() in ("", "none"):
        return None
    return RadiusTable.uniform(float(uniform))


def mutation_from_config(parser, backend=None, optimizer=None):
    """Create a mutation operator from a config file.

    Args:
        parser: (MutateAggregates.collection.read.SectionlessConfigParser)
            the parsed config file. See "mutagg --longhelp" for the keywords.
        backend: (MutateAggregates.energy.FitnessBackend) needed for the job
            type "mutate"
        optimizer: (MutateAggregates.energy.LocalOptimizer) optional

    Returns:
        a GeometryMutation or a PackingMutation

    Raises:
        MutateAggregates.ConfigurationError.
    """
    jobtype = parser.get_str("jobtype").lower()
    try:
        radii = _radii_from_config(parser)
        engine = collision_engine(parser.get_str("collision_engine"), radii=radii)
        if jobtype == "mutate":
            return GeometryMutation(
                backend,
                selection=parser.get_str("selection").lower(),
                search=parser.get_str("search").lower(),
                optimizer=optimizer,
                engine=engine,
                surface=surface_detection(parser.get_str("surface_detection")),
                blow_coll=parser.get_float("blow_coll"),
                blow_bonds=parser.get_float("blow_bonds"),
                blow_diss=parser.get_float("blow_diss"),
                nr_moves=parser.get_int("nr_moves"),
                mark_unmovable=parser.get_boolean("mark_unmovable"),
                fully_relaxed=parser.get_boolean("fully_relaxed"),
                optimize_first=parser.get_boolean("optimize_first"),
                collision_check_first=parser.get_boolean("collision_check_first"),
                check_dissociation=parser.get_boolean("check_dissociation"),
                scale_factor=parser.get_float("scale_factor"),
                range_mod_factor=parser.get_float("range_mod_factor"),
            )
        elif jobtype == "pack":
            return PackingMutation(
                order=parser.get_str("packing_order").lower(),
                engine=engine,
                blow_coll=parser.get_float("blow_coll"),
                blow_diss=parser.get_float("blow_diss"),
                attempts_before_inflation=parser.get_int("attempts_before_inflation"),
                tries_before_reset=parser.get_int("tries_before_reset"),
                max_resets=parser.get_int("max_resets"),
                box_increment=parser.get_float("box_increment"),
            )
    except (ValueError, TypeError) as e:
        raise ConfigurationError("Invalid configuration: %s" % (e))
    raise ConfigurationError(
        "Unknown jobtype '%s'. I know: %s" % (jobtype, ", ".join(JOBTYPES))
    )
