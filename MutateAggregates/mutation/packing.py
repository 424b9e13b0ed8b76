"""Pack all units of a cluster anew in the x-y plane.

The units are placed one after the other in a given order. The first unit
is put at the origin. Every further unit is put at random positions (with
random orientations) in the x-y plane inside a box until the growing
assembly neither has collisions nor is dissociated. The box starts out at
the size of the input cluster plus a random increment and grows whenever
too many consecutive trial positions caused collisions. If too many trials
failed in total, the box is determined anew from the units already placed.
After too many such resets, the unit is left where it is and packing goes on
with the next unit, so the result is not guaranteed to be valid.

Placing big units first generally gives denser packings ("bysize" order).
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

from ..aggregate import random_eulers, molecular_sizes
from ..collision import PairwiseCollisionEngine, pairwise_distances
from ..collision.dissociation import check_for_dissociation
from .workspace import MutationCounters, Workspace

global ORDERS
ORDERS = ("ascending", "random", "bysize")

global ATTEMPTS_BEFORE_INFLATION
# consecutive collisions before the box is inflated
ATTEMPTS_BEFORE_INFLATION = 500
global BOX_INCREMENT
# maximum random increment of the box per axis in Angstroms (7 bohr)
BOX_INCREMENT = 3.704
global TRIES_BEFORE_RESET
# failed trials (collisions or dissociations) before the box is reset
TRIES_BEFORE_RESET = 10000
global MAX_RESETS
# resets before giving up on a unit
MAX_RESETS = 5
global MAX_ENVIRONMENT_TRIES
# random placements of the environment before the last one is accepted
MAX_ENVIRONMENT_TRIES = 1000


def packing_order(geometry, order, rng):
    """The order in which units are packed.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        order: (string) "ascending" (by index), "random" or "bysize"
            (descending number of atoms, ties by index)
        rng: (numpy.random.Generator) used for the random order

    Returns:
        list of unit indices
    """
    if order == "ascending":
        return list(range(geometry.nr_units))
    elif order == "random":
        return [int(u) for u in rng.permutation(geometry.nr_units)]
    elif order == "bysize":
        sizes = molecular_sizes(geometry)
        return sorted(range(geometry.nr_units), key=lambda u: -sizes[u])
    raise ValueError("Unknown packing order '%s'. I know: %s" % (order, ", ".join(ORDERS)))


def _box_size(coordinates):
    """Largest absolute x and y values of some coordinates."""
    if len(coordinates) == 0:
        return numpy.zeros(2)
    return numpy.amax(numpy.fabs(coordinates[:, :2]), axis=0)


class PackingMutation(object):
    """Incremental random packing of all units in the x-y plane."""

    def __init__(
        self,
        order="bysize",
        engine=None,
        radii=None,
        blow_coll=1.0,
        blow_diss=3.0,
        attempts_before_inflation=ATTEMPTS_BEFORE_INFLATION,
        tries_before_reset=TRIES_BEFORE_RESET,
        max_resets=MAX_RESETS,
        box_increment=BOX_INCREMENT,
        initial_box=None,
        max_environment_tries=MAX_ENVIRONMENT_TRIES,
    ):
        """Constructor.

        Args:
            order: (string) "ascending", "random" or "bysize"
            engine: (MutateAggregates.collision.CollisionEngine) defaults
                to a PairwiseCollisionEngine using radii
            radii: (RadiusTable) radii for dissociation detection and the
                environment, defaults to those of the engine
            blow_coll: (float) blow factor for collision detection
            blow_diss: (float) blow factor for dissociation detection
            attempts_before_inflation: (int) see module documentation
            tries_before_reset: (int) see module documentation
            max_resets: (int) see module documentation
            box_increment: (float) maximum random increment of the box
            initial_box: (float) if given, the box starts with this half
                edge length instead of being determined from the input
            max_environment_tries: (int) random placements of a bound
                environment

        Raises:
            ValueError.
        """
        if order not in ORDERS:
            raise ValueError(
                "Unknown packing order '%s'. I know: %s" % (order, ", ".join(ORDERS))
            )
        if not blow_coll > 0.0 or not blow_diss > 0.0:
            raise ValueError("Blow factors must be positive.")
        for name, value in (
            ("attempts_before_inflation", attempts_before_inflation),
            ("tries_before_reset", tries_before_reset),
            ("max_resets", max_resets),
            ("max_environment_tries", max_environment_tries),
        ):
            if value < 1:
                raise ValueError("%s must be at least 1 but is %d." % (name, value))
        if box_increment < 0.0:
            raise ValueError("box_increment must not be negative.")
        if initial_box is not None and initial_box < 0.0:
            raise ValueError("initial_box must not be negative.")
        self.order = order
        self.engine = engine if engine is not None else PairwiseCollisionEngine(radii=radii)
        self.radii = radii if radii is not None else self.engine.radii
        self.blow_coll = blow_coll
        self.blow_diss = blow_diss
        self.attempts_before_inflation = attempts_before_inflation
        self.tries_before_reset = tries_before_reset
        self.max_resets = max_resets
        self.box_increment = box_increment
        self.initial_box = initial_box
        self.max_environment_tries = max_environment_tries

    def description(self):
        return "\n".join(
            [
                "2D PACKING MUTATION",
                "\torder: %s" % (self.order),
                "\tcollision engine: %s" % (self.engine.name),
                "\tblow factors (collision/dissociation): %g/%g"
                % (self.blow_coll, self.blow_diss),
                "\tbox increment: %g" % (self.box_increment),
            ]
        )

    def copy(self):
        return copy.deepcopy(self)

    def _valid(self, assembly, info, counters):
        counters.collision_checks += 1
        self.engine.check(assembly, self.blow_coll, info=info)
        if info.has_collision:
            return False, True
        if info.complete:
            distances = info.distances
        else:
            distances = pairwise_distances(assembly.cartesian())
        dissociated = check_for_dissociation(
            distances,
            assembly.atom_types,
            assembly.atom_numbers,
            self.blow_diss,
            radii=self.radii,
        )
        return not dissociated, False

    def _place(self, work, placed, unit, box, rng, info, counters):
        """Find a position for one unit. Returns the (possibly grown) box."""
        members = sorted(placed + [unit])
        assembly = work.subset(members)
        trial = assembly.units[members.index(unit)]
        atoms = assembly.atom_indices(members.index(unit))
        failed_attempts = 0
        failed_total = 0
        resets = 0
        success = False
        while True:
            if failed_total >= self.tries_before_reset:
                if resets >= self.max_resets:
                    logger.warning(
                        "Box was reset %d times, leaving unit %d of geometry %s where it is."
                        % (resets, unit, str(work.ident))
                    )
                    counters.packing_failures += 1
                    break
                resets += 1
                counters.packing_resets += 1
                logger.debug("Too many failed trials for unit %d, resetting box." % (unit))
                coordinates = assembly.cartesian()
                coordinates[atoms] = 0.0
                box = _box_size(coordinates) + rng.random(2) * self.box_increment
                failed_attempts = 0
                failed_total = 0

            trial.set_euler(random_eulers(rng))
            xy = rng.random(2) * box
            xy = numpy.where(rng.random(2) < 0.5, -xy, xy)
            trial.set_com((xy[0], xy[1], 0.0))

            valid, collided = self._valid(assembly, info, counters)
            if valid:
                success = True
                break
            failed_total += 1
            if collided:
                failed_attempts += 1
            if failed_attempts >= self.attempts_before_inflation:
                box = box + rng.random(2) * self.box_increment
                counters.packing_inflations += 1
                failed_attempts = 0

        if success:
            logger.debug("Placed unit %d at %s." % (unit, str(trial.com)))
        work.units[unit].set_com(trial.com)
        work.units[unit].set_euler(trial.euler)
        return box

    def _fit_environment(self, work, rng):
        environment = work.environment
        for attempt in range(self.max_environment_tries):
            environment.reinitialize(work, rng)
            if environment.fits(work, self.blow_coll, radii=self.radii):
                return
        logger.warning(
            "Environment does not fit geometry %s after %d tries, accepting it anyway."
            % (str(work.ident), self.max_environment_tries)
        )

    def mutate(self, geometry, rng=None, workspace=None, counters=None):
        """Pack the units of a geometry anew.

        Args:
            geometry: (MutateAggregates.aggregate.Geometry) will not be changed
            rng: (numpy.random.Generator) source of randomness, an unseeded
                one is used if not given
            workspace: (MutateAggregates.mutation.workspace.Workspace) scratch
                space, a new one is used if not given
            counters: (MutateAggregates.mutation.workspace.MutationCounters)
                statistics

        Returns:
            the packed copy of geometry
        """
        if rng is None:
            rng = numpy.random.default_rng()
        if workspace is None:
            workspace = Workspace(geometry.nr_atoms)
        if counters is None:
            counters = MutationCounters()

        work = geometry.copy()
        work.fitness = None
        order = packing_order(work, self.order, rng)
        logger.debug("Packing order: %s" % (str(order)))

        first = order[0]
        work.units[first].set_com((0.0, 0.0, 0.0))
        work.units[first].set_euler(random_eulers(rng))

        if self.initial_box is not None:
            box = numpy.array([self.initial_box, self.initial_box], dtype=float)
        else:
            box = _box_size(geometry.cartesian()) + rng.random(2) * self.box_increment

        placed = [first]
        for unit in order[1:]:
            box = self._place(
                work, placed, unit, box, rng, workspace.collision_info, counters
            )
            placed.append(unit)

        if work.environment is not None:
            self._fit_environment(work, rng)
        counters.mutations += 1
        return work
