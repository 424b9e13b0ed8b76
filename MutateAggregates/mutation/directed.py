"""Directed mutations: relocate badly placed units to the best free spot.

A directed mutation repeats the following steps for a configurable number of
units:

  1. select the unit to relocate, either the least connected one or the one
     with the highest energy contribution ("worst energy")
  2. find collision-free candidate positions for that unit, either on a
     grid, next to a badly connected partner unit or at the cluster's surface
  3. optionally reject candidates that make the cluster dissociate or that
     collide with the environment
  4. compute the energy of the cluster for every remaining candidate and
     move the unit to the candidate with the lowest energy

If no candidate at all is found, an unmutated copy of the input is returned.
The only exception is the optional collision check of the (pre-optimized)
input: if that fails, None is returned to signal that the input is to be
discarded.
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

from ..collision import PairwiseCollisionEngine, pairwise_distances
from ..collision.dissociation import check_for_dissociation
from ..energy import evaluate
from .connectivity import rank_units
from .placement import (
    bounding_box_grid,
    partner_grid,
    surface_radial,
    surface_triangulated,
    surface_units,
)
from .surface import LongLatSurfaceDetection
from .workspace import MutationCounters, Workspace

global SELECTIONS
SELECTIONS = ("leastconnected", "worstenergy")
global SEARCHES
SEARCHES = ("grid", "surface", "triangulated", "partner")


def worst_energy_unit(parts, exclude=()):
    """Index of the unit with the highest energy contribution.

    The first unit wins in case of ties. Returns None if all units are
    excluded.
    """
    index = None
    for unit, value in enumerate(parts):
        if unit in exclude:
            continue
        if index is None or value > parts[index]:
            index = unit
    return index


def find_best_point(backend, candidates, geometry, unit, counters=None):
    """Score every candidate position of a unit and pick the best.

    The first candidate with the lowest energy wins. The unit is restored to
    its original position afterwards.

    Args:
        backend: (MutateAggregates.energy.FitnessBackend) energy backend
        candidates: (list of array-likes) candidate COMs, must not be empty
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        unit: (int) index of the unit to relocate
        counters: (MutateAggregates.mutation.workspace.MutationCounters)
            statistics

    Returns:
        tuple of the lowest energy and the corresponding candidate
    """
    if len(candidates) == 0:
        raise ValueError("Need at least one candidate position.")
    old = numpy.copy(geometry.units[unit].com)
    best_energy = numpy.inf
    best_point = None
    try:
        for point in candidates:
            geometry.units[unit].set_com(point)
            energy = evaluate(backend, geometry, counters=counters)[0]
            logger.debug("Candidate %s has energy %s" % (str(point), str(energy)))
            if energy < best_energy:
                best_energy = energy
                best_point = numpy.array(point, dtype=float)
    finally:
        geometry.units[unit].set_com(old)
    return best_energy, best_point


class GeometryMutation(object):
    """Collision-validated directed mutation of cluster geometries."""

    def __init__(
        self,
        backend,
        selection="leastconnected",
        search="grid",
        optimizer=None,
        engine=None,
        surface=None,
        radii=None,
        blow_coll=1.0,
        blow_bonds=1.8,
        blow_diss=3.0,
        nr_moves=1,
        mark_unmovable=True,
        fully_relaxed=False,
        optimize_first=False,
        collision_check_first=False,
        check_dissociation=False,
        scale_factor=1.0,
        range_mod_factor=0.5,
    ):
        """Constructor.

        Args:
            backend: (MutateAggregates.energy.FitnessBackend) scores
                candidates and provides per-unit energies
            selection: (string) "leastconnected" or "worstenergy"
            search: (string) "grid", "surface", "triangulated" or "partner"
            optimizer: (MutateAggregates.energy.LocalOptimizer) needed if
                fully_relaxed or optimize_first are set
            engine: (MutateAggregates.collision.CollisionEngine) defaults
                to a PairwiseCollisionEngine using radii
            surface: (MutateAggregates.mutation.surface.SurfaceDetectionEngine)
                used by the surface searches, defaults to "longlat"
            radii: (RadiusTable) radii used for bond and dissociation
                detection, defaults to those of the engine
            blow_coll: (float) blow factor for collision detection
            blow_bonds: (float) blow factor for the connectivity analysis
            blow_diss: (float) blow factor for dissociation detection
            nr_moves: (int) how many units to relocate
            mark_unmovable: (bool) never select a unit twice in one call
            fully_relaxed: (bool) locally optimize before every relocation
            optimize_first: (bool) locally optimize the input once
            collision_check_first: (bool) return None if the (optimized)
                input has collisions
            check_dissociation: (bool) reject candidates that cause the
                cluster to dissociate
            scale_factor: (float) grid search only, scale all COMs by this
                once before the first unit is relocated
            range_mod_factor: (float) grid search only, extend the grid by
                this much times the average COM spacing

        Raises:
            ValueError, TypeError.
        """
        if backend is None:
            raise TypeError("A directed mutation needs an energy backend.")
        if selection not in SELECTIONS:
            raise ValueError(
                "Unknown selection '%s'. I know: %s" % (selection, ", ".join(SELECTIONS))
            )
        if search not in SEARCHES:
            raise ValueError(
                "Unknown search '%s'. I know: %s" % (search, ", ".join(SEARCHES))
            )
        for name, value in (
            ("blow_coll", blow_coll),
            ("blow_bonds", blow_bonds),
            ("blow_diss", blow_diss),
            ("scale_factor", scale_factor),
        ):
            if not value > 0.0:
                raise ValueError("%s must be positive but is %s." % (name, str(value)))
        if range_mod_factor < 0.0:
            raise ValueError("range_mod_factor must not be negative.")
        if nr_moves < 1:
            raise ValueError("Need to move at least one unit.")
        if (fully_relaxed or optimize_first) and optimizer is None:
            raise TypeError("Local optimizations requested but no optimizer given.")
        self.backend = backend
        self.selection = selection
        self.search = search
        self.optimizer = optimizer
        self.engine = engine if engine is not None else PairwiseCollisionEngine(radii=radii)
        self.surface = surface if surface is not None else LongLatSurfaceDetection()
        self.radii = radii if radii is not None else self.engine.radii
        self.blow_coll = blow_coll
        self.blow_bonds = blow_bonds
        self.blow_diss = blow_diss
        self.nr_moves = nr_moves
        self.mark_unmovable = mark_unmovable
        self.fully_relaxed = fully_relaxed
        self.optimize_first = optimize_first
        self.collision_check_first = collision_check_first
        self.check_dissociation = check_dissociation
        self.scale_factor = scale_factor
        self.range_mod_factor = range_mod_factor

    def description(self):
        """Human-readable description of the configuration."""
        lines = [
            "DIRECTED GEOMETRY MUTATION",
            "\tselection: %s" % (self.selection),
            "\tsearch: %s" % (self.search),
            "\tbackend: %s" % (self.backend.description()),
            "\tcollision engine: %s" % (self.engine.name),
            "\tblow factors (collision/bonds/dissociation): %g/%g/%g"
            % (self.blow_coll, self.blow_bonds, self.blow_diss),
            "\tunits to move: %d" % (self.nr_moves),
            "\tmark moved units unmovable: %s" % (str(self.mark_unmovable)),
            "\tfully relaxed: %s" % (str(self.fully_relaxed)),
            "\toptimize first: %s" % (str(self.optimize_first)),
            "\tcollision check first: %s" % (str(self.collision_check_first)),
            "\tcheck dissociation: %s" % (str(self.check_dissociation)),
        ]
        if self.search == "grid":
            lines.append("\tscale factor: %g" % (self.scale_factor))
            lines.append("\trange mod factor: %g" % (self.range_mod_factor))
        elif self.search in ("surface", "triangulated"):
            lines.append("\tsurface detection: %s" % (self.surface.name))
        return "\n".join(lines)

    def copy(self):
        return copy.deepcopy(self)

    def _optimize(self, geometry, counters):
        counters.local_optimizations += 1
        return self.optimizer.optimize(geometry)

    def _select(self, geometry, moved, counters):
        exclude = moved if self.mark_unmovable else ()
        if self.selection == "worstenergy":
            parts = evaluate(self.backend, geometry, counters=counters)[1]
            return worst_energy_unit(parts, exclude=exclude)
        ranking = rank_units(geometry, self.blow_bonds, radii=self.radii)
        return ranking.least_connected(exclude=exclude)

    def _candidates(self, geometry, unit, info, counters, scale_factor=1.0):
        if self.search == "grid":
            return bounding_box_grid(
                geometry,
                unit,
                self.engine,
                self.blow_coll,
                scale_factor=scale_factor,
                range_mod_factor=self.range_mod_factor,
                info=info,
                counters=counters,
            )
        if self.search == "partner":
            ranking = rank_units(geometry, self.blow_bonds, radii=self.radii)
            partner = ranking.move_partner(unit)
            if partner is None:
                return []
            return partner_grid(
                geometry, unit, partner, self.engine, self.blow_coll, info=info, counters=counters
            )
        surface = surface_units(geometry, unit, self.surface)
        if self.search == "surface":
            search = surface_radial
        else:
            search = surface_triangulated
        return search(
            geometry, unit, surface, self.engine, self.blow_coll, info=info, counters=counters
        )

    def _acceptable(self, geometry, unit, point):
        """Check constraints besides collisions for a candidate."""
        old = numpy.copy(geometry.units[unit].com)
        geometry.units[unit].set_com(point)
        try:
            if self.check_dissociation:
                if check_for_dissociation(
                    pairwise_distances(geometry.cartesian()),
                    geometry.atom_types,
                    geometry.atom_numbers,
                    self.blow_diss,
                    radii=self.radii,
                ):
                    return False
            if geometry.environment is not None:
                if not geometry.environment.fits(geometry, self.blow_coll, radii=self.radii):
                    return False
        finally:
            geometry.units[unit].set_com(old)
        return True

    def _filter(self, geometry, unit, candidates):
        if not self.check_dissociation and geometry.environment is None:
            return candidates
        return [p for p in candidates if self._acceptable(geometry, unit, p)]

    def mutate(self, geometry, rng=None, workspace=None, counters=None):
        """Relocate units of a geometry.

        Args:
            geometry: (MutateAggregates.aggregate.Geometry) will not be changed
            rng: (numpy.random.Generator) unused, this mutation is
                deterministic
            workspace: (MutateAggregates.mutation.workspace.Workspace) scratch
                space, a new one is used if not given
            counters: (MutateAggregates.mutation.workspace.MutationCounters)
                statistics

        Returns:
            the mutated copy of geometry, an unmutated copy if no unit could be
            relocated or None if collision_check_first is set and the
            (optimized) input has collisions
        """
        if workspace is None:
            workspace = Workspace(geometry.nr_atoms)
        if counters is None:
            counters = MutationCounters()
        info = workspace.collision_info

        work = geometry.copy()
        if self.optimize_first:
            work = self._optimize(work, counters)
        if self.collision_check_first:
            counters.collision_checks += 1
            if self.engine.check(work, self.blow_coll, info=info).has_collision:
                logger.info("Input geometry %s has collisions, discarding it." % (str(work.ident)))
                counters.discarded += 1
                return None

        energy_before = evaluate(self.backend, work, counters=counters)[0]
        current_energy = energy_before
        moved = []
        committed = False
        for move in range(self.nr_moves):
            if self.fully_relaxed:
                work = self._optimize(work, counters)
                current_energy = evaluate(self.backend, work, counters=counters)[0]
            unit = self._select(work, moved, counters)
            if unit is None:
                logger.debug("No unit left to move.")
                break
            moved.append(unit)
            # the cluster is scaled only once, right before the first grid search
            scale_factor = self.scale_factor if move == 0 else 1.0
            candidates = self._candidates(work, unit, info, counters, scale_factor)
            candidates = self._filter(work, unit, candidates)
            counters.candidates += len(candidates)
            logger.debug(
                "Move %d: unit %d has %d candidate positions." % (move, unit, len(candidates))
            )
            if len(candidates) == 0:
                continue
            best_energy, best_point = find_best_point(
                self.backend, candidates, work, unit, counters=counters
            )
            work.units[unit].set_com(best_point)
            current_energy = best_energy
            committed = True

        if not committed:
            logger.debug("No new position found, returning unmutated geometry.")
            counters.failed_mutations += 1
            return geometry.copy()

        if current_energy < energy_before:
            logger.info(
                "Directed mutation improved energy from %s to %s."
                % (str(energy_before), str(current_energy))
            )
        else:
            logger.info(
                "Best point of directed mutation actually worse than initial (%s vs %s)."
                % (str(current_energy), str(energy_before))
            )
        work.fitness = current_energy
        counters.mutations += 1
        return work
