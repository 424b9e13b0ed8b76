"""Find candidate positions for a unit that is to be relocated.

All functions in here temporarily move a unit of a geometry to trial
positions, check the geometry for collisions and return the list of all
collision-free trial positions (new COMs of the unit). The unit is restored
to its original position before returning.

Strategies:
  - bounding_box_grid: a regular grid spanning the COMs of all units. The
    cost is dominated by one full collision check per grid point, i.e.,
    O(points*atoms^2), and the number of points grows with the cube of the
    number of units.
  - partner_grid: a spherical grid around a partner unit, i.e., the least
    connected unit other than the one to relocate. This moves a unit next to
    another badly connected one.
  - surface_radial: positions right above the surface units, i.e., every
    surface unit's COM pushed outwards from the origin by 1.1 times the
    diameter of the unit to relocate
  - surface_triangulated: the centroids of all small triangles of surface
    units, each also pushed outwards if the centroid itself is not
    collision-free. This fills pockets in the surface.

Geometries are expected to be centered around the origin for the surface
strategies.
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
import itertools
import logging

logger = logging.getLogger(__name__)

import numpy

global MIN_DIFF_OLD_NEW_SQ
# candidates closer than this (squared, in Angstroms^2) to the old COM are
# rejected by the surface and partner strategies
MIN_DIFF_OLD_NEW_SQ = 1.0
global SURFACE_SHIFT
# shift outwards in units of the diameter of the unit to be placed
SURFACE_SHIFT = 1.1
global TRIANGLE_CUTOFF
# maximum edge length of surface triangles in units of the diameter
TRIANGLE_CUTOFF = 2.5
global PARTNER_GRID_HALF_LENGTH
# radius of the sphere around the partner unit in Angstroms
PARTNER_GRID_HALF_LENGTH = 5.0
global PARTNER_GRID_INCREMENT
# grid spacing around the partner unit in Angstroms
PARTNER_GRID_INCREMENT = 0.5


class SearchBox(object):
    """The region spanned by a grid search."""

    def __init__(self, begin, end, avg_spacing):
        self.begin = numpy.array(begin, dtype=float)
        self.end = numpy.array(end, dtype=float)
        self.avg_spacing = avg_spacing

    def pad(self, amount):
        self.begin -= amount
        self.end += amount

    def points_per_axis(self):
        """Number of grid points along x, y and z (at least 1 each)."""
        if self.avg_spacing <= 0.0:
            return numpy.zeros(3, dtype=int)
        extent = numpy.fabs(self.end - self.begin)
        # round half up
        counts = numpy.floor(extent / self.avg_spacing * 2.0 + 0.5).astype(int)
        return numpy.maximum(counts, 1)

    def points(self):
        """All grid points as numpy array of shape (M,3).

        Along every axis, the points start at the lower bound and are spaced
        by extent/count.
        """
        counts = self.points_per_axis()
        if numpy.any(counts == 0):
            return numpy.zeros((0, 3))
        axes = [
            self.begin[a] + numpy.arange(counts[a]) * (self.end[a] - self.begin[a]) / counts[a]
            for a in range(3)
        ]
        return numpy.array(list(itertools.product(*axes)), dtype=float).reshape((-1, 3))


def setup_grid(geometry, scale_factor=1.0, range_mod_factor=0.0):
    """Determine the grid search box of a geometry.

    If scale_factor differs from 1, all COMs of the geometry are scaled by
    that factor (this changes the geometry) to make room inside the cluster.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        scale_factor: (float) scale all COMs by this much
        range_mod_factor: (float) if positive, the box is extended on all
            sides by this much times the estimated average COM spacing

    Returns:
        a SearchBox object
    """
    coms = geometry.coms()
    if abs(scale_factor - 1.0) > 1.0e-5:
        coms = coms * scale_factor
        geometry.set_coms(coms)
    begin = numpy.amin(coms, axis=0)
    end = numpy.amax(coms, axis=0)
    cube_root = geometry.nr_units ** (1.0 / 3.0)
    avg_spacing = numpy.sum(end - begin) / (3.0 * cube_root)
    box = SearchBox(begin, end, avg_spacing)
    if range_mod_factor > 0.0:
        box.pad(range_mod_factor * avg_spacing)
    logger.debug(
        "Grid box from %s to %s, average spacing %.4f"
        % (str(box.begin), str(box.end), avg_spacing)
    )
    return box


def _is_collision_free(geometry, unit, point, engine, blow, info, counters):
    geometry.units[unit].set_com(point)
    if counters is not None:
        counters.collision_checks += 1
    return not engine.check(geometry, blow, info=info).has_collision


def bounding_box_grid(
    geometry,
    unit,
    engine,
    blow,
    scale_factor=1.0,
    range_mod_factor=0.0,
    info=None,
    counters=None,
):
    """Collision-free grid points in the box spanned by all COMs.

    Points not farther than the average COM spacing from the unit's old
    position are skipped. See setup_grid for the meaning of scale_factor
    (which changes the geometry) and range_mod_factor.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        unit: (int) index of the unit to relocate
        engine: (MutateAggregates.collision.CollisionEngine) collision engine
        blow: (float) blow factor for collision detection
        scale_factor: (float) see setup_grid
        range_mod_factor: (float) see setup_grid
        info: (MutateAggregates.collision.CollisionInfo) scratch space
        counters: (MutateAggregates.mutation.workspace.MutationCounters)
            statistics

    Returns:
        list of numpy arrays (candidate COMs)
    """
    box = setup_grid(geometry, scale_factor=scale_factor, range_mod_factor=range_mod_factor)
    old = numpy.copy(geometry.units[unit].com)
    min_dist_sq = box.avg_spacing * box.avg_spacing
    candidates = []
    try:
        for point in box.points():
            diff = point - old
            if numpy.dot(diff, diff) <= min_dist_sq:
                continue
            if _is_collision_free(geometry, unit, point, engine, blow, info, counters):
                candidates.append(numpy.copy(point))
    finally:
        geometry.units[unit].set_com(old)
    logger.debug("Grid search found %d collision-free points." % (len(candidates)))
    return candidates


def partner_grid(geometry, unit, partner, engine, blow, info=None, counters=None):
    """Collision-free positions within a sphere around a partner unit.

    The sphere has a radius of 5 Angstroms and is filled with a cubic grid
    with a spacing of 0.5 Angstroms centred at the partner's COM. Points
    closer than 1 Angstrom to the unit's old position are skipped.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        unit: (int) index of the unit to relocate
        partner: (int) index of the unit to place the other one next to
        engine: (MutateAggregates.collision.CollisionEngine) collision engine
        blow: (float) blow factor for collision detection
        info: (MutateAggregates.collision.CollisionInfo) scratch space
        counters: (MutateAggregates.mutation.workspace.MutationCounters)
            statistics

    Returns:
        list of numpy arrays (candidate COMs)
    """
    if partner == unit:
        raise ValueError("A unit cannot be its own partner.")
    old = numpy.copy(geometry.units[unit].com)
    center = numpy.copy(geometry.units[partner].com)
    half = PARTNER_GRID_HALF_LENGTH
    steps = numpy.arange(int(numpy.ceil(2.0 * half / PARTNER_GRID_INCREMENT)))
    offsets = steps * PARTNER_GRID_INCREMENT - half
    candidates = []
    try:
        for offset in itertools.product(offsets, offsets, offsets):
            offset = numpy.array(offset, dtype=float)
            if numpy.dot(offset, offset) > half * half:
                continue
            point = center + offset
            if not _far_from(point, old):
                continue
            if _is_collision_free(geometry, unit, point, engine, blow, info, counters):
                candidates.append(point)
    finally:
        geometry.units[unit].set_com(old)
    logger.debug("Partner grid search found %d points." % (len(candidates)))
    return candidates


def _push_outwards(point, shift):
    """Scale a point so that its distance from the origin grows by shift.

    Returns None for a point at the origin.
    """
    dist = numpy.linalg.norm(point)
    if dist == 0.0:
        return None
    return point * ((dist + shift) / dist)


def _far_from(point, old):
    diff = point - old
    return numpy.dot(diff, diff) > MIN_DIFF_OLD_NEW_SQ


def surface_radial(geometry, unit, surface, engine, blow, info=None, counters=None):
    """Collision-free positions right above surface units.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        unit: (int) index of the unit to relocate
        surface: (list of ints) indices of the surface units
        engine: (MutateAggregates.collision.CollisionEngine) collision engine
        blow: (float) blow factor for collision detection
        info: (MutateAggregates.collision.CollisionInfo) scratch space
        counters: (MutateAggregates.mutation.workspace.MutationCounters)
            statistics

    Returns:
        list of numpy arrays (candidate COMs)
    """
    old = numpy.copy(geometry.units[unit].com)
    shift = SURFACE_SHIFT * geometry.units[unit].diameter()
    candidates = []
    try:
        for s in surface:
            point = _push_outwards(geometry.units[s].com, shift)
            if point is None or not _far_from(point, old):
                continue
            if _is_collision_free(geometry, unit, point, engine, blow, info, counters):
                candidates.append(point)
    finally:
        geometry.units[unit].set_com(old)
    logger.debug("Radial surface search found %d points." % (len(candidates)))
    return candidates


def surface_triangulated(geometry, unit, surface, engine, blow, info=None, counters=None):
    """Collision-free positions in pockets between three surface units.

    Only triangles whose edges are not longer than 2.5 times the diameter of
    the unit to relocate are considered. The arguments are the same as for
    surface_radial.
    """
    old = numpy.copy(geometry.units[unit].com)
    diameter = geometry.units[unit].diameter()
    cutoff_sq = (TRIANGLE_CUTOFF * diameter) ** 2
    shift = SURFACE_SHIFT * diameter
    coms = geometry.coms()

    def small(a, b):
        diff = coms[a] - coms[b]
        return numpy.dot(diff, diff) <= cutoff_sq

    candidates = []
    try:
        for i, j, k in itertools.combinations(surface, 3):
            if not (small(i, j) and small(i, k) and small(j, k)):
                continue
            center = (coms[i] + coms[j] + coms[k]) / 3.0
            if _far_from(center, old) and _is_collision_free(
                geometry, unit, center, engine, blow, info, counters
            ):
                candidates.append(center)
                continue
            point = _push_outwards(center, shift)
            if point is None or not _far_from(point, old):
                continue
            if _is_collision_free(geometry, unit, point, engine, blow, info, counters):
                candidates.append(point)
    finally:
        geometry.units[unit].set_com(old)
    logger.debug("Triangulated surface search found %d points." % (len(candidates)))
    return candidates


def surface_units(geometry, unit, detector):
    """Surface units of a geometry when ignoring one unit.

    Args:
        geometry: (MutateAggregates.aggregate.Geometry) the cluster
        unit: (int) index of the unit to ignore
        detector: (MutateAggregates.mutation.surface.SurfaceDetectionEngine)

    Returns:
        list of unit indices with respect to the full geometry
    """
    rest = [u for u in range(geometry.nr_units) if u != unit]
    if len(rest) == 0:
        return []
    offsets = geometry.offsets()
    atoms = [a for u in rest for a in range(offsets[u], offsets[u + 1])]
    detected = detector.detect(
        geometry.cartesian()[atoms], [geometry.units[u].nr_atoms for u in rest]
    )
    return [rest[s] for s in detected]
