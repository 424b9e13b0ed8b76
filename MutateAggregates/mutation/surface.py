"""Detect which units of a cluster are on its surface.

Two methods are supported:
  - "longlat": for every direction on a longitude/latitude grid, the unit
    owning the atom that sticks out furthest in that direction is a surface
    unit
  - "radial": every unit whose centroid is at least a given fraction of the
    largest centroid distance away from the cluster's centroid is a surface
    unit
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


def _owners(atoms_per_unit):
    return numpy.repeat(numpy.arange(len(atoms_per_unit)), atoms_per_unit)


class SurfaceDetectionEngine(object):
    """Base class of all surface detection methods."""

    name = None

    def detect(self, coordinates, atoms_per_unit):
        """Find the surface units.

        Args:
            coordinates: (numpy array, shape (N,3)) Cartesian coordinates
            atoms_per_unit: (list of ints) partitioning of atoms into units

        Returns:
            sorted list of the indices of all surface units
        """
        raise NotImplementedError("Derived classes have to implement this.")

    def copy(self):
        return copy.deepcopy(self)


class LongLatSurfaceDetection(SurfaceDetectionEngine):
    name = "longlat"

    def __init__(self, nr_latitudes=6, nr_longitudes=12):
        if nr_latitudes < 1 or nr_longitudes < 1:
            raise ValueError("Need at least one latitude and one longitude.")
        self.nr_latitudes = nr_latitudes
        self.nr_longitudes = nr_longitudes

    def directions(self):
        """Unit vectors on a longitude/latitude grid including both poles."""
        dirs = [(0.0, 0.0, 1.0), (0.0, 0.0, -1.0)]
        for i in range(1, self.nr_latitudes + 1):
            theta = numpy.pi * i / (self.nr_latitudes + 1)
            for j in range(self.nr_longitudes):
                phi = 2.0 * numpy.pi * j / self.nr_longitudes
                dirs.append(
                    (
                        numpy.sin(theta) * numpy.cos(phi),
                        numpy.sin(theta) * numpy.sin(phi),
                        numpy.cos(theta),
                    )
                )
        return numpy.array(dirs)

    def detect(self, coordinates, atoms_per_unit):
        coordinates = numpy.asarray(coordinates, dtype=float)
        if len(atoms_per_unit) <= 1:
            return list(range(len(atoms_per_unit)))
        owner = _owners(atoms_per_unit)
        centered = coordinates - numpy.mean(coordinates, axis=0)
        projections = numpy.dot(centered, self.directions().T)
        outermost = numpy.argmax(projections, axis=0)
        return sorted(set(int(owner[a]) for a in outermost))


class RadialSurfaceDetection(SurfaceDetectionEngine):
    name = "radial"

    def __init__(self, fraction=0.7):
        if not 0.0 <= fraction <= 1.0:
            raise ValueError("Fraction for radial surface detection must be in [0,1].")
        self.fraction = fraction

    def detect(self, coordinates, atoms_per_unit):
        coordinates = numpy.asarray(coordinates, dtype=float)
        if len(atoms_per_unit) <= 1:
            return list(range(len(atoms_per_unit)))
        owner = _owners(atoms_per_unit)
        centroids = numpy.array(
            [numpy.mean(coordinates[owner == u], axis=0) for u in range(len(atoms_per_unit))]
        )
        dist = numpy.linalg.norm(centroids - numpy.mean(centroids, axis=0), axis=1)
        threshold = self.fraction * numpy.amax(dist)
        return [int(u) for u in numpy.nonzero(dist >= threshold)[0]]


global SURFACE_DETECTIONS
SURFACE_DETECTIONS = {
    LongLatSurfaceDetection.name: LongLatSurfaceDetection,
    RadialSurfaceDetection.name: RadialSurfaceDetection,
}


def surface_detection(name="longlat"):
    """Create a surface detection engine by name ("longlat" or "radial")."""
    try:
        return SURFACE_DETECTIONS[name.lower()]()
    except KeyError:
        raise ValueError(
            "Unknown surface detection '%s'. I know: %s"
            % (name, ", ".join(sorted(SURFACE_DETECTIONS)))
        )
