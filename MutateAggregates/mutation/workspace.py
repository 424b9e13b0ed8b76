"""Caller-owned state of mutation operators.

Mutation operators do not keep any state between calls. Scratch memory is
provided via a Workspace and statistics are collected in a MutationCounters
object, both of which belong to the caller. Give every worker its own
instances.
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
from ..collision import CollisionInfo


class MutationCounters(object):
    """Statistics about mutation calls."""

    FIELDS = (
        "mutations",
        "failed_mutations",
        "discarded",
        "energy_evaluations",
        "local_optimizations",
        "collision_checks",
        "candidates",
        "packing_inflations",
        "packing_resets",
        "packing_failures",
    )

    def __init__(self):
        self.reset()

    def reset(self):
        for field in self.FIELDS:
            setattr(self, field, 0)

    def as_dict(self):
        return {field: getattr(self, field) for field in self.FIELDS}

    def __repr__(self):
        return "MutationCounters(%s)" % (
            ", ".join("%s=%d" % (k, v) for k, v in sorted(self.as_dict().items()))
        )


class Workspace(object):
    """Scratch memory reused across mutation calls of one worker."""

    def __init__(self, capacity=0):
        self.collision_info = CollisionInfo(capacity)
