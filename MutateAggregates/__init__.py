"""The top-level module MutateAggregates.

Please refer to the submodules' documentations for more details.

Submodules:
  - aggregate:
      describe molecular clusters as ordered collections of rigid (or
      semi-flexible) molecular units with bonds and an optional environment
  - collision:
      detect atomic overlaps (collisions) and fragmented clusters
      (dissociation)
  - mutation:
      collision-validated structural variation operators for genetic
      algorithm based global optimization of cluster geometries
  - energy:
      interfaces to energy backends and local optimizers
  - collection:
      read and write geometry and config files
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
import logging

logfile = os.getenv("MUAGLOGFILE", None)
loglevel = getattr(logging, os.getenv("MUAGLOGLEVEL", "WARNING").upper())
logging.basicConfig(filename=logfile, level=loglevel)
logger = logging.getLogger(__name__)
if logfile is None:
    logger.info(
        "Set the environment variable MUAGLOGFILE to log errors to a file of that name."
    )


class MutateAggregatesError(Exception):
    """Base error class"""

    pass


class ConfigurationError(MutateAggregatesError):
    """Raised if a configuration value is invalid."""

    pass


class BackendError(MutateAggregatesError):
    """Raised if an energy backend or a local optimization failed."""

    pass


class MissingModuleError(MutateAggregatesError):
    """Raised if a required module could not be imported."""

    pass


class FiletypeException(MutateAggregatesError):
    """Raised if an auto-determined file type is unknown."""

    pass


def get_data_dir():
    """Get the path to the data directory of this package"""
    package_dir = os.path.dirname(os.path.realpath(__file__))
    data_dir = os.path.join(package_dir, "data")
    return data_dir


from . import aggregate
from . import collision
from . import energy
from . import mutation
from . import collection
