import numpy
import pytest

from MutateAggregates.collision import pairwise_distances
from MutateAggregates.collision.dissociation import check_for_dissociation

from conftest import argon


def _dissociated(geometry, blow, radii):
    return check_for_dissociation(
        pairwise_distances(geometry.cartesian()),
        geometry.atom_types,
        geometry.atom_numbers,
        blow,
        radii=radii,
    )


def test_connected_chain(argon_chain, unit_radii):
    assert not _dissociated(argon_chain, 1.0, unit_radii)


def test_gap_dissociates(unit_radii):
    geometry = argon([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
    assert _dissociated(geometry, 1.0, unit_radii)
    # a larger blow factor bridges the gap
    assert not _dissociated(geometry, 4.0, unit_radii)


def test_connection_is_transitive(unit_radii):
    # 0 and 3 are far apart but connected via 1 and 2
    geometry = argon([[0.0, 0, 0], [1.9, 0, 0], [3.8, 0, 0], [5.7, 0, 0]])
    assert not _dissociated(geometry, 1.0, unit_radii)


def test_single_atom_never_dissociated(unit_radii):
    assert not _dissociated(argon([[0.0, 0.0, 0.0]]), 1.0, unit_radii)


def test_invalid_blow(argon_chain, unit_radii):
    with pytest.raises(ValueError):
        _dissociated(argon_chain, -1.0, unit_radii)
