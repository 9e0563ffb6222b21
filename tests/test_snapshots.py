# -*- coding: utf-8 -*-
"""
Snapshot Extraction Tests.

Tests for neighborhood clipping, snapshot ensembles, space-time
stacking, sample covariance and channel equalization.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-13

Modified
--------
2026-03-13
"""

import numpy as np
import pytest

from icearray.exceptions import ConfigError
from icearray.snapshots import (
    clip_range,
    equalize_channels,
    extract_snapshots,
    sample_covariance,
    space_time_snapshots,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def cube():
    rng = np.random.default_rng(7)
    shape = (10, 8, 2, 3, 4)
    return rng.standard_normal(shape) + 1j * rng.standard_normal(shape)


BIN_RNG = np.arange(-1, 2)
LINE_RNG = np.arange(-2, 3)


class TestClipRange:
    """Test neighborhood clipping at the cube edges."""

    def test_interior_unchanged(self):
        np.testing.assert_array_equal(clip_range(5, LINE_RNG, 10), LINE_RNG)

    def test_leading_edge(self):
        np.testing.assert_array_equal(clip_range(0, LINE_RNG, 10), [0, 1, 2])

    def test_trailing_edge(self):
        np.testing.assert_array_equal(clip_range(9, LINE_RNG, 10), [-2, -1, 0])


class TestExtractSnapshots:
    """Test the flattened snapshot ensemble."""

    def test_interior_shape(self, cube):
        X = extract_snapshots(cube, 4, 4, BIN_RNG, LINE_RNG)
        assert X.shape == (4, 3 * 5 * 2 * 3)

    def test_corner_shape(self, cube):
        X = extract_snapshots(cube, 0, 0, BIN_RNG, LINE_RNG)
        assert X.shape == (4, 2 * 3 * 2 * 3)

    def test_far_corner_shape(self, cube):
        X = extract_snapshots(cube, 9, 7, BIN_RNG, LINE_RNG)
        assert X.shape == (4, 2 * 3 * 2 * 3)

    def test_contents(self, cube):
        X = extract_snapshots(cube, 4, 4, np.array([0]), np.array([0]))
        np.testing.assert_array_equal(X, cube[4, 4].reshape(-1, 4).T)

    def test_neighbors_included(self, cube):
        X = extract_snapshots(cube, 4, 4, BIN_RNG, LINE_RNG)
        sample = cube[5, 2, 1, 2]
        assert np.any(np.all(np.isclose(X.T, sample), axis=1))


class TestSpaceTimeSnapshots:
    """Test stacking of adjacent fast-time offsets."""

    def test_shape(self, cube):
        X = space_time_snapshots(cube, 4, 4, BIN_RNG, LINE_RNG, 3)
        assert X.shape == (12, 3 * 5 * 2 * 3)

    def test_offset_major(self, cube):
        X = space_time_snapshots(cube, 4, 4, np.array([0]), np.array([0]), 3)
        np.testing.assert_array_equal(X[:4], cube[3, 4].reshape(-1, 4).T)
        np.testing.assert_array_equal(X[4:8], cube[4, 4].reshape(-1, 4).T)
        np.testing.assert_array_equal(X[8:], cube[5, 4].reshape(-1, 4).T)

    def test_edge_clipping_consistent(self, cube):
        X = space_time_snapshots(cube, 1, 4, BIN_RNG, LINE_RNG, 3)
        assert X.shape[0] == 12
        assert X.shape[1] == 2 * 5 * 2 * 3


class TestSampleCovariance:
    """Test covariance estimation and diagonal loading."""

    def test_hermitian_psd(self, cube):
        R = sample_covariance(extract_snapshots(cube, 4, 4, BIN_RNG, LINE_RNG))
        np.testing.assert_allclose(R, R.conj().T)
        assert np.all(np.linalg.eigvalsh(R) > -1e-12)

    def test_diag_load(self):
        X = np.ones((2, 4), dtype=complex)
        R = sample_covariance(X, diag_load=0.5)
        np.testing.assert_allclose(R, np.ones((2, 2)) + 0.5 * np.eye(2))


class TestEqualizeChannels:
    """Test per-channel equalization."""

    def test_divides(self, cube):
        coeffs = np.array([1.0, 2.0, 1j, 0.5])
        out = equalize_channels(cube, coeffs)
        np.testing.assert_allclose(out * coeffs, cube)

    def test_wrong_count(self, cube):
        with pytest.raises(ConfigError, match="chan_equal"):
            equalize_channels(cube, np.ones(3))
