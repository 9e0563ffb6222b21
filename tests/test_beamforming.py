# -*- coding: utf-8 -*-
"""
Beamformer Tests.

Tests for the periodogram, MVDR, robust MVDR and MUSIC spectra on
synthetic plane-wave data from a uniform linear array.

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

from icearray.beamforming import MUSIC, MVDR, Periodogram, RobustMVDR
from icearray.beamforming.music import noise_subspace
from icearray.config import normalize_config
from icearray.constants import SPEED_OF_LIGHT
from icearray.models import ArrayGeometry
from icearray.pixel import MultilookSamples, Pixel
from icearray.snapshots import extract_snapshots
from icearray.steering import SteeringModel, geometry_steering

FC = 195e6


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _geometry(Nc, spacing=1.0):
    d = spacing * SPEED_OF_LIGHT / FC / 4.0
    y = (np.arange(Nc) - (Nc - 1) / 2.0) * d
    return ArrayGeometry(fc=FC, y=y, z=np.zeros(Nc))


def _plane_wave(geom, theta, Na, Nb, amp=1.0, noise=0.0, seed=0, random_phase=False):
    """Single-pixel cube ``(1, 1, Na, Nb, Nc)`` of one plane wave plus noise."""
    rng = np.random.default_rng(seed)
    a = np.sqrt(geom.Nc) * SteeringModel.from_geometry(geom, 0)([theta])[:, 0]
    s = np.full((Na, Nb), amp, dtype=complex)
    if random_phase:
        s = amp * (rng.standard_normal((Na, Nb))
                   + 1j * rng.standard_normal((Na, Nb))) / np.sqrt(2)
    cube = s[..., None] * a
    if noise:
        cube = cube + noise * (rng.standard_normal(cube.shape)
                               + 1j * rng.standard_normal(cube.shape)) / np.sqrt(2)
    return cube[None, None]


def _pixel(cube, geom, **params):
    base = {'dline': 1, 'line_rng': 0, 'bin_rng': 0}
    base.update(params)
    cfg = normalize_config(base, cube.shape)
    table = geometry_steering(geom, 0, theta=cfg.theta, n_sv=cfg.Nsv)
    model = SteeringModel.from_geometry(geom, 0)
    X = extract_snapshots(cube, 0, 0, cfg.bin_rng, cfg.line_rng)
    group = MultilookSamples(snapshots=X, dcm_snapshots=X, steering=table,
                             model=model, cube=cube)
    return Pixel(bin=0, line=0, groups=[group], cfg=cfg)


# ---------------------------------------------------------------------------
# Periodogram
# ---------------------------------------------------------------------------

class TestPeriodogram:
    """Test the windowed delay-and-sum spectrum."""

    @pytest.mark.parametrize('seed', range(8))
    def test_peak_at_source_angle(self, seed):
        rng = np.random.default_rng(seed)
        Nc = int(rng.integers(3, 9))
        geom = _geometry(Nc, spacing=rng.uniform(0.5, 1.0))
        table = geometry_steering(geom, 0, n_sv=64)
        idx0 = int(rng.integers(1, 63))
        cube = _plane_wave(geom, table.theta[idx0], 2, 3)
        P = Periodogram().estimate(_pixel(cube, geom, Nsv=64))
        assert np.argmax(P) == idx0
        assert np.all(P[idx0] > np.delete(P, idx0))
        assert P[idx0] == pytest.approx(Nc, rel=1e-9)

    @pytest.mark.parametrize('window', ['hann', 'boxcar', 'hamming'])
    def test_matched_power_is_nc(self, window):
        geom = _geometry(5)
        theta = np.deg2rad(12.0)
        cube = _plane_wave(geom, theta, 1, 2)
        P = Periodogram().estimate(
            _pixel(cube, geom, theta=[np.rad2deg(theta)], window=window))
        assert P[0] == pytest.approx(5.0, rel=1e-9)

    def test_multilook_groups_averaged(self):
        geom = _geometry(4)
        cube = _plane_wave(geom, 0.0, 1, 1)
        pixel = _pixel(cube, geom, Nsv=8)
        single = Periodogram().estimate(pixel)
        quiet = MultilookSamples(
            snapshots=np.zeros_like(pixel.primary.snapshots),
            dcm_snapshots=np.zeros_like(pixel.primary.snapshots),
            steering=pixel.primary.steering, model=pixel.primary.model,
            cube=cube)
        pixel.groups.append(quiet)
        np.testing.assert_allclose(Periodogram().estimate(pixel), single / 2)


# ---------------------------------------------------------------------------
# MVDR
# ---------------------------------------------------------------------------

class TestMVDR:
    """Test the Capon estimator."""

    def test_power_at_source(self):
        Nc = 6
        geom = _geometry(Nc)
        theta = np.deg2rad(-8.0)
        cube = _plane_wave(geom, theta, 50, 40, amp=1.0, noise=0.3,
                           random_phase=True, seed=3)
        P = MVDR().estimate(_pixel(cube, geom, theta=[-8.0]))
        assert P[0] == pytest.approx(Nc * 1.0 + 0.3 ** 2, rel=0.1)

    def test_distinct_matches_shared_neighborhood(self):
        geom = _geometry(4)
        cube = _plane_wave(geom, 0.2, 10, 10, noise=0.5, random_phase=True,
                           seed=5)
        pixel = _pixel(cube, geom, Nsv=16)
        shared = MVDR().estimate(pixel)
        distinct = MVDR()._distinct_power(pixel.primary, pixel.cfg)
        np.testing.assert_allclose(distinct, shared, rtol=1e-8)

    def test_diag_load_changes_power(self):
        geom = _geometry(4)
        cube = _plane_wave(geom, 0.2, 10, 10, noise=0.5, random_phase=True,
                           seed=5)
        plain = MVDR().estimate(_pixel(cube, geom, Nsv=16))
        loaded = MVDR().estimate(_pixel(cube, geom, Nsv=16, diag_load=1.0))
        assert np.all(loaded >= plain * (1 - 1e-9))

    def test_singular_covariance_not_positive_finite(self):
        geom = _geometry(4)
        cube = np.zeros((1, 1, 2, 2, 4), dtype=complex)
        with np.errstate(all='ignore'):
            P = MVDR().estimate(_pixel(cube, geom, Nsv=8))
        assert not np.any(np.isfinite(P) & (P > 0))


class TestRobustMVDR:
    """Test the eigenvector-weighted MVDR."""

    def test_power_at_source(self):
        Nc = 5
        geom = _geometry(Nc)
        cube = _plane_wave(geom, np.deg2rad(15.0), 50, 40, noise=0.3,
                           random_phase=True, seed=11)
        P = RobustMVDR().estimate(_pixel(cube, geom, theta=[15.0]))
        assert P[0] == pytest.approx(Nc + 0.3 ** 2, rel=0.1)

    def test_repr(self):
        assert repr(RobustMVDR(shrink=0.2)) == 'RobustMVDR(shrink=0.2)'


# ---------------------------------------------------------------------------
# MUSIC
# ---------------------------------------------------------------------------

class TestMUSIC:
    """Test the noise-subspace pseudo-spectrum."""

    def test_noise_subspace_size(self):
        R = np.diag([5.0, 1.0, 0.5, 0.1]).astype(complex)
        noise = noise_subspace(R, 1)
        assert noise.shape == (4, 3)
        assert np.allclose(np.abs(noise[0]), 0.0)

    def test_peak_at_source(self):
        geom = _geometry(6)
        table = geometry_steering(geom, 0, n_sv=64)
        idx0 = 40
        cube = _plane_wave(geom, table.theta[idx0], 20, 20, noise=0.05,
                           random_phase=True, seed=2)
        P = MUSIC().estimate(_pixel(cube, geom, Nsv=64))
        assert np.argmax(P) == idx0
        assert np.all(P > 0)
