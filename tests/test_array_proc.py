# -*- coding: utf-8 -*-
"""
Array Processor Tests.

End-to-end tests for ``ArrayProcess`` on synthetic plane-wave cubes:
output grids and tensor shapes, beamformer peaks, sequential tracking,
model-order diagnostics, determinism and input validation.

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

import logging

import numpy as np
import pytest

from icearray import ArrayProcess, RadarInputs
from icearray.constants import SPEED_OF_LIGHT
from icearray.doa import DoaEstimate
from icearray.exceptions import ConfigError, EstimationError
from icearray.models import ArrayGeometry
from icearray.processing import reduce_spectrum, select_source
from icearray.steering import SteeringModel, geometry_steering
from icearray.vocabulary import ArrayMethod, MoeCriterion

FC = 195e6


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _geometry(Nc):
    d = SPEED_OF_LIGHT / FC / 4.0
    y = (np.arange(Nc) - (Nc - 1) / 2.0) * d
    return ArrayGeometry(fc=FC, y=y, z=np.zeros(Nc))


def _cube(geom, shape, theta, amp=None, noise=0.0, seed=0, random_phase=True):
    """Cube ``(Nt, Nx, Na, Nb, Nc)`` of sources at *theta* per bin.

    *theta* is either one angle list used for every bin or a callable
    ``bin -> angles``.
    """
    Nt, Nx, Na, Nb = shape
    rng = np.random.default_rng(seed)
    model = SteeringModel.from_geometry(geom, 0)
    Nc = geom.Nc
    cube = np.zeros((Nt, Nx, Na, Nb, Nc), dtype=complex)
    for b in range(Nt):
        angles = theta(b) if callable(theta) else theta
        A = np.sqrt(Nc) * model(np.asarray(angles, dtype=float))
        amps = np.ones(A.shape[1]) if amp is None else np.asarray(amp)
        for k in range(A.shape[1]):
            if random_phase:
                s = (rng.standard_normal((Nx, Na, Nb))
                     + 1j * rng.standard_normal((Nx, Na, Nb))) / np.sqrt(2)
            else:
                s = np.ones((Nx, Na, Nb), dtype=complex)
            cube[b] += amps[k] * s[..., None] * A[:, k]
    if noise:
        cube += noise * (rng.standard_normal(cube.shape)
                         + 1j * rng.standard_normal(cube.shape)) / np.sqrt(2)
    return cube


def _proc(**params):
    base = {'dline': 1, 'line_rng': 0, 'bin_rng': 0}
    base.update(params)
    return ArrayProcess(**base)


# ---------------------------------------------------------------------------
# Beamforming
# ---------------------------------------------------------------------------

class TestBeamformingOutputs:
    """Test beamformer products of the processor."""

    def test_periodogram_peak_and_shapes(self):
        geom = _geometry(4)
        table = geometry_steering(geom, 0, n_sv=64)
        theta0 = table.theta[22]
        cube = _cube(geom, (3, 3, 2, 2), [theta0], random_phase=False)
        result = _proc(Nsv=64, theta_rng=(-90, 90)).apply(cube, geom)
        out = result['standard']
        assert out.img.shape == (3, 3)
        np.testing.assert_allclose(out.theta, theta0, atol=1e-6)
        np.testing.assert_allclose(out.img, 4.0, rtol=1e-3)
        assert out.tomo.img.shape == (3, 64, 3)
        np.testing.assert_array_equal(result.bins, [0, 1, 2])
        np.testing.assert_array_equal(result.lines, [0, 1, 2])

    def test_periodogram_off_grid_source(self):
        geom = _geometry(4)
        cube = _cube(geom, (3, 3, 2, 2), [np.deg2rad(-20.0)], random_phase=False)
        out = _proc(Nsv=64, theta_rng=(-90, 90)).apply(cube, geom)['standard']
        table = geometry_steering(geom, 0, n_sv=64)
        spacing = np.max(np.diff(table.theta[np.abs(table.theta) < np.deg2rad(30)]))
        assert np.all(np.abs(out.theta - np.deg2rad(-20.0)) <= spacing)
        assert np.all(out.img > 0.95 * 4.0)
        assert np.all(out.img <= 4.0 * (1 + 1e-5))

    def test_nadir_default_range(self):
        geom = _geometry(4)
        cube = _cube(geom, (2, 1, 2, 2), [0.0], random_phase=False)
        out = _proc().apply(cube, geom)['standard']
        np.testing.assert_allclose(out.theta, 0.0)
        assert out.tomo is None

    def test_multilook_groups_averaged(self):
        geom = _geometry(4)
        cube = _cube(geom, (2, 1, 2, 2), [0.0], random_phase=False)
        single = _proc(Nsv=16).apply(cube, geom)['standard']
        both = _proc(Nsv=16).apply([cube, np.zeros_like(cube)], [geom, geom])
        np.testing.assert_allclose(both['standard'].tomo.img,
                                   single.tomo.img / 2, rtol=1e-5)

    def test_several_methods(self):
        geom = _geometry(4)
        cube = _cube(geom, (2, 1, 6, 6), [np.deg2rad(10.0)], noise=0.1)
        result = _proc(method='standard mvdr music', Nsv=32,
                       theta_rng=(-90, 90)).apply(cube, geom)
        for name in ('standard', 'mvdr', 'music'):
            np.testing.assert_allclose(np.rad2deg(result[name].theta), 10.0,
                                       atol=4.0)

    def test_bin_restriction(self):
        geom = _geometry(4)
        cube = _cube(geom, (5, 2, 2, 2), [0.0], random_phase=False)
        inputs = RadarInputs(bin_restriction=(np.array([1, 0]), np.array([3, 4])))
        img = _proc().apply(cube, geom, inputs=inputs)['standard'].img
        assert np.all(np.isnan(img[[0, 4], 0]))
        assert np.all(np.isfinite(img[1:4, 0]))
        assert np.all(np.isfinite(img[:, 1]))

    def test_non_finite_bin_restriction_skips_line(self, caplog):
        geom = _geometry(4)
        cube = _cube(geom, (5, 3, 2, 2), [0.0], random_phase=False)
        inputs = RadarInputs(bin_restriction=(np.array([0, np.nan, 0]),
                                              np.array([4, np.nan, 4])))
        with caplog.at_level(logging.WARNING):
            img = _proc().apply(cube, geom, inputs=inputs)['standard'].img
        assert np.all(np.isnan(img[:, 1]))
        assert np.all(np.isfinite(img[:, [0, 2]]))
        assert "Non-finite bin restriction on line 1" in caplog.text

    def test_channel_equalization(self):
        geom = _geometry(4)
        cube = _cube(geom, (2, 1, 2, 2), [0.0], random_phase=False)
        coeffs = np.array([1.0, 2.0, -1j, 0.5])
        plain = _proc().apply(cube, geom)['standard'].img
        equal = _proc().apply(cube * coeffs, geom,
                              inputs=RadarInputs(chan_equal=coeffs))['standard'].img
        np.testing.assert_allclose(equal, plain, rtol=1e-5)

    def test_progress_callback(self):
        geom = _geometry(4)
        cube = _cube(geom, (2, 3, 2, 2), [0.0])
        calls = []
        _proc().apply(cube, geom, progress_callback=calls.append)
        assert calls[-1] == pytest.approx(1.0)
        assert calls == sorted(calls)


# ---------------------------------------------------------------------------
# Parametric DOA
# ---------------------------------------------------------------------------

class TestDoaOutputs:
    """Test DOA products, tracking and model-order diagnostics."""

    def test_mle_deterministic(self):
        geom = _geometry(5)
        cube = _cube(geom, (3, 1, 6, 6), np.deg2rad([-15.0, 20.0]), noise=0.1,
                     seed=4)
        proc = _proc(method='mle', Nsrc=2)
        first = proc.apply(cube, geom)['mle']
        second = proc.apply(cube, geom)['mle']
        np.testing.assert_array_equal(first.tomo.theta, second.tomo.theta)
        np.testing.assert_array_equal(first.tomo.img, second.tomo.img)
        np.testing.assert_array_equal(first.img, second.img)

    def test_mle_tensor_shapes(self):
        geom = _geometry(5)
        cube = _cube(geom, (3, 1, 6, 6), np.deg2rad([-15.0, 20.0]), noise=0.1)
        out = _proc(method='mle', Nsrc=2).apply(cube, geom)['mle']
        assert out.tomo.theta.shape == (3, 2, 1)
        assert out.tomo.cost.shape == (3, 1)
        theta = np.sort(np.rad2deg(out.tomo.theta[:, :, 0]), axis=1)
        np.testing.assert_allclose(theta, [[-15.0, 20.0]] * 3, atol=1.0)

    def test_tracked_seed_splits_branches(self):
        geom = _geometry(4)
        t_s = 2e-5
        time = t_s / np.cos(np.deg2rad(10.0)) + np.arange(8) * 1e-8

        def angles(b):
            a = np.arccos(t_s / time[b])
            return [-a, a]

        cube = _cube(geom, (8, 1, 8, 8), angles, amp=[1.0, 0.9], noise=0.01,
                     seed=7)
        proc = _proc(method='mle', Nsrc=2, doa_seq=True, moe_en=True,
                     moe_classifier=lambda eig: (1, 0.9))
        out = proc.apply(cube, geom, inputs=RadarInputs(time=time))['mle']
        theta = out.tomo.theta[:, :, 0]
        active = np.flatnonzero(np.any(np.isfinite(theta), axis=1))
        assert active.size > 0
        seed = theta[active[0]]
        assert np.all(np.isfinite(seed))
        assert seed[0] < 0.0 < seed[1]
        np.testing.assert_allclose(np.rad2deg(seed),
                                   np.rad2deg(angles(active[0])), atol=1.0)

    def test_collapsed_bounds_stop_tracking(self):
        geom = _geometry(4)
        t_s = 2e-5
        time = t_s / np.cos(np.deg2rad(10.0)) + np.arange(8) * 1e-8

        def angles(b):
            a = np.arccos(t_s / time[b])
            return [-a, a]

        cube = _cube(geom, (8, 1, 8, 8), angles, amp=[1.0, 0.9], noise=0.01,
                     seed=7)
        params = dict(method='standard mle', Nsrc=2, doa_seq=True, moe_en=True,
                      moe_classifier=lambda eig: (1, 0.9))
        inputs = RadarInputs(time=time)

        free = _proc(**params).apply(cube, geom, inputs=inputs)['mle']
        free_active = np.flatnonzero(np.any(np.isfinite(free.tomo.theta[:, :, 0]), axis=1))
        assert free_active.size > 1

        # The left branch near -10 deg lies outside its -40 deg limit.
        narrow = [{'src_limits': (-90.0, -40.0)}, {}]
        result = _proc(doa_constraints=narrow, **params).apply(
            cube, geom, inputs=inputs)
        theta = result['mle'].tomo.theta[:, :, 0]
        active = np.flatnonzero(np.any(np.isfinite(theta), axis=1))
        assert active.size == 1
        assert active[0] < 7
        assert np.all(np.isnan(theta[active[0] + 1:]))
        assert np.all(np.isfinite(result['standard'].img))

    def test_no_seed_near_start_layer_stops_line(self):
        geom = _geometry(4)
        t_s = 2e-5
        time = t_s / np.cos(np.deg2rad(10.0)) + np.arange(30) * 1e-8

        def angles(b):
            a = np.arccos(t_s / time[b])
            return [-a, a]

        cube = _cube(geom, (30, 1, 8, 8), angles, amp=[1.0, 0.9], seed=7)
        cube[:15] = 0.0
        rng = np.random.default_rng(1)
        cube += 0.01 * (rng.standard_normal(cube.shape)
                        + 1j * rng.standard_normal(cube.shape))
        proc = _proc(method='standard mle', Nsrc=2, doa_seq=True, moe_en=True,
                     moe_classifier=lambda eig: (int(eig[0] > 100 * eig[-1]), 0.9))

        # Tracking starts 15 bins above the start layer: bin 10, five
        # bins before the reflectors appear at bin 15.
        near = proc.apply(cube, geom, inputs=RadarInputs(
            time=time, start_layer_twtt=np.array([time[25]])))['mle']
        assert np.any(np.isfinite(near.tomo.theta[15:]))

        # Starting at bin 5 leaves ten empty bins, so the line stops.
        result = proc.apply(cube, geom, inputs=RadarInputs(
            time=time, start_layer_twtt=np.array([time[20]])))
        assert np.all(np.isnan(result['mle'].tomo.theta))
        assert np.all(np.isfinite(result['standard'].img))

    def test_missing_start_layer_skips_tracking(self, caplog):
        geom = _geometry(4)
        time = 2e-5 + np.arange(4) * 1e-8
        cube = _cube(geom, (4, 1, 4, 4), np.deg2rad([-10.0, 10.0]), noise=0.05)
        proc = _proc(method='standard mle', Nsrc=2, doa_seq=True)
        with caplog.at_level(logging.WARNING):
            result = proc.apply(cube, geom, inputs=RadarInputs(
                time=time, start_layer_twtt=np.array([np.nan])))
        assert np.all(np.isnan(result['mle'].tomo.theta))
        assert np.all(np.isfinite(result['standard'].img))
        assert "No start layer" in caplog.text

    def test_moe_diagnostics(self):
        geom = _geometry(4)
        cube = _cube(geom, (2, 1, 12, 12), [np.deg2rad(5.0)], noise=0.1,
                     seed=2)
        result = _proc(method='mle', Nsrc=2, moe_diagnostics=True,
                       moe_methods=['MDL']).apply(cube, geom)
        order = result.moe.order[MoeCriterion.MDL]
        assert order.shape == (2, 1)
        np.testing.assert_array_equal(order, 1)
        theta = result['mle'].tomo.theta[:, :, 0]
        assert np.all(np.sum(np.isfinite(theta), axis=1) == 1)

    def test_noise_only_reports_no_source(self):
        geom = _geometry(4)
        rng = np.random.default_rng(0)
        cube = (rng.standard_normal((2, 1, 12, 12, 4))
                + 1j * rng.standard_normal((2, 1, 12, 12, 4)))
        out = _proc(method='mle', Nsrc=2, moe_en=True,
                    moe_methods=['MDL']).apply(cube, geom)['mle']
        assert np.all(np.isnan(out.img))


# ---------------------------------------------------------------------------
# 2D reductions
# ---------------------------------------------------------------------------

class TestReductions:
    """Test the per-pixel reductions into the 2D products."""

    def _estimate(self, doa_deg, power):
        return DoaEstimate(doa=np.deg2rad(doa_deg), power=np.asarray(power, float),
                           hessian=np.full(len(doa_deg), np.nan))

    def test_strongest_in_range(self):
        est = self._estimate([-30.0, 5.0], [10.0, 1.0])
        rng = tuple(np.deg2rad([-10.0, 10.0]))
        assert select_source(est, rng, output_mode=1) == 1

    def test_nearest_center_ignores_out_of_range(self):
        est = self._estimate([-12.0, 8.0], [1.0, 1.0])
        rng = tuple(np.deg2rad([0.0, 10.0]))
        assert select_source(est, rng, output_mode=2) == 1

    def test_nothing_in_range(self):
        est = self._estimate([-30.0, np.nan], [1.0, np.nan])
        rng = tuple(np.deg2rad([-10.0, 10.0]))
        assert select_source(est, rng, output_mode=1) is None
        assert select_source(est, rng, output_mode=2) is None

    def test_spectrum_peak_inside_range(self):
        theta = np.deg2rad([-20.0, 0.0, 20.0])
        power, angle = reduce_spectrum(theta, np.array([5.0, 1.0, 2.0]),
                                       tuple(np.deg2rad([-5.0, 30.0])))
        assert power == 2.0
        assert angle == pytest.approx(theta[2])


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    """Test input and configuration errors."""

    def _data(self, Nc=4):
        geom = _geometry(Nc)
        return _cube(geom, (3, 1, 2, 2), [0.0]), geom

    def test_missing_dline(self):
        cube, geom = self._data()
        with pytest.raises(ConfigError, match="dline"):
            ArrayProcess(line_rng=0).apply(cube, geom)

    def test_dline_at_call_time(self):
        cube, geom = self._data()
        result = ArrayProcess(line_rng=0).apply(cube, geom, dline=1)
        assert result['standard'].img.shape == (3, 1)

    def test_dcm_requires_sample_rate(self):
        cube, geom = self._data()
        with pytest.raises(ConfigError, match="fs"):
            _proc(method='dcm').apply(cube, geom)

    def test_tracking_requires_time(self):
        cube, geom = self._data()
        with pytest.raises(ConfigError, match="time"):
            _proc(method='mle', Nsrc=2, doa_seq=True).apply(cube, geom)

    def test_time_length(self):
        cube, geom = self._data()
        with pytest.raises(ConfigError, match="samples"):
            _proc().apply(cube, geom, inputs=RadarInputs(time=np.arange(5.0)))

    def test_group_count_mismatch(self):
        cube, geom = self._data()
        with pytest.raises(EstimationError, match="geometries"):
            _proc().apply([cube, cube], [geom])

    def test_channel_mismatch(self):
        cube, _ = self._data()
        with pytest.raises(EstimationError, match="channels"):
            _proc().apply(cube, _geometry(3))

    def test_group_shape_mismatch(self):
        cube, geom = self._data()
        with pytest.raises(EstimationError, match="shape"):
            _proc().apply([cube, cube[:2]], [geom, geom])

    def test_invalid_option(self):
        cube, geom = self._data()
        with pytest.raises(ConfigError):
            _proc(output_mode=3).apply(cube, geom)

    def test_method_enum_accepted(self):
        cube, geom = self._data()
        result = _proc(method=ArrayMethod.MUSIC).apply(cube, geom)
        assert ArrayMethod.MUSIC in result.outputs
