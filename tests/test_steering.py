# -*- coding: utf-8 -*-
"""
Steering Vector Tests.

Tests for steering tables, the steering model used by the parametric
estimators, empirical LUT correction and array geometry.

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

from icearray.constants import SPEED_OF_LIGHT
from icearray.exceptions import ConfigError
from icearray.models import ArrayGeometry, SteeringLUT
from icearray.steering import (
    SteeringModel,
    geometry_steering,
    steering_vectors,
    uniform_ky,
    wavenumber,
)

FC = 195e6


def _ula(Nc, spacing=1.0):
    """Uniform linear array with two-way half-wavelength spacing scaled."""
    d = spacing * SPEED_OF_LIGHT / FC / 4.0
    y = (np.arange(Nc) - (Nc - 1) / 2.0) * d
    return y, np.zeros(Nc)


# ---------------------------------------------------------------------------
# Steering tables
# ---------------------------------------------------------------------------

class TestSteeringVectors:
    """Test steering table construction."""

    def test_unit_norm_columns(self):
        y, z = _ula(6)
        table = steering_vectors(FC, y, z, n_sv=32)
        assert table.sv.shape == (6, 32)
        np.testing.assert_allclose(np.linalg.norm(table.sv, axis=0), 1.0)
        assert table.Nc == 6
        assert len(table) == 32

    def test_default_is_nadir(self):
        y, z = _ula(4)
        table = steering_vectors(FC, y, z)
        np.testing.assert_allclose(table.theta, [0.0])
        np.testing.assert_allclose(table.sv[:, 0], np.full(4, 0.5))

    def test_uniform_grid_ascending(self):
        y, z = _ula(4)
        table = steering_vectors(FC, y, z, n_sv=64)
        assert np.all(np.diff(table.theta) > 0)
        assert table.theta[0] == pytest.approx(-np.pi / 2)
        assert 0.0 in table.theta

    def test_uniform_ky_spacing(self):
        k = wavenumber(FC)
        ky = uniform_ky(k, 8)
        np.testing.assert_allclose(np.diff(ky), 2.0 * k / 8)
        assert ky[0] == pytest.approx(-k)

    def test_explicit_theta(self):
        y, z = _ula(4)
        theta = np.deg2rad([-20.0, 0.0, 35.0])
        table = steering_vectors(FC, y, z, theta=theta)
        np.testing.assert_allclose(table.theta, theta)
        k = wavenumber(FC)
        np.testing.assert_allclose(table.ky, k * np.sin(theta))

    def test_positive_angle_positive_ky(self):
        y, z = _ula(4)
        table = steering_vectors(FC, y, z, theta=[0.3])
        assert table.ky[0] > 0

    def test_shape_mismatch_raises(self):
        with pytest.raises(ConfigError, match="differ in length"):
            steering_vectors(FC, np.zeros(3), np.zeros(4))

    def test_lut_identity(self):
        y, z = _ula(4)
        lut = SteeringLUT(doa=np.deg2rad([-90.0, 90.0]), sv=np.ones((4, 2)))
        plain = steering_vectors(FC, y, z, n_sv=16)
        corrected = steering_vectors(FC, y, z, n_sv=16, lut=lut, roll=0.1)
        np.testing.assert_allclose(corrected.sv, plain.sv)

    def test_lut_sampled_at_theta_minus_roll(self):
        y, z = _ula(2)
        doa = np.deg2rad([-90.0, 90.0])
        lut = SteeringLUT(doa=doa, sv=np.vstack([doa, doa]) + 0j)
        theta = np.deg2rad([10.0])
        roll = np.deg2rad(4.0)
        plain = steering_vectors(FC, y, z, theta=theta)
        corrected = steering_vectors(FC, y, z, theta=theta, lut=lut, roll=roll)
        np.testing.assert_allclose(corrected.sv, plain.sv * (theta - roll))


class TestSteeringModel:
    """Test the steering model evaluated at arbitrary angles."""

    def test_matches_table(self):
        y, z = _ula(5)
        z = np.linspace(0.0, 0.3, 5)
        theta = np.deg2rad([-12.0, 3.0, 40.0])
        table = steering_vectors(FC, y, z, theta=theta)
        model = SteeringModel(FC, y, z)
        np.testing.assert_allclose(model(theta), table.sv, atol=1e-12)

    def test_delays_phase_relation(self):
        y, z = _ula(4)
        model = SteeringModel(FC, y, z)
        theta = [0.2]
        phase = np.exp(2j * np.pi * FC * model.delays(theta))
        np.testing.assert_allclose(phase / np.sqrt(4), model(theta), atol=1e-12)

    def test_from_geometry_per_line(self):
        y, z = _ula(3)
        geom = ArrayGeometry(fc=FC, y=np.stack([y, 2 * y], axis=1),
                             z=np.zeros((3, 2)), roll=[0.0, 0.1])
        model = SteeringModel.from_geometry(geom, 1)
        np.testing.assert_allclose(model.y, 2 * y)
        assert model.roll == pytest.approx(0.1)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

class TestArrayGeometry:
    """Test ArrayGeometry validation and per-line access."""

    def test_static_positions(self):
        y, z = _ula(4)
        geom = ArrayGeometry(fc=FC, y=y, z=z)
        assert geom.Nc == 4
        np.testing.assert_allclose(geom.positions(7)[0], y)
        assert geom.roll_at(3) == 0.0

    def test_scalar_roll(self):
        y, z = _ula(4)
        geom = ArrayGeometry(fc=FC, y=y, z=z, roll=0.05)
        assert geom.roll_at(10) == pytest.approx(0.05)

    def test_shape_mismatch(self):
        with pytest.raises(ConfigError, match="shape"):
            ArrayGeometry(fc=FC, y=np.zeros(4), z=np.zeros(3))

    def test_nonpositive_fc(self):
        with pytest.raises(ConfigError, match="fc"):
            ArrayGeometry(fc=0.0, y=np.zeros(4), z=np.zeros(4))

    def test_geometry_steering(self):
        y, z = _ula(4)
        geom = ArrayGeometry(fc=FC, y=y, z=z)
        table = geometry_steering(geom, 0, n_sv=8)
        assert table.sv.shape == (4, 8)

    def test_lut_column_mismatch(self):
        with pytest.raises(ConfigError, match="columns"):
            SteeringLUT(doa=[0.0, 0.1, 0.2], sv=np.ones((4, 2)))
