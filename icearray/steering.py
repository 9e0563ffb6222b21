# -*- coding: utf-8 -*-
"""
Steering Vector Generator - Plane-wave steering tables for the array.

Builds the complex per-channel response of a plane wave arriving from
each candidate angle, for a two-way (transmit and receive) path from the
array phase centers. Angles are either given explicitly or sampled
uniformly in cross-track wavenumber. Positive angles have positive
cross-track wavenumber.

An optional empirical lookup table, measured versus angle at zero roll,
corrects the nominal vectors for the current aircraft roll.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-03

Modified
--------
2026-03-09
"""

# Standard library
from dataclasses import dataclass
from typing import Optional, Sequence

# Third-party
import numpy as np
from scipy.interpolate import interp1d

from icearray.constants import SPEED_OF_LIGHT
from icearray.exceptions import ConfigError
from icearray.models import ArrayGeometry, SteeringLUT


@dataclass(frozen=True, eq=False)
class SteeringTable:
    """Steering vectors for a set of candidate angles.

    Attributes
    ----------
    theta : np.ndarray
        Angles (radians), shape ``(Nangles,)``.
    sv : np.ndarray
        Unit-norm complex steering columns, shape ``(Nc, Nangles)``.
    ky, kz : np.ndarray
        Cross-track and vertical wavenumbers of each angle (rad/m).
    """

    theta: np.ndarray
    sv: np.ndarray
    ky: np.ndarray
    kz: np.ndarray

    @property
    def Nc(self) -> int:
        return self.sv.shape[0]

    def __len__(self) -> int:
        return self.theta.size


def wavenumber(fc: float) -> float:
    """Two-way wavenumber ``4 pi fc / c`` (rad/m)."""
    return 4.0 * np.pi * fc / SPEED_OF_LIGHT


def uniform_ky(k: float, n_sv: int) -> np.ndarray:
    """Cross-track wavenumbers uniformly covering ``[-k, k)``, ascending."""
    m = np.concatenate((np.arange(0, (n_sv - 1) // 2 + 1),
                        np.arange(-(n_sv // 2), 0)))
    return np.fft.fftshift(2.0 / n_sv * k * m)


def lut_correction(
    lut: SteeringLUT,
    theta: np.ndarray,
    roll: float = 0.0,
) -> np.ndarray:
    """Empirical correction factors at *theta* for the given *roll*.

    The table is indexed by angle relative to the aircraft, so it is
    sampled at ``theta - roll``. Real and imaginary parts are linearly
    interpolated independently and extrapolated past the table ends.

    Returns
    -------
    np.ndarray
        Complex correction, shape ``(Nc, Nangles)``.
    """
    theta_lut = np.asarray(theta, dtype=float) - roll
    kwargs = dict(kind='linear', axis=1, fill_value='extrapolate',
                  assume_sorted=False)
    re = interp1d(lut.doa, lut.sv.real, **kwargs)(theta_lut)
    im = interp1d(lut.doa, lut.sv.imag, **kwargs)(theta_lut)
    return re + 1j * im


def steering_vectors(
    fc: float,
    y: np.ndarray,
    z: np.ndarray,
    theta: Optional[Sequence[float]] = None,
    n_sv: Optional[int] = None,
    lut: Optional[SteeringLUT] = None,
    roll: float = 0.0,
) -> SteeringTable:
    """Compute the steering table for phase centers ``(y, z)``.

    Parameters
    ----------
    fc : float
        Center frequency (Hz).
    y, z : np.ndarray
        Cross-track and elevation positions of each channel (m),
        shape ``(Nc,)``.
    theta : Sequence[float], optional
        Explicit angles (radians). Takes precedence over *n_sv*.
    n_sv : int, optional
        Number of angles sampled uniformly in cross-track wavenumber
        over ``[-k, k)``. Defaults to 1 (nadir only).
    lut : SteeringLUT, optional
        Empirical correction applied at ``theta - roll``.
    roll : float
        Aircraft roll (radians).

    Returns
    -------
    SteeringTable
    """
    y = np.asarray(y, dtype=float).ravel()
    z = np.asarray(z, dtype=float).ravel()
    if y.shape != z.shape:
        raise ConfigError(f"y and z differ in length: {y.size} vs {z.size}")
    Nc = y.size
    k = wavenumber(fc)

    if theta is not None:
        theta = np.atleast_1d(np.asarray(theta, dtype=float))
        ky = k * np.sin(theta)
        kz = k * np.cos(theta)
    else:
        n_sv = 1 if n_sv is None else int(n_sv)
        if n_sv < 1:
            raise ConfigError(f"n_sv must be at least 1, got {n_sv}")
        ky = uniform_ky(k, n_sv)
        kz = np.sqrt(k ** 2 - ky ** 2)
        theta = np.arctan2(ky, kz)

    sv = np.exp(1j * (-np.outer(z, kz) + np.outer(y, ky))) / np.sqrt(Nc)
    if lut is not None:
        sv = sv * lut_correction(lut, theta, roll)
    return SteeringTable(theta=theta, sv=sv, ky=ky, kz=kz)


def geometry_steering(
    geometry: ArrayGeometry,
    line: int,
    theta: Optional[Sequence[float]] = None,
    n_sv: Optional[int] = None,
) -> SteeringTable:
    """Steering table for *geometry* at range line *line*."""
    y, z = geometry.positions(line)
    return steering_vectors(geometry.fc, y, z, theta=theta, n_sv=n_sv,
                            lut=geometry.lut, roll=geometry.roll_at(line))


class SteeringModel:
    """Steering columns for arbitrary angles at fixed phase centers.

    Used by the parametric estimators, whose cost functions evaluate the
    array response at optimizer-chosen angles.

    Parameters
    ----------
    fc : float
        Center frequency (Hz).
    y, z : np.ndarray
        Phase-center positions (m), shape ``(Nc,)``.
    lut : SteeringLUT, optional
        Empirical correction.
    roll : float
        Aircraft roll (radians).
    """

    def __init__(
        self,
        fc: float,
        y: np.ndarray,
        z: np.ndarray,
        lut: Optional[SteeringLUT] = None,
        roll: float = 0.0,
    ) -> None:
        self.fc = float(fc)
        self.y = np.asarray(y, dtype=float).ravel()
        self.z = np.asarray(z, dtype=float).ravel()
        self.lut = lut
        self.roll = roll
        self.k = wavenumber(fc)

    @classmethod
    def from_geometry(cls, geometry: ArrayGeometry, line: int) -> 'SteeringModel':
        y, z = geometry.positions(line)
        return cls(geometry.fc, y, z, lut=geometry.lut,
                   roll=geometry.roll_at(line))

    @property
    def Nc(self) -> int:
        return self.y.size

    def delays(self, theta: Sequence[float]) -> np.ndarray:
        """Two-way relative delays ``(Nc, len(theta))`` in seconds.

        Later arrival at a channel gives a more negative delay.
        """
        theta = np.atleast_1d(np.asarray(theta, dtype=float))
        return 2.0 / SPEED_OF_LIGHT * (np.outer(self.y, np.sin(theta))
                                       - np.outer(self.z, np.cos(theta)))

    def __call__(self, theta: Sequence[float]) -> np.ndarray:
        theta = np.atleast_1d(np.asarray(theta, dtype=float))
        sv = np.exp(1j * self.k * (np.outer(self.y, np.sin(theta))
                                   - np.outer(self.z, np.cos(theta))))
        sv /= np.sqrt(self.Nc)
        if self.lut is not None:
            sv = sv * lut_correction(self.lut, theta, self.roll)
        return sv
