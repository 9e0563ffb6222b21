# -*- coding: utf-8 -*-
"""
DOA Cost Functions - Objectives minimized by the parametric estimators.

All costs take the angle vector (radians) first so they can be wrapped
with ``functools.partial`` and handed to the optimizer.

- ``mle_cost``: deterministic maximum-likelihood criterion,
  ``-Re tr(P_A Rxx)`` with ``P_A`` the projector onto the steering
  columns.
- ``map_cost``: concentrated negative log-likelihood under white noise,
  ``M Nc log(tr(P_A⊥ Rxx) / Nc)``, plus a Gaussian prior on the angles.
- ``concentrated_nll``: stochastic likelihood of a fitted order, compared
  across orders by the optimal model-order criteria.
- ``music_cost``: power of the steering columns in the noise subspace.
- ``wideband_cost``: subspace fit of a modeled space-time covariance to
  the stacked data covariance matrix.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-05

Modified
--------
2026-03-12
"""

# Standard library
from typing import Callable, Optional

# Third-party
import numpy as np

from icearray.steering import SteeringModel


def projection(A: np.ndarray) -> np.ndarray:
    """Orthogonal projector onto the column space of *A*."""
    return A @ np.linalg.pinv(A)


def residual_power(theta: np.ndarray, Rxx: np.ndarray, model: SteeringModel) -> float:
    """``Re tr(P_A⊥ Rxx) / Nc``: noise power left after fitting *theta*."""
    Nc = Rxx.shape[0]
    if np.size(theta) == 0:
        return float(np.real(np.trace(Rxx))) / Nc
    P = projection(model(theta))
    return float(np.real(np.trace(Rxx) - np.trace(P @ Rxx))) / Nc


def mle_cost(theta: np.ndarray, Rxx: np.ndarray, model: SteeringModel) -> float:
    """Deterministic ML cost ``-Re tr(P_A Rxx)``."""
    P = projection(model(theta))
    return -float(np.real(np.trace(P @ Rxx)))


def map_cost(
    theta: np.ndarray,
    Rxx: np.ndarray,
    model: SteeringModel,
    n_snap: int,
    prior_mean: Optional[np.ndarray] = None,
    prior_var: Optional[np.ndarray] = None,
) -> float:
    """Negative log-posterior with a Gaussian prior on *theta*.

    The residual power is floored at a tiny fraction of the total power
    so noiseless data stays finite.
    """
    Nc = Rxx.shape[0]
    total = float(np.real(np.trace(Rxx))) / Nc
    resid = max(residual_power(theta, Rxx, model), total * 1e-12, 1e-300)
    cost = n_snap * Nc * np.log(resid)
    if prior_mean is not None and prior_var is not None:
        theta = np.atleast_1d(theta)
        cost += float(np.sum((theta - prior_mean) ** 2 / (2.0 * prior_var)))
    return float(cost)


def concentrated_nll(
    theta: np.ndarray,
    Rxx: np.ndarray,
    model: SteeringModel,
    n_snap: int,
) -> float:
    """Concentrated stochastic negative log-likelihood used by the optimal MOE.

    ``N (sum_i log mu_i + (Nc - k) log sigma2 - log det Rxx)`` where
    ``mu_i`` are the ``k`` non-zero eigenvalues of ``P_A Rxx P_A`` and
    ``sigma2 = tr(P_A⊥ Rxx) / (Nc - k)``. When the steering columns span
    the dominant eigenvectors this equals ``suboptimal_nll``.
    """
    Nc = Rxx.shape[0]
    theta = np.atleast_1d(np.asarray(theta, dtype=float))
    k = theta.size
    floor = max(float(np.real(np.trace(Rxx))) / Nc * 1e-12, 1e-300)
    logdet = np.sum(np.log(np.maximum(np.linalg.eigvalsh(Rxx), floor)))
    if k == 0:
        sigma2 = float(np.real(np.trace(Rxx))) / Nc
        return float(n_snap * (Nc * np.log(max(sigma2, floor)) - logdet))
    P = projection(model(theta))
    mu = np.sort(np.linalg.eigvalsh(P @ Rxx @ P))[::-1][:k]
    sigma2 = float(np.real(np.trace(Rxx) - np.trace(P @ Rxx))) / (Nc - k)
    value = (np.sum(np.log(np.maximum(mu, floor)))
             + (Nc - k) * np.log(max(sigma2, floor)) - logdet)
    return float(n_snap * value)


def music_cost(theta: np.ndarray, noise: np.ndarray, model: SteeringModel) -> float:
    """``sum_k ‖Vnᴴ a(θ_k)‖²`` for noise eigenvectors ``Vn``."""
    proj = noise.conj().T @ model(theta)
    return float(np.sum(np.abs(proj) ** 2))


def guard_constraint(theta: np.ndarray, guard: float) -> np.ndarray:
    """Pairwise separations minus *guard*; feasible when all are >= 0."""
    theta = np.atleast_1d(theta)
    i, j = np.triu_indices(theta.size, k=1)
    return np.abs(theta[i] - theta[j]) - guard


# =====================================================================
# Wideband model
# =====================================================================

def sinc_correlation(fs: float) -> Callable[[np.ndarray], np.ndarray]:
    """Normalized autocorrelation of a band-limited pulse of bandwidth *fs*."""
    def corr(t: np.ndarray) -> np.ndarray:
        return np.sinc(fs * t).astype(complex)
    return corr


def impulse_correlation(
    time: np.ndarray,
    vals: np.ndarray,
) -> Callable[[np.ndarray], np.ndarray]:
    """Normalized autocorrelation of a sampled impulse response.

    The autocorrelation is evaluated on the lag grid of *time* and
    linearly interpolated (real and imaginary parts separately); lags
    outside the grid give zero.
    """
    time = np.asarray(time, dtype=float)
    vals = np.asarray(vals, dtype=complex)
    dt = np.mean(np.diff(time))
    acf = np.correlate(vals, vals, mode='full')
    acf = acf / acf[vals.size - 1]
    lags = (np.arange(acf.size) - (vals.size - 1)) * dt

    def corr(t: np.ndarray) -> np.ndarray:
        re = np.interp(t, lags, acf.real, left=0.0, right=0.0)
        im = np.interp(t, lags, acf.imag, left=0.0, right=0.0)
        return re + 1j * im
    return corr


def space_time_covariance(
    theta: np.ndarray,
    model: SteeringModel,
    n_offsets: int,
    fs: float,
    corr: Callable[[np.ndarray], np.ndarray],
) -> np.ndarray:
    """Modeled unit-power space-time covariance of each source.

    Entries pair (offset ``w``, channel ``c``) with the ordering of
    ``space_time_snapshots``: for source delays ``tau_c``,
    ``C[(w1,c1),(w2,c2)] = corr((w1-w2)/fs + tau_c1 - tau_c2)
    * exp(i 2 pi fc (tau_c1 - tau_c2)) / Nc``.

    Returns
    -------
    np.ndarray
        Shape ``(Nsrc, Nc*W, Nc*W)``.
    """
    tau = model.delays(theta)
    half = (n_offsets - 1) // 2
    t_w = np.arange(-half, half + 1) / fs
    Nc = model.Nc
    out = []
    for src in range(tau.shape[1]):
        lag = (t_w[:, None] + tau[None, :, src]).ravel()
        phase = np.tile(tau[:, src], t_w.size)
        dlag = lag[:, None] - lag[None, :]
        dphase = phase[:, None] - phase[None, :]
        out.append(corr(dlag) * np.exp(2j * np.pi * model.fc * dphase) / Nc)
    return np.asarray(out)


def wideband_cost(
    theta: np.ndarray,
    dcm: np.ndarray,
    model: SteeringModel,
    n_offsets: int,
    fs: float,
    corr: Callable[[np.ndarray], np.ndarray],
) -> float:
    """Negative fraction of ``‖DCM‖²`` explained by the source models.

    The per-source model covariances are fitted to the DCM by linear
    least squares, so the cost does not depend on the source powers.
    """
    basis = space_time_covariance(theta, model, n_offsets, fs, corr)
    B = basis.reshape(basis.shape[0], -1).T
    d = dcm.ravel()
    coeffs, *_ = np.linalg.lstsq(B, d, rcond=None)
    resid = d - B @ coeffs
    energy = np.real(np.vdot(d, d))
    if energy <= 0:
        return 0.0
    return -float(1.0 - np.real(np.vdot(resid, resid)) / energy)
