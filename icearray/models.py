# -*- coding: utf-8 -*-
"""
Data Models - Inputs and outputs of the array processor.

``ArrayGeometry`` carries the phase-center positions of one multilook
group, ``RadarInputs`` the per-record timing and layer information, and
``ArrayResult`` the per-method image, angle and tomographic tensors.
Output arrays are NaN-initialized so that "no source" is never
confused with zero power.

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
2026-03-11
"""

# Standard library
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

# Third-party
import numpy as np

from icearray.exceptions import ConfigError
from icearray.vocabulary import ArrayMethod, MoeCriterion

logger = logging.getLogger(__name__)


# =====================================================================
# Inputs
# =====================================================================

@dataclass(frozen=True, eq=False)
class SteeringLUT:
    """Empirically measured steering vectors versus angle at zero roll.

    Attributes
    ----------
    doa : np.ndarray
        Measurement angles (radians), shape ``(Nlut,)``, ascending.
    sv : np.ndarray
        Complex correction factors, shape ``(Nc, Nlut)``.
    """

    doa: np.ndarray
    sv: np.ndarray

    def __post_init__(self) -> None:
        doa = np.asarray(self.doa, dtype=float).ravel()
        sv = np.atleast_2d(np.asarray(self.sv, dtype=complex))
        if sv.shape[1] != doa.size:
            raise ConfigError(
                f"SteeringLUT sv has {sv.shape[1]} columns for "
                f"{doa.size} angles"
            )
        object.__setattr__(self, 'doa', doa)
        object.__setattr__(self, 'sv', sv)


@dataclass(eq=False)
class ArrayGeometry:
    """Phase-center geometry of one multilook group.

    Attributes
    ----------
    fc : float
        Center frequency (Hz).
    y : np.ndarray
        Cross-track positions (m), shape ``(Nc,)`` or ``(Nc, Nx)``.
    z : np.ndarray
        Elevation positions (m), same shape as ``y``.
    roll : np.ndarray, optional
        Aircraft roll per range line (radians), shape ``(Nx,)``.
    lut : SteeringLUT, optional
        Empirical steering correction applied with ``roll``.
    """

    fc: float
    y: np.ndarray
    z: np.ndarray
    roll: Optional[np.ndarray] = None
    lut: Optional[SteeringLUT] = None

    def __post_init__(self) -> None:
        self.y = np.asarray(self.y, dtype=float)
        self.z = np.asarray(self.z, dtype=float)
        if self.y.shape != self.z.shape or self.y.ndim not in (1, 2):
            raise ConfigError(
                f"y and z must share a (Nc,) or (Nc, Nx) shape, got "
                f"{self.y.shape} and {self.z.shape}"
            )
        if self.fc <= 0:
            raise ConfigError(f"fc must be positive, got {self.fc}")
        if self.roll is not None:
            self.roll = np.atleast_1d(np.asarray(self.roll, dtype=float))

    @property
    def Nc(self) -> int:
        """Number of channels."""
        return self.y.shape[0]

    def positions(self, line: int) -> Tuple[np.ndarray, np.ndarray]:
        """Cross-track and elevation positions at *line*."""
        if self.y.ndim == 1:
            return self.y, self.z
        return self.y[:, line], self.z[:, line]

    def roll_at(self, line: int) -> float:
        """Roll angle at *line* (0 when no roll is recorded)."""
        if self.roll is None:
            return 0.0
        if self.roll.size == 1:
            return float(self.roll[0])
        return float(self.roll[line])


@dataclass(frozen=True, eq=False)
class ImpulseResponse:
    """Sampled system impulse response used by the wideband model."""

    time: np.ndarray
    vals: np.ndarray


@dataclass(eq=False)
class RadarInputs:
    """Record-level timing and layer information.

    Attributes
    ----------
    time : np.ndarray, optional
        Fast-time of each range bin (s), shape ``(Nt,)``. Required for
        surface/layer constraints and sequential tracking.
    fs : float, optional
        Fast-time sample rate (Hz). Required by the DCM method.
    surface : np.ndarray, optional
        Surface two-way travel time per range line (s), shape ``(Nx,)``.
    layer : np.ndarray, optional
        Subsurface layer two-way travel time per range line (s).
    bin_restriction : tuple of np.ndarray, optional
        ``(start, stop)`` zero-based bin bounds per range line.
    chan_equal : np.ndarray, optional
        Complex per-channel equalization; the data is divided by it.
    imp_resp : ImpulseResponse, optional
        System impulse response for the wideband covariance model.
    start_layer_twtt : np.ndarray, optional
        Per-line travel time where sequential tracking starts. Lines with a
        non-finite value are not tracked; their beamformer and untracked
        DOA outputs are still computed.
    """

    time: Optional[np.ndarray] = None
    fs: Optional[float] = None
    surface: Optional[np.ndarray] = None
    layer: Optional[np.ndarray] = None
    bin_restriction: Optional[Tuple[np.ndarray, np.ndarray]] = None
    chan_equal: Optional[np.ndarray] = None
    imp_resp: Optional[ImpulseResponse] = None
    start_layer_twtt: Optional[np.ndarray] = None

    def bin_limits(self, line: int, Nt: int) -> Tuple[int, int]:
        """Inclusive zero-based bin bounds allowed at *line*.

        A non-finite bound gives the empty interval ``(1, 0)`` so the
        line is skipped and its outputs stay NaN.
        """
        if self.bin_restriction is None:
            return 0, Nt - 1
        start, stop = self.bin_restriction
        start = float(np.asarray(start, dtype=float)[line])
        stop = float(np.asarray(stop, dtype=float)[line])
        if not (np.isfinite(start) and np.isfinite(stop)):
            logger.warning("Non-finite bin restriction on line %d; "
                           "skipping line", line)
            return 1, 0
        return int(start), int(stop)

    def surface_at(self, line: int) -> float:
        """Surface travel time at *line*, NaN when unavailable."""
        return _value_at(self.surface, line)

    def layer_at(self, line: int) -> float:
        """Layer travel time at *line*, NaN when unavailable."""
        return _value_at(self.layer, line)


def _value_at(values: Optional[np.ndarray], line: int) -> float:
    if values is None:
        return np.nan
    values = np.atleast_1d(values)
    return float(values[0] if values.size == 1 else values[line])


# =====================================================================
# Outputs
# =====================================================================

@dataclass(eq=False)
class TomoOutput:
    """Full tomographic tensors of one method.

    For beamformers ``img`` is ``(Nbins, Nsv, Nlines)`` and ``theta`` the
    ``(Nsv,)`` angle grid; ``cost`` and ``hessian`` are ``None``. For DOA
    methods ``img``, ``theta`` and ``hessian`` are ``(Nbins, Nsrc, Nlines)``
    and ``cost`` is ``(Nbins, Nlines)``.
    """

    img: np.ndarray
    theta: np.ndarray
    cost: Optional[np.ndarray] = None
    hessian: Optional[np.ndarray] = None


@dataclass(eq=False)
class MethodOutput:
    """Reduced 2D products of one method plus optional tomography."""

    method: ArrayMethod
    img: np.ndarray
    theta: np.ndarray
    tomo: Optional[TomoOutput] = None


@dataclass(eq=False)
class MoeDiagnostics:
    """Per-criterion model-order estimates.

    ``order[c]`` is ``(Nbins, Nlines)``; ``doa[c]`` is
    ``(Nbins, Nsrc, Nlines)`` and only filled by optimal criteria.
    ``classifier_order`` and ``classifier_prob`` are filled when a
    classifier is configured.
    """

    order: Dict[MoeCriterion, np.ndarray] = field(default_factory=dict)
    doa: Dict[MoeCriterion, np.ndarray] = field(default_factory=dict)
    classifier_order: Optional[np.ndarray] = None
    classifier_prob: Optional[np.ndarray] = None


@dataclass(eq=False)
class ArrayResult:
    """Everything produced by one ``ArrayProcess.apply`` call."""

    outputs: Dict[ArrayMethod, MethodOutput]
    bins: np.ndarray
    lines: np.ndarray
    moe: Optional[MoeDiagnostics] = None

    def __getitem__(self, method) -> MethodOutput:
        return self.outputs[ArrayMethod(method)]
