# -*- coding: utf-8 -*-
"""
Configuration Normalizer - Validated, fully-populated array configuration.

``normalize_config`` turns the resolved tunable parameters of an
``ArrayProcess`` (a plain mapping; missing keys and ``None`` values take
defaults) plus the data cube dimensions into a frozen ``ArrayConfig``.
It is a pure function: the same inputs always give the same config, and
every configuration error is raised here before any pixel is processed.

Angles are accepted in degrees and stored in radians.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-02

Modified
--------
2026-03-11
"""

# Standard library
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

# Third-party
import numpy as np
from scipy.signal import windows

from icearray.constants import ER_ICE
from icearray.exceptions import ConfigError
from icearray.vocabulary import (
    ArrayMethod,
    BoundPolicyKind,
    ConstraintMethod,
    MoeCriterion,
    MoeMode,
    PriorPdf,
)

logger = logging.getLogger(__name__)

_METHOD_ALIASES = {
    'period': ArrayMethod.STANDARD,
    'periodogram': ArrayMethod.STANDARD,
}


# =====================================================================
# DOA constraint
# =====================================================================

@dataclass(frozen=True)
class DoaConstraint:
    """Search window definition for one DOA source slot.

    Attributes
    ----------
    method : ConstraintMethod
        How the window midpoint is found for each range bin.
    init_src_limits : Tuple[float, float]
        Initialization search limits relative to the midpoint (radians).
    src_limits : Tuple[float, float]
        Optimizer box limits relative to the midpoint (radians).
    """

    method: ConstraintMethod = ConstraintMethod.FIXED
    init_src_limits: Tuple[float, float] = (-np.pi / 2, np.pi / 2)
    src_limits: Tuple[float, float] = (-np.pi / 2, np.pi / 2)

    @classmethod
    def from_degrees(
        cls,
        method: Union[str, ConstraintMethod] = ConstraintMethod.FIXED,
        init_src_limits: Sequence[float] = (-90.0, 90.0),
        src_limits: Sequence[float] = (-90.0, 90.0),
    ) -> 'DoaConstraint':
        """Build a constraint from limits given in degrees."""
        try:
            method = ConstraintMethod(method)
        except ValueError:
            raise ConfigError(
                f"Unknown DOA constraint method {method!r}; expected one of "
                f"{[m.value for m in ConstraintMethod]}"
            ) from None
        return cls(
            method=method,
            init_src_limits=_limits_rad(init_src_limits, 'init_src_limits'),
            src_limits=_limits_rad(src_limits, 'src_limits'),
        )


def _limits_rad(limits: Sequence[float], name: str) -> Tuple[float, float]:
    arr = np.asarray(limits, dtype=float).ravel()
    if arr.size != 2 or arr[0] > arr[1]:
        raise ConfigError(
            f"{name} must be an ascending [low, high] pair, got {limits!r}"
        )
    return (float(np.deg2rad(arr[0])), float(np.deg2rad(arr[1])))


def _coerce_constraint(item: Any) -> DoaConstraint:
    if isinstance(item, DoaConstraint):
        return item
    if isinstance(item, Mapping):
        return DoaConstraint.from_degrees(**item)
    raise ConfigError(
        f"doa_constraints entries must be DoaConstraint or mappings, "
        f"got {type(item).__name__}"
    )


# =====================================================================
# ArrayConfig
# =====================================================================

@dataclass(frozen=True, eq=False)
class ArrayConfig:
    """Fully-populated array processing configuration.

    Index grids (``bins``, ``lines``) are zero-based positions into the
    input data cube. Angles are radians.
    """

    methods: Tuple[ArrayMethod, ...]
    Nsrc: int
    bin_rng: np.ndarray
    line_rng: np.ndarray
    dcm_bin_rng: np.ndarray
    dcm_line_rng: np.ndarray
    dcm_ml_match: bool
    dbin: int
    dline: int
    bins: np.ndarray
    lines: np.ndarray
    Nc: int
    diag_load: float
    window: np.ndarray
    theta: Optional[np.ndarray]
    Nsv: int
    theta_rng: Optional[Tuple[float, float]]
    output_mode: int
    Nsubband: int
    doa_constraints: Tuple[DoaConstraint, ...]
    doa_theta_guard: float
    doa_init: str
    doa_seq: bool
    moe_en: bool
    moe_methods: Tuple[MoeCriterion, ...]
    moe_mode: MoeMode
    moe_classifier: Optional[Callable[[np.ndarray], Tuple[int, float]]]
    penalty_nt: float
    moe_diagnostics: bool
    tomo_en: bool
    er_ice: float
    ref_doa: float
    bound_policy: BoundPolicyKind
    prior_pdf: PriorPdf
    kk_start: float
    kk_end: float
    kk_std: float
    ice_thickness: float
    reg_bins: np.ndarray

    @property
    def beam_methods(self) -> Tuple[ArrayMethod, ...]:
        """Selected beamforming methods, in selection order."""
        return tuple(m for m in self.methods if not m.is_doa)

    @property
    def doa_methods(self) -> Tuple[ArrayMethod, ...]:
        """Selected parametric DOA methods, in selection order."""
        return tuple(m for m in self.methods if m.is_doa)

    def theta_rng_for(self, method: ArrayMethod) -> Tuple[float, float]:
        """Angle-of-interest range used when reducing *method*'s output.

        Beamformers default to nadir ``(0, 0)``; DOA methods default to
        the full half-space so the strongest source is reported.
        """
        if self.theta_rng is not None:
            return self.theta_rng
        if method.is_doa:
            return (-np.pi / 2, np.pi / 2)
        return (0.0, 0.0)


# =====================================================================
# Helpers
# =====================================================================

def parse_methods(method: Any) -> Tuple[ArrayMethod, ...]:
    """Parse a method selection into a stable-ordered tuple of methods.

    *method* may be an ``ArrayMethod``, a whitespace/comma separated
    string, or a sequence of either. Unknown names are dropped with a
    warning log.

    Raises
    ------
    ConfigError
        If nothing supported remains.
    """
    if method is None:
        items: list = []
    elif isinstance(method, (str, ArrayMethod)):
        items = [method]
    else:
        items = list(method)

    tokens: list = []
    for item in items:
        if isinstance(item, ArrayMethod):
            tokens.append(item)
        else:
            tokens.extend(str(item).replace(',', ' ').split())

    selected: dict = {}
    for tok in tokens:
        if isinstance(tok, ArrayMethod):
            selected[tok] = None
            continue
        key = tok.strip().lower()
        if key in _METHOD_ALIASES:
            selected[_METHOD_ALIASES[key]] = None
            continue
        try:
            selected[ArrayMethod(key)] = None
        except ValueError:
            logger.warning("Ignoring unsupported array method %r", tok)

    if not selected:
        raise ConfigError(
            f"No supported array method selected from {method!r}; expected "
            f"any of {[m.value for m in ArrayMethod]}"
        )
    return tuple(selected)


def symmetric_range(value: Any, name: str) -> np.ndarray:
    """Return ``-m..m`` where *m* is the largest magnitude in *value*.

    Raises
    ------
    ConfigError
        If any element is not an integer.
    """
    arr = np.atleast_1d(np.asarray(value, dtype=float)).ravel()
    if arr.size == 0:
        raise ConfigError(f"{name} may not be empty")
    if not np.all(np.isfinite(arr)) or np.any(np.mod(arr, 1) != 0):
        raise ConfigError(f"{name} must contain only integers, got {value!r}")
    half = int(np.max(np.abs(arr)))
    return np.arange(-half, half + 1)


def build_window(window: Any, Nc: int) -> np.ndarray:
    """Return the per-channel taper normalized to unit mean.

    ``'hann'`` follows the endpoint-free Hann definition (all weights
    non-zero). Arrays are used as given, then normalized.
    """
    if isinstance(window, str):
        name = window.lower()
        if name in ('hann', 'hanning'):
            w = windows.hann(Nc + 2, sym=True)[1:-1]
        elif name == 'hamming':
            w = windows.hamming(Nc, sym=True)
        elif name == 'blackman':
            w = windows.blackman(Nc + 2, sym=True)[1:-1]
        elif name in ('boxcar', 'rect', 'uniform'):
            w = np.ones(Nc)
        else:
            raise ConfigError(f"Unknown window {window!r}")
    else:
        w = np.asarray(window, dtype=float).ravel()
        if w.size != Nc:
            raise ConfigError(
                f"window has {w.size} weights but the data has {Nc} channels"
            )
    total = np.sum(w)
    if total <= 0:
        raise ConfigError("window weights must have a positive sum")
    return w / np.mean(w)


def output_bins(
    Nt: int,
    bin_rng: np.ndarray,
    dbin: int,
    Nsubband: int = 1,
    bin0: int = 0,
) -> np.ndarray:
    """Zero-based output range bins with full ``bin_rng`` support.

    Bins are spaced by *dbin* and aligned so that the absolute record bin
    ``bin0 + bin`` falls on the decimation grid, which keeps adjacent
    blocks of a record consistent.
    """
    half_sub = (Nsubband - 1) // 2
    lead = -int(np.min(bin_rng)) * Nsubband
    offset = int(round(np.mod(bin0 + half_sub + lead, dbin)))
    start = offset + half_sub + lead
    stop = Nt - 1 - int(np.max(bin_rng)) * Nsubband - half_sub
    return np.arange(start, stop + 1, dbin, dtype=int)


def output_lines(
    Nx: int,
    line_rng: np.ndarray,
    dline: int,
    lines: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """Zero-based output range lines.

    When *lines* is given only its first and last entries are used and
    the grid is rebuilt with step *dline*.
    """
    if lines is not None and len(lines) > 0:
        first, last = int(lines[0]), int(lines[-1])
        if first < 0 or last > Nx - 1:
            raise ConfigError(
                f"lines [{first}, {last}] fall outside the {Nx} input lines"
            )
        return np.arange(first, last + 1, dline, dtype=int)
    return np.arange(-int(np.min(line_rng)),
                     Nx - int(np.max(line_rng)), dline, dtype=int)


def _enum(value: Any, enum_cls: type, name: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigError(
            f"Unknown {name} {value!r}; expected one of "
            f"{[m.value for m in enum_cls]}"
        ) from None


def _enum_tuple(values: Any, enum_cls: type, name: str) -> tuple:
    if values is None:
        return ()
    if isinstance(values, (str, enum_cls)):
        values = [values]
    return tuple(dict.fromkeys(_enum(v, enum_cls, name) for v in values))


# =====================================================================
# Normalizer
# =====================================================================

def normalize_config(
    params: Mapping[str, Any],
    data_shape: Sequence[int],
) -> ArrayConfig:
    """Validate *params* and fill defaults for a cube of *data_shape*.

    Parameters
    ----------
    params : Mapping[str, Any]
        Partially-specified parameters. Missing keys and ``None`` values
        take the documented defaults.
    data_shape : Sequence[int]
        Shape ``(Nt, Nx, Na, Nb, Nc)`` of the (first) data cube.

    Returns
    -------
    ArrayConfig

    Raises
    ------
    ConfigError
        If ``dline`` is missing, a neighborhood range holds non-integers,
        no supported method is selected, or option values are invalid.
    """
    def get(key: str, default: Any = None) -> Any:
        value = params.get(key)
        return default if value is None else value

    if len(data_shape) != 5:
        raise ConfigError(
            f"Data cube must be 5-D (Nt, Nx, Na, Nb, Nc), got shape "
            f"{tuple(data_shape)}"
        )
    Nt, Nx, _, _, Nc = (int(n) for n in data_shape)

    methods = parse_methods(params.get('method'))
    doa_selected = any(m.is_doa for m in methods)

    Nsrc = int(get('Nsrc', 1))
    if Nsrc < 1:
        raise ConfigError(f"Nsrc must be at least 1, got {Nsrc}")

    bin_rng = symmetric_range(get('bin_rng', 0), 'bin_rng')
    line_rng = symmetric_range(get('line_rng', np.arange(-5, 6)), 'line_rng')
    dcm_bin_rng = symmetric_range(get('dcm_bin_rng', bin_rng), 'dcm_bin_rng')
    dcm_line_rng = symmetric_range(get('dcm_line_rng', line_rng), 'dcm_line_rng')
    dcm_ml_match = (np.array_equal(dcm_bin_rng, bin_rng)
                    and np.array_equal(dcm_line_rng, line_rng))

    dline = params.get('dline')
    if dline is None:
        raise ConfigError("dline (output range-line decimation) must be specified")
    dline = int(dline)
    dbin = int(get('dbin', int(np.floor(len(bin_rng) / 2 + 0.5))))
    if dbin < 1 or dline < 1:
        raise ConfigError(f"dbin and dline must be >= 1, got {dbin}, {dline}")

    Nsubband = int(get('Nsubband', 1))
    bins = output_bins(Nt, bin_rng, dbin, Nsubband, int(get('bin0', 0)))
    lines = output_lines(Nx, line_rng, dline, params.get('lines'))

    theta = params.get('theta')
    if theta is not None:
        theta = np.deg2rad(np.atleast_1d(np.asarray(theta, dtype=float)).ravel())
        Nsv = theta.size
    else:
        Nsv = int(get('Nsv', 1))

    theta_rng = params.get('theta_rng')
    if theta_rng is not None:
        theta_rng = _limits_rad(theta_rng, 'theta_rng')

    doa_seq = bool(get('doa_seq', False))
    guard = float(get('doa_theta_guard', 1.5))
    if doa_seq and guard > 0.5:
        guard = 1.0

    raw_constraints = list(get('doa_constraints', ()))
    constraints = [_coerce_constraint(c) for c in raw_constraints]
    while len(constraints) < Nsrc:
        constraints.append(DoaConstraint())

    if doa_seq and ArrayMethod.MLE in methods and Nsrc != 2:
        raise ConfigError(
            "Sequential tracking follows a left and a right branch and "
            f"requires Nsrc=2, got {Nsrc}"
        )

    moe_methods = _enum_tuple(get('moe_methods', ()), MoeCriterion, 'MOE criterion')
    moe_classifier = params.get('moe_classifier')
    moe_en = bool(get('moe_en', False)) or bool(get('moe_diagnostics', False))
    if moe_en and not moe_methods and moe_classifier is None:
        moe_methods = (MoeCriterion.MDL,)

    doa_init = str(get('doa_init', 'grid')).lower()
    if doa_init not in ('grid', 'ap'):
        raise ConfigError(f"doa_init must be 'grid' or 'ap', got {doa_init!r}")

    output_mode = int(get('output_mode', 1))
    if output_mode not in (1, 2):
        raise ConfigError(f"output_mode must be 1 or 2, got {output_mode}")

    tomo_en = params.get('tomo_en')
    if tomo_en is None:
        tomo_en = doa_selected or Nsv > 1

    return ArrayConfig(
        methods=methods,
        Nsrc=Nsrc,
        bin_rng=bin_rng,
        line_rng=line_rng,
        dcm_bin_rng=dcm_bin_rng,
        dcm_line_rng=dcm_line_rng,
        dcm_ml_match=dcm_ml_match,
        dbin=dbin,
        dline=dline,
        bins=bins,
        lines=lines,
        Nc=Nc,
        diag_load=float(get('diag_load', 0.0)),
        window=build_window(get('window', 'hann'), Nc),
        theta=theta,
        Nsv=Nsv,
        theta_rng=theta_rng,
        output_mode=output_mode,
        Nsubband=Nsubband,
        doa_constraints=tuple(constraints),
        doa_theta_guard=float(np.deg2rad(guard)),
        doa_init=doa_init,
        doa_seq=doa_seq,
        moe_en=moe_en,
        moe_methods=moe_methods,
        moe_mode=_enum(get('moe_mode', MoeMode.SUBOPTIMAL), MoeMode, 'moe_mode'),
        moe_classifier=moe_classifier,
        penalty_nt=float(get('penalty_nt', 0.0)),
        moe_diagnostics=bool(get('moe_diagnostics', False)),
        tomo_en=bool(tomo_en),
        er_ice=float(get('er_ice', ER_ICE)),
        ref_doa=float(np.deg2rad(get('ref_doa', 0.0))),
        bound_policy=_enum(get('bound_policy', BoundPolicyKind.GEOMETRY),
                           BoundPolicyKind, 'bound_policy'),
        prior_pdf=_enum(get('prior_pdf', PriorPdf.GAUSSIAN), PriorPdf, 'prior_pdf'),
        kk_start=float(get('kk_start', 1.0)),
        kk_end=float(get('kk_end', 1.0)),
        kk_std=float(get('kk_std', 1.0)),
        ice_thickness=float(get('ice_thickness', 2000.0)),
        reg_bins=np.asarray(get('reg_bins', np.arange(-3, 4)), dtype=int).ravel(),
    )
