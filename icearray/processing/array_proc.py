# -*- coding: utf-8 -*-
"""
Array Processor - Beamforming and DOA estimation over a radar data cube.

``ArrayProcess`` sweeps the output grid of a 5-D complex data cube
``(Nt, Nx, Na, Nb, Nc)`` (fast-time bins, range lines, two snapshot
dimensions, channels) and runs the selected estimators at every output
pixel:

- beamformers (``standard``, ``mvdr``, ``mvdr_robust``, ``music``)
  produce a power-versus-angle spectrum over the per-line steering table;
- parametric estimators (``music_doa``, ``mle``, ``dcm``) resolve up to
  ``Nsrc`` discrete angles with per-source power.

Several cubes with matching geometries can be passed as multilook groups;
beamformers average them, DOA methods use the first. Range lines are
processed in order and, inside a line, bins in increasing range, which
the sequential tracker relies on.

Usage
-----
::

    proc = ArrayProcess(method='mvdr', dline=4, Nsv=64, line_rng=range(-3, 4))
    result = proc.apply(cube, ArrayGeometry(fc=195e6, y=y, z=z))
    img = result['mvdr'].img

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-08

Modified
--------
2026-03-12
"""

# Standard library
import logging
from typing import Annotated, Any, Dict, List, Optional, Sequence, Union

# Third-party
import numpy as np

# icearray internal
from icearray.beamforming import MUSIC, MVDR, Beamformer, Periodogram, RobustMVDR
from icearray.config import ArrayConfig, normalize_config
from icearray.constants import SEED_SEARCH_BINS
from icearray.doa import MLE, DoaEstimator, MusicDOA, WidebandDCM
from icearray.exceptions import ConfigError, EstimationError
from icearray.models import ArrayGeometry, ArrayResult, RadarInputs
from icearray.pixel import MultilookSamples, Pixel
from icearray.processing.base import ArrayProcessor
from icearray.processing.output import OutputAssembler
from icearray.processing.params import Desc, Options, Range
from icearray.processing.versioning import processor_version
from icearray.snapshots import equalize_channels, extract_snapshots
from icearray.steering import SteeringModel, geometry_steering
from icearray.tracking import SequentialTracker
from icearray.vocabulary import ArrayMethod, TrackerPhase

logger = logging.getLogger(__name__)

#: Bins before the start layer at which tracking begins.
START_LAYER_LEAD_BINS = 15

_BEAMFORMERS = {
    ArrayMethod.STANDARD: Periodogram,
    ArrayMethod.MVDR: MVDR,
    ArrayMethod.MVDR_ROBUST: RobustMVDR,
    ArrayMethod.MUSIC: MUSIC,
}


@processor_version('1.0.0')
class ArrayProcess(ArrayProcessor):
    """Multichannel radar array processor.

    Every constructor keyword can be overridden per call through
    ``apply(..., **kwargs)``. Angles are given in degrees. ``dline`` has
    no default and must be set at construction or at call time.
    """

    # -- Estimator selection -------------------------------------------
    method: Annotated[object, Desc(
        'Estimator name(s): standard, mvdr, mvdr_robust, music, '
        'music_doa, mle, dcm')] = 'standard'
    Nsrc: Annotated[int, Range(min=1), Desc('Maximum number of sources')] = 1

    # -- Neighborhoods and decimation ----------------------------------
    bin_rng: Annotated[object, Desc('Multilook fast-time offsets')] = 0
    line_rng: Annotated[object, Desc('Multilook range-line offsets')] = tuple(range(-5, 6))
    dcm_bin_rng: Annotated[Optional[object], Desc(
        'Covariance fast-time offsets (default bin_rng)')] = None
    dcm_line_rng: Annotated[Optional[object], Desc(
        'Covariance range-line offsets (default line_rng)')] = None
    dbin: Annotated[Optional[int], Range(min=1), Desc('Output bin step')] = None
    dline: Annotated[Optional[int], Range(min=1), Desc('Output line step')] = None
    bin0: Annotated[int, Range(min=0), Desc(
        'Record bin of the first cube bin, for decimation alignment')] = 0
    lines: Annotated[Optional[object], Desc(
        'First and last output range line')] = None
    Nsubband: Annotated[int, Range(min=1), Desc(
        'Adjacent fast-time offsets stacked by the dcm method')] = 1

    # -- Steering and beamforming --------------------------------------
    theta: Annotated[Optional[object], Desc('Explicit steering angles (deg)')] = None
    Nsv: Annotated[int, Range(min=1), Desc(
        'Steering angles uniform in wavenumber')] = 1
    theta_rng: Annotated[Optional[object], Desc(
        'Angle-of-interest range (deg) of the 2D products')] = None
    output_mode: Annotated[int, Options(1, 2), Desc(
        'DOA source reported: 1 strongest in range, 2 nearest center')] = 1
    diag_load: Annotated[float, Range(min=0.0), Desc(
        'Diagonal loading relative to the covariance RMS')] = 0.0
    window: Annotated[object, Desc('Channel taper name or weights')] = 'hann'
    tomo_en: Annotated[Optional[bool], Desc('Keep full tomographic tensors')] = None

    # -- Parametric DOA ------------------------------------------------
    doa_constraints: Annotated[Optional[object], Desc(
        'Per-source DoaConstraint or mapping')] = None
    doa_theta_guard: Annotated[float, Range(min=0.0), Desc(
        'Minimum source separation (deg)')] = 1.5
    doa_init: Annotated[str, Options('grid', 'ap'), Desc(
        'Initialization search')] = 'grid'
    reg_bins: Annotated[object, Desc(
        'Registration interpolator taps of the dcm method')] = tuple(range(-3, 4))

    # -- Model-order estimation ----------------------------------------
    moe_en: Annotated[bool, Desc('Estimate the number of sources')] = False
    moe_methods: Annotated[Optional[object], Desc(
        'Criteria: NT, AIC, HQ, MDL, AICc, KICvc, WIC')] = None
    moe_mode: Annotated[str, Options('suboptimal', 'optimal'), Desc(
        'Eigenvalue-only or MLE-based criteria')] = 'suboptimal'
    moe_classifier: Annotated[Optional[object], Desc(
        'Callable(eigvals) -> (order, probability)')] = None
    penalty_nt: Annotated[float, Desc('Per-source penalty of NT')] = 0.0
    moe_diagnostics: Annotated[bool, Desc(
        'Keep per-criterion order estimates')] = False

    # -- Sequential tracking -------------------------------------------
    doa_seq: Annotated[bool, Desc('Track left/right branches (mle)')] = False
    ref_doa: Annotated[float, Desc('Angle separating the branches (deg)')] = 0.0
    er_ice: Annotated[float, Range(min=1.0), Desc('Ice relative permittivity')] = 3.15
    bound_policy: Annotated[str, Options(
        'fixed_wide', 'threshold_relaxed', 'continuous_compressed', 'geometry'),
        Desc('Tracking bound policy')] = 'geometry'
    prior_pdf: Annotated[str, Options('gaussian', 'uniform'), Desc(
        'Tracking prior')] = 'gaussian'
    kk_start: Annotated[float, Range(min=0.0), Desc(
        'Bound expansion near the seed bin')] = 1.0
    kk_end: Annotated[float, Range(min=0.0), Desc(
        'Bound expansion after the seed bins')] = 1.0
    kk_std: Annotated[float, Range(min=0.0), Desc(
        'Prior width factor')] = 1.0
    ice_thickness: Annotated[float, Range(min=0.0), Desc(
        'Ice thickness (m) of the geometry bound')] = 2000.0

    def apply(
        self,
        data: Union[np.ndarray, Sequence[np.ndarray]],
        geometry: Union[ArrayGeometry, Sequence[ArrayGeometry]],
        inputs: Optional[RadarInputs] = None,
        **kwargs: Any,
    ) -> ArrayResult:
        """Run the selected estimators over the output grid.

        Parameters
        ----------
        data : np.ndarray or Sequence[np.ndarray]
            Complex cube ``(Nt, Nx, Na, Nb, Nc)`` or one cube per
            multilook group.
        geometry : ArrayGeometry or Sequence[ArrayGeometry]
            Phase-center geometry of each group.
        inputs : RadarInputs, optional
            Fast-time axis, surface/layer times and related records.
        **kwargs
            Parameter overrides and ``progress_callback``.

        Returns
        -------
        ArrayResult

        Raises
        ------
        ConfigError
            If the parameters are invalid or a required input is missing.
        EstimationError
            If the cubes and geometries do not match.
        """
        cubes = [data] if isinstance(data, np.ndarray) else list(data)
        geometries = ([geometry] if isinstance(geometry, ArrayGeometry)
                      else list(geometry))
        if not cubes or len(cubes) != len(geometries):
            raise EstimationError(
                f"{len(cubes)} data cubes for {len(geometries)} geometries"
            )

        cfg = normalize_config(self._resolve_params(kwargs), cubes[0].shape)
        inputs = inputs if inputs is not None else RadarInputs()
        cubes = self._prepare_cubes(cubes, geometries, cfg, inputs)

        beamformers = {m: _BEAMFORMERS[m]() for m in cfg.beam_methods}
        estimators = self._doa_estimators(cfg, inputs)
        tracker = None
        if cfg.doa_seq and ArrayMethod.MLE in estimators:
            tracker = SequentialTracker(cfg)

        assembler = OutputAssembler(cfg)
        n_lines = cfg.lines.size
        logger.info("Array processing %d bins x %d lines, methods %s",
                    cfg.bins.size, n_lines, [m.value for m in cfg.methods])
        log_every = max(n_lines // 10, 1)

        for line_idx, line in enumerate(cfg.lines):
            self._process_line(line_idx, int(line), cubes, geometries, cfg,
                               inputs, beamformers, estimators, tracker,
                               assembler)
            if (line_idx + 1) % log_every == 0 or line_idx + 1 == n_lines:
                logger.info("Processed line %d/%d", line_idx + 1, n_lines)
            self._report_progress(kwargs, (line_idx + 1) / n_lines)

        return assembler.result()

    # -----------------------------------------------------------------
    # Setup
    # -----------------------------------------------------------------

    @staticmethod
    def _prepare_cubes(
        cubes: List[np.ndarray],
        geometries: List[ArrayGeometry],
        cfg: ArrayConfig,
        inputs: RadarInputs,
    ) -> List[np.ndarray]:
        shape = cubes[0].shape
        for idx, (cube, geom) in enumerate(zip(cubes, geometries)):
            if cube.shape != shape:
                raise EstimationError(
                    f"Multilook cube {idx} has shape {cube.shape}, "
                    f"expected {shape}"
                )
            if geom.Nc != cfg.Nc:
                raise EstimationError(
                    f"Geometry {idx} has {geom.Nc} channels but the data "
                    f"has {cfg.Nc}"
                )
        if inputs.chan_equal is not None:
            cubes = [equalize_channels(c, inputs.chan_equal) for c in cubes]
        if inputs.time is not None and np.size(inputs.time) != shape[0]:
            raise ConfigError(
                f"time has {np.size(inputs.time)} samples for {shape[0]} bins"
            )
        return cubes

    @staticmethod
    def _doa_estimators(
        cfg: ArrayConfig,
        inputs: RadarInputs,
    ) -> Dict[ArrayMethod, DoaEstimator]:
        estimators: Dict[ArrayMethod, DoaEstimator] = {}
        for method in cfg.doa_methods:
            if method is ArrayMethod.MUSIC_DOA:
                estimators[method] = MusicDOA()
            elif method is ArrayMethod.MLE:
                estimators[method] = MLE()
            elif method is ArrayMethod.DCM:
                if inputs.fs is None:
                    raise ConfigError("The dcm method requires inputs.fs")
                estimators[method] = WidebandDCM(inputs.imp_resp)
        if cfg.doa_seq and ArrayMethod.MLE in estimators and inputs.time is None:
            raise ConfigError("Sequential tracking requires inputs.time")
        return estimators

    # -----------------------------------------------------------------
    # Sweep
    # -----------------------------------------------------------------

    def _process_line(
        self,
        line_idx: int,
        line: int,
        cubes: List[np.ndarray],
        geometries: List[ArrayGeometry],
        cfg: ArrayConfig,
        inputs: RadarInputs,
        beamformers: Dict[ArrayMethod, Beamformer],
        estimators: Dict[ArrayMethod, DoaEstimator],
        tracker: Optional[SequentialTracker],
        assembler: OutputAssembler,
    ) -> None:
        Nt = cubes[0].shape[0]
        steering = [geometry_steering(g, line, theta=cfg.theta, n_sv=cfg.Nsv)
                    for g in geometries]
        models = [SteeringModel.from_geometry(g, line) for g in geometries]
        first_bin, last_bin = inputs.bin_limits(line, Nt)
        surface = inputs.surface_at(line)
        layer = inputs.layer_at(line)

        track = tracker is not None
        start_bin = None
        tracked_bins = 0
        if track:
            tracker.reset()
            start_bin, track = self._tracking_start(line, cfg, inputs)

        for bin_idx, b in enumerate(cfg.bins):
            b = int(b)
            if b < first_bin or b > last_bin:
                continue
            time = float(inputs.time[b]) if inputs.time is not None else np.nan
            pixel = Pixel(
                bin=b, line=line,
                groups=[self._samples(cube, b, line, cfg, steer, model)
                        for cube, steer, model in zip(cubes, steering, models)],
                cfg=cfg, time=time, surface=surface, layer=layer,
                fs=inputs.fs,
            )

            for method, beamformer in beamformers.items():
                assembler.add_spectrum(method, bin_idx, line_idx,
                                       pixel.primary.steering.theta,
                                       beamformer.estimate(pixel))

            for method, estimator in estimators.items():
                if method is ArrayMethod.MLE and tracker is not None:
                    if not track or tracker.stopped:
                        continue
                    if (start_bin is not None and b < start_bin) or not time > 0:
                        continue
                    result = estimator.estimate(pixel, tracker)
                    tracked_bins += 1
                    if (start_bin is not None and tracked_bins >= SEED_SEARCH_BINS
                            and tracker.phase is TrackerPhase.UNSEEDED):
                        logger.debug("No tracker seed within %d bins on line "
                                     "%d; stopping line", SEED_SEARCH_BINS, line)
                        track = False
                else:
                    result = estimator.estimate(pixel)
                assembler.add_doa(method, bin_idx, line_idx, result.estimate)
                if result.moe is not None:
                    assembler.add_moe(bin_idx, line_idx, result.moe)

    @staticmethod
    def _tracking_start(line: int, cfg: ArrayConfig, inputs: RadarInputs):
        """``(start_bin, enabled)`` of the tracker on *line*."""
        if inputs.start_layer_twtt is None:
            return None, True
        twtt = np.atleast_1d(inputs.start_layer_twtt)
        twtt = float(twtt[0] if twtt.size == 1 else twtt[line])
        if not np.isfinite(twtt):
            logger.warning("No start layer travel time on line %d; "
                           "skipping tracking for this line", line)
            return None, False
        layer_bin = int(np.argmin(np.abs(np.asarray(inputs.time) - twtt)))
        return layer_bin + int(np.max(cfg.bin_rng)) - START_LAYER_LEAD_BINS, True

    @staticmethod
    def _samples(cube, bin_idx, line, cfg, steering, model) -> MultilookSamples:
        snapshots = extract_snapshots(cube, bin_idx, line, cfg.bin_rng, cfg.line_rng)
        if cfg.dcm_ml_match:
            dcm_snapshots = snapshots
        else:
            dcm_snapshots = extract_snapshots(cube, bin_idx, line,
                                              cfg.dcm_bin_rng, cfg.dcm_line_rng)
        return MultilookSamples(snapshots=snapshots, dcm_snapshots=dcm_snapshots,
                                steering=steering, model=model, cube=cube)
