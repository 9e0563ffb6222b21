# -*- coding: utf-8 -*-
"""
Vocabulary - Canonical enums for the icearray engine.

Single source of truth for the controlled vocabularies used across the
package: estimator methods, DOA constraint kinds, model-order criteria,
tracker bounding policies, and per-pixel estimation outcomes.

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
2026-03-09
"""

from enum import Enum


class ArrayMethod(Enum):
    """Estimator variants supported by the array processor.

    The first four are beamformers producing a power-vs-angle spectrum;
    the last three are parametric DOA estimators producing a small number
    of discrete angles per pixel.
    """

    STANDARD = "standard"
    MVDR = "mvdr"
    MVDR_ROBUST = "mvdr_robust"
    MUSIC = "music"
    MUSIC_DOA = "music_doa"
    MLE = "mle"
    DCM = "dcm"

    @property
    def is_doa(self) -> bool:
        """Whether this method produces discrete DOA estimates."""
        return self in _DOA_METHODS


_DOA_METHODS = frozenset(
    (ArrayMethod.MUSIC_DOA, ArrayMethod.MLE, ArrayMethod.DCM)
)


class ConstraintMethod(Enum):
    """Ways of centering the search window of one DOA source slot."""

    FIXED = "fixed"
    SURFACE_LEFT = "surfleft"
    SURFACE_RIGHT = "surfright"
    LAYER_LEFT = "layerleft"
    LAYER_RIGHT = "layerright"


class MoeCriterion(Enum):
    """Information-theoretic model-order criteria."""

    NT = "NT"
    AIC = "AIC"
    HQ = "HQ"
    MDL = "MDL"
    AICC = "AICc"
    KICVC = "KICvc"
    WIC = "WIC"


class MoeMode(Enum):
    """Whether criteria use eigenvalues only or the fitted MLE solutions."""

    SUBOPTIMAL = "suboptimal"
    OPTIMAL = "optimal"


class BoundPolicyKind(Enum):
    """Search-bound policies of the sequential tracker."""

    FIXED_WIDE = "fixed_wide"
    THRESHOLD_RELAXED = "threshold_relaxed"
    CONTINUOUS_COMPRESSED = "continuous_compressed"
    GEOMETRY = "geometry"


class PriorPdf(Enum):
    """Prior used by the tracker's cost function."""

    GAUSSIAN = "gaussian"
    UNIFORM = "uniform"


class TrackerPhase(Enum):
    """Per range-line tracker states."""

    UNSEEDED = "unseeded"
    SEEDED = "seeded"
    TRACKING = "tracking"


class EstimationOutcome(Enum):
    """Result classification of one pixel's DOA estimation."""

    RESOLVED = "resolved"
    NO_SOURCE_DETECTED = "no_source_detected"
    OPTIMIZER_FAILED = "optimizer_failed"
    BOUNDS_COLLAPSED = "bounds_collapsed"
