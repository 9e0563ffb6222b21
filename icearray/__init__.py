# -*- coding: utf-8 -*-
"""
icearray - Array processing for multichannel ice-penetrating radar.

Beamforming (periodogram, MVDR, MUSIC), parametric direction-of-arrival
estimation (MUSIC-DOA, maximum likelihood with sequential tracking,
wideband covariance fitting) and model-order estimation over 5-D radar
data cubes.

Dependencies
------------
numpy
scipy

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
2026-03-12
"""

__version__ = "0.1.0"

from icearray.exceptions import (
    IceArrayError,
    ConfigError,
    EstimationError,
    MissingLayerDataWarning,
)
from icearray.vocabulary import (
    ArrayMethod,
    BoundPolicyKind,
    ConstraintMethod,
    EstimationOutcome,
    MoeCriterion,
    MoeMode,
    PriorPdf,
    TrackerPhase,
)
from icearray.config import ArrayConfig, DoaConstraint, normalize_config
from icearray.models import (
    ArrayGeometry,
    ArrayResult,
    ImpulseResponse,
    MethodOutput,
    MoeDiagnostics,
    RadarInputs,
    SteeringLUT,
    TomoOutput,
)
from icearray.steering import SteeringModel, SteeringTable, steering_vectors
from icearray.moe import EigenvalueClassifier
from icearray.processing import ArrayProcess, ArrayProcessor, processor_version

__all__ = [
    '__version__',
    'IceArrayError',
    'ConfigError',
    'EstimationError',
    'MissingLayerDataWarning',
    'ArrayMethod',
    'BoundPolicyKind',
    'ConstraintMethod',
    'EstimationOutcome',
    'MoeCriterion',
    'MoeMode',
    'PriorPdf',
    'TrackerPhase',
    'ArrayConfig',
    'DoaConstraint',
    'normalize_config',
    'ArrayGeometry',
    'ArrayResult',
    'ImpulseResponse',
    'MethodOutput',
    'MoeDiagnostics',
    'RadarInputs',
    'SteeringLUT',
    'TomoOutput',
    'SteeringModel',
    'SteeringTable',
    'steering_vectors',
    'EigenvalueClassifier',
    'ArrayProcess',
    'ArrayProcessor',
    'processor_version',
]
