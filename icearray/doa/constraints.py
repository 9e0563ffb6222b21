# -*- coding: utf-8 -*-
"""
DOA Constraints - Per-source search-window midpoints.

Each source slot's search window is centered on an angle derived from
its ``ConstraintMethod``:

- ``fixed``: nadir (0).
- ``surfleft`` / ``surfright``: incidence angle to a flat surface,
  ``±acos(surface_twtt / twtt)``; 0 above the surface.
- ``layerleft`` / ``layerright``: incidence angle to a flat surface seen
  through an ice layer, refracted at the surface by Snell's law. The
  delay-versus-angle relation is tabulated every degree on ``0:89`` deg and
  inverted by interpolation; 0 above the layer.

Positive midpoints belong to the left constraints. Missing surface or
layer travel time falls back to ``fixed`` with a
``MissingLayerDataWarning``.

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
2026-03-10
"""

# Standard library
import warnings
from typing import Sequence

# Third-party
import numpy as np

from icearray.config import DoaConstraint
from icearray.exceptions import MissingLayerDataWarning
from icearray.vocabulary import ConstraintMethod

#: Angles (radians) of the refracted delay table.
LAYER_TABLE_DOA = np.deg2rad(np.arange(0.0, 90.0, 1.0))

_SURFACE_METHODS = (ConstraintMethod.SURFACE_LEFT, ConstraintMethod.SURFACE_RIGHT)
_LAYER_METHODS = (ConstraintMethod.LAYER_LEFT, ConstraintMethod.LAYER_RIGHT)
_RIGHT_METHODS = (ConstraintMethod.SURFACE_RIGHT, ConstraintMethod.LAYER_RIGHT)


def surface_incidence(time: float, surface: float) -> float:
    """Angle to a flat surface at two-way time *surface*, seen at *time*."""
    if time <= surface:
        return 0.0
    return float(np.arccos(surface / time))


def layer_incidence(
    time: float,
    surface: float,
    layer: float,
    er_ice: float,
) -> float:
    """Angle at which a flat layer below a flat surface is seen at *time*.

    The layer time is raised to the surface time when it lies above it,
    before the delay table is built, so the ice leg of the table is never
    negative. Times beyond the last tabulated delay (89 deg) clamp to it.
    """
    layer = max(layer, surface)
    if time <= layer:
        return 0.0
    theta_ice = np.arcsin(np.sin(LAYER_TABLE_DOA) / np.sqrt(er_ice))
    table_delay = (surface / np.cos(LAYER_TABLE_DOA)
                   + (layer - surface) / np.cos(theta_ice))
    return float(np.interp(time, table_delay, LAYER_TABLE_DOA))


def constraint_midpoints(
    constraints: Sequence[DoaConstraint],
    time: float,
    surface: float,
    layer: float,
    er_ice: float,
) -> np.ndarray:
    """Midpoint angle (radians) of each constraint at fast-time *time*.

    Parameters
    ----------
    constraints : Sequence[DoaConstraint]
        One constraint per source slot.
    time : float
        Two-way travel time of the current range bin (s).
    surface, layer : float
        Surface and layer two-way travel time (s); NaN when unknown.
    er_ice : float
        Relative permittivity used for refraction.

    Returns
    -------
    np.ndarray
        Shape ``(len(constraints),)``.
    """
    mid = np.zeros(len(constraints))
    for idx, constraint in enumerate(constraints):
        method = constraint.method
        if method is ConstraintMethod.FIXED:
            continue
        needs_layer = method in _LAYER_METHODS
        if not np.isfinite(time) or not np.isfinite(surface) or (
                needs_layer and not np.isfinite(layer)):
            warnings.warn(
                f"No surface/layer travel time for constraint "
                f"'{method.value}'; using 'fixed'.",
                MissingLayerDataWarning,
                stacklevel=2,
            )
            continue
        if needs_layer:
            angle = layer_incidence(time, surface, layer, er_ice)
        else:
            angle = surface_incidence(time, surface)
        mid[idx] = -angle if method in _RIGHT_METHODS else angle
    return mid
