# -*- coding: utf-8 -*-
"""
icearray Exception Hierarchy - Domain-specific exceptions for array processing.

Provides a small exception hierarchy that lets callers catch array
processing errors distinctly from Python built-in exceptions. Every
exception subclasses both ``IceArrayError`` and the matching built-in so
existing ``except ValueError`` handlers keep working.

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
2026-03-02
"""


class IceArrayError(Exception):
    """Base exception for all icearray errors."""


class ConfigError(IceArrayError, ValueError):
    """Invalid or missing array processing configuration.

    Raised before any pixel is processed: missing ``dline``, non-integer
    neighborhood ranges, an empty method set, unsupported parameter values,
    or geometry that does not match the data cube.
    """


class EstimationError(IceArrayError, RuntimeError):
    """Non-recoverable failure while sweeping the data cube.

    Per-pixel optimizer failures are *not* reported this way; they are
    recorded as NaN outputs and processing continues.
    """


class MissingLayerDataWarning(UserWarning):
    """Surface or layer travel time is unavailable for a constrained method.

    The affected constraint falls back to the ``fixed`` (nadir-centered)
    midpoint.
    """
