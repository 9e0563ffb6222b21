# -*- coding: utf-8 -*-
"""
Array Processor Base Class - Abstract interface for array processors.

Defines ``ArrayProcessor``, the common base for processors that sweep a
multichannel radar data cube and produce per-pixel power and angle
products. It provides version checking at first instantiation,
``typing.Annotated`` tunable parameters with an auto-generated
``__init__``, runtime parameter resolution through ``**kwargs``, and
progress reporting.

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

# Standard library
import logging
import warnings
from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

from icearray.processing.params import ParamSpec, collect_param_specs, _make_init

logger = logging.getLogger(__name__)


class ArrayProcessor(ABC):
    """
    Common base class for array processors.

    **Version checking**: concrete subclasses without
    ``@processor_version('x.y.z')`` emit a ``UserWarning`` the first time
    they are instantiated. The check runs in ``__new__`` so class
    decorators have already been applied.

    **Tunable parameters**: subclasses declare parameters as
    ``Annotated`` class-body fields using the markers from
    :mod:`icearray.processing.params`. ``__init_subclass__`` collects
    them into ``__param_specs__`` and generates ``__init__`` unless the
    subclass defines its own. ``_resolve_params(kwargs)`` merges instance
    values with per-call overrides.
    """

    _version_warned_classes: set = set()

    #: Built by ``__init_subclass__`` from ``Annotated`` fields.
    __param_specs__: Tuple[ParamSpec, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__param_specs__ = collect_param_specs(cls)
        if cls.__param_specs__ and '__init__' not in cls.__dict__:
            cls.__init__ = _make_init(cls.__param_specs__)

    def __new__(cls, *args: Any, **kwargs: Any) -> 'ArrayProcessor':
        if cls not in ArrayProcessor._version_warned_classes:
            ArrayProcessor._version_warned_classes.add(cls)
            if (
                not getattr(cls, '__processor_version__', None)
                and not getattr(cls, '__abstractmethods__', None)
            ):
                warnings.warn(
                    f"{cls.__qualname__} does not declare a processor version. "
                    f"Use @processor_version('x.y.z') to declare one.",
                    UserWarning,
                    stacklevel=2,
                )
        logger.debug("Instantiating %s", cls.__qualname__)
        return super().__new__(cls)

    @abstractmethod
    def apply(self, data: Any, geometry: Any, **kwargs: Any) -> Any:
        """Process a data cube (or list of multilook cubes).

        Parameters
        ----------
        data : np.ndarray or Sequence[np.ndarray]
            Complex cube(s) shaped (Nt, Nx, Na, Nb, Nc).
        geometry : ArrayGeometry or Sequence[ArrayGeometry]
            Phase-center geometry for each multilook group.
        """
        ...

    def _resolve_params(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge instance parameter values with runtime *kwargs* overrides.

        Keys in *kwargs* that are not declared parameters (inputs,
        ``progress_callback``) are ignored.

        Returns
        -------
        Dict[str, Any]
            ``{param_name: value}`` for every declared parameter.

        Raises
        ------
        ConfigError
            If a value violates its declared type or constraints.
        """
        resolved: Dict[str, Any] = {}
        for spec in type(self).__param_specs__:
            if spec.name in kwargs:
                value = kwargs[spec.name]
            else:
                value = getattr(self, spec.name)
            spec.validate(value)
            resolved[spec.name] = value
        return resolved

    def _report_progress(
        self, kwargs: Dict[str, Any], fraction: float
    ) -> None:
        """Call the optional ``progress_callback`` with *fraction* in [0, 1]."""
        cb = kwargs.get('progress_callback')
        if cb is not None:
            cb(float(fraction))
