# -*- coding: utf-8 -*-
"""
Tunable Parameter Annotations - Declarative processor parameters.

Constraint markers (``Range``, ``Options``, ``Desc``) are placed inside
``typing.Annotated`` class-body annotations of ``ArrayProcessor``
subclasses. ``collect_param_specs`` turns them into ``ParamSpec`` records
and ``_make_init`` builds the keyword-only ``__init__`` used by
``ArrayProcessor.__init_subclass__``.

Usage
-----
::

    from typing import Annotated, Optional
    from icearray.processing.params import Range, Options, Desc

    class MyArrayProcess(ArrayProcessor):
        Nsrc: Annotated[int, Range(min=1, max=8), Desc('Max sources')] = 1
        window: Annotated[str, Options('hann', 'hamming'), Desc('Taper')] = 'hann'
        dline: Annotated[Optional[int], Range(min=1), Desc('Line step')] = None

``Optional[...]`` parameters accept ``None`` in addition to the base type;
``None`` means "let ``normalize_config`` choose".

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
import inspect
from typing import (
    Annotated,
    Any,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

# Third-party
import numpy as np

from icearray.exceptions import ConfigError


# =====================================================================
# Constraint markers
# =====================================================================

class ParamMeta:
    """Base marker for tunable parameter metadata in ``Annotated`` types."""


class Range(ParamMeta):
    """Inclusive numeric range constraint.

    Parameters
    ----------
    min : int or float, optional
        Minimum allowed value (inclusive).
    max : int or float, optional
        Maximum allowed value (inclusive).
    """

    __slots__ = ('min', 'max')

    def __init__(
        self,
        min: Optional[Union[int, float]] = None,
        max: Optional[Union[int, float]] = None,
    ) -> None:
        self.min = min
        self.max = max

    def __repr__(self) -> str:
        parts = []
        if self.min is not None:
            parts.append(f"min={self.min!r}")
        if self.max is not None:
            parts.append(f"max={self.max!r}")
        return f"Range({', '.join(parts)})"


class Options(ParamMeta):
    """Discrete choice constraint."""

    __slots__ = ('choices',)

    def __init__(self, *choices: Any) -> None:
        if not choices:
            raise ValueError("Options requires at least one choice")
        self.choices = choices

    def __repr__(self) -> str:
        return f"Options{self.choices!r}"


class Desc(ParamMeta):
    """Human-readable parameter description."""

    __slots__ = ('text',)

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"Desc({self.text!r})"


# =====================================================================
# ParamSpec
# =====================================================================

_SENTINEL = object()


class ParamSpec:
    """Resolved specification for a single tunable parameter.

    Attributes
    ----------
    name : str
        Keyword-argument name.
    param_type : type
        Expected Python type. ``object`` disables the type check.
    default : Any
        Default value (``None`` when the parameter is required).
    optional : bool
        Whether ``None`` is an accepted value.
    description : str
        Text from ``Desc``.
    min_value, max_value : int, float, or None
        Inclusive bounds from ``Range``.
    choices : tuple or None
        Allowed values from ``Options``.
    """

    __slots__ = (
        'name', 'param_type', 'default', '_has_default', 'optional',
        'description', 'min_value', 'max_value', 'choices',
    )

    def __init__(
        self,
        name: str,
        param_type: type,
        default: Any,
        has_default: bool,
        optional: bool,
        description: str,
        min_value: Optional[Union[int, float]],
        max_value: Optional[Union[int, float]],
        choices: Optional[Tuple],
    ) -> None:
        self.name = name
        self.param_type = param_type
        self.default = default
        self._has_default = has_default
        self.optional = optional
        self.description = description
        self.min_value = min_value
        self.max_value = max_value
        self.choices = choices

    @property
    def required(self) -> bool:
        """Whether this parameter has no default."""
        return not self._has_default

    def validate(self, value: Any) -> None:
        """Validate *value* against type, range and choices.

        ``int`` and numpy integer/floating scalars are accepted for
        ``float`` parameters; numpy integers for ``int`` parameters.
        ``bool`` is never accepted as a number.

        Raises
        ------
        ConfigError
            If *value* has the wrong type or violates a constraint.
        """
        if value is None:
            if self.optional:
                return
            raise ConfigError(f"Parameter '{self.name}' may not be None")

        if self.param_type is float:
            ok = (isinstance(value, (int, float, np.integer, np.floating))
                  and not isinstance(value, bool))
        elif self.param_type is int:
            ok = (isinstance(value, (int, np.integer))
                  and not isinstance(value, bool))
        elif self.param_type is object:
            ok = True
        else:
            ok = isinstance(value, self.param_type)
        if not ok:
            raise ConfigError(
                f"Parameter '{self.name}' must be "
                f"{self.param_type.__name__}, got {type(value).__name__}"
            )

        if self.min_value is not None and value < self.min_value:
            raise ConfigError(
                f"Parameter '{self.name}' value {value!r} "
                f"is below minimum {self.min_value!r}"
            )
        if self.max_value is not None and value > self.max_value:
            raise ConfigError(
                f"Parameter '{self.name}' value {value!r} "
                f"is above maximum {self.max_value!r}"
            )
        if self.choices is not None and value not in self.choices:
            raise ConfigError(
                f"Parameter '{self.name}' value {value!r} "
                f"is not in allowed choices {self.choices!r}"
            )

    def __repr__(self) -> str:
        parts = (
            f"ParamSpec(name={self.name!r}, "
            f"param_type={self.param_type.__name__}, "
            f"required={self.required!r}"
        )
        if not self.required:
            parts += f", default={self.default!r}"
        if self.choices is not None:
            parts += f", choices={self.choices!r}"
        return parts + ")"


# =====================================================================
# Annotation collection
# =====================================================================

def _split_optional(base_type: Any) -> Tuple[Any, bool]:
    """Unwrap ``Optional[X]`` into ``(X, True)``."""
    if get_origin(base_type) is Union:
        args = [a for a in get_args(base_type) if a is not type(None)]
        if len(args) == 1 and len(args) < len(get_args(base_type)):
            return args[0], True
        return object, type(None) in get_args(base_type)
    return base_type, False


def collect_param_specs(cls: type) -> Tuple[ParamSpec, ...]:
    """Parse ``Annotated`` hints on *cls* into ``ParamSpec`` records.

    Fields are ordered parent-first, preserving declaration order inside
    each class. Only fields carrying at least one ``ParamMeta`` marker are
    collected.

    Raises
    ------
    TypeError
        If a field has both ``Range`` and ``Options``.
    """
    try:
        hints = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        return ()

    seen: set = set()
    ordered_names: list = []
    for klass in reversed(cls.__mro__):
        for name in getattr(klass, '__annotations__', {}):
            if name not in seen and name in hints:
                seen.add(name)
                ordered_names.append(name)

    specs = []
    for name in ordered_names:
        hint = hints[name]
        if get_origin(hint) is not Annotated:
            continue
        metas = [m for m in hint.__metadata__ if isinstance(m, ParamMeta)]
        if not metas:
            continue

        range_meta = next((m for m in metas if isinstance(m, Range)), None)
        options_meta = next((m for m in metas if isinstance(m, Options)), None)
        desc_meta = next((m for m in metas if isinstance(m, Desc)), None)
        if range_meta and options_meta:
            raise TypeError(
                f"Parameter '{name}' on {cls.__qualname__}: "
                f"Range and Options are mutually exclusive."
            )

        base_type, optional = _split_optional(hint.__args__[0])
        if get_origin(base_type) is not None:
            base_type = object
        default = getattr(cls, name, _SENTINEL)
        has_default = default is not _SENTINEL

        specs.append(ParamSpec(
            name=name,
            param_type=base_type,
            default=default if has_default else None,
            has_default=has_default,
            optional=optional,
            description=desc_meta.text if desc_meta else '',
            min_value=range_meta.min if range_meta else None,
            max_value=range_meta.max if range_meta else None,
            choices=options_meta.choices if options_meta else None,
        ))
    return tuple(specs)


# =====================================================================
# __init__ generation
# =====================================================================

def _make_init(param_specs: Tuple[ParamSpec, ...]):
    """Build a keyword-only ``__init__`` from *param_specs*.

    Missing required parameters and unexpected keywords raise
    ``TypeError`` like a hand-written signature would; constraint
    violations raise ``ConfigError``.
    """
    _specs = param_specs
    expected = {s.name for s in _specs}

    def __init__(self, **kwargs):
        unexpected = set(kwargs) - expected
        if unexpected:
            raise TypeError(
                f"{type(self).__name__}() got unexpected "
                f"keyword arguments: {', '.join(sorted(unexpected))}"
            )
        for spec in _specs:
            if spec.name in kwargs:
                value = kwargs[spec.name]
            elif spec._has_default:
                value = spec.default
            else:
                raise TypeError(
                    f"{type(self).__name__}() missing required "
                    f"keyword argument: '{spec.name}'"
                )
            spec.validate(value)
            object.__setattr__(self, spec.name, value)

        if hasattr(self, '__post_init__'):
            self.__post_init__()

    params = [inspect.Parameter('self', inspect.Parameter.POSITIONAL_OR_KEYWORD)]
    for spec in _specs:
        if spec._has_default:
            params.append(inspect.Parameter(
                spec.name, inspect.Parameter.KEYWORD_ONLY, default=spec.default,
            ))
        else:
            params.append(inspect.Parameter(
                spec.name, inspect.Parameter.KEYWORD_ONLY,
            ))
    __init__.__signature__ = inspect.Signature(params)
    __init__.__qualname__ = '__init__'
    return __init__
