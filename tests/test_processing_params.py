# -*- coding: utf-8 -*-
"""
Tunable Parameter and Versioning Tests.

Tests for the Annotated-based tunable parameter system used by array
processors: constraint markers, ParamSpec validation, annotation
collection, the generated ``__init__``, ``_resolve_params`` overrides,
and the ``@processor_version`` decorator and missing-version warning.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-13

Modified
--------
2026-03-13
"""

import inspect
import warnings
from typing import Annotated, Optional

import numpy as np
import pytest

from icearray.exceptions import ConfigError
from icearray.processing import ArrayProcess
from icearray.processing.base import ArrayProcessor
from icearray.processing.params import (
    Desc,
    Options,
    ParamMeta,
    ParamSpec,
    Range,
    collect_param_specs,
)
from icearray.processing.versioning import processor_version


def _spec(name='x', param_type=float, default=0.5, has_default=True,
          optional=False, min_value=None, max_value=None, choices=None):
    return ParamSpec(name, param_type, default, has_default, optional, '',
                     min_value, max_value, choices)


# ---------------------------------------------------------------------------
# Constraint markers
# ---------------------------------------------------------------------------

class TestMarkers:
    """Test Range, Options and Desc markers."""

    def test_range(self):
        r = Range(min=0, max=10)
        assert r.min == 0
        assert r.max == 10
        assert repr(r) == 'Range(min=0, max=10)'

    def test_options(self):
        o = Options('grid', 'ap')
        assert o.choices == ('grid', 'ap')

    def test_options_empty_raises(self):
        with pytest.raises(ValueError, match="at least one"):
            Options()

    def test_desc(self):
        assert Desc('hello').text == 'hello'

    def test_all_are_param_meta(self):
        for marker in (Range(), Options(1), Desc('x')):
            assert isinstance(marker, ParamMeta)


# ---------------------------------------------------------------------------
# ParamSpec validation
# ---------------------------------------------------------------------------

class TestParamSpec:
    """Test ParamSpec.validate."""

    def test_required(self):
        assert _spec(has_default=False).required is True
        assert _spec().required is False

    def test_int_accepted_as_float(self):
        _spec().validate(1)
        _spec().validate(np.float32(0.3))

    def test_bool_rejected_as_number(self):
        with pytest.raises(ConfigError, match="must be float"):
            _spec().validate(True)

    def test_wrong_type(self):
        with pytest.raises(ConfigError, match="x"):
            _spec().validate('bad')

    def test_numpy_int_accepted_as_int(self):
        _spec(param_type=int, default=1).validate(np.int64(3))

    def test_object_accepts_anything(self):
        spec = _spec(param_type=object, default=None)
        spec.validate('a b')
        spec.validate([1, 2])

    def test_none_only_when_optional(self):
        _spec(optional=True).validate(None)
        with pytest.raises(ConfigError, match="may not be None"):
            _spec().validate(None)

    def test_range_boundaries(self):
        spec = _spec(min_value=0.0, max_value=1.0)
        spec.validate(0.0)
        spec.validate(1.0)
        with pytest.raises(ConfigError, match="below minimum"):
            spec.validate(-0.1)
        with pytest.raises(ConfigError, match="above maximum"):
            spec.validate(1.1)

    def test_choices(self):
        spec = _spec(param_type=str, default='grid', choices=('grid', 'ap'))
        spec.validate('ap')
        with pytest.raises(ConfigError, match="not in allowed choices"):
            spec.validate('random')

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            _spec(min_value=0.0).validate(-1.0)

    def test_repr(self):
        r = repr(_spec(choices=(0.5, 1.0)))
        assert 'required=False' in r
        assert 'default=0.5' in r
        assert 'choices=' in r


# ---------------------------------------------------------------------------
# collect_param_specs
# ---------------------------------------------------------------------------

class TestCollectParamSpecs:
    """Test annotation collection from Annotated class-body fields."""

    def test_plain_annotations_ignored(self):
        class C:
            x: float = 1.0
        assert collect_param_specs(C) == ()

    def test_annotated_field(self):
        class C:
            x: Annotated[float, Range(min=0), Desc('test')] = 1.0

        specs = collect_param_specs(C)
        assert len(specs) == 1
        assert specs[0].name == 'x'
        assert specs[0].param_type is float
        assert specs[0].min_value == 0
        assert specs[0].description == 'test'

    def test_optional_unwrapped(self):
        class C:
            x: Annotated[Optional[int], Range(min=1)] = None

        spec = collect_param_specs(C)[0]
        assert spec.param_type is int
        assert spec.optional is True

    def test_range_and_options_exclusive(self):
        class C:
            x: Annotated[float, Range(min=0), Options(1, 2)] = 1.0

        with pytest.raises(TypeError, match="mutually exclusive"):
            collect_param_specs(C)

    def test_inheritance_parent_first(self):
        class Parent:
            a: Annotated[float, Range(min=0)] = 1.0

        class Child(Parent):
            b: Annotated[int, Range(min=1)] = 5

        assert [s.name for s in collect_param_specs(Child)] == ['a', 'b']


# ---------------------------------------------------------------------------
# Generated __init__ and _resolve_params
# ---------------------------------------------------------------------------

@processor_version('0.0.1')
class _Toy(ArrayProcessor):
    gain: Annotated[float, Range(min=0.0), Desc('Gain')] = 1.0
    mode: Annotated[str, Options('a', 'b')] = 'a'

    def apply(self, data, geometry, **kwargs):
        params = self._resolve_params(kwargs)
        self._report_progress(kwargs, 1.0)
        return params


class TestGeneratedInit:
    """Test the constructor generated from Annotated fields."""

    def test_defaults(self):
        p = _Toy()
        assert p.gain == 1.0
        assert p.mode == 'a'

    def test_custom_value(self):
        assert _Toy(gain=2.5).gain == 2.5

    def test_validation(self):
        with pytest.raises(ConfigError, match="below minimum"):
            _Toy(gain=-1.0)
        with pytest.raises(ConfigError, match="not in allowed choices"):
            _Toy(mode='c')

    def test_unexpected_kwargs(self):
        with pytest.raises(TypeError, match="unexpected"):
            _Toy(nonexistent=1)

    def test_signature(self):
        params = inspect.signature(_Toy).parameters
        assert 'gain' in params
        assert 'mode' in params

    def test_resolve_params_override(self):
        p = _Toy(gain=2.0)
        resolved = p.apply(None, None, mode='b')
        assert resolved == {'gain': 2.0, 'mode': 'b'}
        assert p.mode == 'a'

    def test_resolve_params_validates_override(self):
        with pytest.raises(ConfigError):
            _Toy().apply(None, None, gain=-3.0)

    def test_progress_callback(self):
        calls = []
        _Toy().apply(None, None, progress_callback=calls.append)
        assert calls == [1.0]


class TestArrayProcessParams:
    """Test the declared parameters of ArrayProcess."""

    def test_defaults(self):
        proc = ArrayProcess()
        assert proc.method == 'standard'
        assert proc.Nsrc == 1
        assert proc.dline is None
        assert proc.doa_theta_guard == 1.5
        assert tuple(proc.line_rng) == tuple(range(-5, 6))

    def test_output_mode_choices(self):
        with pytest.raises(ConfigError, match="not in allowed choices"):
            ArrayProcess(output_mode=3)

    def test_nsrc_minimum(self):
        with pytest.raises(ConfigError, match="below minimum"):
            ArrayProcess(Nsrc=0)

    def test_bound_policy_choices(self):
        ArrayProcess(bound_policy='fixed_wide')
        with pytest.raises(ConfigError):
            ArrayProcess(bound_policy='loose')


# ---------------------------------------------------------------------------
# @processor_version
# ---------------------------------------------------------------------------

class TestProcessorVersion:
    """Test version stamping and the missing-version warning."""

    def test_stamps_version(self):
        @processor_version('2.1.0')
        class _Versioned(ArrayProcessor):
            def apply(self, data, geometry, **kwargs):
                return data

        assert _Versioned.__processor_version__ == '2.1.0'

    def test_returns_same_class(self):
        class _Original:
            pass

        assert processor_version('1.0.0')(_Original) is _Original

    def test_array_process_versioned(self):
        assert ArrayProcess.__processor_version__ == '1.0.0'

    def test_warns_once_for_unversioned(self):
        class _Unversioned(ArrayProcessor):
            def apply(self, data, geometry, **kwargs):
                return data

        ArrayProcessor._version_warned_classes.discard(_Unversioned)
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter('always')
            _Unversioned()
            _Unversioned()
            hits = [x for x in w if 'processor version' in str(x.message).lower()]
        assert len(hits) == 1
        assert '_Unversioned' in str(hits[0].message)

    def test_no_warning_for_versioned(self):
        @processor_version('1.0.0')
        class _Quiet(ArrayProcessor):
            def apply(self, data, geometry, **kwargs):
                return data

        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter('always')
            _Quiet()
            hits = [x for x in w if 'processor version' in str(x.message).lower()]
        assert hits == []
