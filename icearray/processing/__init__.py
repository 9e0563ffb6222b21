# -*- coding: utf-8 -*-
"""
Array Processing - Processor base class, tunable parameters and the
array processor.

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

from icearray.processing.array_proc import ArrayProcess
from icearray.processing.base import ArrayProcessor
from icearray.processing.output import OutputAssembler, reduce_spectrum, select_source
from icearray.processing.params import Desc, Options, ParamSpec, Range
from icearray.processing.versioning import processor_version

__all__ = [
    'ArrayProcess',
    'ArrayProcessor',
    'Desc',
    'Options',
    'OutputAssembler',
    'ParamSpec',
    'Range',
    'processor_version',
    'reduce_spectrum',
    'select_source',
]
