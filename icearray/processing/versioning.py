# -*- coding: utf-8 -*-
"""
Processor Versioning - Version stamp for array processors.

``@processor_version`` stamps ``__processor_version__`` on a processor
class. The version identifies both the algorithm revision and the layout
of the ``ArrayResult`` it produces.

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

# Standard library
import importlib.metadata
from typing import Optional, Type, TypeVar

T = TypeVar('T')


def processor_version(version: Optional[str] = None):
    """Class decorator that stamps a processor version.

    Parameters
    ----------
    version : str, optional
        Semantic version string (e.g., ``'1.0.0'``). When omitted the
        installed ``icearray`` distribution version is used, or
        ``'unknown'`` when the package is not installed.

    Returns
    -------
    Callable
        Class decorator setting ``__processor_version__``.

    Examples
    --------
    >>> @processor_version('1.0.0')
    ... class MyProcess(ArrayProcessor):
    ...     def apply(self, data, geometry, **kwargs):
    ...         ...
    >>> MyProcess.__processor_version__
    '1.0.0'
    """
    def decorator(cls: Type[T]) -> Type[T]:
        if version:
            cls.__processor_version__ = version
        else:
            try:
                cls.__processor_version__ = importlib.metadata.version('icearray')
            except importlib.metadata.PackageNotFoundError:
                cls.__processor_version__ = "unknown"
        return cls
    return decorator
