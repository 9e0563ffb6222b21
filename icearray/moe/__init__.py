# -*- coding: utf-8 -*-
"""
Model-Order Estimation - Penalized likelihood criteria and classifiers.

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-03-06

Modified
--------
2026-03-08
"""

from icearray.moe.classifier import EigenvalueClassifier, eigen_features
from icearray.moe.criteria import (
    free_parameters,
    optimal_orders,
    penalty,
    select_order,
    sorted_eigenvalues,
    suboptimal_nll,
    suboptimal_orders,
)

__all__ = [
    'EigenvalueClassifier',
    'eigen_features',
    'free_parameters',
    'optimal_orders',
    'penalty',
    'select_order',
    'sorted_eigenvalues',
    'suboptimal_nll',
    'suboptimal_orders',
]
