# -*- coding: utf-8 -*-
"""
Eigenvalue Classifier - Learned model-order estimate.

A multinomial logistic model over the normalized log-eigenvalue spectrum
``log10(λ / λmax)`` (descending). Coefficients come from an offline fit;
any callable with the same ``(eigvals) -> (order, probability)``
signature can be used in its place.

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

# Standard library
from typing import Optional, Sequence, Tuple

# Third-party
import numpy as np
from scipy.special import softmax

from icearray.exceptions import ConfigError


def eigen_features(eigvals: np.ndarray) -> np.ndarray:
    """``log10`` of the descending eigenvalues relative to the largest."""
    lam = np.sort(np.asarray(eigvals, dtype=float).ravel())[::-1]
    lam = np.maximum(lam, 1e-300)
    return np.log10(lam / lam[0])


class EigenvalueClassifier:
    """Multinomial logistic model-order classifier.

    Parameters
    ----------
    coef : array_like
        Class weights, shape ``(n_classes, Nc)``.
    intercept : array_like
        Class offsets, shape ``(n_classes,)``.
    classes : Sequence[int], optional
        Model order of each class. Defaults to ``0 .. n_classes-1``.
    """

    def __init__(
        self,
        coef: np.ndarray,
        intercept: np.ndarray,
        classes: Optional[Sequence[int]] = None,
    ) -> None:
        self.coef = np.atleast_2d(np.asarray(coef, dtype=float))
        self.intercept = np.asarray(intercept, dtype=float).ravel()
        n_classes = self.coef.shape[0]
        if self.intercept.size != n_classes:
            raise ConfigError(
                f"intercept has {self.intercept.size} entries for "
                f"{n_classes} classes"
            )
        if classes is None:
            classes = range(n_classes)
        self.classes = np.asarray(classes, dtype=int).ravel()
        if self.classes.size != n_classes:
            raise ConfigError(
                f"classes has {self.classes.size} entries for "
                f"{n_classes} classes"
            )

    def predict_proba(self, eigvals: np.ndarray) -> np.ndarray:
        """Class probabilities for one eigenvalue spectrum."""
        features = eigen_features(eigvals)
        if features.size != self.coef.shape[1]:
            raise ConfigError(
                f"Classifier expects {self.coef.shape[1]} eigenvalues, "
                f"got {features.size}"
            )
        return softmax(self.coef @ features + self.intercept)

    def __call__(self, eigvals: np.ndarray) -> Tuple[int, float]:
        prob = self.predict_proba(eigvals)
        best = int(np.argmax(prob))
        return int(self.classes[best]), float(prob[best])

    def __repr__(self) -> str:
        return f"EigenvalueClassifier(classes={self.classes.tolist()})"
