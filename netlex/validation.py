from __future__ import annotations
import logging
from typing import Hashable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix as sk_confusion_matrix
from sklearn.metrics import precision_recall_fscore_support

from .datatypes import Bucketing, ConfusionMatrix
from .errors import DimensionMismatchError, ValidationError

logger = logging.getLogger(__name__)

Scores = Union[Sequence[Optional[float]], Mapping[Hashable, Optional[float]]]
Labels = Union[Sequence[str], Mapping[Hashable, str]]


def _is_undefined(score) -> bool:
    # None, float NaN and numpy NaN of any width
    return np.ndim(score) == 0 and bool(pd.isna(score))


def bucket_scores(scores: Sequence[Optional[float]], bucketing: Bucketing) -> List[str]:
    """
    Map continuous scores to bucket labels.

    Buckets are half-open [lower, upper): a score equal to a threshold lands in
    the bucket above it, e.g. with thresholds (0,) a score of exactly 0 is the
    upper label.
    """
    values = list(scores)
    undefined = [i for i, s in enumerate(values) if _is_undefined(s)]
    if undefined and bucketing.undefined_label is None:
        raise ValidationError(
            f"{len(undefined)} undefined scores (first at position {undefined[0]}) and no undefined_label")
    defined = np.array([0.0 if _is_undefined(s) else float(s) for s in values], dtype=float)
    idx = np.digitize(defined, np.array(bucketing.thresholds, dtype=float), right=False)
    return [bucketing.undefined_label if _is_undefined(s) else bucketing.labels[int(i)]
            for s, i in zip(values, idx)]


def confusion_matrix(predicted: Sequence[str], actual: Sequence[str],
                     labels: Optional[Sequence[str]] = None) -> ConfusionMatrix:
    predicted, actual = list(predicted), list(actual)
    if len(predicted) != len(actual):
        raise DimensionMismatchError(
            f"{len(predicted)} predicted labels vs {len(actual)} manual labels")
    if labels is None:
        labels = sorted(set(predicted) | set(actual), key=str)
    labels = list(labels)
    if not labels:
        raise ValidationError("A confusion matrix needs at least one label")
    if len(set(labels)) != len(labels):
        raise ValidationError("Duplicate confusion matrix labels")
    unknown = (set(predicted) | set(actual)) - set(labels)
    if unknown:
        raise ValidationError(f"Labels {sorted(unknown, key=str)} are not in {labels}")
    if not actual:
        counts = np.zeros((len(labels), len(labels)), dtype=int)
    else:
        counts = sk_confusion_matrix(actual, predicted, labels=labels)
    return ConfusionMatrix(labels=tuple(labels), counts=counts)


def validate_against_manual_coding(scores: Scores, manual_labels: Labels, bucketing: Bucketing,
                                   labels: Optional[Sequence[str]] = None) -> ConfusionMatrix:
    """
    Bucket dictionary scores and cross-tabulate them against manual codes.

    scores and manual_labels are either aligned sequences or mappings keyed by
    document id with identical key sets.
    """
    if isinstance(scores, Mapping) or isinstance(manual_labels, Mapping):
        if not (isinstance(scores, Mapping) and isinstance(manual_labels, Mapping)):
            raise ValidationError("Pass scores and manual labels both as mappings or both as sequences")
        if set(scores) != set(manual_labels):
            missing = set(scores) ^ set(manual_labels)
            raise ValidationError(f"Document ids differ between scores and manual labels: {sorted(missing, key=str)[:5]}")
        keys = list(scores)
        score_seq = [scores[k] for k in keys]
        manual_seq = [manual_labels[k] for k in keys]
    else:
        score_seq, manual_seq = list(scores), list(manual_labels)
        if len(score_seq) != len(manual_seq):
            raise DimensionMismatchError(f"{len(score_seq)} scores vs {len(manual_seq)} manual labels")
    predicted = bucket_scores(score_seq, bucketing)
    if labels is None:
        labels = list(bucketing.labels)
        if bucketing.undefined_label is not None and bucketing.undefined_label not in labels:
            labels.append(bucketing.undefined_label)
        labels += sorted({m for m in manual_seq if m not in labels}, key=str)
    matrix = confusion_matrix(predicted, manual_seq, labels=labels)
    logger.info("Validated %d documents: %d correct, accuracy %.3f",
                matrix.total, matrix.correct, matrix.accuracy)
    return matrix


def classification_summary(matrix: ConfusionMatrix) -> pd.DataFrame:
    """Per-label precision, recall, F1 and support; NaN where a label was never predicted or never coded."""
    labels = list(matrix.labels)
    index = pd.Index(labels, name="label")
    if matrix.total == 0:
        nan = [np.nan] * len(labels)
        return pd.DataFrame({"precision": nan, "recall": nan, "f1": nan, "support": [0] * len(labels)},
                            index=index)
    # expand the counts back into label pairs, one per document
    y_true, y_pred = [], []
    for i, actual in enumerate(labels):
        for j, predicted in enumerate(labels):
            n = int(matrix.counts[i, j])
            y_true.extend([actual] * n)
            y_pred.extend([predicted] * n)
    precision, recall, f1, support = precision_recall_fscore_support(
        y_true, y_pred, labels=labels, zero_division=np.nan
    )
    return pd.DataFrame({"precision": precision, "recall": recall, "f1": f1,
                         "support": support.astype(int)}, index=index)
