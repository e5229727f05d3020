"""
Schema Objects

Plain data classes handed to the exporter: the label description, one
feature object per model column and the mining-model plan that says how
trees are grouped and how their summed output becomes a prediction.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np


class InvalidValueTreatment(str, Enum):
    AS_IS = "asIs"
    AS_MISSING = "asMissing"


@dataclass(frozen=True)
class Interval:
    left: float
    right: float
    closure: str = "closedClosed"


@dataclass
class Feature:
    """
    Base feature description

    Attributes:
    -----------
    name : str
        Column name
    invalid_value_treatment : InvalidValueTreatment
        How values outside the declared domain are handled
    importance : float or None
        Split importance recorded in the model file
    """
    name: str
    invalid_value_treatment: InvalidValueTreatment = InvalidValueTreatment.AS_IS
    importance: Optional[float] = None


@dataclass
class ContinuousFeature(Feature):
    interval: Optional[Interval] = None
    data_type: str = "double"


@dataclass
class BinaryFeature(Feature):
    categories: Tuple[int, int] = (0, 1)
    value: int = 1
    data_type: str = "integer"


@dataclass
class CategoricalFeature(Feature):
    """
    Categorical feature

    `direct` is True when the categories are the raw integer codes taken
    from the feature info string rather than pandas labels.
    """
    data_type: str = "string"
    categories: List[Any] = field(default_factory=list)
    direct: bool = False


@dataclass
class WildcardFeature(Feature):
    """Feature whose type has not been decided by the caller yet."""


@dataclass
class ContinuousLabel:
    name: str
    data_type: str = "double"


@dataclass
class CategoricalLabel:
    name: str
    categories: List[str] = field(default_factory=list)
    data_type: str = "string"


@dataclass
class Schema:
    label: Any
    features: List[Optional[Feature]]

    def active_features(self) -> List[Feature]:
        return [feature for feature in self.features if feature is not None]


@dataclass
class MiningModelPlan:
    """
    Tree grouping and output transformation for the exporter

    Attributes:
    -----------
    objective : ObjectiveFunction
        Owner of the output transformation
    segments : list of list of Tree
        One tree list per model output; the raw score of an output is the
        sum of its trees
    schema : Schema or None
        Schema the plan was encoded against
    algorithm_name : str
        Name reported to the exporter
    """
    objective: Any
    segments: List[Sequence[Any]]
    schema: Optional[Schema] = None
    algorithm_name: str = "LightGBM"

    @property
    def num_trees(self) -> int:
        return sum(len(segment) for segment in self.segments)

    def predict_raw(self, X: np.ndarray) -> np.ndarray:
        """
        Sum tree outputs per segment

        Parameters:
        -----------
        X : array-like, shape=(n_samples, n_features)
            Input features

        Returns:
        --------
        raw : array-like, shape=(n_samples, n_segments)
            Raw scores
        """
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)

        raw = np.zeros((X.shape[0], len(self.segments)))
        for segment_idx, trees in enumerate(self.segments):
            for tree in trees:
                raw[:, segment_idx] += tree.predict(X)

        return raw

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.objective.transform(self.predict_raw(X))
