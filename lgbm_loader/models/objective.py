"""
Objective Functions

This module provides the abstract ObjectiveFunction base class and its
variants. The objective decides how the target field is typed and how the
summed raw tree outputs become a prediction. Every variant must implement
both label encoding and mining-model encoding.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .errors import ArrayLengthMismatchError, UnsupportedObjectiveError
from .gbdt_components.schema import CategoricalLabel, ContinuousLabel, MiningModelPlan, Schema
from .gbdt_components.section import Section


class ObjectiveFunction(ABC):
    """
    Abstract base class of the supported LightGBM objectives

    Attributes:
    -----------
    name : str
        Canonical objective name
    """

    name = None

    @abstractmethod
    def encode_label(self, target_name: str, target_categories: Optional[List[str]] = None):
        """
        Describe the target field

        Parameters:
        -----------
        target_name : str
            Name of the target field
        target_categories : list of str, optional
            Class labels (classification objectives only)

        Returns:
        --------
        label : ContinuousLabel or CategoricalLabel
            Target field description
        """
        pass

    @abstractmethod
    def encode_mining_model(self, trees: Sequence, num_iteration: Optional[int], schema: Optional[Schema]) -> MiningModelPlan:
        """
        Group the trees into model outputs

        Parameters:
        -----------
        trees : sequence of Tree
            Trees in boosting order
        num_iteration : int, optional
            Number of boosting rounds to keep (all when None)
        schema : Schema
            Encoded schema

        Returns:
        --------
        plan : MiningModelPlan
            Tree segments and output transformation
        """
        pass

    @abstractmethod
    def transform(self, raw: np.ndarray) -> np.ndarray:
        """Map summed raw scores, shape=(n_samples, n_segments), to predictions."""
        pass

    def get_params(self) -> Dict[str, object]:
        return {"objective": self.name}

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.get_params() == other.get_params()

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(self.get_params().items()))))

    def __repr__(self) -> str:
        params = ", ".join(f"{key}={value}" for key, value in self.get_params().items() if key != "objective")
        return f"{type(self).__name__}({params})"


class _SingleOutputObjective(ObjectiveFunction):
    """Objective with one continuous output summed over all trees."""

    def encode_label(self, target_name: str, target_categories: Optional[List[str]] = None) -> ContinuousLabel:
        return ContinuousLabel(name=target_name)

    def encode_mining_model(self, trees: Sequence, num_iteration: Optional[int], schema: Optional[Schema]) -> MiningModelPlan:
        trees = list(trees)
        if num_iteration is not None:
            trees = trees[:num_iteration]

        return MiningModelPlan(objective=self, segments=[trees], schema=schema)


class Regression(_SingleOutputObjective):
    name = "regression"

    def transform(self, raw: np.ndarray) -> np.ndarray:
        return raw[:, 0]


class PoissonRegression(_SingleOutputObjective):
    """Log-link regression (poisson, gamma, tweedie)."""

    name = "poisson"

    def transform(self, raw: np.ndarray) -> np.ndarray:
        return np.exp(raw[:, 0])


class Lambdarank(_SingleOutputObjective):
    name = "lambdarank"

    def transform(self, raw: np.ndarray) -> np.ndarray:
        return raw[:, 0]


class BinomialLogisticRegression(ObjectiveFunction):
    """
    Binary classification

    Attributes:
    -----------
    sigmoid : float
        Slope of the logistic function
    """

    name = "binary"

    def __init__(self, sigmoid: float):
        self.sigmoid = sigmoid

    def encode_label(self, target_name: str, target_categories: Optional[List[str]] = None) -> CategoricalLabel:
        categories = _check_categories(target_categories, 2)
        return CategoricalLabel(name=target_name, categories=categories)

    def encode_mining_model(self, trees: Sequence, num_iteration: Optional[int], schema: Optional[Schema]) -> MiningModelPlan:
        trees = list(trees)
        if num_iteration is not None:
            trees = trees[:num_iteration]

        return MiningModelPlan(objective=self, segments=[trees], schema=schema)

    def transform(self, raw: np.ndarray) -> np.ndarray:
        """Probability of the second category."""
        return 1.0 / (1.0 + np.exp(-self.sigmoid * raw[:, 0]))

    def get_params(self) -> Dict[str, object]:
        return {"objective": self.name, "sigmoid": self.sigmoid}


class MultinomialLogisticRegression(ObjectiveFunction):
    """
    Multiclass classification

    LightGBM trains num_class trees per boosting round; tree i scores
    class i % num_class.

    Attributes:
    -----------
    num_class : int
        Number of classes
    """

    name = "multiclass"

    def __init__(self, num_class: int):
        self.num_class = num_class

    def encode_label(self, target_name: str, target_categories: Optional[List[str]] = None) -> CategoricalLabel:
        categories = _check_categories(target_categories, self.num_class)
        return CategoricalLabel(name=target_name, categories=categories)

    def encode_mining_model(self, trees: Sequence, num_iteration: Optional[int], schema: Optional[Schema]) -> MiningModelPlan:
        trees = list(trees)
        if num_iteration is not None:
            trees = trees[:num_iteration * self.num_class]

        segments = [trees[class_idx::self.num_class] for class_idx in range(self.num_class)]

        return MiningModelPlan(objective=self, segments=segments, schema=schema)

    def transform(self, raw: np.ndarray) -> np.ndarray:
        """Row-wise softmax, shape=(n_samples, num_class)."""
        shifted = raw - np.max(raw, axis=1, keepdims=True)
        exp = np.exp(shifted)
        return exp / np.sum(exp, axis=1, keepdims=True)

    def get_params(self) -> Dict[str, object]:
        return {"objective": self.name, "num_class": self.num_class}


def _check_categories(target_categories: Optional[List[str]], size: int) -> List[str]:
    if target_categories is None:
        return [str(i) for i in range(size)]

    if len(target_categories) != size:
        raise ArrayLengthMismatchError(f"Expected {size} target categories, got {len(target_categories)}")

    return list(target_categories)


def _regression(section: Section) -> ObjectiveFunction:
    return Regression()


def _poisson_regression(section: Section) -> ObjectiveFunction:
    return PoissonRegression()


def _lambdarank(section: Section) -> ObjectiveFunction:
    return Lambdarank()


def _binomial(section: Section) -> ObjectiveFunction:
    return BinomialLogisticRegression(section.get_double("sigmoid"))


def _multinomial(section: Section) -> ObjectiveFunction:
    return MultinomialLogisticRegression(section.get_int("num_class"))


OBJECTIVE_LOADERS: Dict[str, Callable[[Section], ObjectiveFunction]] = {
    # L2 loss
    "regression": _regression,
    "regression_l2": _regression,
    "mean_squared_error": _regression,
    "mse": _regression,
    # L1 loss
    "regression_l1": _regression,
    "mean_absolute_error": _regression,
    "mae": _regression,
    "huber": _regression,
    "fair": _regression,
    # log link
    "poisson": _poisson_regression,
    "gamma": _poisson_regression,
    "tweedie": _poisson_regression,
    "lambdarank": _lambdarank,
    "binary": _binomial,
    "multiclass": _multinomial,
}


def load_objective_function(section: Section) -> ObjectiveFunction:
    """
    Resolve the objective declared in the model header

    Inline parameters ("binary sigmoid:1") are merged into a copy of the
    section so that they are visible to the variant's parameter reads.

    Parameters:
    -----------
    section : Section
        Header section

    Returns:
    --------
    objective : ObjectiveFunction
        Resolved objective
    """
    tokens = section.get_string_array("objective", -1)

    objective = tokens[0]

    if len(tokens) > 1:
        section = section.copy()
        for token in tokens[1:]:
            section.put(token, ":")

    loader = OBJECTIVE_LOADERS.get(objective)
    if loader is None:
        raise UnsupportedObjectiveError(f"Objective '{objective}' is not supported")

    return loader(section)
