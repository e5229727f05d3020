"""
Feature Role Consensus

Each tree reports whether it treats a feature as binary or categorical.
A tree that never splits on the feature has no opinion, so answers are
three-valued and are folded into one ensemble-wide answer.
"""

from enum import Enum
from functools import reduce
from typing import Iterable

from ..errors import RoleContradictionError
from .feature_info import is_none, is_values


class TriState(Enum):
    TRUE = "true"
    FALSE = "false"
    UNDETERMINED = "undetermined"

    @classmethod
    def of(cls, value: bool) -> "TriState":
        return cls.TRUE if value else cls.FALSE

    def combine(self, other: "TriState") -> "TriState":
        # A single dissenting tree decides the outcome
        if self is TriState.FALSE or other is TriState.FALSE:
            return TriState.FALSE
        if self is TriState.TRUE or other is TriState.TRUE:
            return TriState.TRUE
        return TriState.UNDETERMINED


def consensus(answers: Iterable[TriState]) -> TriState:
    """
    Fold per-tree answers into one

    Parameters:
    -----------
    answers : iterable of TriState
        One answer per tree

    Returns:
    --------
    result : TriState
        FALSE if any tree answered FALSE, otherwise TRUE if any tree answered
        TRUE, otherwise UNDETERMINED (including the empty ensemble)
    """
    return reduce(TriState.combine, answers, TriState.UNDETERMINED)


class FeatureRole(Enum):
    CONTINUOUS = "continuous"
    BINARY = "binary"
    CATEGORICAL = "categorical"
    UNUSED = "unused"


def resolve_feature_role(name: str, info: str, binary: TriState, categorical: TriState) -> FeatureRole:
    """
    Decide the role of one feature

    Parameters:
    -----------
    name : str
        Feature name (used in error messages)
    info : str
        Declared feature info string
    binary : TriState
        Ensemble consensus on binary usage
    categorical : TriState
        Ensemble consensus on categorical usage

    Returns:
    --------
    role : FeatureRole
        Resolved role
    """
    if is_none(info):
        return FeatureRole.UNUSED

    declared_values = is_values(info)

    if binary is TriState.TRUE:
        if declared_values:
            raise RoleContradictionError(f"Feature '{name}' ({info}) is used both as binary and as categorical")
        return FeatureRole.BINARY

    if categorical is TriState.TRUE or (categorical is TriState.UNDETERMINED and declared_values):
        return FeatureRole.CATEGORICAL

    return FeatureRole.CONTINUOUS
