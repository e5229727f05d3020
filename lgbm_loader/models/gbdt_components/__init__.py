"""
GBDT Components Package

This package contains the building blocks of the LightGBM model loader:
section parsing, feature info parsing, tree loading, role consensus and
the schema objects handed to an exporter.
"""

from .section import Section, parse_text
from .feature_info import is_none, is_interval, is_values, parse_interval, parse_values, unescape
from .consensus import TriState, FeatureRole, consensus, resolve_feature_role
from .pandas_categorical import parse_pandas_categorical
from .tree_node import TreeNode
from .tree import Tree
from .schema import (
    BinaryFeature,
    CategoricalFeature,
    CategoricalLabel,
    ContinuousFeature,
    ContinuousLabel,
    Feature,
    Interval,
    InvalidValueTreatment,
    MiningModelPlan,
    Schema,
    WildcardFeature,
)

__all__ = [
    'Section',
    'parse_text',
    'is_none',
    'is_interval',
    'is_values',
    'parse_interval',
    'parse_values',
    'unescape',
    'TriState',
    'FeatureRole',
    'consensus',
    'resolve_feature_role',
    'parse_pandas_categorical',
    'TreeNode',
    'Tree',
    'BinaryFeature',
    'CategoricalFeature',
    'CategoricalLabel',
    'ContinuousFeature',
    'ContinuousLabel',
    'Feature',
    'Interval',
    'InvalidValueTreatment',
    'MiningModelPlan',
    'Schema',
    'WildcardFeature',
]
