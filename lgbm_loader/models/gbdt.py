"""
GBDT Model

This module contains the GBDT class that assembles a LightGBM text model
from its sections: header, trees and the optional trailing metadata blocks.
The loaded model resolves per-feature roles and encodes the schema and
mining-model plan consumed by an exporter.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from ..config import ConverterOptions
from .errors import (
    ArrayLengthMismatchError,
    MissingSectionError,
    PandasSlotCountMismatchError,
    UnsupportedVersionError,
)
from .gbdt_components.consensus import FeatureRole, TriState, consensus, resolve_feature_role
from .gbdt_components.feature_info import BINARY_INTERVAL, CATEGORY_MISSING, is_values, parse_interval, parse_values
from .gbdt_components.pandas_categorical import is_pandas_categorical, parse_pandas_categorical
from .gbdt_components.schema import (
    BinaryFeature,
    CategoricalFeature,
    ContinuousFeature,
    Feature,
    InvalidValueTreatment,
    MiningModelPlan,
    Schema,
    WildcardFeature,
)
from .gbdt_components.section import Section
from .gbdt_components.tree import Tree
from .objective import ObjectiveFunction, load_objective_function


SUPPORTED_VERSIONS = ("v2", "v3")

DEFAULT_TARGET_NAME = "_target"

HEADER_ID = "tree"
END_OF_TREES_ID = "end of trees"
FEATURE_IMPORTANCES_IDS = ("feature importances:", "feature_importances:")
PARAMETERS_ID = "parameters:"
END_OF_PARAMETERS_ID = "end of parameters"


class GBDT:
    """
    Gradient boosting decision tree ensemble loaded from LightGBM text

    Attributes:
    -----------
    version : str or None
        Model format version ("v2" or "v3")
    max_feature_idx : int
        Index of the last feature
    label_index : int
        Column index of the label in the training data
    feature_names : tuple of str
        Feature names in column order
    feature_infos : tuple of str
        Declared feature info strings, parallel to feature_names
    boost_from_average : bool
        Whether the header carries the boost_from_average flag
    objective : ObjectiveFunction
        Training objective
    trees : tuple of Tree
        Trees in boosting order
    feature_importances : dict
        Feature name to importance (numeric string)
    pandas_categorical : list of list of str
        Category labels of pandas categorical columns
    """

    def __init__(self):
        self.version = None
        self.max_feature_idx = -1
        self.label_index = 0
        self.feature_names: Tuple[str, ...] = ()
        self.feature_infos: Tuple[str, ...] = ()
        self.boost_from_average = False
        self.objective: Optional[ObjectiveFunction] = None
        self.trees: Tuple[Tree, ...] = ()
        self.feature_importances: Dict[str, str] = {}
        self.pandas_categorical: List[List[str]] = []
        self.is_loaded = False

    @classmethod
    def from_sections(cls, sections: Sequence[Section]) -> "GBDT":
        return cls().load(sections)

    def load(self, sections: Sequence[Section]) -> "GBDT":
        """
        Assemble the model from its sections

        Parameters:
        -----------
        sections : sequence of Section
            Sections in file order

        Returns:
        --------
        self : GBDT
            Loaded model
        """
        header, index = _load_header(sections, 0)
        trees, index = _load_trees(sections, index)
        index = _skip_end_section(END_OF_TREES_ID, sections, index)
        importances, index = _load_feature_importances(sections, index, header["feature_names"])
        index = _skip_parameters(sections, index)
        pandas_categorical, index = _load_pandas_categorical(sections, index)

        if index < len(sections):
            logger.debug("Ignoring {} trailing section(s) starting at '{}'", len(sections) - index, sections[index].identifier)

        self.version = header["version"]
        self.max_feature_idx = header["max_feature_idx"]
        self.label_index = header["label_index"]
        self.feature_names = tuple(header["feature_names"])
        self.feature_infos = tuple(header["feature_infos"])
        self.boost_from_average = header["boost_from_average"]
        self.objective = header["objective"]
        self.trees = tuple(trees)
        self.feature_importances = importances
        self.pandas_categorical = pandas_categorical
        self.is_loaded = True

        logger.debug(
            "Loaded GBDT: version={}, features={}, trees={}, objective={}",
            self.version, len(self.feature_names), len(self.trees), self.objective,
        )
        return self

    @property
    def num_features(self) -> int:
        return len(self.feature_names)

    def is_binary(self, feature: int) -> TriState:
        # only a [0:1] interval can hold a binary feature
        if self.feature_infos[feature] != BINARY_INTERVAL:
            return TriState.FALSE
        return consensus(tree.is_binary(feature) for tree in self.trees)

    def is_categorical(self, feature: int) -> TriState:
        if not is_values(self.feature_infos[feature]):
            return TriState.FALSE
        return consensus(tree.is_categorical(feature) for tree in self.trees)

    def feature_role(self, feature: int) -> FeatureRole:
        return resolve_feature_role(
            self.feature_names[feature],
            self.feature_infos[feature],
            self.is_binary(feature),
            self.is_categorical(feature),
        )

    def feature_roles(self) -> List[FeatureRole]:
        return [self.feature_role(i) for i in range(self.num_features)]

    def get_feature_importance(self, feature_name: str) -> Optional[float]:
        value = self.feature_importances.get(feature_name)
        return float(value) if value is not None else None

    def encode_schema(self, target_name: Optional[str] = None, target_categories: Optional[List[str]] = None) -> Schema:
        """
        Encode the label and one feature object per column

        Parameters:
        -----------
        target_name : str, optional
            Target field name (defaults to "_target")
        target_categories : list of str, optional
            Class labels for classification objectives

        Returns:
        --------
        schema : Schema
            Label and features; unused columns are None placeholders
        """
        label = self.objective.encode_label(target_name or DEFAULT_TARGET_NAME, target_categories)

        has_pandas_categories = len(self.pandas_categorical) > 0
        pandas_category_idx = 0

        features: List[Optional[Feature]] = []

        for i, (name, info) in enumerate(zip(self.feature_names, self.feature_infos)):
            role = self.feature_role(i)

            if role is FeatureRole.UNUSED:
                features.append(None)
                if has_pandas_categories:
                    pandas_category_idx += 1
                continue

            if role is FeatureRole.CATEGORICAL:
                if has_pandas_categories:
                    labels = self._pandas_categories(pandas_category_idx, name)
                    pandas_category_idx += 1

                    data_type, categories = infer_category_type(labels)
                    feature = CategoricalFeature(name, data_type=data_type, categories=categories)
                else:
                    values = sorted(value for value in parse_values(info) if value != CATEGORY_MISSING)
                    feature = CategoricalFeature(name, data_type="integer", categories=values, direct=True)

                feature.invalid_value_treatment = InvalidValueTreatment.AS_MISSING
            elif role is FeatureRole.BINARY:
                feature = BinaryFeature(name)
            else:
                feature = ContinuousFeature(name, interval=parse_interval(info))

            feature.importance = self.get_feature_importance(name)
            features.append(feature)

        if has_pandas_categories and pandas_category_idx != len(self.pandas_categorical):
            raise PandasSlotCountMismatchError(
                f"Model declares {len(self.pandas_categorical)} pandas categorical columns, "
                f"but {pandas_category_idx} categorical or unused features consume them"
            )

        return Schema(label=label, features=features)

    def _pandas_categories(self, index: int, feature_name: str) -> List[str]:
        if index >= len(self.pandas_categorical):
            raise PandasSlotCountMismatchError(
                f"Feature '{feature_name}' needs pandas categorical entry {index}, "
                f"but only {len(self.pandas_categorical)} are declared"
            )
        return self.pandas_categorical[index]

    def to_lightgbm_schema(self, schema: Schema) -> Schema:
        """
        Re-type the features of a caller-built schema by tree consensus

        Parameters:
        -----------
        schema : Schema
            Schema with one feature per model column

        Returns:
        --------
        schema : Schema
            Schema with binary, categorical or continuous features
        """
        if len(schema.features) != self.num_features:
            raise ArrayLengthMismatchError(
                f"Schema has {len(schema.features)} features, model expects {self.num_features}"
            )

        features = [self._to_lightgbm_feature(i, feature) for i, feature in enumerate(schema.features)]

        return Schema(label=schema.label, features=features)

    def _to_lightgbm_feature(self, index: int, feature: Feature) -> Feature:
        importance = self.get_feature_importance(self.feature_names[index])
        if importance is None:
            importance = feature.importance

        if isinstance(feature, BinaryFeature):
            if self.is_binary(index) is TriState.TRUE:
                return replace(feature, importance=importance)
            if self.is_categorical(index) is TriState.TRUE:
                return CategoricalFeature(
                    feature.name,
                    invalid_value_treatment=InvalidValueTreatment.AS_MISSING,
                    importance=importance,
                    data_type="integer",
                    categories=list(feature.categories),
                )
        elif isinstance(feature, CategoricalFeature):
            if self.is_categorical(index) is TriState.TRUE:
                return replace(feature, importance=importance)
        elif isinstance(feature, WildcardFeature):
            if self.is_binary(index) is TriState.TRUE:
                return BinaryFeature(feature.name, feature.invalid_value_treatment, importance)

        return ContinuousFeature(feature.name, InvalidValueTreatment.AS_IS, importance)

    def encode_mining_model(self, schema: Optional[Schema] = None, num_iteration: Optional[int] = None) -> MiningModelPlan:
        return self.objective.encode_mining_model(self.trees, num_iteration, schema)

    def encode(self, options: Optional[ConverterOptions] = None) -> Tuple[Schema, MiningModelPlan]:
        """
        Encode everything the exporter needs

        Parameters:
        -----------
        options : ConverterOptions, optional
            Target naming and iteration limit

        Returns:
        --------
        schema : Schema
            Label and features
        plan : MiningModelPlan
            Tree segments and output transformation
        """
        options = options or ConverterOptions()

        schema = self.encode_schema(options.target_name, options.target_categories)
        plan = self.encode_mining_model(schema, options.num_iteration)

        logger.debug("Encoded schema with {} active features and {} trees", len(schema.active_features()), plan.num_trees)
        return schema, plan

    def predict_raw(self, X: Any, num_iteration: Optional[int] = None) -> np.ndarray:
        """
        Summed tree outputs

        Parameters:
        -----------
        X : array-like or DataFrame, shape=(n_samples, n_features)
            Input features
        num_iteration : int, optional
            Number of boosting rounds to use

        Returns:
        --------
        raw : array-like, shape=(n_samples, n_outputs)
            Raw scores per model output
        """
        return self.encode_mining_model(None, num_iteration).predict_raw(self._to_matrix(X))

    def predict(self, X: Any, num_iteration: Optional[int] = None) -> np.ndarray:
        plan = self.encode_mining_model(None, num_iteration)
        return plan.predict(self._to_matrix(X))

    def _to_matrix(self, X: Any) -> np.ndarray:
        if not isinstance(X, pd.DataFrame):
            return np.asarray(X, dtype=np.float64)

        missing = [name for name in self.feature_names if name not in X.columns]
        if missing:
            raise ValueError(f"DataFrame is missing feature columns: {missing}")

        X = X[list(self.feature_names)].copy()

        if self.pandas_categorical:
            # same slot walk as encode_schema
            pandas_category_idx = 0
            for i, name in enumerate(self.feature_names):
                if self.feature_role(i) not in (FeatureRole.CATEGORICAL, FeatureRole.UNUSED):
                    continue

                labels = self._pandas_categories(pandas_category_idx, name)
                pandas_category_idx += 1

                if _is_label_column(X[name]):
                    X[name] = _category_codes(X[name], labels)

        for column in X.columns:
            if isinstance(X[column].dtype, pd.CategoricalDtype):
                codes = X[column].cat.codes.astype(np.float64)
                X[column] = codes.where(codes >= 0, np.nan)

        return X.to_numpy(dtype=np.float64)

    def print_summary(self) -> None:
        roles = self.feature_roles()

        print(f"\n=== GBDT Model Summary ===")
        print(f"Version: {self.version}")
        print(f"Objective: {self.objective}")
        print(f"Trees: {len(self.trees)}")
        print(f"Features: {self.num_features}")
        for role in FeatureRole:
            print(f"  {role.value}: {sum(1 for r in roles if r is role)}")

        if self.trees:
            depths = [tree.root.get_depth() for tree in self.trees]
            print(f"Average tree depth: {np.mean(depths):.2f}")

        if self.pandas_categorical:
            print(f"Pandas categorical columns: {len(self.pandas_categorical)}")

    def __str__(self) -> str:
        if not self.is_loaded:
            return "GBDT(not loaded)"
        return f"GBDT(objective={self.objective}, trees={len(self.trees)}, features={self.num_features})"

    def __repr__(self) -> str:
        return self.__str__()


def infer_category_type(labels: Sequence[str]) -> Tuple[str, List[Any]]:
    """
    Infer the data type of pandas category labels

    Parameters:
    -----------
    labels : sequence of str
        Labels as written in the model file

    Returns:
    --------
    data_type : str
        "integer", "double" or "string"
    categories : list
        Labels, converted to int for "integer"
    """
    if not labels:
        return "string", []

    try:
        numeric = pd.to_numeric(pd.Series(list(labels), dtype=object))
    except (ValueError, TypeError):
        return "string", list(labels)

    if pd.api.types.is_integer_dtype(numeric):
        return "integer", [int(value) for value in numeric]
    if pd.api.types.is_float_dtype(numeric):
        return "double", list(labels)

    return "string", list(labels)


def _load_header(sections: Sequence[Section], index: int) -> Tuple[Dict[str, Any], int]:
    if index >= len(sections):
        raise MissingSectionError(f"Expected a '{HEADER_ID}' section, got no sections")

    section = sections[index]
    if not section.check_id(HEADER_ID):
        raise MissingSectionError(f"Expected a '{HEADER_ID}' section, got '{section.identifier}'")

    version = section.get("version")
    if version is not None and version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersionError(f"Version {version} is not supported")

    max_feature_idx = section.get_int("max_feature_idx")

    header = {
        "version": version,
        "max_feature_idx": max_feature_idx,
        "label_index": section.get_int("label_index"),
        "feature_names": section.get_string_array("feature_names", max_feature_idx + 1),
        "feature_infos": section.get_string_array("feature_infos", max_feature_idx + 1),
        "boost_from_average": section.contains_key("boost_from_average"),
        "objective": load_objective_function(section),
    }

    return header, index + 1


def _load_trees(sections: Sequence[Section], index: int) -> Tuple[List[Tree], int]:
    trees = []

    while index < len(sections):
        section = sections[index]

        if not section.check_id(f"Tree={len(trees)}"):
            break

        trees.append(Tree().load(section))
        index += 1

    logger.debug("Loaded {} trees", len(trees))
    return trees, index


def _skip_end_section(identifier: str, sections: Sequence[Section], index: int) -> int:
    if index < len(sections) and sections[index].check_id(identifier):
        return index + 1
    return index


def _load_feature_importances(
    sections: Sequence[Section], index: int, feature_names: Sequence[str]
) -> Tuple[Dict[str, str], int]:
    if index >= len(sections) or not sections[index].check_id(lambda identifier: identifier in FEATURE_IMPORTANCES_IDS):
        return {}, index

    known = set(feature_names)
    importances = {key: value for key, value in sections[index].items() if key in known}

    return importances, index + 1


def _skip_parameters(sections: Sequence[Section], index: int) -> int:
    if index >= len(sections) or not sections[index].check_id(PARAMETERS_ID):
        return index

    logger.debug("Skipping parameters section")
    return _skip_end_section(END_OF_PARAMETERS_ID, sections, index + 1)


def _load_pandas_categorical(sections: Sequence[Section], index: int) -> Tuple[List[List[str]], int]:
    if index >= len(sections) or not sections[index].check_id(is_pandas_categorical):
        return [], index

    pandas_categorical = parse_pandas_categorical(sections[index].identifier)
    logger.debug("Loaded {} pandas categorical columns", len(pandas_categorical))

    return pandas_categorical, index + 1


def _is_label_column(column: pd.Series) -> bool:
    return isinstance(column.dtype, pd.CategoricalDtype) or pd.api.types.is_object_dtype(column.dtype)


def _category_codes(column: pd.Series, labels: Sequence[str]) -> pd.Series:
    """Codes of column values against the category labels stored in the model."""
    data_type, categories = infer_category_type(labels)
    if data_type == "double":
        categories = [float(label) for label in categories]

    codes = pd.Categorical(column.astype(object), categories=categories).codes.astype(np.float64)
    codes[codes < 0] = np.nan

    return pd.Series(codes, index=column.index)
