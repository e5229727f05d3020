"""
Tree

This module contains the Tree class that loads one "Tree=N" block of a
LightGBM text model and answers per-feature usage queries for the
ensemble-wide feature role consensus.
"""

from typing import Any, Dict, List

import numpy as np

from ..errors import MalformedValueError
from .consensus import TriState
from .section import Section
from .tree_node import CATEGORICAL_MASK, TreeNode, build_node


# Threshold LightGBM writes for numerical splits on {0, 1} features
BINARY_THRESHOLD = 1.0000000180025095e-35


class Tree:
    """
    One boosting iteration's regression tree

    Attributes:
    -----------
    num_leaves : int
        Number of leaves
    split_feature : list of int
        Feature index per split
    threshold : list of float
        Split threshold (or bitset index for categorical splits)
    decision_type : list of int
        Decision type bit field per split
    root : TreeNode or None
        Root node built from the flat arrays
    """

    def __init__(self):
        self.num_leaves = 0
        self.num_cat = 0
        self.split_feature: List[int] = []
        self.threshold: List[float] = []
        self.decision_type: List[int] = []
        self.left_child: List[int] = []
        self.right_child: List[int] = []
        self.leaf_value: List[float] = []
        self.cat_boundaries: List[int] = []
        self.cat_threshold: List[int] = []
        self.shrinkage = 1.0
        self.root = None
        self.is_loaded = False

    def load(self, section: Section) -> "Tree":
        """
        Load the tree from its section

        Parameters:
        -----------
        section : Section
            "Tree=N" section

        Returns:
        --------
        self : Tree
            Loaded tree
        """
        self.num_leaves = section.get_int("num_leaves")
        self.num_cat = section.get_int("num_cat") if section.contains_key("num_cat") else 0

        if self.num_leaves < 1:
            raise MalformedValueError(f"Section '{section.identifier}': num_leaves must be positive, got {self.num_leaves}")

        num_splits = self.num_leaves - 1

        self.leaf_value = section.get_double_array("leaf_value", self.num_leaves)

        if num_splits > 0:
            self.split_feature = section.get_int_array("split_feature", num_splits)
            self.threshold = section.get_double_array("threshold", num_splits)
            self.decision_type = section.get_int_array("decision_type", num_splits)
            self.left_child = section.get_int_array("left_child", num_splits)
            self.right_child = section.get_int_array("right_child", num_splits)

        if self.num_cat > 0:
            self.cat_boundaries = section.get_int_array("cat_boundaries", self.num_cat + 1)
            self.cat_threshold = section.get_int_array("cat_threshold", self.cat_boundaries[-1])

        if section.contains_key("shrinkage"):
            self.shrinkage = section.get_double("shrinkage")

        self.root = self._build_root()
        self.is_loaded = True
        return self

    def _build_root(self) -> TreeNode:
        if self.num_leaves == 1:
            root = TreeNode(node_id=0)
            root.is_leaf = True
            root.value = self.leaf_value[0]
            return root

        cat_bitsets = [
            np.asarray(self.cat_threshold[self.cat_boundaries[i]:self.cat_boundaries[i + 1]], dtype=np.uint32)
            for i in range(self.num_cat)
        ]

        return build_node(
            0, 0,
            self.split_feature,
            self.threshold,
            self.decision_type,
            self.left_child,
            self.right_child,
            self.leaf_value,
            cat_bitsets,
        )

    def _is_categorical_split(self, split_idx: int) -> bool:
        return bool(self.decision_type[split_idx] & CATEGORICAL_MASK)

    def is_binary(self, feature: int) -> TriState:
        """
        Whether every split on the feature is the zero-threshold split of a
        {0, 1} column; UNDETERMINED when the tree never splits on it
        """
        result = TriState.UNDETERMINED

        for split_idx, split_feature in enumerate(self.split_feature):
            if split_feature != feature:
                continue

            if self._is_categorical_split(split_idx) or self.threshold[split_idx] != BINARY_THRESHOLD:
                return TriState.FALSE

            result = TriState.TRUE

        return result

    def is_categorical(self, feature: int) -> TriState:
        result = TriState.UNDETERMINED

        for split_idx, split_feature in enumerate(self.split_feature):
            if split_feature != feature:
                continue

            if not self._is_categorical_split(split_idx):
                return TriState.FALSE

            result = TriState.TRUE

        return result

    def predict(self, X: np.ndarray) -> np.ndarray:
        if not self.is_loaded:
            raise ValueError("Tree must be loaded before prediction")

        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)

        return self.root.predict(X)

    def get_info(self) -> Dict[str, Any]:
        info = {
            "num_leaves": self.num_leaves,
            "num_cat": self.num_cat,
            "shrinkage": self.shrinkage,
            "is_loaded": self.is_loaded,
        }

        if self.is_loaded:
            info.update({
                "depth": self.root.get_depth(),
                "n_nodes": self.root.count_nodes(),
                "features": sorted(set(self.split_feature)),
            })

        return info

    def __str__(self) -> str:
        if not self.is_loaded:
            return "Tree(not loaded)"

        info = self.get_info()
        return f"Tree(leaves={self.num_leaves}, depth={info['depth']}, nodes={info['n_nodes']})"

    def __repr__(self) -> str:
        return self.__str__()
