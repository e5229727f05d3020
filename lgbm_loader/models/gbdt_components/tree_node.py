"""
Decision Tree Node Implementation

This module contains the TreeNode class that represents individual nodes
of a loaded LightGBM tree, together with the split decision rules LightGBM
encodes in its decision_type bit field.
"""

from typing import Optional
import numpy as np


# decision_type bit layout
CATEGORICAL_MASK = 1
DEFAULT_LEFT_MASK = 2

MISSING_NONE = 0
MISSING_ZERO = 1
MISSING_NAN = 2

# LightGBM's kZeroThreshold; numerical splits on binary features use it
ZERO_THRESHOLD = 1e-35


class TreeNode:
    """
    Node of a loaded tree

    Attributes:
    -----------
    node_id : int
        Split index for internal nodes, leaf index for leaves
    is_leaf : bool
        Whether this node is a leaf
    feature_idx : int or None
        Feature used for the split (None for leaves)
    threshold : float or None
        Numerical threshold (None for leaves and categorical splits)
    decision_type : int
        LightGBM decision type bit field
    cat_bitset : array-like of uint32 or None
        Categories sent to the left child (categorical splits only)
    left : TreeNode or None
        Left child
    right : TreeNode or None
        Right child
    value : float
        Leaf output (leaves only)
    depth : int
        Depth of the node
    """

    def __init__(self, node_id: int = 0, depth: int = 0):
        self.node_id = node_id
        self.depth = depth
        self.is_leaf = False
        self.feature_idx = None
        self.threshold = None
        self.decision_type = 0
        self.cat_bitset = None
        self.left = None
        self.right = None
        self.value = 0.0

    @property
    def is_categorical(self) -> bool:
        return bool(self.decision_type & CATEGORICAL_MASK)

    @property
    def default_left(self) -> bool:
        return bool(self.decision_type & DEFAULT_LEFT_MASK)

    @property
    def missing_type(self) -> int:
        return (self.decision_type >> 2) & 3

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Evaluate the subtree rooted at this node

        Parameters:
        -----------
        X : array-like, shape=(n_samples, n_features)
            Input features

        Returns:
        --------
        predictions : array-like, shape=(n_samples,)
            Leaf values
        """
        if self.is_leaf:
            return np.full(X.shape[0], self.value)

        mask = self.go_left(X[:, self.feature_idx])
        predictions = np.zeros(X.shape[0])

        if np.any(mask):
            predictions[mask] = self.left.predict(X[mask])

        if np.any(~mask):
            predictions[~mask] = self.right.predict(X[~mask])

        return predictions

    def go_left(self, x: np.ndarray) -> np.ndarray:
        if self.is_categorical:
            return self._categorical_decision(x)
        return self._numerical_decision(x)

    def _numerical_decision(self, x: np.ndarray) -> np.ndarray:
        missing_type = self.missing_type

        nan = np.isnan(x)
        if missing_type != MISSING_NAN:
            x = np.where(nan, 0.0, x)

        if missing_type == MISSING_ZERO:
            missing = np.abs(x) <= ZERO_THRESHOLD
        elif missing_type == MISSING_NAN:
            missing = nan
        else:
            missing = np.zeros(x.shape[0], dtype=bool)

        with np.errstate(invalid="ignore"):
            return np.where(missing, self.default_left, x <= self.threshold)

    def _categorical_decision(self, x: np.ndarray) -> np.ndarray:
        nan = np.isnan(x)
        # NaN goes right when missing values are tracked, otherwise it is category 0
        to_right = nan if self.missing_type == MISSING_NAN else np.zeros(x.shape[0], dtype=bool)

        codes = np.where(nan, 0.0, x).astype(np.int64)
        word_idx = codes // 32

        words = self.cat_bitset if self.cat_bitset is not None else np.zeros(0, dtype=np.uint32)
        valid = (codes >= 0) & (word_idx < len(words)) & ~to_right

        in_set = np.zeros(x.shape[0], dtype=bool)
        if np.any(valid):
            bits = (words[word_idx[valid]] >> (codes[valid] % 32).astype(np.uint32)) & 1
            in_set[valid] = bits.astype(bool)

        return in_set

    def get_depth(self) -> int:
        if self.is_leaf:
            return 0

        left_depth = self.left.get_depth() if self.left else 0
        right_depth = self.right.get_depth() if self.right else 0

        return 1 + max(left_depth, right_depth)

    def count_nodes(self) -> int:
        if self.is_leaf:
            return 1

        left_count = self.left.count_nodes() if self.left else 0
        right_count = self.right.count_nodes() if self.right else 0

        return 1 + left_count + right_count

    def __str__(self) -> str:
        if self.is_leaf:
            return f"Leaf(id={self.node_id}, depth={self.depth}, value={self.value})"
        if self.is_categorical:
            return f"Node(id={self.node_id}, depth={self.depth}, feature={self.feature_idx}, categorical)"
        return f"Node(id={self.node_id}, depth={self.depth}, feature={self.feature_idx}, threshold={self.threshold:.4g})"

    def __repr__(self) -> str:
        return self.__str__()


def build_node(
    index: int,
    depth: int,
    split_feature,
    threshold,
    decision_type,
    left_child,
    right_child,
    leaf_value,
    cat_bitsets,
) -> TreeNode:
    """
    Recursively build nodes from LightGBM's flat arrays

    Child references >= 0 point at internal nodes, negative references
    encode leaf `~child`.
    """
    if index < 0:
        leaf_idx = ~index
        node = TreeNode(node_id=leaf_idx, depth=depth)
        node.is_leaf = True
        node.value = leaf_value[leaf_idx]
        return node

    node = TreeNode(node_id=index, depth=depth)
    node.feature_idx = split_feature[index]
    node.decision_type = decision_type[index]

    if node.is_categorical:
        node.cat_bitset = cat_bitsets[int(threshold[index])]
    else:
        node.threshold = threshold[index]

    args = (split_feature, threshold, decision_type, left_child, right_child, leaf_value, cat_bitsets)
    node.left = build_node(left_child[index], depth + 1, *args)
    node.right = build_node(right_child[index], depth + 1, *args)

    return node
