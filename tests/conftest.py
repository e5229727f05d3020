# tests/conftest.py
from typing import Dict, Optional

import pytest
from loguru import logger

from lgbm_loader.models.gbdt_components.consensus import TriState
from lgbm_loader.models.gbdt_components.section import Section, parse_text


# age: continuous, is_member: binary, color: categorical, unused_col: never split on
#
# Tree=0: is_member <= 1e-35 ? leaf0 : (color in {0, 2} ? leaf1 : leaf2)
# Tree=1: age <= 40.5 ? leaf0 : leaf1
MODEL_TEXT = """tree
version=v3
num_class=1
num_tree_per_iteration=1
label_index=0
max_feature_idx=3
objective=binary sigmoid:1
feature_names=age is_member color unused_col
feature_infos=[18:90] [0:1] 0:1:2 none
tree_sizes=345 210

Tree=0
num_leaves=3
num_cat=1
split_feature=1 2
split_gain=10.5 4.25
threshold=1.0000000180025095e-35 0
decision_type=2 1
left_child=-1 -2
right_child=1 -3
leaf_value=0.1 0.2 -0.3
leaf_weight=10 5 5
leaf_count=10 5 5
internal_value=0 0
internal_weight=20 10
internal_count=20 10
cat_boundaries=0 1
cat_threshold=5
is_linear=0
shrinkage=1

Tree=1
num_leaves=2
num_cat=0
split_feature=0
split_gain=3
threshold=40.5
decision_type=2
left_child=-1
right_child=-2
leaf_value=-0.05 0.05
leaf_weight=10 10
leaf_count=10 10
internal_value=0
internal_weight=20
internal_count=20
is_linear=0
shrinkage=0.1

end of trees

feature_importances:
is_member=1
color=1
age=1
bogus=7

parameters:
[boosting: gbdt]
[objective: binary]
[num_leaves: 31]

end of parameters

{pandas}
"""


@pytest.fixture(autouse=True)
def disable_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


def make_model_text(pandas: str = "pandas_categorical:null") -> str:
    return MODEL_TEXT.replace("{pandas}", pandas)


@pytest.fixture
def model_text() -> str:
    return make_model_text()


@pytest.fixture
def sections(model_text):
    return parse_text(model_text.splitlines())


def make_header(
    feature_names: str = "f0 f1",
    feature_infos: str = "[0:10] [0:1]",
    max_feature_idx: int = 1,
    objective: str = "regression",
    extra: Optional[Dict[str, str]] = None,
) -> Section:
    entries = {
        "version": "v3",
        "max_feature_idx": str(max_feature_idx),
        "label_index": "0",
        "objective": objective,
        "feature_names": feature_names,
        "feature_infos": feature_infos,
    }
    if extra:
        entries.update(extra)
    return Section("tree", entries)


def make_tree_section(index: int, split_feature: int = 0, threshold: str = "0.5", decision_type: int = 2) -> Section:
    return Section(f"Tree={index}", {
        "num_leaves": "2",
        "num_cat": "0",
        "split_feature": str(split_feature),
        "threshold": threshold,
        "decision_type": str(decision_type),
        "left_child": "-1",
        "right_child": "-2",
        "leaf_value": "-1 1",
    })


class FakeTree:
    """Tree stand-in answering fixed per-feature queries."""

    def __init__(self, binary=None, categorical=None):
        self.binary = binary or {}
        self.categorical = categorical or {}

    def is_binary(self, feature):
        return self.binary.get(feature, TriState.UNDETERMINED)

    def is_categorical(self, feature):
        return self.categorical.get(feature, TriState.UNDETERMINED)
