"""GBDT assembly, schema encoding and prediction."""

import numpy as np
import pandas as pd
import pytest

from lgbm_loader.config import ConverterOptions
from lgbm_loader.models.errors import (
    ArrayLengthMismatchError,
    CategoricalLiteralError,
    MissingSectionError,
    PandasSlotCountMismatchError,
    UnsupportedObjectiveError,
    UnsupportedVersionError,
)
from lgbm_loader.models.gbdt import GBDT, infer_category_type
from lgbm_loader.models.gbdt_components.consensus import FeatureRole, TriState
from lgbm_loader.models.gbdt_components.schema import (
    BinaryFeature,
    CategoricalFeature,
    CategoricalLabel,
    ContinuousFeature,
    Interval,
    InvalidValueTreatment,
    Schema,
    WildcardFeature,
)
from lgbm_loader.models.gbdt_components.section import Section, parse_text
from lgbm_loader.models.objective import BinomialLogisticRegression, Regression

from conftest import FakeTree, make_header, make_model_text, make_tree_section


def _load_text(text):
    return GBDT().load(parse_text(text.splitlines()))


def test_load_full_model(sections):
    gbdt = GBDT().load(sections)

    assert gbdt.is_loaded
    assert gbdt.version == "v3"
    assert gbdt.max_feature_idx == 3
    assert gbdt.label_index == 0
    assert gbdt.feature_names == ("age", "is_member", "color", "unused_col")
    assert gbdt.feature_infos == ("[18:90]", "[0:1]", "0:1:2", "none")
    assert not gbdt.boost_from_average
    assert gbdt.objective == BinomialLogisticRegression(1.0)
    assert len(gbdt.trees) == 2
    assert gbdt.pandas_categorical == []


def test_feature_arrays_have_equal_length(sections):
    gbdt = GBDT.from_sections(sections)

    assert len(gbdt.feature_names) == len(gbdt.feature_infos) == gbdt.max_feature_idx + 1


def test_unknown_importance_keys_are_dropped(sections):
    gbdt = GBDT().load(sections)

    assert gbdt.feature_importances == {"is_member": "1", "color": "1", "age": "1"}
    assert gbdt.get_feature_importance("bogus") is None
    assert gbdt.get_feature_importance("age") == 1.0


def test_legacy_feature_importances_identifier(model_text):
    gbdt = _load_text(model_text.replace("feature_importances:", "feature importances:"))

    assert "color" in gbdt.feature_importances


def test_feature_roles(sections):
    gbdt = GBDT().load(sections)

    assert gbdt.feature_roles() == [
        FeatureRole.CONTINUOUS,
        FeatureRole.BINARY,
        FeatureRole.CATEGORICAL,
        FeatureRole.UNUSED,
    ]
    assert gbdt.is_binary(1) is TriState.TRUE
    assert gbdt.is_categorical(2) is TriState.TRUE
    assert gbdt.is_binary(3) is TriState.FALSE
    assert gbdt.is_categorical(0) is TriState.FALSE


def test_empty_sections():
    with pytest.raises(MissingSectionError):
        GBDT().load([])


def test_wrong_header_identifier():
    with pytest.raises(MissingSectionError, match="Tree=0"):
        GBDT().load([make_tree_section(0)])


def test_supported_versions():
    for version in ("v2", "v3"):
        gbdt = GBDT().load([make_header(extra={"version": version})])
        assert gbdt.version == version

    header = Section("tree", {key: value for key, value in make_header().items() if key != "version"})
    assert GBDT().load([header]).version is None


def test_unsupported_version():
    with pytest.raises(UnsupportedVersionError, match="v4"):
        GBDT().load([make_header(extra={"version": "v4"})])


def test_feature_names_shorter_than_declared():
    header = make_header(feature_names="f0", feature_infos="[0:1] [0:1]", max_feature_idx=1)

    with pytest.raises(ArrayLengthMismatchError, match="feature_names"):
        GBDT().load([header, make_tree_section(0)])


def test_unsupported_objective_in_header():
    with pytest.raises(UnsupportedObjectiveError):
        GBDT().load([make_header(objective="quantile")])


def test_boost_from_average_flag():
    gbdt = GBDT().load([make_header(extra={"boost_from_average": None})])

    assert gbdt.boost_from_average


def test_tree_sequence_stops_at_mismatch():
    sections = [
        make_header(),
        make_tree_section(0),
        make_tree_section(1),
        make_tree_section(3),
        make_tree_section(2),
    ]
    gbdt = GBDT().load(sections)

    assert len(gbdt.trees) == 2


def test_header_only_model():
    gbdt = GBDT().load([make_header()])

    assert gbdt.trees == ()
    assert gbdt.feature_importances == {}
    assert gbdt.is_binary(1) is TriState.UNDETERMINED


def test_optional_sections_without_end_markers():
    sections = [
        make_header(),
        make_tree_section(0),
        Section("feature importances:", {"f0": "3", "x": "1"}),
        Section("parameters:", {"[boosting: gbdt]": None}),
        Section('pandas_categorical:[["a"]]'),
    ]
    gbdt = GBDT().load(sections)

    assert gbdt.feature_importances == {"f0": "3"}
    assert gbdt.pandas_categorical == [["a"]]


def test_malformed_pandas_literal_fails_load():
    sections = [
        make_header(),
        make_tree_section(0),
        Section("pandas_categorical:garbage"),
    ]

    with pytest.raises(CategoricalLiteralError):
        GBDT().load(sections)


def test_out_of_order_sections_are_ignored():
    sections = [
        make_header(),
        make_tree_section(0),
        Section("parameters:"),
        Section("feature importances:", {"f0": "3"}),
    ]
    gbdt = GBDT().load(sections)

    assert gbdt.feature_importances == {}


def test_failed_load_leaves_model_untouched():
    gbdt = GBDT()
    with pytest.raises(UnsupportedVersionError):
        gbdt.load([make_header(extra={"version": "v9"})])

    assert not gbdt.is_loaded
    assert gbdt.feature_names == ()


def test_encode_schema(sections):
    schema = GBDT().load(sections).encode_schema()

    assert schema.label == CategoricalLabel(name="_target", categories=["0", "1"])
    assert len(schema.features) == 4

    age, is_member, color, unused = schema.features

    assert isinstance(age, ContinuousFeature)
    assert age.interval == Interval(left=18.0, right=90.0)
    assert age.invalid_value_treatment is InvalidValueTreatment.AS_IS
    assert age.importance == 1.0

    assert isinstance(is_member, BinaryFeature)
    assert is_member.categories == (0, 1)
    assert is_member.invalid_value_treatment is InvalidValueTreatment.AS_IS

    assert isinstance(color, CategoricalFeature)
    assert color.direct
    assert color.data_type == "integer"
    assert color.categories == [0, 1, 2]
    assert color.invalid_value_treatment is InvalidValueTreatment.AS_MISSING

    assert unused is None
    assert [feature.name for feature in schema.active_features()] == ["age", "is_member", "color"]


def test_encode_schema_drops_missing_category_sentinel():
    gbdt = GBDT().load([make_header(feature_names="c", feature_infos="3:-1:1", max_feature_idx=0)])
    schema = gbdt.encode_schema(target_name="y")

    assert schema.label.name == "y"
    assert schema.features[0].categories == [1, 3]
    assert schema.features[0].importance is None


def test_encode_schema_with_pandas_categories():
    text = make_model_text('pandas_categorical:[["red", "green", "blue"], ["a", "b"]]')
    schema = _load_text(text).encode_schema()

    color = schema.features[2]
    assert isinstance(color, CategoricalFeature)
    assert not color.direct
    assert color.data_type == "string"
    assert color.categories == ["red", "green", "blue"]


def test_encode_schema_with_integer_pandas_categories():
    text = make_model_text('pandas_categorical:[[10, 20, 30], ["a", "b"]]')
    schema = _load_text(text).encode_schema()

    assert schema.features[2].data_type == "integer"
    assert schema.features[2].categories == [10, 20, 30]


def test_pandas_table_longer_than_slots():
    text = make_model_text('pandas_categorical:[["red"], ["a"], ["b"]]')

    with pytest.raises(PandasSlotCountMismatchError):
        _load_text(text).encode_schema()


def test_pandas_table_with_two_entries_and_one_slot():
    sections = [
        make_header(feature_names="cat num", feature_infos="0:1:2 [0:5]"),
        Section('pandas_categorical:[["a", "b", "c"], ["x"]]'),
    ]
    gbdt = GBDT().load(sections)

    with pytest.raises(PandasSlotCountMismatchError):
        gbdt.encode_schema()


def test_pandas_table_shorter_than_slots():
    sections = [
        make_header(feature_names="c0 c1", feature_infos="0:1 0:1:2"),
        Section('pandas_categorical:[["a", "b"]]'),
    ]

    with pytest.raises(PandasSlotCountMismatchError):
        GBDT().load(sections).encode_schema()


def test_zero_threshold_split_on_count_feature_stays_continuous():
    sections = [
        make_header(feature_infos="[0:100] [0:10]"),
        make_tree_section(0, threshold="1.0000000180025095e-35"),
    ]
    gbdt = GBDT().load(sections)

    assert gbdt.trees[0].is_binary(0) is TriState.TRUE
    assert gbdt.is_binary(0) is TriState.FALSE
    assert gbdt.feature_role(0) is FeatureRole.CONTINUOUS

    feature = gbdt.encode_schema().features[0]
    assert isinstance(feature, ContinuousFeature)
    assert feature.interval == Interval(left=0.0, right=100.0)


def test_zero_threshold_split_on_unit_interval_is_binary():
    sections = [
        make_header(feature_infos="[0:1] [0:10]"),
        make_tree_section(0, threshold="1.0000000180025095e-35"),
    ]
    gbdt = GBDT().load(sections)

    assert gbdt.feature_role(0) is FeatureRole.BINARY
    assert isinstance(gbdt.encode_schema().features[0], BinaryFeature)


def test_categorical_split_on_interval_feature_stays_continuous():
    section = make_tree_section(0, threshold="0", decision_type=1)
    section.put("num_cat=1")
    section.put("cat_boundaries=0 1")
    section.put("cat_threshold=5")
    gbdt = GBDT().load([make_header(feature_infos="[0:10] [0:1]"), section])

    assert gbdt.trees[0].is_categorical(0) is TriState.TRUE
    assert gbdt.is_categorical(0) is TriState.FALSE
    assert gbdt.feature_role(0) is FeatureRole.CONTINUOUS


def test_numerical_split_on_value_set_feature_is_continuous():
    sections = [
        make_header(feature_infos="0:1 [0:10]"),
        make_tree_section(0, threshold="1.0000000180025095e-35"),
    ]
    gbdt = GBDT().load(sections)

    assert gbdt.is_binary(0) is TriState.FALSE
    assert gbdt.is_categorical(0) is TriState.FALSE
    assert gbdt.feature_role(0) is FeatureRole.CONTINUOUS


def test_to_lightgbm_schema(sections):
    gbdt = GBDT().load(sections)
    schema = Schema(label=None, features=[
        WildcardFeature("age"),
        WildcardFeature("is_member"),
        CategoricalFeature("color", categories=["r", "g", "b"]),
        BinaryFeature("unused_col"),
    ])

    transformed = gbdt.to_lightgbm_schema(schema)
    age, is_member, color, unused = transformed.features

    assert isinstance(age, ContinuousFeature) and age.importance == 1.0
    assert isinstance(is_member, BinaryFeature)
    assert isinstance(color, CategoricalFeature) and color.categories == ["r", "g", "b"]
    assert isinstance(unused, ContinuousFeature)


def test_to_lightgbm_schema_binary_to_categorical():
    gbdt = GBDT().load([make_header(feature_names="f0 f1", feature_infos="0:1 [0:5]")])
    gbdt.trees = (FakeTree(binary={0: TriState.FALSE}, categorical={0: TriState.TRUE}),)

    schema = gbdt.to_lightgbm_schema(Schema(label=None, features=[BinaryFeature("f0"), WildcardFeature("f1")]))

    assert isinstance(schema.features[0], CategoricalFeature)
    assert schema.features[0].categories == [0, 1]
    assert isinstance(schema.features[1], ContinuousFeature)


def test_to_lightgbm_schema_length_mismatch(sections):
    with pytest.raises(ArrayLengthMismatchError):
        GBDT().load(sections).to_lightgbm_schema(Schema(label=None, features=[WildcardFeature("age")]))


def test_encode_with_options(sections):
    gbdt = GBDT().load(sections)
    options = ConverterOptions(target_name="churn", target_categories=["stay", "leave"], num_iteration=1)

    schema, plan = gbdt.encode(options)

    assert schema.label.categories == ["stay", "leave"]
    assert plan.schema is schema
    assert plan.num_trees == 1
    assert plan.objective is gbdt.objective


def test_predict(sections):
    gbdt = GBDT().load(sections)
    X = np.array([[30, 1, 1, 0], [50, 0, 0, 0]], dtype=float)

    raw = gbdt.predict_raw(X)
    np.testing.assert_allclose(raw[:, 0], [-0.35, 0.15])

    np.testing.assert_allclose(gbdt.predict(X), 1.0 / (1.0 + np.exp(-np.array([-0.35, 0.15]))))
    np.testing.assert_allclose(gbdt.predict_raw(X, num_iteration=1)[:, 0], [-0.3, 0.1])


def test_predict_from_dataframe(sections):
    gbdt = GBDT().load(sections)
    frame = pd.DataFrame({
        "unused_col": [0.0, 0.0],
        "color": pd.Categorical(["b", "a"], categories=["a", "b"]),
        "is_member": [1, 1],
        "age": [30.0, 50.0],
    })

    np.testing.assert_allclose(gbdt.predict_raw(frame)[:, 0], [-0.35, 0.25])

    with pytest.raises(ValueError, match="age"):
        gbdt.predict(frame.drop(columns=["age"]))


def test_predict_remaps_dataframe_categories_to_model_labels():
    gbdt = _load_text(make_model_text('pandas_categorical:[["a", "b", "c"], ["z"]]'))

    def frame(categories):
        return pd.DataFrame({
            "age": [30.0, 30.0],
            "is_member": [1, 1],
            "color": pd.Categorical(["b", "c"], categories=categories),
            "unused_col": [0.0, 0.0],
        })

    expected = [-0.35, 0.15]
    np.testing.assert_allclose(gbdt.predict_raw(frame(["a", "b", "c"]))[:, 0], expected)
    np.testing.assert_allclose(gbdt.predict_raw(frame(["b", "a", "c"]))[:, 0], expected)
    np.testing.assert_allclose(gbdt.predict_raw(frame(["c", "b"]))[:, 0], expected)


def test_predict_maps_unknown_labels_to_missing():
    gbdt = _load_text(make_model_text('pandas_categorical:[["a", "b", "c"], ["z"]]'))
    frame = pd.DataFrame({
        "age": [30.0],
        "is_member": [1],
        "color": ["purple"],
        "unused_col": [0.0],
    })

    # unknown label becomes NaN, read as category 0 under missing type none
    np.testing.assert_allclose(gbdt.predict_raw(frame)[:, 0], [0.15])


def test_regression_model_prediction():
    gbdt = GBDT().load([make_header(), make_tree_section(0), make_tree_section(1, split_feature=1)])

    assert gbdt.objective == Regression()
    np.testing.assert_allclose(gbdt.predict(np.array([[0.0, 1.0], [1.0, 0.0]])), [0.0, 0.0])
    np.testing.assert_allclose(gbdt.predict(np.array([[0.0, 0.0]])), [-2.0])


def test_print_summary(sections, capsys):
    GBDT().load(sections).print_summary()

    out = capsys.readouterr().out
    assert "Trees: 2" in out
    assert "categorical: 1" in out


@pytest.mark.parametrize("labels, data_type, categories", [
    (["1", "2", "3"], "integer", [1, 2, 3]),
    (["1.5", "2"], "double", ["1.5", "2"]),
    (["a", "1"], "string", ["a", "1"]),
    ([], "string", []),
])
def test_infer_category_type(labels, data_type, categories):
    assert infer_category_type(labels) == (data_type, categories)
