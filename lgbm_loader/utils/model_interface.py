"""
Model loading helpers

Entry points that turn a LightGBM text model (file or string) into a GBDT,
plus a tabular per-feature description of a loaded model.
"""

import os
from typing import Union

import pandas as pd
from loguru import logger

from ..models.gbdt import GBDT
from ..models.gbdt_components.section import parse_text


def load_gbdt(path: Union[str, os.PathLike], encoding: str = "utf-8") -> GBDT:
    """
    Load a model saved with Booster.save_model

    Parameters:
    -----------
    path : str or path-like
        Model file
    encoding : str, default="utf-8"
        File encoding

    Returns:
    --------
    gbdt : GBDT
        Loaded model
    """
    with open(path, "r", encoding=encoding) as f:
        sections = parse_text(f)

    gbdt = GBDT.from_sections(sections)

    logger.info("Loaded {} from {}", gbdt, path)
    return gbdt


def load_gbdt_from_string(text: str) -> GBDT:
    return GBDT.from_sections(parse_text(text.splitlines()))


def describe_features(gbdt: GBDT) -> pd.DataFrame:
    """
    One row per feature with its declared info, resolved role and importance

    Parameters:
    -----------
    gbdt : GBDT
        Loaded model

    Returns:
    --------
    table : DataFrame
        Columns: name, info, role, binary, categorical, importance
    """
    rows = []
    for i, (name, info) in enumerate(zip(gbdt.feature_names, gbdt.feature_infos)):
        rows.append({
            "name": name,
            "info": info,
            "role": gbdt.feature_role(i).value,
            "binary": gbdt.is_binary(i).value,
            "categorical": gbdt.is_categorical(i).value,
            "importance": gbdt.get_feature_importance(name),
        })

    return pd.DataFrame(rows, columns=["name", "info", "role", "binary", "categorical", "importance"])
