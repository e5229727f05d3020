"""
Pandas Categorical Literal

When a model is trained on a pandas DataFrame, LightGBM appends the
category labels of every categorical column as a JSON-like literal:

    pandas_categorical:[["a", "b"], [1, 2, 3]]

This module recovers the label lists from that literal.
"""

import re
from typing import List

from ..errors import CategoricalLiteralError
from .feature_info import unescape


PREFIX = "pandas_categorical:"

_SEPARATOR = ", "

_VALUE_SEPARATOR = re.compile(r",\s")


def is_pandas_categorical(identifier: str) -> bool:
    return identifier.startswith(PREFIX)


def parse_pandas_categorical(identifier: str) -> List[List[str]]:
    """
    Parse the label lists out of a pandas_categorical section identifier

    Parameters:
    -----------
    identifier : str
        Full identifier, including the "pandas_categorical:" prefix

    Returns:
    --------
    categories : list of list of str
        One label list per categorical column, in column order
    """
    if identifier == PREFIX + "null":
        return []

    if not identifier.startswith(PREFIX + "[") or not identifier.endswith("]"):
        raise CategoricalLiteralError(f"Malformed pandas_categorical literal: {identifier}")

    remainder = identifier[len(PREFIX) + 1:-1]

    result = []
    while True:
        index = remainder.find("]")
        if index < 0:
            break

        values = remainder[:index + 1]
        if not values.startswith("["):
            raise CategoricalLiteralError(f"Malformed pandas_categorical value list: {values}")

        result.append(_parse_values(values[1:-1]))

        remainder = remainder[index + 1:]
        if remainder.startswith(_SEPARATOR):
            remainder = remainder[len(_SEPARATOR):]

    if remainder:
        raise CategoricalLiteralError(f"Unexpected trailing text in pandas_categorical literal: {remainder}")

    return result


def _parse_values(string: str) -> List[str]:
    # "[]" is a column without categories
    if not string:
        return []

    return [_parse_value(value) for value in _VALUE_SEPARATOR.split(string)]


def _parse_value(value: str) -> str:
    if len(value) > 1 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]

    return unescape(value)
