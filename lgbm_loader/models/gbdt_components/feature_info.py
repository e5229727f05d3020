"""
Feature Info Utilities

LightGBM describes every feature with a short info string in the model
header. This module recognises the three shapes it can take and parses them:

- "none"            the feature was never used
- "[-1.5:3.25]"     the observed numeric interval of a continuous feature
- "0:1:2:-1"        the observed category codes of a categorical feature
"""

import re
from typing import List

from ..errors import MalformedValueError
from .schema import Interval


NONE = "none"

BINARY_INTERVAL = "[0:1]"

CATEGORY_MISSING = -1

_ESCAPE_PATTERN = re.compile(r"\\(.)")

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
}


def is_none(info: str) -> bool:
    return info == NONE


def is_interval(info: str) -> bool:
    return len(info) > 2 and info.startswith("[") and info.endswith("]") and ":" in info


def is_values(info: str) -> bool:
    """
    Check whether the info string is a colon-separated list of category codes

    Parameters:
    -----------
    info : str
        Feature info string

    Returns:
    --------
    result : bool
        True when every token parses as an integer
    """
    if is_none(info) or is_interval(info):
        return False

    try:
        parse_values(info)
    except MalformedValueError:
        return False

    return True


def parse_values(info: str) -> List[int]:
    tokens = info.split(":")

    try:
        return [int(token) for token in tokens]
    except ValueError:
        raise MalformedValueError(f"Feature info '{info}' is not a list of category values")


def parse_interval(info: str) -> Interval:
    """
    Parse an interval literal such as "[-1.5:3.25]"

    Parameters:
    -----------
    info : str
        Feature info string

    Returns:
    --------
    interval : Interval
        Closed interval spanning the observed values
    """
    if not is_interval(info):
        raise MalformedValueError(f"Feature info '{info}' is not an interval")

    bounds = info[1:-1].split(":")
    if len(bounds) != 2:
        raise MalformedValueError(f"Feature info '{info}' is not an interval")

    try:
        left, right = float(bounds[0]), float(bounds[1])
    except ValueError:
        raise MalformedValueError(f"Feature info '{info}' has non-numeric bounds")

    return Interval(left=left, right=right)


def unescape(string: str) -> str:
    """
    Remove one level of backslash escaping

    Common control escapes (\\n, \\t, \\r) are decoded, any other escaped
    character stands for itself.
    """
    if "\\" not in string:
        return string

    return _ESCAPE_PATTERN.sub(lambda match: _ESCAPES.get(match.group(1), match.group(1)), string)
