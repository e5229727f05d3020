from .errors import (
    LightGBMFormatError,
    MissingSectionError,
    MissingKeyError,
    MalformedValueError,
    UnsupportedVersionError,
    UnsupportedObjectiveError,
    ArrayLengthMismatchError,
    CategoricalLiteralError,
    PandasSlotCountMismatchError,
    RoleContradictionError,
)
from .objective import (
    ObjectiveFunction,
    Regression,
    PoissonRegression,
    Lambdarank,
    BinomialLogisticRegression,
    MultinomialLogisticRegression,
    load_objective_function,
)
from .gbdt import GBDT

__all__ = [
    'LightGBMFormatError',
    'MissingSectionError',
    'MissingKeyError',
    'MalformedValueError',
    'UnsupportedVersionError',
    'UnsupportedObjectiveError',
    'ArrayLengthMismatchError',
    'CategoricalLiteralError',
    'PandasSlotCountMismatchError',
    'RoleContradictionError',
    'ObjectiveFunction',
    'Regression',
    'PoissonRegression',
    'Lambdarank',
    'BinomialLogisticRegression',
    'MultinomialLogisticRegression',
    'load_objective_function',
    'GBDT',
]
