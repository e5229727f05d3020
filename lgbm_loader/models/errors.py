"""
Loader Errors

Every failure raised while reading a LightGBM text model derives from
LightGBMFormatError, which is a ValueError so callers that only guard
against bad input keep working.
"""


class LightGBMFormatError(ValueError):
    """Base class for malformed or unsupported model text."""


class MissingSectionError(LightGBMFormatError):
    """A mandatory section is absent or carries the wrong identifier."""


class MissingKeyError(LightGBMFormatError):
    """A section lacks a required key."""


class MalformedValueError(LightGBMFormatError):
    """A section value could not be parsed into the requested type."""


class UnsupportedVersionError(LightGBMFormatError):
    pass


class UnsupportedObjectiveError(LightGBMFormatError):
    pass


class ArrayLengthMismatchError(LightGBMFormatError):
    """Parallel arrays (or a category list) have an unexpected length."""


class CategoricalLiteralError(LightGBMFormatError):
    """The pandas_categorical literal could not be parsed."""


class PandasSlotCountMismatchError(LightGBMFormatError):
    """Categorical features and pandas_categorical entries disagree in number."""


class RoleContradictionError(LightGBMFormatError):
    """A feature resolves to both binary and categorical."""
