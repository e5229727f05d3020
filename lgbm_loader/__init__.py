"""
lgbm_loader

Loads LightGBM text models into a typed in-memory GBDT: tree ensemble,
objective function and reconciled per-feature roles.
"""

from .config import ConverterOptions, LogConfig
from .models import GBDT, LightGBMFormatError
from .models.gbdt_components import FeatureRole, Schema, Section, TriState, parse_text
from .utils import configure_logging, describe_features, load_gbdt, load_gbdt_from_string

__version__ = "0.1.0"

__all__ = [
    'ConverterOptions',
    'LogConfig',
    'GBDT',
    'LightGBMFormatError',
    'FeatureRole',
    'Schema',
    'Section',
    'TriState',
    'parse_text',
    'configure_logging',
    'describe_features',
    'load_gbdt',
    'load_gbdt_from_string',
]
