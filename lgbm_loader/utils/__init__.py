from .model_interface import load_gbdt, load_gbdt_from_string, describe_features
from .logger import configure_logging

__all__ = [
    'load_gbdt',
    'load_gbdt_from_string',
    'describe_features',
    'configure_logging',
]
