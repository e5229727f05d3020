from typing import List, Optional

from pydantic import BaseModel, Field


class ConverterOptions(BaseModel):
    """Options passed to GBDT.encode by the exporter."""

    target_name: Optional[str] = None
    target_categories: Optional[List[str]] = None
    num_iteration: Optional[int] = Field(default=None, gt=0)


class LogConfig(BaseModel):
    level: str = "INFO"
    dir: Optional[str] = None
    rotation: str = "1 day"
    retention: str = "30 days"
