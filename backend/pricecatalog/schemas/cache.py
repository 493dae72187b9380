from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TransientReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    value_before_clear: Any = None
    age: Optional[str] = None
    cleared: bool
    value_after_clear: Any = None


class ClearCacheRequest(BaseModel):
    transients: list[str] = Field(default_factory=list)


class ClearCacheResponse(BaseModel):
    transients: dict[str, TransientReport] = Field(default_factory=dict)
