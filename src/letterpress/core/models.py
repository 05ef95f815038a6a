from __future__ import annotations

import enum

from pydantic import BaseModel, Field

# Key -> ordered, trimmed, non-empty values.  Keys with no values are omitted.
ExtractRecord = dict[str, list[str]]


class Stage(str, enum.Enum):
    JOB = "job"
    APP = "app"
    COV = "cov"


class Letter(BaseModel):
    salutation: str
    paragraphs: list[str] = Field(default_factory=list)
    signature: str = ""
