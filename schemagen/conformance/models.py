from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SuiteTest(BaseModel):
    """One instance and its expected verdict."""

    description: str
    data: Any
    valid: bool
    comment: Optional[str] = None


class SuiteGroup(BaseModel):
    """A schema shared by a list of tests."""

    model_config = ConfigDict(populate_by_name=True)

    description: str
    schema_: Any = Field(alias="schema")
    tests: List[SuiteTest] = Field(default_factory=list)
    comment: Optional[str] = None
