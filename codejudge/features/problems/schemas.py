from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class VisibleTestCase(BaseModel):
    input: str
    output: str
    explanation: Optional[str] = None


class HiddenTestCase(BaseModel):
    input: str
    output: str


class StartCode(BaseModel):
    language: str
    initial_code: str


class ProblemSchema(BaseModel):
    id: str
    title: str = ""
    difficulty: str = "easy"
    is_active: bool = True
    is_premium: bool = False
    visible_test_cases: List[VisibleTestCase] = Field(default_factory=list)
    hidden_test_cases: List[HiddenTestCase] = Field(default_factory=list)
    start_code: List[StartCode] = Field(default_factory=list)

    @property
    def total_test_cases(self) -> int:
        return len(self.visible_test_cases) + len(self.hidden_test_cases)
