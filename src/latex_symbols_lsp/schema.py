from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DESCRIPTION = "LaTeX symbol"

_COMMAND_RE = re.compile(r"\\[A-Za-z]+")


class SymbolEntryDTO(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    command: str
    symbol: str = Field(min_length=1)
    description: Optional[str] = None

    @field_validator("command")
    @classmethod
    def _command_shape(cls, value: str) -> str:
        if _COMMAND_RE.fullmatch(value) is None:
            raise ValueError(
                "command must be a backslash followed by ASCII letters"
            )
        return value

    @property
    def display_description(self) -> str:
        return self.description or DEFAULT_DESCRIPTION


class Settings(BaseModel):
    """Per-document settings under the ``latexSymbolsLsp`` section."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_number_of_problems: int = Field(1000, ge=0, alias="maxNumberOfProblems")
    enable_auto_replacement: bool = Field(True, alias="enableAutoReplacement")


DEFAULT_SETTINGS = Settings()
