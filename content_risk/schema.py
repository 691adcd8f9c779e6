"""Data contracts for content-risk classification."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RiskAssessment(BaseModel):
    """The only reply shape accepted from the model.

    ``isMalicious`` is accepted as an alias because some models camel-case
    keys even when told not to.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, str_strip_whitespace=True)

    is_malicious: bool = Field(strict=True, validation_alias=AliasChoices("is_malicious", "isMalicious"))
    reason: Optional[str] = None


class ArchiveTextFile(BaseModel):
    """One text entry of the uploaded archive."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    content: str


class RiskPrompt(BaseModel):
    """Instructions and archive listing sent as separate chat messages."""

    model_config = ConfigDict(frozen=True)

    system: str
    user: str
