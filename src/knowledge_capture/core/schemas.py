"""Expected shapes of model responses."""

from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator


class ClassificationPayload(BaseModel):
    """Classifier response."""

    title: Optional[str] = None
    summary: Optional[str] = None
    domain: Optional[str] = None
    content_type: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_list(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return [tag for tag in value if isinstance(tag, str)]
        return value


class CandidatePayload(BaseModel):
    """One candidate tool name with search context."""

    name: str
    context: str = ""

    @field_validator("context", mode="before")
    @classmethod
    def _context_text(cls, value: object) -> object:
        return "" if value is None else value


CandidateList = list[Union[CandidatePayload, str]]


class NewContainerPayload(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class AssignmentPayload(BaseModel):
    """Container filing response."""

    existing: list[str] = Field(default_factory=list)
    create: list[NewContainerPayload] = Field(default_factory=list)

    @field_validator("existing", "create", mode="before")
    @classmethod
    def _none_to_list(cls, value: object) -> object:
        return [] if value is None else value


class InterestPayload(BaseModel):
    """Interest extraction response."""

    topics: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    people: list[str] = Field(default_factory=list)
    repos: list[str] = Field(default_factory=list)

    @field_validator("topics", "tools", "people", "repos", mode="before")
    @classmethod
    def _none_to_list(cls, value: object) -> object:
        return [] if value is None else value


class SocialPostPayload(BaseModel):
    """Rich social-content provider response."""

    fullText: Optional[str] = None
    authorName: Optional[str] = None
    summary: Optional[str] = None
    videoTranscript: Optional[str] = None
    mentionedRepos: list[str] = Field(default_factory=list)
    mentionedTools: list[str] = Field(default_factory=list)
