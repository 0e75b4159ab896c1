"""
Type definitions for job postings.

This module defines the data contracts shared by the store adapter, the
filter engine, the admin form and the AI scout:

- Closed enumerations for job type, category and experience level, with
  coercion helpers that map free-form (AI generated) values onto a member.
- JobDraft: a posting as entered in the admin form or proposed by the AI
  scout (no id, posted date or logo yet).
- JobPosting: a stored posting.
- DescriptionDraft: the AI-generated body of a single posting.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_JOB_URL = "#"


# =============================================================================
# ENUMS
# =============================================================================

class JobType(str, Enum):
    """Employment type of a posting."""
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"


class JobCategory(str, Enum):
    """Broad category used by the listing facet."""
    TECH = "Tech"
    NON_TECH = "Non-Tech"


class ExperienceLevel(str, Enum):
    """Seniority bucket used by the listing facet."""
    FRESHER = "Fresher"
    EXPERIENCED = "Experienced"


def _squash(value: Any) -> str:
    """Lower-case a value and drop everything but letters."""
    return re.sub(r"[^a-z]", "", str(value).lower())


# Every JobType member must appear as a target here
_JOB_TYPE_ALIASES: Dict[str, JobType] = {
    "fulltime": JobType.FULL_TIME,
    "permanent": JobType.FULL_TIME,
    "parttime": JobType.PART_TIME,
    "contract": JobType.CONTRACT,
    "contractor": JobType.CONTRACT,
    "freelance": JobType.CONTRACT,
    "internship": JobType.INTERNSHIP,
    "intern": JobType.INTERNSHIP,
}

_FRESHER_WORDS = ("fresher", "fresh", "entry", "junior", "graduate", "intern", "trainee")


def coerce_job_type(value: Any) -> JobType:
    """Map a free-form value to a JobType, defaulting to Full-time."""
    if isinstance(value, JobType):
        return value
    return _JOB_TYPE_ALIASES.get(_squash(value), JobType.FULL_TIME)


def coerce_category(value: Any) -> JobCategory:
    """
    Map a free-form value to the nearer JobCategory.

    Anything that reads as a negation of "tech" ("Non-Tech", "non technical",
    "Non-IT") is Non-Tech; everything else is Tech.
    """
    if isinstance(value, JobCategory):
        return value
    squashed = _squash(value)
    if squashed.startswith("non"):
        return JobCategory.NON_TECH
    return JobCategory.TECH


def coerce_experience_level(value: Any) -> ExperienceLevel:
    """Map a free-form value to the nearer ExperienceLevel (default Experienced)."""
    if isinstance(value, ExperienceLevel):
        return value
    squashed = _squash(value)
    if any(squashed.startswith(word) for word in _FRESHER_WORDS):
        return ExperienceLevel.FRESHER
    return ExperienceLevel.EXPERIENCED


# =============================================================================
# HELPERS
# =============================================================================

def split_lines(text: Optional[str]) -> List[str]:
    """
    Split newline-delimited form text into a list, dropping blank lines.

    Handles the CRLF line endings browsers submit for textareas.
    """
    if not text:
        return []
    return [line for line in text.splitlines() if line.strip()]


def join_lines(items: Iterable[str]) -> str:
    """Join a list of entries into newline-delimited form text."""
    return "\n".join(items)


def company_slug(company: str) -> str:
    """Lower-cased company name with every non-alphanumeric character removed."""
    return re.sub(r"[^a-z0-9]", "", company.lower())


def company_logo_url(company: str, template: Optional[str] = None) -> str:
    """
    Derive the logo lookup URL for a company.

    Example:
        >>> company_logo_url("Tata Consultancy Services", "https://logo.clearbit.com/{slug}.com")
        'https://logo.clearbit.com/tataconsultancyservices.com'
    """
    if template is None:
        from jobboard.common.config import Config
        template = Config.LOGO_URL_TEMPLATE
    return template.format(slug=company_slug(company))


def _as_entries(value: Any) -> List[str]:
    """Normalize requirements/qualifications input to a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return split_lines(value)
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    raise ValueError("must be a list of strings or newline-delimited text")


# =============================================================================
# MODELS
# =============================================================================

class JobDraft(BaseModel):
    """
    A job posting without the store-assigned fields.

    Produced by the admin form and by the AI scout. Enum fields are coerced,
    so a draft never holds a value outside its enumeration.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str
    company: str
    location: str
    type: JobType = JobType.FULL_TIME
    category: JobCategory = JobCategory.TECH
    experience_level: ExperienceLevel = Field(
        default=ExperienceLevel.EXPERIENCED, alias="experienceLevel"
    )
    description: str = ""
    url: str = DEFAULT_JOB_URL
    requirements: List[str] = Field(default_factory=list)
    qualifications: List[str] = Field(default_factory=list)

    @field_validator("title", "company", "location", mode="before")
    @classmethod
    def _non_empty(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            raise ValueError("must not be empty")
        return str(value).strip()

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> JobType:
        return coerce_job_type(value)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> JobCategory:
        return coerce_category(value)

    @field_validator("experience_level", mode="before")
    @classmethod
    def _coerce_experience(cls, value: Any) -> ExperienceLevel:
        return coerce_experience_level(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("url", mode="before")
    @classmethod
    def _default_url(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_JOB_URL
        return str(value).strip()

    @field_validator("requirements", "qualifications", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> List[str]:
        return _as_entries(value)

    @property
    def identity(self) -> str:
        """Key used by the scout to remember which drafts were added."""
        return f"{self.title}-{self.company}"

    def to_record(self) -> Dict[str, Any]:
        """Store representation (camelCase keys, enum values as strings)."""
        return self.model_dump(by_alias=True, mode="json")


class JobPosting(JobDraft):
    """A stored job posting."""

    id: int
    posted_date: datetime = Field(alias="postedDate")
    company_logo_url: str = Field(default="", alias="companyLogoUrl")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "JobPosting":
        """Build a posting from a store document (extra keys such as _id are ignored)."""
        return cls.model_validate(document)

    def to_draft(self) -> JobDraft:
        """Drop the store-assigned fields."""
        return JobDraft.model_validate(
            self.model_dump(by_alias=True, exclude={"id", "posted_date", "company_logo_url"})
        )


class DescriptionDraft(BaseModel):
    """AI-generated body for a single posting; every field is required."""

    model_config = ConfigDict(populate_by_name=True)

    description: str = Field(min_length=1)
    requirements: List[str] = Field(min_length=1)
    qualifications: List[str] = Field(min_length=1)
    category: JobCategory
    experience_level: ExperienceLevel = Field(alias="experienceLevel")

    @field_validator("description", mode="before")
    @classmethod
    def _strip_description(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("requirements", "qualifications", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> List[str]:
        return _as_entries(value)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> JobCategory:
        if value is None or not str(value).strip():
            raise ValueError("category is required")
        return coerce_category(value)

    @field_validator("experience_level", mode="before")
    @classmethod
    def _coerce_experience(cls, value: Any) -> ExperienceLevel:
        if value is None or not str(value).strip():
            raise ValueError("experienceLevel is required")
        return coerce_experience_level(value)
