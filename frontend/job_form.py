"""
Admin add/edit form state.

Holds the raw form values (requirements and qualifications as
newline-delimited text) and converts them to a JobDraft on save.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from jobboard.common.job_types import (
    DescriptionDraft,
    ExperienceLevel,
    JobCategory,
    JobDraft,
    JobPosting,
    JobType,
    join_lines,
)

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields."

JOB_TYPES = [member.value for member in JobType]
CATEGORIES = [member.value for member in JobCategory]
EXPERIENCE_LEVELS = [member.value for member in ExperienceLevel]


@dataclass(frozen=True)
class JobForm:
    title: str = ""
    company: str = ""
    location: str = ""
    type: str = JobType.FULL_TIME.value
    category: str = JobCategory.TECH.value
    experience_level: str = ExperienceLevel.EXPERIENCED.value
    url: str = ""
    description: str = ""
    requirements: str = ""
    qualifications: str = ""

    @classmethod
    def blank(cls) -> "JobForm":
        return cls()

    @classmethod
    def from_job(cls, job: JobPosting) -> "JobForm":
        """Pre-fill the form for editing."""
        return cls(
            title=job.title,
            company=job.company,
            location=job.location,
            type=job.type.value,
            category=job.category.value,
            experience_level=job.experience_level.value,
            url=job.url,
            description=job.description,
            requirements=join_lines(job.requirements),
            qualifications=join_lines(job.qualifications),
        )

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> "JobForm":
        """Read submitted values (request.form or a dict)."""
        def value(name: str, default: str = "") -> str:
            raw = data.get(name)
            return default if raw is None else str(raw)

        return cls(
            title=value("title"),
            company=value("company"),
            location=value("location"),
            type=value("type", JobType.FULL_TIME.value),
            category=value("category", JobCategory.TECH.value),
            experience_level=value("experienceLevel", ExperienceLevel.EXPERIENCED.value),
            url=value("url"),
            description=value("description"),
            requirements=value("requirements"),
            qualifications=value("qualifications"),
        )

    def validate(self) -> Optional[str]:
        """Error message when a required field is blank, else None."""
        if not (self.title.strip() and self.company.strip() and self.location.strip()):
            return REQUIRED_FIELDS_MESSAGE
        return None

    def to_draft(self) -> JobDraft:
        """
        Convert to a JobDraft.

        Raises:
            ValueError: If required fields are blank
        """
        error = self.validate()
        if error:
            raise ValueError(error)
        try:
            return JobDraft(
                title=self.title,
                company=self.company,
                location=self.location,
                type=self.type,
                category=self.category,
                experience_level=self.experience_level,
                url=self.url,
                description=self.description,
                requirements=self.requirements,
                qualifications=self.qualifications,
            )
        except ValidationError as e:
            raise ValueError(REQUIRED_FIELDS_MESSAGE) from e

    def apply_description(self, generated: DescriptionDraft) -> "JobForm":
        """Overwrite the AI-generated fields, keeping everything else."""
        return replace(
            self,
            description=generated.description,
            requirements=join_lines(generated.requirements),
            qualifications=join_lines(generated.qualifications),
            category=generated.category.value,
            experience_level=generated.experience_level.value,
        )

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)
