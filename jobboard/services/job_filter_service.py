"""
Job Filter Service

Turns the cached job collection plus the listing's filter state into one
page of results:

- Facets (category, experience level, remote-only, internship-only) and a
  free-text search, AND-combined
- Fixed page size of 9
- Compact page strip with ellipses once there are more than 5 pages

All functions are pure; the caller owns the state.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Union

from jobboard.common.job_types import (
    ExperienceLevel,
    JobCategory,
    JobPosting,
    JobType,
)

JOBS_PER_PAGE = 9
MAX_PAGES_TO_SHOW = 5
ELLIPSIS = "..."

PageToken = Union[int, str]


class CategoryFilter(str, Enum):
    """Category facet: All or one JobCategory."""
    ALL = "All"
    TECH = JobCategory.TECH.value
    NON_TECH = JobCategory.NON_TECH.value

    def matches(self, job: JobPosting) -> bool:
        return self is CategoryFilter.ALL or job.category.value == self.value


class ExperienceFilter(str, Enum):
    """Experience facet: All or one ExperienceLevel."""
    ALL = "All"
    FRESHER = ExperienceLevel.FRESHER.value
    EXPERIENCED = ExperienceLevel.EXPERIENCED.value

    def matches(self, job: JobPosting) -> bool:
        return self is ExperienceFilter.ALL or job.experience_level.value == self.value


def _parse_enum(enum_cls, value: Any, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _parse_flag(value: Any) -> bool:
    return str(value).lower() in ("1", "true", "on", "yes")


@dataclass(frozen=True)
class FilterState:
    """Listing facets and search term."""

    category: CategoryFilter = CategoryFilter.ALL
    experience: ExperienceFilter = ExperienceFilter.ALL
    remote_only: bool = False
    internship_only: bool = False
    search_term: str = ""

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "FilterState":
        """
        Build filter state from query args or a stored dict.

        Unknown facet values fall back to All.
        """
        if not data:
            return cls()
        return cls(
            category=_parse_enum(CategoryFilter, data.get("category", "All"), CategoryFilter.ALL),
            experience=_parse_enum(ExperienceFilter, data.get("experience", "All"), ExperienceFilter.ALL),
            remote_only=_parse_flag(data.get("remote_only", False)),
            internship_only=_parse_flag(data.get("internship_only", False)),
            search_term=str(data.get("search_term") or data.get("query") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "experience": self.experience.value,
            "remote_only": self.remote_only,
            "internship_only": self.internship_only,
            "search_term": self.search_term,
        }

    def with_changes(self, **changes: Any) -> "FilterState":
        return replace(self, **changes)


@dataclass(frozen=True)
class PageResult:
    """One page of filtered postings."""

    page_items: List[JobPosting]
    total_pages: int
    total_count: int
    page: int

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def matches_search(job: JobPosting, search_term: str) -> bool:
    """Case-insensitive substring match on title, company or location."""
    needle = search_term.lower()
    if not needle:
        return True
    return (
        needle in job.title.lower()
        or needle in job.company.lower()
        or needle in job.location.lower()
    )


def filter_jobs(jobs: Sequence[JobPosting], filters: FilterState) -> List[JobPosting]:
    """
    Apply every enabled facet and the search term, preserving input order.
    """
    return [
        job for job in jobs
        if filters.category.matches(job)
        and filters.experience.matches(job)
        and (not filters.remote_only or job.location.lower() == "remote")
        and (not filters.internship_only or job.type is JobType.INTERNSHIP)
        and matches_search(job, filters.search_term)
    ]


def total_pages_for(count: int, page_size: int = JOBS_PER_PAGE) -> int:
    return math.ceil(count / page_size)


def paginate(
    jobs: Sequence[JobPosting],
    filters: FilterState,
    page: int = 1,
    page_size: int = JOBS_PER_PAGE,
) -> PageResult:
    """
    Filter the collection and slice out one page.

    Args:
        jobs: Full collection in store order (newest first)
        filters: Facets and search term
        page: 1-based page number
        page_size: Items per page (9 on the listing)

    Returns:
        PageResult; an out-of-range page yields an empty page_items list
    """
    filtered = filter_jobs(jobs, filters)
    start = (max(page, 1) - 1) * page_size
    return PageResult(
        page_items=filtered[start:start + page_size],
        total_pages=total_pages_for(len(filtered), page_size),
        total_count=len(filtered),
        page=page,
    )


def page_numbers(current_page: int, total_pages: int) -> List[PageToken]:
    """
    Page strip entries, with ELLIPSIS marking skipped ranges.

    Example:
        >>> page_numbers(1, 3)
        [1, 2, 3]
        >>> page_numbers(5, 10)
        [1, '...', 4, 5, 6, '...', 10]
    """
    half = MAX_PAGES_TO_SHOW // 2

    if total_pages <= MAX_PAGES_TO_SHOW:
        return list(range(1, total_pages + 1))

    if current_page <= half + 1:
        return list(range(1, MAX_PAGES_TO_SHOW)) + [ELLIPSIS, total_pages]

    if current_page >= total_pages - half:
        first_tail = total_pages - (MAX_PAGES_TO_SHOW - 2)
        return [1, ELLIPSIS] + list(range(first_tail, total_pages + 1))

    return [1, ELLIPSIS, current_page - 1, current_page, current_page + 1, ELLIPSIS, total_pages]


def show_pagination(total_pages: int) -> bool:
    """The pagination control is hidden for a single page or no results."""
    return total_pages > 1


def similar_jobs(job: JobPosting, jobs: Sequence[JobPosting], limit: int = 3) -> List[JobPosting]:
    """Other postings from the same company or in the same category."""
    return [
        other for other in jobs
        if other.id != job.id and (other.company == job.company or other.category == job.category)
    ][:limit]
