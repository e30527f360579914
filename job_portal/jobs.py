"""
Job postings: validation, search and pagination.

The registry works against injected job/application repositories, so the
same logic runs on the in-memory store and on MongoDB.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import JobValidationError
from .models import Job
from .repositories import (
    ApplicationRepositoryInterface,
    JobFilters,
    JobRepositoryInterface,
    UserRepositoryInterface,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 10

MIN_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10


@dataclass
class Pagination:
    current: int
    total: int
    has_next: bool
    has_prev: bool

    @classmethod
    def compute(cls, page: int, match_count: int, page_size: int = PAGE_SIZE) -> "Pagination":
        total = math.ceil(match_count / page_size)
        return cls(
            current=page,
            total=total,
            has_next=page < total,
            has_prev=page > 1,
        )


def parse_page(value: Any) -> int:
    """Parse a page number from the query string. Invalid or < 1 becomes 1."""
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        return 1


def validate_job_form(form: Mapping[str, Any]) -> List[str]:
    """
    Validate job posting fields.

    Returns:
        Every validation error found (empty if the form is valid)
    """
    title = (form.get("title") or "").strip()
    company = (form.get("company") or "").strip()
    description = (form.get("description") or "").strip()

    errors = []
    if len(title) < MIN_TITLE_LENGTH:
        errors.append("Title must be at least 3 characters")
    if not company:
        errors.append("Company name is required")
    if len(description) < MIN_DESCRIPTION_LENGTH:
        errors.append("Description must be at least 10 characters")
    return errors


class JobRegistry:
    """Creates and searches job postings."""

    def __init__(
        self,
        jobs: JobRepositoryInterface,
        applications: ApplicationRepositoryInterface,
        page_size: int = PAGE_SIZE,
    ):
        self.jobs = jobs
        self.applications = applications
        self.page_size = page_size

    def post(self, user_id: str, form: Mapping[str, Any]) -> Job:
        """
        Validate and store a new job posting.

        Raises:
            JobValidationError: With all field errors, nothing stored
        """
        errors = validate_job_form(form)
        if errors:
            raise JobValidationError(errors)

        job = Job(
            user_id=user_id,
            title=form["title"].strip(),
            company=form["company"].strip(),
            description=form["description"].strip(),
            requirements=(form.get("requirements") or "").strip(),
            location=(form.get("location") or "").strip(),
        )
        self.jobs.insert(job)
        logger.info(f"User {user_id} posted job {job.id}: {job.title}")
        return job

    def search(
        self,
        search: Optional[str] = None,
        location: Optional[str] = None,
        page: int = 1,
    ) -> Tuple[List[Job], Pagination]:
        """
        Search jobs and return one page of results.

        Args:
            search: Case-insensitive substring of title or description
            location: Case-insensitive substring of location
            page: 1-based page number (clamped to >= 1)
        """
        page = parse_page(page)
        filters = JobFilters(
            search=(search or "").strip() or None,
            location=(location or "").strip() or None,
        )
        match_count = self.jobs.count(filters)
        jobs = self.jobs.find(
            filters,
            skip=(page - 1) * self.page_size,
            limit=self.page_size,
        )
        return jobs, Pagination.compute(page, match_count, self.page_size)

    def jobs_for(self, principal) -> List[Job]:
        """Jobs shown on the home page: all for anonymous visitors, own postings otherwise."""
        if principal.is_authenticated:
            return self.jobs.find(JobFilters(user_id=principal.user.id))
        return self.jobs.find(JobFilters())

    def counts(self, users: UserRepositoryInterface) -> Dict[str, int]:
        return {
            "users": users.count(),
            "jobs": self.jobs.count(),
            "applications": self.applications.count(),
        }
