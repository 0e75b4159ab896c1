"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would cause 5s timeout per test)
- Environment variable isolation (prevents credential leakage)
- Singleton reset between tests

It also provides the `make_job` factory used across the suite.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from jobboard.common.config import Config
from jobboard.common.job_types import JobPosting

BASE_DATE = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def build_job(
    job_id: int,
    title: str = "Software Engineer",
    company: str = "Acme",
    location: str = "Bangalore",
    type: str = "Full-time",
    category: str = "Tech",
    experience: str = "Experienced",
    **overrides,
) -> JobPosting:
    """A stored posting; newer ids get newer postedDates."""
    document = {
        "id": job_id,
        "title": title,
        "company": company,
        "location": location,
        "type": type,
        "category": category,
        "experienceLevel": experience,
        "description": f"{title} at {company}. Join us.",
        "url": "https://example.com/apply",
        "requirements": ["Python", "SQL"],
        "qualifications": ["B.Tech"],
        "postedDate": BASE_DATE + timedelta(hours=job_id),
        "companyLogoUrl": f"https://logo.clearbit.com/{company.lower()}.com",
    }
    document.update(overrides)
    return JobPosting.from_document(document)


@pytest.fixture
def make_job():
    """Factory fixture for JobPosting instances."""
    return build_job


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    AtlasJobRepository creates a MongoClient lazily; patch it where it is
    looked up so nothing reaches the network.
    """
    with patch("jobboard.common.repositories.atlas_repository.MongoClient") as mock_client:
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find_one = MagicMock(return_value=None)

        mock_client.return_value = mock_instance
        yield mock_client


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    Config reads the environment at import time, so the class attributes
    are patched directly as well.
    """
    monkeypatch.setenv("MONGODB_URI", "mongodb://test-host:27017")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.setattr(Config, "MONGODB_URI", "mongodb://test-host:27017")
    monkeypatch.setattr(Config, "OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.setattr(Config, "ADMIN_EMAIL", "admin@jobofficer.in")
    monkeypatch.setattr(Config, "ADMIN_PASSWORD", "s3cret-pass")
    monkeypatch.setattr(Config, "BOARD_NAME", "TheJobofficer")
    monkeypatch.setattr(Config, "LOGO_URL_TEMPLATE", "https://logo.clearbit.com/{slug}.com")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop process-wide singletons so tests never share a cache or client."""
    from jobboard.common.repositories import reset_repository
    from jobboard.services.ai_job_scout_service import reset_ai_job_scout
    from jobboard.services.job_board_service import reset_job_board

    yield
    reset_job_board()
    reset_ai_job_scout()
    reset_repository()
