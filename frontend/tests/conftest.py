"""
Shared fixtures for frontend tests.

Provides a job board backed by a mocked repository, a mocked AI scout and
test clients for anonymous visitors and a signed-in admin.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from jobboard.common.config import Config
from jobboard.common.repositories.base import WriteResult
from jobboard.services.auth_service import SESSION_KEY
from jobboard.services.job_board_service import JobBoardService

ADMIN_EMAIL = "admin@jobofficer.in"
ADMIN_PASSWORD = "s3cret-pass"


def job_document(job_id, title="Software Engineer", company="Acme", location="Bangalore", **overrides):
    """Store document as the repository returns it."""
    document = {
        "id": job_id,
        "title": title,
        "company": company,
        "location": location,
        "type": "Full-time",
        "category": "Tech",
        "experienceLevel": "Experienced",
        "description": f"Join {company} as a {title}. Great team.",
        "url": "https://example.com/apply",
        "requirements": ["Python", "SQL"],
        "qualifications": ["B.Tech"],
        "postedDate": datetime(2025, 6, 1, tzinfo=timezone.utc) + timedelta(hours=job_id),
        "companyLogoUrl": f"https://logo.clearbit.com/{company.lower()}.com",
    }
    document.update(overrides)
    return document


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch):
    """Pin credentials and presentation settings for every test."""
    monkeypatch.setattr(Config, "ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setattr(Config, "ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setattr(Config, "OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.setattr(Config, "BOARD_NAME", "TheJobofficer")
    monkeypatch.setattr(Config, "LOGO_URL_TEMPLATE", "https://logo.clearbit.com/{slug}.com")


@pytest.fixture
def make_document():
    """Factory fixture for store documents."""
    return job_document


@pytest.fixture
def documents():
    """Three postings, newest first."""
    return [
        job_document(3, title="Content Writer", company="Nykaa", location="Remote",
                     category="Non-Tech", experienceLevel="Fresher", type="Part-time"),
        job_document(2, title="Backend Developer", company="Razorpay"),
        job_document(1, title="QA Engineer", company="Razorpay", location="Pune"),
    ]


@pytest.fixture
def mock_repo(documents):
    """Mock repository with sensible write results."""
    repo = MagicMock()
    repo.list_jobs.return_value = documents
    repo.create_job.return_value = WriteResult(matched_count=0, modified_count=0, inserted_ids=[4])
    repo.create_jobs.return_value = WriteResult(matched_count=0, modified_count=0, inserted_ids=[4])
    repo.update_job.return_value = WriteResult(matched_count=1, modified_count=1)
    repo.delete_job.return_value = WriteResult(matched_count=1, modified_count=1)
    repo.ping.return_value = True
    return repo


@pytest.fixture
def board(mocker, mock_repo):
    """Job board wired into frontend.app in place of the process-wide one."""
    board = JobBoardService(mock_repo)
    mocker.patch("frontend.app._get_board", return_value=board)
    return board


@pytest.fixture
def scout(mocker):
    """Mocked AI scout wired into frontend.app."""
    scout = MagicMock()
    mocker.patch("frontend.app._get_scout", return_value=scout)
    return scout


@pytest.fixture
def client(board, scout):
    """Test client for an anonymous visitor."""
    # Import app here so the patched collaborators are in place first
    from frontend.app import app

    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_client(client):
    """Test client with a signed-in admin session."""
    with client.session_transaction() as sess:
        sess[SESSION_KEY] = {"email": ADMIN_EMAIL, "signed_in_at": "2025-06-01T00:00:00+00:00"}
    return client
