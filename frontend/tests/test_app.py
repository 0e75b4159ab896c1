"""
Route tests for the job board Flask app.

Uses a job board over a mocked repository and a mocked AI scout, so no
database or LLM is needed.
"""

from datetime import datetime, timedelta, timezone

import pytest

from frontend.app import nl2br, share_links, summary, time_since
from jobboard.common.job_types import DescriptionDraft, JobDraft
from jobboard.services.ai_job_scout_service import (
    AICredentialError,
    AIOutputError,
    EMPTY_TITLE_MESSAGE,
)
from jobboard.services.auth_service import SESSION_KEY

ADMIN_EMAIL = "admin@jobofficer.in"
ADMIN_PASSWORD = "s3cret-pass"


def view_state(client):
    with client.session_transaction() as sess:
        return dict(sess.get("view_state") or {})


# ============================================================================
# Listing
# ============================================================================

class TestListing:
    """Tests for the public listing and its HTMX grid partial."""

    def test_first_visit_shows_skeleton_until_grid_loads(self, client, mock_repo):
        """Before the first fetch the listing renders the loading skeleton."""
        response = client.get("/")

        assert response.status_code == 200
        assert b'hx-trigger="load"' in response.data
        mock_repo.list_jobs.assert_not_called()

    def test_grid_partial_fetches_and_renders_cards(self, client, mock_repo):
        response = client.get("/partials/job-grid")

        assert response.status_code == 200
        assert b"3 jobs found" in response.data
        assert b"Content Writer" in response.data
        assert b"Backend Developer" in response.data
        mock_repo.list_jobs.assert_called_once()

    def test_listing_refetches_on_each_visit(self, client, board, mock_repo):
        board.refresh()

        response = client.get("/")

        assert b"QA Engineer" in response.data
        assert b'hx-trigger="load"' not in response.data
        assert mock_repo.list_jobs.call_count == 2

    def test_new_visit_sees_jobs_added_elsewhere(self, client, mock_repo, documents, make_document):
        client.get("/partials/job-grid")
        mock_repo.list_jobs.return_value = [make_document(9, title="Brand New Role")] + documents

        response = client.get("/")
        assert b"Brand New Role" in response.data
        assert b"4 jobs found" in response.data

        response = client.get("/partials/job-grid?page=1")
        assert b"4 jobs found" in response.data
        assert mock_repo.list_jobs.call_count == 2

    def test_failed_first_fetch_is_retried(self, client, mock_repo, documents):
        mock_repo.list_jobs.side_effect = [RuntimeError("connection refused"), documents]

        response = client.get("/partials/job-grid")
        assert b"Could not load jobs" in response.data
        assert b"No jobs found" not in response.data

        response = client.get("/")
        assert b'hx-trigger="load"' in response.data

        response = client.get("/partials/job-grid")
        assert b"3 jobs found" in response.data
        assert mock_repo.list_jobs.call_count == 2

    def test_category_filter(self, client):
        response = client.get("/partials/job-grid?category=Non-Tech&experience=All")
        assert b"1 job found" in response.data
        assert b"Content Writer" in response.data
        assert b"Backend Developer" not in response.data

    def test_search_matches_location(self, client):
        response = client.get("/partials/job-grid?search_term=pune")
        assert b"QA Engineer" in response.data
        assert b"Content Writer" not in response.data

    def test_work_from_home_and_internships(self, client, mock_repo, documents, make_document):
        mock_repo.list_jobs.return_value = documents + [
            make_document(9, title="Design Intern", location="Remote", type="Internship")
        ]

        response = client.get("/partials/job-grid?remote_only=true&internship_only=true")

        assert b"Design Intern" in response.data
        assert b"Content Writer" not in response.data

    def test_no_results(self, client):
        response = client.get("/partials/job-grid?search_term=astronaut")
        assert b"No jobs found" in response.data
        assert b'aria-label="Pagination"' not in response.data

    def test_pagination_and_page_reset(self, client, mock_repo, make_document):
        """23 postings: 9 per page, 3 pages; a filter change returns to page 1."""
        mock_repo.list_jobs.return_value = [make_document(i) for i in range(23, 0, -1)]

        response = client.get("/partials/job-grid")
        assert response.data.count(b'href="/job/') == 9
        assert b'aria-label="Pagination"' in response.data
        assert b'href="/job/23"' in response.data
        assert b'href="/job/14"' not in response.data

        response = client.get("/partials/job-grid?category=All&experience=All&search_term=&page=3")
        assert response.data.count(b'href="/job/') == 5
        assert view_state(client)["page"] == 3

        client.get("/partials/job-grid?category=Tech&experience=All&search_term=&page=3")
        assert view_state(client)["page"] == 1

    def test_invalid_page_is_ignored(self, client):
        response = client.get("/partials/job-grid?page=abc")
        assert response.status_code == 200
        assert b"3 jobs found" in response.data

    def test_unknown_path_shows_listing(self, client):
        response = client.get("/somewhere/else")
        assert response.status_code == 200
        assert b"Find Your Next Opportunity" in response.data


# ============================================================================
# Job detail
# ============================================================================

class TestJobDetail:
    def test_known_job(self, client):
        response = client.get("/job/2")

        assert response.status_code == 200
        assert b"Backend Developer" in response.data
        assert b"Apply Now" in response.data
        assert b"https://example.com/apply" in response.data

    def test_similar_jobs(self, client):
        response = client.get("/job/2")
        assert b"Similar Opportunities" in response.data
        assert b'href="/job/1"' in response.data

    def test_share_links_point_at_detail_page(self, client):
        response = client.get("/job/2")
        assert b"https://www.facebook.com/sharer/sharer.php?u=http%3A%2F%2Flocalhost%2Fjob%2F2" in response.data

    def test_detail_refetches_for_new_visit(self, client, mock_repo, documents, make_document):
        client.get("/partials/job-grid")
        mock_repo.list_jobs.return_value = [make_document(9, title="Brand New Role")] + documents

        response = client.get("/job/9")

        assert b"Brand New Role" in response.data
        assert b"Apply Now" in response.data

    def test_unknown_job_falls_back_to_listing(self, client):
        response = client.get("/job/999")

        assert response.status_code == 200
        assert b"Find Your Next Opportunity" in response.data
        assert view_state(client)["fragment"] == "#/job/999"


# ============================================================================
# Admin authentication
# ============================================================================

class TestAdminAuth:
    def test_gate_when_signed_out(self, client):
        response = client.get("/admin")
        assert response.status_code == 200
        assert b"Admin Login" in response.data

    def test_bad_credentials(self, client):
        response = client.post("/admin", data={"email": ADMIN_EMAIL, "password": "nope"})

        assert response.status_code == 401
        assert b"Invalid login credentials" in response.data
        with client.session_transaction() as sess:
            assert SESSION_KEY not in sess

    def test_sign_in(self, client):
        response = client.post("/admin", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/admin")

        response = client.get("/admin")
        assert b"Manage Job Postings" in response.data
        assert b"Signed in as admin@jobofficer.in" in response.data

    def test_logout(self, admin_client):
        admin_client.post("/admin/scout")

        response = admin_client.post("/logout")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/")
        with admin_client.session_transaction() as sess:
            assert SESSION_KEY not in sess
        state = view_state(admin_client)
        assert state["fragment"] == "#"
        assert state["admin_view"] == "panel"

    @pytest.mark.parametrize("path", [
        "/admin/new",
        "/admin/edit/2",
        "/admin/form",
        "/admin/scout",
        "/admin/scout/generate",
        "/admin/scout/add",
        "/admin/close",
        "/admin/jobs/2/delete",
    ])
    def test_admin_actions_require_session(self, client, mock_repo, path):
        response = client.post(path, data={"confirm": "yes"})

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/admin")
        mock_repo.delete_job.assert_not_called()
        mock_repo.create_job.assert_not_called()


# ============================================================================
# Admin: add / edit / delete
# ============================================================================

FORM_DATA = {
    "title": "Site Reliability Engineer",
    "company": "Zoho Corp",
    "location": "Chennai",
    "type": "Contract",
    "category": "Tech",
    "experienceLevel": "Experienced",
    "url": "",
    "description": "Keep things running.",
    "requirements": "Linux\r\n\r\nKubernetes\r\n",
    "qualifications": "B.E.",
}


class TestAdminPanel:
    def test_panel_lists_jobs(self, admin_client):
        response = admin_client.get("/admin")
        assert b"Manage Job Postings" in response.data
        for title in (b"Content Writer", b"Backend Developer", b"QA Engineer"):
            assert title in response.data

    def test_add_new_job(self, admin_client, mock_repo):
        admin_client.post("/admin/new")
        response = admin_client.get("/admin")
        assert b"Add New Job Posting" in response.data

        response = admin_client.post("/admin/form", data={**FORM_DATA, "action": "save"})

        assert response.status_code == 302
        record = mock_repo.create_job.call_args[0][0]
        assert record["title"] == "Site Reliability Engineer"
        assert record["type"] == "Contract"
        assert record["url"] == "#"
        assert record["requirements"] == ["Linux", "Kubernetes"]
        assert record["companyLogoUrl"] == "https://logo.clearbit.com/zohocorp.com"
        assert view_state(admin_client)["admin_view"] == "panel"

    def test_missing_required_fields(self, admin_client, mock_repo):
        admin_client.post("/admin/new")

        response = admin_client.post("/admin/form", data={**FORM_DATA, "company": " ", "action": "save"})

        assert response.status_code == 400
        assert b"Please fill in all required fields." in response.data
        assert b"Site Reliability Engineer" in response.data
        mock_repo.create_job.assert_not_called()

    def test_edit_job(self, admin_client, mock_repo):
        admin_client.post("/admin/edit/2")
        response = admin_client.get("/admin")
        assert b"Edit Job Posting" in response.data
        assert b'value="Backend Developer"' in response.data
        assert b"Python\nSQL" in response.data

        response = admin_client.post("/admin/form", data={**FORM_DATA, "action": "save"})

        assert response.status_code == 302
        job_id, record = mock_repo.update_job.call_args[0]
        assert job_id == 2
        assert record["location"] == "Chennai"
        mock_repo.create_job.assert_not_called()

    def test_save_after_panel_reopened_elsewhere_is_rejected(self, admin_client, mock_repo):
        """A delete requested in another tab closes the form; its save must not write."""
        admin_client.post("/admin/edit/2")
        admin_client.get("/admin/jobs/3/delete")

        response = admin_client.post("/admin/form", data={**FORM_DATA, "action": "save"})

        assert response.status_code == 409
        assert b"This form is no longer open." in response.data
        mock_repo.update_job.assert_not_called()
        mock_repo.create_job.assert_not_called()
        assert view_state(admin_client)["pending_delete"] == 3

    def test_save_failure_keeps_form(self, admin_client, mock_repo):
        mock_repo.create_job.side_effect = RuntimeError("write failed")
        admin_client.post("/admin/new")

        response = admin_client.post("/admin/form", data={**FORM_DATA, "action": "save"})

        assert response.status_code == 500
        assert b"Could not save the job posting. Please try again." in response.data
        assert view_state(admin_client)["admin_view"] == "form"

    def test_cancel_form(self, admin_client, mock_repo):
        admin_client.post("/admin/new")
        response = admin_client.post("/admin/form", data={"action": "cancel"})
        assert response.status_code == 302
        assert view_state(admin_client)["admin_view"] == "panel"
        mock_repo.create_job.assert_not_called()

    def test_delete_asks_for_confirmation(self, admin_client, mock_repo):
        response = admin_client.get("/admin/jobs/2/delete")

        assert response.status_code == 200
        assert b"Are you sure you want to delete this job posting?" in response.data
        mock_repo.delete_job.assert_not_called()

    def test_delete_confirmed(self, admin_client, mock_repo):
        admin_client.get("/admin/jobs/2/delete")

        response = admin_client.post("/admin/jobs/2/delete", data={"confirm": "yes"})

        assert response.status_code == 302
        mock_repo.delete_job.assert_called_once_with(2)
        assert view_state(admin_client)["pending_delete"] is None

    def test_delete_cancelled(self, admin_client, mock_repo):
        admin_client.get("/admin/jobs/2/delete")

        admin_client.post("/admin/jobs/2/delete", data={"confirm": "no"})

        mock_repo.delete_job.assert_not_called()
        assert view_state(admin_client)["pending_delete"] is None

    def test_delete_failure(self, admin_client, mock_repo):
        mock_repo.delete_job.side_effect = RuntimeError("timeout")

        response = admin_client.post("/admin/jobs/2/delete", data={"confirm": "yes"})

        assert response.status_code == 500
        assert b"Could not delete the job posting. Please try again." in response.data


# ============================================================================
# Admin: AI generation
# ============================================================================

class TestDescriptionGenerator:
    def test_fills_form_fields(self, admin_client, scout):
        scout.generate_description.return_value = DescriptionDraft(
            description="Own our observability stack.",
            requirements=["Prometheus", "Grafana"],
            qualifications=["Degree in CS"],
            category="Tech",
            experienceLevel="Fresher",
        )
        admin_client.post("/admin/new")

        response = admin_client.post("/admin/form", data={**FORM_DATA, "action": "generate"})

        assert response.status_code == 200
        scout.generate_description.assert_called_once_with("Site Reliability Engineer")
        assert b"Own our observability stack." in response.data
        assert b"Prometheus\nGrafana" in response.data
        assert b'value="Site Reliability Engineer"' in response.data

    def test_empty_title(self, admin_client, scout):
        scout.generate_description.side_effect = ValueError(EMPTY_TITLE_MESSAGE)
        admin_client.post("/admin/new")

        response = admin_client.post("/admin/form", data={**FORM_DATA, "title": "", "action": "generate"})

        assert response.status_code == 400
        assert b"Please enter a job title first." in response.data

    def test_missing_credentials(self, admin_client, scout):
        scout.generate_description.side_effect = AICredentialError("missing API key")
        admin_client.post("/admin/new")

        response = admin_client.post("/admin/form", data={**FORM_DATA, "action": "generate"})

        assert response.status_code == 502
        assert b"AI features are disabled." in response.data

    def test_unparseable_output(self, admin_client, scout):
        scout.generate_description.side_effect = AIOutputError("bad shape")
        admin_client.post("/admin/new")

        response = admin_client.post("/admin/form", data={**FORM_DATA, "action": "generate"})

        assert response.status_code == 502
        assert b"Failed to generate description." in response.data


class TestJobScout:
    def drafts(self):
        return [
            JobDraft(title="Growth Marketer", company="CRED", location="Bangalore"),
            JobDraft(title="SEO Analyst", company="Meesho", location="Remote", type="Internship"),
        ]

    def test_scout_page(self, admin_client):
        admin_client.post("/admin/scout")
        response = admin_client.get("/admin")
        assert b"AI Job Scout" in response.data
        assert b"Entry-level data analyst roles in India (remote)" in response.data

    def test_generate_htmx_partial(self, admin_client, scout):
        scout.generate_job_batch.return_value = self.drafts()
        admin_client.post("/admin/scout")

        response = admin_client.post(
            "/admin/scout/generate",
            data={"query": "marketing jobs in Bangalore"},
            headers={"HX-Request": "true"},
        )

        assert response.status_code == 200
        assert b"Generated Jobs" in response.data
        assert b"Growth Marketer" in response.data
        assert b"+ Add to Board" in response.data
        assert b"<html" not in response.data

    def test_generate_full_page(self, admin_client, scout):
        scout.generate_job_batch.return_value = self.drafts()
        admin_client.post("/admin/scout")

        response = admin_client.post("/admin/scout/generate", data={"query": "marketing"})

        assert b"AI Job Scout" in response.data
        assert b"SEO Analyst" in response.data
        assert b'value="marketing"' in response.data

    def test_generate_failure_adds_nothing(self, admin_client, scout, mock_repo):
        scout.generate_job_batch.side_effect = AIOutputError("Could not find valid JSON")
        admin_client.post("/admin/scout")

        response = admin_client.post(
            "/admin/scout/generate", data={"query": "jobs"}, headers={"HX-Request": "true"}
        )

        assert response.status_code == 502
        assert b"Failed to generate jobs." in response.data
        mock_repo.create_jobs.assert_not_called()

    def test_add_draft(self, admin_client, mock_repo):
        draft = self.drafts()[1]

        response = admin_client.post(
            "/admin/scout/add", data={"draft": draft.model_dump_json(by_alias=True)}
        )

        assert response.status_code == 200
        assert b"Added" in response.data
        assert b'data-identity="SEO Analyst-Meesho"' in response.data
        records = mock_repo.create_jobs.call_args[0][0]
        assert records[0]["type"] == "Internship"
        assert records[0]["companyLogoUrl"] == "https://logo.clearbit.com/meesho.com"

    def test_add_invalid_draft(self, admin_client, mock_repo):
        response = admin_client.post("/admin/scout/add", data={"draft": "not json"})
        assert response.status_code == 400
        assert response.get_json() == {"error": "Invalid job draft"}
        mock_repo.create_jobs.assert_not_called()

    def test_add_failure_keeps_button(self, admin_client, mock_repo):
        mock_repo.create_jobs.side_effect = RuntimeError("write failed")

        response = admin_client.post(
            "/admin/scout/add", data={"draft": self.drafts()[0].model_dump_json(by_alias=True)}
        )

        assert response.status_code == 500
        assert b"+ Add to Board" in response.data
        assert b"Could not add the generated jobs." in response.data


# ============================================================================
# API
# ============================================================================

class TestJobsAPI:
    def test_list(self, client):
        response = client.get("/api/jobs")

        assert response.status_code == 200
        data = response.get_json()
        assert [job["id"] for job in data["jobs"]] == [3, 2, 1]
        assert data["jobs"][0]["experienceLevel"] == "Fresher"
        assert data["pagination"] == {
            "page": 1,
            "page_size": 9,
            "total_count": 3,
            "total_pages": 1,
            "has_prev": False,
            "has_next": False,
            "pages": [1],
        }

    def test_list_with_filters(self, client):
        data = client.get("/api/jobs?category=Tech&query=razorpay").get_json()
        assert [job["id"] for job in data["jobs"]] == [2, 1]
        assert data["filters"]["search_term"] == "razorpay"

    def test_bad_page(self, client):
        response = client.get("/api/jobs?page=two")
        assert response.status_code == 400

    def test_get_job(self, client):
        data = client.get("/api/jobs/2").get_json()
        assert data["job"]["title"] == "Backend Developer"

    def test_job_not_found(self, client):
        response = client.get("/api/jobs/999")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Job not found"}


class TestHealth:
    def test_healthy(self, client):
        data = client.get("/health").get_json()
        assert data["status"] == "healthy"
        assert data["services"] == {"mongodb": "connected", "ai_scout": "enabled"}

    def test_degraded(self, client, mock_repo):
        mock_repo.ping.side_effect = ConnectionError("no route to host")
        data = client.get("/health").get_json()
        assert data["status"] == "degraded"
        assert data["services"]["mongodb"] == "disconnected"


# ============================================================================
# Template helpers
# ============================================================================

class TestTemplateHelpers:
    NOW = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("delta,expected", [
        (timedelta(seconds=30), "Just now"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=2), "2 days ago"),
        (timedelta(days=70), "2 months ago"),
        (timedelta(days=800), "2 years ago"),
    ])
    def test_time_since(self, delta, expected):
        assert time_since(self.NOW - delta, now=self.NOW) == expected

    def test_time_since_naive_datetime_is_utc(self):
        naive = datetime(2025, 6, 10, 9, 0)
        assert time_since(naive, now=self.NOW) == "3 hours ago"

    def test_summary(self):
        assert summary("Build APIs. Mentor juniors.") == "Build APIs."
        assert summary("") == ""

    def test_nl2br_escapes(self):
        assert str(nl2br("line one\n<b>two</b>")) == "line one<br />&lt;b&gt;two&lt;/b&gt;"

    def test_share_links_encode_title_and_url(self):
        links = share_links("Data Analyst & Intern", "https://board.in/job/5")
        assert links["whatsapp"] == (
            "https://api.whatsapp.com/send?text=Data%20Analyst%20%26%20Intern%20https%3A%2F%2Fboard.in%2Fjob%2F5"
        )
        assert links["telegram"].startswith("https://t.me/share/url?url=https%3A%2F%2Fboard.in%2Fjob%2F5")
