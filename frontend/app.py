"""
Flask application for the TheJobofficer job board.

Public pages:
- Listing with category/experience facets, work-from-home and internship
  toggles, free-text search and 9-per-page pagination
- Job detail with similar opportunities and share links

Admin area (email/password sign-in):
- Manage postings (add, edit, delete with confirmation)
- AI description generator on the add/edit form
- AI Job Scout: generate candidate postings from a query and add them

Paths mirror the board's URL fragments: "/" is "#", "/job/<id>" is
"#/job/<id>" and "/admin" is "#/admin".

Stack: Flask + HTMX + Tailwind CSS (CDN)
"""

import logging
import os
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from dotenv import load_dotenv
from flask import Flask, jsonify, redirect, render_template, request, session, url_for
from markupsafe import Markup, escape
from pydantic import ValidationError

from frontend.job_form import CATEGORIES, EXPERIENCE_LEVELS, JOB_TYPES, JobForm
from frontend.view_state import (
    ADMIN_FRAGMENT,
    ROOT_FRAGMENT,
    AddNewJob,
    AdminView,
    CancelDelete,
    ChangePage,
    CloseAdminView,
    EditJob,
    Navigate,
    RequestDelete,
    ScoutJobs,
    View,
    ViewController,
    ViewState,
    filter_intents,
    job_fragment,
)
from jobboard.common.config import Config
from jobboard.common.events import EventQueue
from jobboard.common.job_types import JobDraft, JobPosting
from jobboard.common.logger import setup_logging
from jobboard.common.repositories import StoreError
from jobboard.services.ai_job_scout_service import (
    EXAMPLE_QUERIES,
    AIGenerationError,
    AIJobScoutService,
    describe_failure,
    get_ai_job_scout,
)
from jobboard.services.auth_service import AuthService
from jobboard.services.job_board_service import JobBoardService, get_job_board
from jobboard.services.job_filter_service import (
    CategoryFilter,
    ExperienceFilter,
    FilterState,
    JOBS_PER_PAGE,
    PageResult,
    page_numbers,
    paginate,
    show_pagination,
    similar_jobs,
)
from version import __version__ as APP_VERSION

# Load environment variables
load_dotenv()

app = Flask(__name__)

# Configure logging
setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), format=os.getenv("LOG_FORMAT", "simple"))
logger = logging.getLogger(__name__)

# Session configuration
flask_secret_key = os.getenv("FLASK_SECRET_KEY")

if not flask_secret_key:
    if os.getenv("FLASK_ENV") == "production":
        raise RuntimeError(
            "CRITICAL: FLASK_SECRET_KEY not set. "
            "Admin sessions would be invalidated on every restart."
        )
    logger.warning("FLASK_SECRET_KEY not set. Generating random key (sessions will not persist between restarts)")
    flask_secret_key = os.urandom(24).hex()

app.secret_key = flask_secret_key

is_production = os.getenv("FLASK_ENV") == "production"
if is_production:
    Config.validate()

# Cookie security settings
app.config["SESSION_COOKIE_HTTPONLY"] = True
app.config["SESSION_COOKIE_SECURE"] = is_production
app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
app.config["PERMANENT_SESSION_LIFETIME"] = 60 * 60 * 24 * 7  # 7 days

# Navigation state (fragment, admin sub-view, filters, page) between requests
VIEW_STATE_KEY = "view_state"
FORM_CLOSED_MESSAGE = "This form is no longer open. Please open it again and re-enter your changes."


@app.context_processor
def inject_globals():
    """Inject version and board settings into all templates."""
    return {
        "version": APP_VERSION,
        "board_name": Config.BOARD_NAME,
        "telegram_url": Config.TELEGRAM_URL,
        "whatsapp_url": Config.WHATSAPP_URL,
        "current_year": datetime.now().year,
    }


# ============================================================================
# Collaborators
# ============================================================================

def _get_board() -> JobBoardService:
    return get_job_board()


def _get_scout() -> AIJobScoutService:
    return get_ai_job_scout()


def _controller(fragment: Optional[str] = None) -> ViewController:
    """
    Build the per-request controller from the session.

    Args:
        fragment: Location this request addresses (None keeps the stored one)
    """
    queue = EventQueue()
    auth = AuthService(session, queue=queue)
    initial = ViewState.from_session(session.get(VIEW_STATE_KEY), auth.get_session())
    controller = ViewController(_get_board(), auth, queue=queue, initial=initial)
    if fragment is not None:
        controller.dispatch(Navigate(fragment))
    return controller


def _persist(controller: ViewController) -> None:
    session[VIEW_STATE_KEY] = controller.state.to_session()
    controller.close()


def _is_htmx() -> bool:
    return request.headers.get("HX-Request") == "true"


# ============================================================================
# Template helpers
# ============================================================================

def _as_utc(value: datetime) -> datetime:
    # pymongo returns naive datetimes in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@app.template_filter("time_since")
def time_since(value: datetime, now: Optional[datetime] = None) -> str:
    """
    Relative age label ("3 days ago", "Just now").

    Each unit is used once more than one whole unit has elapsed.
    """
    now = now or datetime.now(timezone.utc)
    seconds = (now - _as_utc(value)).total_seconds()

    for unit_seconds, label in (
        (31536000, "years"),
        (2592000, "months"),
        (86400, "days"),
        (3600, "hours"),
        (60, "minutes"),
    ):
        interval = seconds / unit_seconds
        if interval > 1:
            return f"{int(interval)} {label} ago"
    return "Just now"


@app.template_filter("summary")
def summary(description: str) -> str:
    """First sentence of a description."""
    first = (description or "").split(". ")[0].strip()
    if not first:
        return ""
    return first.rstrip(".") + "."


@app.template_filter("nl2br")
def nl2br(text: str) -> Markup:
    """Escape text and turn newlines into <br> tags."""
    escaped = escape(text or "")
    return Markup("<br />".join(str(escaped).splitlines()))


@app.template_filter("posted_on")
def posted_on(value: datetime) -> str:
    return _as_utc(value).strftime("%d %b %Y")


def share_links(title: str, url: str) -> Dict[str, str]:
    """Social share URLs for a posting."""
    encoded_url = quote(url, safe="")
    encoded_title = quote(title, safe="")
    return {
        "facebook": f"https://www.facebook.com/sharer/sharer.php?u={encoded_url}",
        "telegram": f"https://t.me/share/url?url={encoded_url}&text={encoded_title}",
        "whatsapp": f"https://api.whatsapp.com/send?text={encoded_title}%20{encoded_url}",
        "linkedin": f"https://www.linkedin.com/shareArticle?mini=true&url={encoded_url}&title={encoded_title}",
    }


def serialize_job(job: JobPosting) -> Dict[str, Any]:
    """Serialize a posting for JSON responses (store field names)."""
    return job.model_dump(by_alias=True, mode="json")


# ============================================================================
# Authentication
# ============================================================================

def admin_required(f):
    """
    Decorator to require an admin session.

    For API routes (/api/*): Returns JSON 401 if not signed in
    For page routes: Redirects to the admin login gate
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if AuthService(session).get_session() is None:
            if request.path.startswith('/api/'):
                return jsonify({"error": "Not authenticated"}), 401
            return redirect(url_for("admin"))
        return f(*args, **kwargs)
    return decorated_function


# ============================================================================
# Listing
# ============================================================================

def _page_for(controller: ViewController) -> PageResult:
    state = controller.state
    result = paginate(state.jobs, state.filters, state.page)
    # Deletions can leave the stored page past the end
    if result.total_pages and result.page > result.total_pages:
        controller.dispatch(ChangePage(result.total_pages))
        result = paginate(state.jobs, state.filters, result.total_pages)
    return result


def _grid_context(controller: ViewController) -> Dict[str, Any]:
    result = _page_for(controller)
    return {
        "result": result,
        "filters": controller.state.filters,
        "pages": page_numbers(result.page, result.total_pages),
        "show_pagination": show_pagination(result.total_pages),
        "load_failed": controller.load_failed,
    }


def _render_listing(controller: ViewController, status: int = 200):
    resolved = controller.resolve()
    context: Dict[str, Any] = {
        "filters": controller.state.filters,
        "categories": [member.value for member in CategoryFilter],
        "experience_levels": [member.value for member in ExperienceFilter],
        "loading": resolved.view is View.LOADING,
    }
    if resolved.view is not View.LOADING:
        context.update(_grid_context(controller))
    _persist(controller)
    return render_template("index.html", **context), status


@app.route("/")
def index():
    """Render the job listing; the grid loads via HTMX until the first fetch succeeds."""
    controller = _controller(ROOT_FRAGMENT)
    controller.reload_jobs()
    return _render_listing(controller)


@app.route("/partials/job-grid", methods=["GET"])
def job_grid_partial():
    """
    HTMX partial: one page of job cards plus the pagination strip.

    Query parameters carry the full filter form; any facet or search change
    resets to page 1, otherwise `page` selects the page.
    """
    controller = _controller()
    controller.ensure_jobs()

    if request.args:
        requested = FilterState.from_mapping(request.args)
        intents = filter_intents(controller.state.filters, requested)
        if intents:
            controller.dispatch_all(intents)
        elif request.args.get("page"):
            try:
                controller.dispatch(ChangePage(int(request.args["page"])))
            except ValueError:
                logger.warning(f"Ignoring invalid page parameter: {request.args['page']!r}")

    context = _grid_context(controller)
    _persist(controller)
    return render_template("partials/job_grid.html", **context)


# ============================================================================
# Job detail
# ============================================================================

@app.route("/job/<int:job_id>")
def job_detail(job_id: int):
    """Render one posting; unknown ids show the listing."""
    controller = _controller(job_fragment(job_id))
    controller.load_jobs()
    resolved = controller.resolve()

    if resolved.view is not View.DETAIL:
        logger.info(f"Job {job_id} not found; showing listing")
        return _render_listing(controller)

    job = resolved.job
    page_url = url_for("job_detail", job_id=job.id, _external=True)
    context = {
        "job": job,
        "similar": similar_jobs(job, controller.state.jobs),
        "share": share_links(job.title, page_url),
        "page_url": page_url,
    }
    _persist(controller)
    return render_template("job_detail.html", **context)


# ============================================================================
# Admin area
# ============================================================================

def _render_admin(
    controller: ViewController,
    status: int = 200,
    error: Optional[str] = None,
    form: Optional[JobForm] = None,
    query: str = "",
    drafts: Optional[List[JobDraft]] = None,
):
    """Render whichever admin view the state resolves to."""
    resolved = controller.resolve()
    state = controller.state

    if resolved.view is View.ADMIN_GATE:
        template, context = "admin_login.html", {"error": error}
    elif resolved.view is View.ADMIN_FORM:
        if form is None:
            form = JobForm.from_job(resolved.job) if resolved.job else JobForm.blank()
        template, context = "job_form.html", {
            "form": form,
            "editing": resolved.job,
            "error": error,
            "job_types": JOB_TYPES,
            "categories": CATEGORIES,
            "experience_levels": EXPERIENCE_LEVELS,
        }
    elif resolved.view is View.ADMIN_SCOUT:
        template, context = "ai_scout.html", {
            "query": query,
            "drafts": drafts or [],
            "error": error,
            "example_queries": EXAMPLE_QUERIES,
        }
    else:
        template, context = "admin_panel.html", {
            "jobs": state.jobs,
            "pending_delete": resolved.job,
            "error": error,
            "admin_email": state.session.email if state.session else "",
        }

    _persist(controller)
    return render_template(template, **context), status


@app.route("/admin", methods=["GET", "POST"])
def admin():
    """Admin area: login gate when signed out, otherwise the current admin view."""
    controller = _controller(ADMIN_FRAGMENT)

    if request.method == "GET":
        controller.load_jobs()
        return _render_admin(controller)

    controller.ensure_jobs()

    # Handle POST - sign in
    error = controller.sign_in(
        request.form.get("email", ""),
        request.form.get("password", ""),
    )
    if error:
        return _render_admin(controller, status=401, error=error)

    session.permanent = True
    _persist(controller)
    return redirect(url_for("admin"))


@app.route("/logout", methods=["POST"])
def logout():
    """Sign out and return to the listing."""
    controller = _controller()
    controller.logout()
    _persist(controller)
    return redirect(url_for("index"))


@app.route("/admin/new", methods=["POST"])
@admin_required
def admin_new_job():
    controller = _controller(ADMIN_FRAGMENT)
    controller.dispatch(AddNewJob())
    _persist(controller)
    return redirect(url_for("admin"))


@app.route("/admin/edit/<int:job_id>", methods=["POST"])
@admin_required
def admin_edit_job(job_id: int):
    controller = _controller(ADMIN_FRAGMENT)
    controller.dispatch(EditJob(job_id))
    _persist(controller)
    return redirect(url_for("admin"))


@app.route("/admin/form", methods=["POST"])
@admin_required
def admin_form():
    """
    Add/edit form submission.

    Form field `action`:
        save: validate and write, then return to the panel
        generate: fill description/requirements/qualifications/category/
                  experience from the title
        cancel: return to the panel
    """
    controller = _controller(ADMIN_FRAGMENT)
    controller.ensure_jobs()
    action = request.form.get("action", "save")
    form = JobForm.from_form(request.form)

    if action == "cancel":
        controller.dispatch(CloseAdminView())
        _persist(controller)
        return redirect(url_for("admin"))

    if action == "generate":
        try:
            generated = _get_scout().generate_description(form.title)
        except ValueError as e:
            return _render_admin(controller, status=400, error=str(e), form=form)
        except AIGenerationError as e:
            logger.error(f"Description generation failed: {e}")
            return _render_admin(
                controller, status=502, error=describe_failure(e, "description"), form=form
            )
        return _render_admin(controller, form=form.apply_description(generated))

    error = form.validate()
    if error:
        return _render_admin(controller, status=400, error=error, form=form)

    state = controller.state
    if state.admin_view is not AdminView.FORM:
        logger.warning(f"Rejected form save while the admin view is {state.admin_view.value}")
        return _render_admin(controller, status=409, error=FORM_CLOSED_MESSAGE)

    try:
        controller.save_job(form.to_draft(), state.edit_target)
    except ValueError as e:
        return _render_admin(controller, status=400, error=str(e), form=form)
    except StoreError as e:
        return _render_admin(controller, status=500, error=str(e), form=form)

    _persist(controller)
    return redirect(url_for("admin"))


@app.route("/admin/scout", methods=["POST"])
@admin_required
def admin_scout():
    controller = _controller(ADMIN_FRAGMENT)
    controller.dispatch(ScoutJobs())
    _persist(controller)
    return redirect(url_for("admin"))


@app.route("/admin/scout/generate", methods=["POST"])
@admin_required
def admin_scout_generate():
    """Run the AI scout for a query (HTMX swaps in just the results)."""
    controller = _controller(ADMIN_FRAGMENT)
    controller.ensure_jobs()
    query = request.form.get("query", "")
    drafts: List[JobDraft] = []
    error = None
    status = 200

    try:
        drafts = _get_scout().generate_job_batch(query)
    except ValueError as e:
        error, status = str(e), 400
    except AIGenerationError as e:
        logger.error(f"Job scout failed: {e}")
        error, status = describe_failure(e, "scout"), 502

    if _is_htmx():
        _persist(controller)
        return render_template(
            "partials/scout_results.html", drafts=drafts, error=error
        ), status
    return _render_admin(controller, status=status, error=error, query=query, drafts=drafts)


@app.route("/admin/scout/add", methods=["POST"])
@admin_required
def admin_scout_add():
    """Add one scout draft to the board; returns the card in its new state."""
    controller = _controller(ADMIN_FRAGMENT)
    controller.ensure_jobs()

    try:
        draft = JobDraft.model_validate_json(request.form.get("draft", ""))
    except ValidationError as e:
        logger.warning(f"Rejected scout draft: {e}")
        return jsonify({"error": "Invalid job draft"}), 400

    added = False
    error = None
    try:
        controller.add_jobs([draft])
        added = True
    except StoreError as e:
        error = str(e)

    _persist(controller)
    return render_template(
        "partials/generated_job_card.html", draft=draft, added=added, error=error
    ), (200 if added else 500)


@app.route("/admin/close", methods=["POST"])
@admin_required
def admin_close():
    controller = _controller(ADMIN_FRAGMENT)
    controller.dispatch(CloseAdminView())
    _persist(controller)
    return redirect(url_for("admin"))


@app.route("/admin/jobs/<int:job_id>/delete", methods=["GET", "POST"])
@admin_required
def admin_delete_job(job_id: int):
    """
    GET: ask for confirmation.
    POST: delete when `confirm=yes`, otherwise cancel.
    """
    controller = _controller(ADMIN_FRAGMENT)
    controller.ensure_jobs()

    if request.method == "GET":
        controller.dispatch(RequestDelete(job_id))
        return _render_admin(controller)

    if request.form.get("confirm") != "yes":
        controller.dispatch(CancelDelete())
        _persist(controller)
        return redirect(url_for("admin"))

    try:
        controller.confirm_delete(job_id)
    except StoreError as e:
        controller.dispatch(RequestDelete(job_id))
        return _render_admin(controller, status=500, error=str(e))

    _persist(controller)
    return redirect(url_for("admin"))


# ============================================================================
# API Endpoints
# ============================================================================

@app.route("/api/jobs", methods=["GET"])
def list_jobs():
    """
    List postings with filters and pagination.

    Query Parameters:
        category: All | Tech | Non-Tech
        experience: All | Fresher | Experienced
        remote_only, internship_only: true/false
        query (or search_term): Free-text search (title, company, location)
        page: Page number (1-indexed, default: 1)

    Returns:
        JSON with jobs array and pagination metadata
    """
    jobs = _get_board().refresh()

    filters = FilterState.from_mapping(request.args)
    try:
        page = max(int(request.args.get("page", 1)), 1)
    except ValueError:
        return jsonify({"error": "page must be an integer"}), 400

    result = paginate(jobs, filters, page)

    return jsonify({
        "jobs": [serialize_job(job) for job in result.page_items],
        "filters": filters.to_dict(),
        "pagination": {
            "page": result.page,
            "page_size": JOBS_PER_PAGE,
            "total_count": result.total_count,
            "total_pages": result.total_pages,
            "has_prev": result.has_prev,
            "has_next": result.has_next,
            "pages": page_numbers(result.page, result.total_pages),
        }
    })


@app.route("/api/jobs/<int:job_id>", methods=["GET"])
def get_job(job_id: int):
    """Get a single posting by id."""
    board = _get_board()
    board.refresh()

    job = board.find_cached(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    return jsonify({"job": serialize_job(job)})


@app.route("/health", methods=["GET"])
def public_health_check():
    """
    Public health endpoint for external monitoring.

    Returns minimal info to avoid exposing sensitive data.
    """
    try:
        _get_board().repository.ping()
        mongo_status = "connected"
    except Exception as e:
        logger.warning(f"Health check: store unreachable: {e}")
        mongo_status = "disconnected"

    return jsonify({
        "status": "healthy" if mongo_status == "connected" else "degraded",
        "version": APP_VERSION,
        "services": {
            "mongodb": mongo_status,
            "ai_scout": "enabled" if Config.ai_enabled() else "disabled",
        }
    })


@app.route("/<path:path>")
def catch_all(path: str):
    """Unknown locations resolve to the listing."""
    return index()


@app.errorhandler(500)
def internal_error(e):
    logger.error(f"Unhandled error: {e}")
    return render_template("error.html", error="An unexpected error occurred. Please try again."), 500


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    port = int(os.getenv("FLASK_PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "true").lower() == "true"

    print(f"Starting {Config.BOARD_NAME} on http://localhost:{port}")
    print(Config.summary())

    app.run(host="0.0.0.0", port=port, debug=debug)
