"""
View state machine for the job board UI.

The board has three addressable locations, mirrored by both a URL fragment
(for shared links) and a server path:

    #             /            listing
    #/job/<id>    /job/<id>    detail of one posting
    #/admin       /admin       admin area (login gate, panel, form, scout)

Everything the UI shows is derived from an immutable ViewState by
resolve_view(). State only changes through named intents applied by the
pure reduce() function; ViewController owns the current state, runs the
side effects (store, auth) and dispatches the resulting intents through a
single-threaded EventQueue.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from jobboard.common.events import EventQueue, Signal, Subscription
from jobboard.common.job_types import JobDraft, JobPosting
from jobboard.services.auth_service import AdminSession, AuthService
from jobboard.services.job_board_service import JobBoardService
from jobboard.services.job_filter_service import (
    CategoryFilter,
    ExperienceFilter,
    FilterState,
)

logger = logging.getLogger(__name__)


ROOT_FRAGMENT = "#"
ADMIN_FRAGMENT = "#/admin"
_JOB_FRAGMENT = re.compile(r"^#/job/(\d+)")


# =============================================================================
# ROUTES
# =============================================================================

class View(str, Enum):
    """What the main area renders."""
    LOADING = "loading"
    LISTING = "listing"
    DETAIL = "detail"
    ADMIN_GATE = "admin_gate"
    ADMIN_PANEL = "admin_panel"
    ADMIN_FORM = "admin_form"
    ADMIN_SCOUT = "admin_scout"


class AdminView(str, Enum):
    """Sub-view of the admin area once signed in."""
    PANEL = "panel"
    FORM = "form"
    SCOUT = "scout"


@dataclass(frozen=True)
class Route:
    """Parsed location. kind is "root", "job" or "admin"."""

    kind: str = "root"
    job_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.kind == "admin"


def parse_fragment(fragment: Optional[str]) -> Route:
    """
    Parse a URL fragment; anything unrecognized is the root.

    Example:
        >>> parse_fragment("#/job/42")
        Route(kind='job', job_id=42)
        >>> parse_fragment("#/nowhere")
        Route(kind='root', job_id=None)
    """
    fragment = (fragment or "").strip()
    if fragment == ADMIN_FRAGMENT:
        return Route("admin")
    match = _JOB_FRAGMENT.match(fragment)
    if match:
        return Route("job", int(match.group(1)))
    return Route("root")


def fragment_for(route: Route) -> str:
    if route.kind == "admin":
        return ADMIN_FRAGMENT
    if route.kind == "job" and route.job_id is not None:
        return f"#/job/{route.job_id}"
    return ROOT_FRAGMENT


def job_fragment(job_id: int) -> str:
    return fragment_for(Route("job", job_id))


def path_for(fragment: str) -> str:
    """Server path equivalent of a fragment ("#/job/7" -> "/job/7")."""
    return "/" + fragment_for(parse_fragment(fragment))[2:]


def fragment_for_path(path: Optional[str]) -> str:
    """Fragment equivalent of a server path ("/admin" -> "#/admin")."""
    path = (path or "/").rstrip("/")
    return fragment_for(parse_fragment("#" + path)) if path else ROOT_FRAGMENT


# =============================================================================
# STATE
# =============================================================================

@dataclass(frozen=True)
class ViewState:
    """Everything the UI needs to decide what to render."""

    fragment: str = ROOT_FRAGMENT
    session: Optional[AdminSession] = None
    admin_view: AdminView = AdminView.PANEL
    edit_target: Optional[int] = None
    pending_delete: Optional[int] = None
    loading: bool = True
    jobs: Tuple[JobPosting, ...] = ()
    filters: FilterState = field(default_factory=FilterState)
    page: int = 1
    generation: int = 0

    @property
    def route(self) -> Route:
        return parse_fragment(self.fragment)

    @property
    def signed_in(self) -> bool:
        return self.session is not None

    def find_job(self, job_id: Optional[int]) -> Optional[JobPosting]:
        if job_id is None:
            return None
        return next((job for job in self.jobs if job.id == job_id), None)

    def to_session(self) -> Dict[str, Any]:
        """Navigation state persisted between requests (jobs and session excluded)."""
        return {
            "fragment": self.fragment,
            "admin_view": self.admin_view.value,
            "edit_target": self.edit_target,
            "pending_delete": self.pending_delete,
            "filters": self.filters.to_dict(),
            "page": self.page,
        }

    @classmethod
    def from_session(
        cls, data: Optional[Mapping[str, Any]], session: Optional[AdminSession] = None
    ) -> "ViewState":
        data = data or {}
        try:
            admin_view = AdminView(data.get("admin_view", AdminView.PANEL.value))
        except ValueError:
            admin_view = AdminView.PANEL
        try:
            page = max(int(data.get("page", 1)), 1)
        except (TypeError, ValueError):
            page = 1
        return cls(
            fragment=fragment_for(parse_fragment(data.get("fragment"))),
            session=session,
            admin_view=admin_view,
            edit_target=_optional_int(data.get("edit_target")),
            pending_delete=_optional_int(data.get("pending_delete")),
            filters=FilterState.from_mapping(data.get("filters")),
            page=page,
        )


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ResolvedView:
    """The view to render and, for detail/form/panel views, the posting it concerns."""

    view: View
    job: Optional[JobPosting] = None


def resolve_view(state: ViewState) -> ResolvedView:
    """
    Decide what to render.

    Precedence: loading, then a known job detail, then the admin area
    (login gate when signed out, otherwise form/scout/panel), then the
    listing. A job route whose id is not in the cache falls through to the
    listing without rewriting the fragment.
    """
    if state.loading:
        return ResolvedView(View.LOADING)

    route = state.route

    if route.kind == "job":
        job = state.find_job(route.job_id)
        if job is not None:
            return ResolvedView(View.DETAIL, job)

    if route.is_admin:
        if not state.signed_in:
            return ResolvedView(View.ADMIN_GATE)
        if state.admin_view is AdminView.FORM:
            return ResolvedView(View.ADMIN_FORM, state.find_job(state.edit_target))
        if state.admin_view is AdminView.SCOUT:
            return ResolvedView(View.ADMIN_SCOUT)
        return ResolvedView(View.ADMIN_PANEL, state.find_job(state.pending_delete))

    return ResolvedView(View.LISTING)


# =============================================================================
# INTENTS
# =============================================================================

@dataclass(frozen=True)
class Navigate:
    fragment: str


@dataclass(frozen=True)
class SelectJob:
    job_id: int


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class SessionChanged:
    session: Optional[AdminSession]


@dataclass(frozen=True)
class JobsLoading:
    pass


@dataclass(frozen=True)
class JobsLoaded:
    jobs: Tuple[JobPosting, ...]
    generation: int


@dataclass(frozen=True)
class SetCategoryFilter:
    category: CategoryFilter


@dataclass(frozen=True)
class SetExperienceFilter:
    experience: ExperienceFilter


@dataclass(frozen=True)
class SetRemoteOnly:
    enabled: bool


@dataclass(frozen=True)
class SetInternshipOnly:
    enabled: bool


@dataclass(frozen=True)
class SetSearchTerm:
    term: str


@dataclass(frozen=True)
class ChangePage:
    page: int


@dataclass(frozen=True)
class AddNewJob:
    pass


@dataclass(frozen=True)
class EditJob:
    job_id: int


@dataclass(frozen=True)
class ScoutJobs:
    pass


@dataclass(frozen=True)
class CloseAdminView:
    pass


@dataclass(frozen=True)
class RequestDelete:
    job_id: int


@dataclass(frozen=True)
class CancelDelete:
    pass


@dataclass(frozen=True)
class LoggedOut:
    pass


Intent = Union[
    Navigate, SelectJob, Back, SessionChanged, JobsLoading, JobsLoaded,
    SetCategoryFilter, SetExperienceFilter, SetRemoteOnly, SetInternshipOnly,
    SetSearchTerm, ChangePage, AddNewJob, EditJob, ScoutJobs, CloseAdminView,
    RequestDelete, CancelDelete, LoggedOut,
]

# Intents that only make sense inside a signed-in admin area
_ADMIN_INTENTS = (AddNewJob, EditJob, ScoutJobs, RequestDelete)


def _reset_admin(state: ViewState, **changes: Any) -> ViewState:
    return replace(
        state,
        admin_view=AdminView.PANEL,
        edit_target=None,
        pending_delete=None,
        **changes,
    )


def _navigate(state: ViewState, fragment: str) -> ViewState:
    fragment = fragment_for(parse_fragment(fragment))
    crossing_admin = parse_fragment(fragment).is_admin != state.route.is_admin
    if crossing_admin:
        return _reset_admin(state, fragment=fragment)
    return replace(state, fragment=fragment)


def _with_filters(state: ViewState, **changes: Any) -> ViewState:
    return replace(state, filters=state.filters.with_changes(**changes), page=1)


def reduce(state: ViewState, intent: Intent) -> ViewState:
    """
    Apply one intent. Pure: returns a new state (or the same object when
    the intent does not apply).
    """
    if isinstance(intent, Navigate):
        return _navigate(state, intent.fragment)

    if isinstance(intent, SelectJob):
        return _navigate(state, job_fragment(intent.job_id))

    if isinstance(intent, Back):
        return _navigate(state, ROOT_FRAGMENT)

    if isinstance(intent, SessionChanged):
        if intent.session is None:
            return _reset_admin(state, session=None)
        return replace(state, session=intent.session)

    if isinstance(intent, JobsLoading):
        # Only the first fetch shows the loading view
        loading = state.generation == 0 and not state.jobs
        return state if loading == state.loading else replace(state, loading=loading)

    if isinstance(intent, JobsLoaded):
        if intent.generation < state.generation:
            logger.debug(
                f"Ignoring stale jobs result {intent.generation} < {state.generation}"
            )
            return state
        return replace(
            state,
            jobs=tuple(intent.jobs),
            generation=intent.generation,
            loading=False,
        )

    if isinstance(intent, SetCategoryFilter):
        return _with_filters(state, category=intent.category)

    if isinstance(intent, SetExperienceFilter):
        return _with_filters(state, experience=intent.experience)

    if isinstance(intent, SetRemoteOnly):
        return _with_filters(state, remote_only=intent.enabled)

    if isinstance(intent, SetInternshipOnly):
        return _with_filters(state, internship_only=intent.enabled)

    if isinstance(intent, SetSearchTerm):
        return _with_filters(state, search_term=intent.term)

    if isinstance(intent, ChangePage):
        return replace(state, page=max(intent.page, 1))

    if isinstance(intent, _ADMIN_INTENTS) and not state.signed_in:
        return state

    if isinstance(intent, AddNewJob):
        return replace(state, admin_view=AdminView.FORM, edit_target=None, pending_delete=None)

    if isinstance(intent, EditJob):
        return replace(state, admin_view=AdminView.FORM, edit_target=intent.job_id, pending_delete=None)

    if isinstance(intent, ScoutJobs):
        return replace(state, admin_view=AdminView.SCOUT, edit_target=None, pending_delete=None)

    if isinstance(intent, CloseAdminView):
        return _reset_admin(state)

    if isinstance(intent, RequestDelete):
        return replace(state, admin_view=AdminView.PANEL, pending_delete=intent.job_id)

    if isinstance(intent, CancelDelete):
        return replace(state, pending_delete=None)

    if isinstance(intent, LoggedOut):
        return _reset_admin(state, session=None, fragment=ROOT_FRAGMENT)

    raise TypeError(f"Unknown intent: {intent!r}")


def filter_intents(previous: FilterState, requested: FilterState) -> List[Intent]:
    """Intents that turn one filter state into another (unchanged facets are skipped)."""
    intents: List[Intent] = []
    if requested.category != previous.category:
        intents.append(SetCategoryFilter(requested.category))
    if requested.experience != previous.experience:
        intents.append(SetExperienceFilter(requested.experience))
    if requested.remote_only != previous.remote_only:
        intents.append(SetRemoteOnly(requested.remote_only))
    if requested.internship_only != previous.internship_only:
        intents.append(SetInternshipOnly(requested.internship_only))
    if requested.search_term != previous.search_term:
        intents.append(SetSearchTerm(requested.search_term))
    return intents


# =============================================================================
# CONTROLLER
# =============================================================================

class ViewController:
    """
    Owns the current ViewState and the side effects that change it.

    Auth session changes arrive through the AuthService subscription and
    are turned into SessionChanged intents. Store writes raise StoreError
    before any intent is dispatched, so a failed write leaves the state
    untouched.
    """

    def __init__(
        self,
        board: JobBoardService,
        auth: AuthService,
        queue: Optional[EventQueue] = None,
        initial: Optional[ViewState] = None,
    ):
        self._board = board
        self._auth = auth
        self._queue = queue or EventQueue()
        self._state = initial or ViewState(session=auth.get_session())
        self._changed: Signal[ViewState] = Signal(self._queue)
        self._auth_subscription = auth.on_session_change(self._on_session_change)

    @property
    def state(self) -> ViewState:
        return self._state

    def resolve(self) -> ResolvedView:
        return resolve_view(self._state)

    def subscribe(self, listener: Callable[[ViewState], Any]) -> Subscription:
        return self._changed.subscribe(listener)

    def close(self) -> None:
        """Stop listening to the auth service."""
        self._auth_subscription.unsubscribe()

    def dispatch(self, intent: Intent) -> None:
        self._queue.post(self._apply, intent)

    def dispatch_all(self, intents: Sequence[Intent]) -> None:
        for intent in intents:
            self.dispatch(intent)

    def _apply(self, intent: Intent) -> None:
        new_state = reduce(self._state, intent)
        if new_state is not self._state:
            self._state = new_state
            self._changed.emit(new_state)

    def _on_session_change(self, session: Optional[AdminSession]) -> None:
        self.dispatch(SessionChanged(session))

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def sync_jobs(self) -> None:
        """Apply the board's current cache if it has been fetched."""
        if self._board.loaded:
            self.dispatch(JobsLoaded(tuple(self._board.jobs), self._board.generation))

    def load_jobs(self) -> None:
        """
        Refetch from the store and apply the result.

        If no fetch has ever succeeded the state stays loading, so the
        next request tries again.
        """
        self.dispatch(JobsLoading())
        jobs = self._board.refresh()
        if self._board.loaded:
            self.dispatch(JobsLoaded(tuple(jobs), self._board.generation))

    def ensure_jobs(self) -> None:
        """Use the cache when present, otherwise fetch."""
        if self._board.loaded:
            self.sync_jobs()
        else:
            self.load_jobs()

    def reload_jobs(self) -> None:
        """
        Refetch for a new page visit.

        Before the first successful fetch nothing is fetched here: the page
        shows the loading view and its grid request does the fetch.
        """
        if self._board.loaded:
            self.load_jobs()

    @property
    def load_failed(self) -> bool:
        """True when jobs were requested but no fetch has succeeded yet."""
        return self._state.loading and not self._board.loaded

    def sign_in(self, email: str, password: str) -> Optional[str]:
        """Returns None on success, otherwise the error message to show."""
        return self._auth.sign_in(email, password)

    def logout(self) -> None:
        self._auth.sign_out()
        self.dispatch(LoggedOut())

    def save_job(self, draft: JobDraft, job_id: Optional[int] = None) -> Optional[int]:
        """
        Create or update a posting, then return to the panel.

        Raises:
            StoreError: If the write fails (state unchanged)
        """
        if job_id is not None:
            self._board.update_job(job_id, draft)
            saved_id: Optional[int] = job_id
        else:
            saved_id = self._board.create_job(draft)
        self.sync_jobs()
        self.dispatch(CloseAdminView())
        return saved_id

    def add_jobs(self, drafts: Sequence[JobDraft]) -> List[int]:
        """Bulk-add scout drafts. The admin stays on the scout view."""
        ids = self._board.add_jobs(drafts)
        self.sync_jobs()
        return ids

    def confirm_delete(self, job_id: Optional[int] = None) -> bool:
        """
        Delete the posting awaiting confirmation (or job_id).

        Raises:
            StoreError: If the delete fails (the confirmation stays pending)
        """
        target = job_id if job_id is not None else self._state.pending_delete
        if target is None:
            return False
        deleted = self._board.delete_job(target, confirmed=True)
        self.sync_jobs()
        self.dispatch(CancelDelete())
        return deleted
