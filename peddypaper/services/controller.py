"""
View controller: bootstrap, subscriptions, login and view refresh.

Owns the AppState. The catalog (admin, teams, stations) is fetched once,
concurrently; submissions and access logs then arrive as full snapshots
from two subscriptions, each replacing its collection wholesale. After
every push the active session's view is recomputed and rendered.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, List, Optional

from pydantic import BaseModel

from peddypaper import __version__, config
from peddypaper.models import Session, TeamView, AdminView, StationTile
from peddypaper.services.catalog import (
    fetch_admin,
    fetch_team_records,
    fetch_stations,
    resolve_admin,
    playable_teams,
)
from peddypaper.services.exceptions import SubmissionError, SubmissionState
from peddypaper.services.gateway import SubmissionGateway, SUBMISSIONS_PATH, ACCESS_LOGS_PATH
from peddypaper.services.normalizer import normalize_submissions, normalize_access_logs
from peddypaper.services.scoring import ScoreAggregator
from peddypaper.services.session import SessionStore
from peddypaper.services.state import AppState
from peddypaper.storage import RemoteStoreInterface, LocalStateStore, Subscription
from peddypaper.storage.exceptions import StoreError, DecodeError

logger = logging.getLogger(__name__)

MSG_LOADING = "A carregar dados. Tente novamente dentro de momentos."
MSG_INVALID_CREDENTIALS = "Credenciais inválidas."
MSG_NO_TEAM_SESSION = "Sessão de equipa inválida. Inicie sessão novamente."


class Renderer:
    """Rendering seam; the default implementation draws nothing."""

    def show_login(self, message: str = '') -> None:
        pass

    def render_team(self, view: TeamView) -> None:
        pass

    def render_admin(self, view: AdminView) -> None:
        pass


class LoginResult(BaseModel):
    ok: bool
    message: str = ''
    session: Optional[Session] = None


class SubmissionOutcome(BaseModel):
    state: SubmissionState
    message: str
    points: Optional[int] = None

    @property
    def committed(self) -> bool:
        return self.state == SubmissionState.COMMITTED


class ViewController:
    """Coordinates the store, the shared state and the renderer."""

    def __init__(
        self,
        store: RemoteStoreInterface,
        local_state: LocalStateStore,
        renderer: Optional[Renderer] = None,
        user_agent: str = f"peddypaper/{__version__}",
        bootstrap_timeout: float = config.BOOTSTRAP_TIMEOUT_SECONDS,
        migrate_legacy: bool = config.MIGRATE_LEGACY_ON_BOOTSTRAP
    ):
        self.store = store
        self.renderer = renderer or Renderer()
        self.user_agent = user_agent
        self.bootstrap_timeout = bootstrap_timeout
        self.migrate_legacy = migrate_legacy

        self.state = AppState()
        self.aggregator = ScoreAggregator(self.state)
        self.sessions = SessionStore(self.state, local_state)
        self.gateway = SubmissionGateway(store, self.state)

        self._subscriptions: List[Subscription] = []

    # =========================================================================
    # BOOTSTRAP
    # =========================================================================

    def bootstrap(self) -> bool:
        """
        Load the catalog, open subscriptions and rehydrate the session.

        Failures are recorded in state.bootstrap_error and reported on the
        next login attempt instead of being raised.

        Returns:
            True if the controller is ready
        """
        logger.info("Loading catalog...")
        # shutdown must not wait on fetches that already timed out
        pool = ThreadPoolExecutor(max_workers=3, thread_name_prefix='catalog')
        try:
            deadline = time.monotonic() + self.bootstrap_timeout
            admin_future = pool.submit(fetch_admin, self.store)
            teams_future = pool.submit(fetch_team_records, self.store)
            stations_future = pool.submit(fetch_stations, self.store)

            admin = admin_future.result(timeout=self._remaining(deadline))
            team_records = teams_future.result(timeout=self._remaining(deadline))
            stations = stations_future.result(timeout=self._remaining(deadline))

            self.state.load_catalog(
                resolve_admin(admin, team_records),
                playable_teams(team_records),
                stations
            )
        except FutureTimeoutError:
            return self.fail_bootstrap("tempo esgotado ao carregar dados.")
        except StoreError as e:
            return self.fail_bootstrap(str(e))
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        logger.info(
            f"Catalog ready: {len(self.state.teams)} teams, {len(self.state.stations)} stations"
        )

        if self.migrate_legacy:
            try:
                self.gateway.migrate_legacy_submissions()
            except StoreError as e:
                logger.warning(f"Legacy submissions not migrated: {e}")

        self.close()
        self._subscriptions = [
            self.store.subscribe(SUBMISSIONS_PATH, self._on_submissions),
            self.store.subscribe(ACCESS_LOGS_PATH, self._on_access_logs),
        ]

        session = self.sessions.restore()
        if session is not None:
            logger.info(f"Restored {session.role} session")
            self.state.set_session(session)
            self.refresh()
        else:
            self.renderer.show_login()
        return True

    @staticmethod
    def _remaining(deadline: float) -> float:
        return max(0.0, deadline - time.monotonic())

    def fail_bootstrap(self, detail: str) -> bool:
        logger.error(f"Bootstrap failed: {detail}")
        self.state.fail_bootstrap(detail)
        self.renderer.show_login(f"Erro ao iniciar: {detail}")
        return False

    def close(self) -> None:
        """Cancel the push subscriptions."""
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions = []

    # =========================================================================
    # PUSH HANDLERS
    # =========================================================================

    def _on_submissions(self, raw: Any) -> None:
        try:
            rows = normalize_submissions(raw)
        except DecodeError as e:
            # Keep the last good snapshot rather than blanking the scores
            logger.error(f"Undecodable submissions snapshot: {e}")
            with self.state.lock:
                self.state.decode_error = str(e)
            return

        logger.debug(f"Submissions push: {len(rows)} rows")
        self.state.replace_submissions(rows)
        self.refresh()

    def _on_access_logs(self, raw: Any) -> None:
        entries = normalize_access_logs(raw)
        logger.debug(f"Access log push: {len(entries)} entries")
        self.state.replace_access_logs(entries)
        self.refresh()

    # =========================================================================
    # VIEWS
    # =========================================================================

    def team_view(self, team_id: Optional[str] = None) -> Optional[TeamView]:
        team_id = team_id or (self.state.session.team_id if self.state.session else None)
        team = self.state.team_by_id(team_id) if team_id else None
        if team is None:
            return None

        done = self.aggregator.completed_stations(team.id)
        with self.state.lock:
            stations = list(self.state.stations)
        return TeamView(
            team_id=team.id,
            team_name=team.team_name,
            score=self.aggregator.compute_team_score(team.id),
            stations=[
                StationTile(posto_id=s.posto_id, label=s.label, done=s.posto_id in done)
                for s in stations
            ]
        )

    def admin_view(self) -> AdminView:
        return AdminView(
            ranking=self.aggregator.ranking_rows(),
            history=self.aggregator.history_rows(),
            access=self.aggregator.access_summary()
        )

    def refresh(self) -> None:
        """Re-render the view matching the active session, if any."""
        session = self.state.session
        if session is None:
            return
        if session.is_admin:
            self.renderer.render_admin(self.admin_view())
            return
        view = self.team_view(session.team_id)
        if view is not None:
            self.renderer.render_team(view)

    # =========================================================================
    # USER ACTIONS
    # =========================================================================

    def login(self, username: str, password: str) -> LoginResult:
        """Authenticate, persist the session and log the device for teams."""
        if not self.state.ready:
            if self.state.bootstrap_error:
                return LoginResult(ok=False, message=f"Erro ao iniciar: {self.state.bootstrap_error}")
            return LoginResult(ok=False, message=MSG_LOADING)

        session = self.sessions.authenticate((username or '').strip(), (password or '').strip())
        if session is None:
            logger.info("Rejected login attempt")
            return LoginResult(ok=False, message=MSG_INVALID_CREDENTIALS)

        self.state.set_session(session)
        try:
            self.sessions.persist(session)
        except OSError as e:
            logger.warning(f"Session not persisted locally: {e}")

        if session.team is not None:
            logger.info(f"Team {session.team.id} logged in")
            try:
                device_id = self.sessions.device_id()
            except OSError as e:
                logger.warning(f"Device id unavailable: {e}")
                device_id = ''
            self.gateway.register_access(session.team.id, device_id, self.user_agent)
        else:
            logger.info("Admin logged in")

        self.refresh()
        return LoginResult(ok=True, session=session)

    def logout(self) -> None:
        self.state.set_session(None)
        try:
            self.sessions.clear()
        except OSError as e:
            logger.warning(f"Persisted session not cleared: {e}")
        self.renderer.show_login()

    def submit_pin(self, station_id: str, pin: str, points: Any) -> SubmissionOutcome:
        """
        Submit a station PIN for the logged-in team.

        Never raises; every failure becomes a user-facing outcome.
        """
        session = self.state.session
        if session is None or session.team is None:
            return SubmissionOutcome(state=SubmissionState.REJECTED, message=MSG_NO_TEAM_SESSION)

        try:
            submission = self.gateway.submit(session.team.id, station_id, pin, points)
        except SubmissionError as e:
            return SubmissionOutcome(state=e.state, message=e.message)
        except StoreError as e:
            logger.error(f"Submission for station {station_id} failed: {e}")
            return SubmissionOutcome(
                state=SubmissionState.REJECTED,
                message=f"Erro de comunicação: {e}"
            )

        return SubmissionOutcome(
            state=SubmissionState.COMMITTED,
            message=f"Registo efetuado. {submission.pontos} pontos.",
            points=submission.pontos
        )
