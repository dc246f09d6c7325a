"""Services for the peddy-paper client."""

from peddypaper.services.state import AppState
from peddypaper.services.scoring import ScoreAggregator
from peddypaper.services.session import SessionStore
from peddypaper.services.gateway import SubmissionGateway
from peddypaper.services.controller import ViewController, Renderer, LoginResult, SubmissionOutcome
from peddypaper.services.exceptions import SubmissionState

__all__ = [
    "AppState",
    "ScoreAggregator",
    "SessionStore",
    "SubmissionGateway",
    "ViewController",
    "Renderer",
    "LoginResult",
    "SubmissionOutcome",
    "SubmissionState",
]
