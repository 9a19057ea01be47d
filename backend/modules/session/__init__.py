"""
Session module.

Tracks who is signed in and which UI flow that implies.

Public API:
- AppState: Observable authenticated-user state
- AppCoordinator: Flow derivation and auth deep links
- AppFlow, AppStateSnapshot, AuthCallback: Models
"""

from .models import AppFlow, AppStateSnapshot, AuthCallback
from .state import AppState
from .coordinator import AppCoordinator
from .deep_links import is_auth_callback, parse_auth_callback

__all__ = [
    "AppState",
    "AppCoordinator",
    "AppFlow",
    "AppStateSnapshot",
    "AuthCallback",
    "is_auth_callback",
    "parse_auth_callback",
]
