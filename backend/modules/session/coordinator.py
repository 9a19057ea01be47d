"""
App coordinator.

Derives the UI flow from AppState and routes auth callback deep links into
session restoration. The flow follows AppState through an observer
subscription taken in initialize() and released in close().
"""

import logging
from typing import Callable, Optional

from shared.config import Settings, get_settings

from .deep_links import is_app_url, parse_auth_callback
from .models import AppFlow, AppStateSnapshot
from .observers import Observable, Unsubscribe
from .state import AppState

logger = logging.getLogger(__name__)


class AppCoordinator:
    """Owns the current AppFlow and the deep-link bridge."""

    def __init__(self, app_state: AppState, settings: Optional[Settings] = None):
        self._app_state = app_state
        self._settings = settings or get_settings()
        self._current_flow = AppFlow.ONBOARDING
        self._is_initializing = True
        self._observers: Observable[AppFlow] = Observable()
        self._state_subscription: Optional[Unsubscribe] = None

    @property
    def app_state(self) -> AppState:
        return self._app_state

    @property
    def current_flow(self) -> AppFlow:
        return self._current_flow

    @property
    def is_initializing(self) -> bool:
        return self._is_initializing

    def subscribe(self, listener: Callable[[AppFlow], None]) -> Unsubscribe:
        """Register an observer called whenever the flow changes."""
        return self._observers.subscribe(listener)

    async def initialize(self) -> None:
        """
        Restore any existing session and settle the initial flow.

        The flow is correct as soon as this returns; later changes arrive
        through the AppState subscription.
        """
        self._is_initializing = True
        try:
            await self._app_state.restore_session()
            self._update_flow(self._app_state.snapshot())
            if self._state_subscription is None:
                self._state_subscription = self._app_state.subscribe(self._update_flow)
        finally:
            self._is_initializing = False

    def can_handle_url(self, url: str) -> bool:
        """Whether a URL belongs to this app or to its Supabase project."""
        return is_app_url(url, self._settings.deep_link_scheme)

    async def handle_deep_link(self, url: str) -> bool:
        """
        Handle an incoming deep link.

        Only signup and magic-link auth callbacks are acted on: the backend
        has already exchanged them for a session, so local state is simply
        restored.

        Returns:
            True if a session restore was triggered
        """
        callback = parse_auth_callback(url)
        if callback is None:
            logger.debug(f"Ignoring non-auth deep link {url}")
            return False
        if not callback.restores_session:
            logger.debug(f"Ignoring auth callback of type {callback.type!r}")
            return False

        logger.info(f"Auth callback ({callback.type}) received, restoring session")
        await self._app_state.restore_session()
        return True

    async def logout(self) -> None:
        """Sign out and return to onboarding without waiting for state events."""
        await self._app_state.sign_out()
        self._set_flow(AppFlow.ONBOARDING)

    def close(self) -> None:
        """Stop following AppState."""
        if self._state_subscription is not None:
            self._state_subscription()
            self._state_subscription = None

    def _update_flow(self, snapshot: AppStateSnapshot) -> None:
        self._set_flow(snapshot.flow)

    def _set_flow(self, flow: AppFlow) -> None:
        if flow is self._current_flow:
            return
        logger.info(f"App flow changed: {self._current_flow.value} -> {flow.value}")
        self._current_flow = flow
        self._observers.notify(flow)
