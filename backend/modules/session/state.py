"""
App-wide authentication state.

AppState is the single source of truth for who is signed in. It is fed by
explicit calls from UI flows and by Supabase's auth change stream, and
publishes an AppStateSnapshot to observers after every change.

All mutation happens on the event loop that called start(). Backend events
arrive on worker threads and are handed to the loop through a queue.

Restores are versioned: sign-in, sign-out, updates and newer restores bump
a generation counter, and a restore that finishes under an older generation
throws its result away. A slow restore can therefore never resurrect a
session the user has already left.
"""

import asyncio
import contextlib
import logging
from typing import Callable, Optional

from modules.auth.interfaces import AuthSubscription, IAuthService
from modules.auth.models import AuthChangeEvent, AuthSession, UserProfile

from .models import AppStateSnapshot
from .observers import Observable, Unsubscribe

logger = logging.getLogger(__name__)


class AppState:
    """Observable authenticated-user state for the whole process."""

    def __init__(self, auth_service: IAuthService):
        self._auth = auth_service

        self._current_user: Optional[UserProfile] = None
        self._is_authenticated = False
        self._is_loading = True

        self._generation = 0
        self._pending_restores = 0
        self._observers: Observable[AppStateSnapshot] = Observable()
        self._last_published = self.snapshot()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._events: Optional[asyncio.Queue] = None
        self._event_task: Optional[asyncio.Task] = None
        self._subscription: Optional[AuthSubscription] = None

    @property
    def current_user(self) -> Optional[UserProfile]:
        return self._current_user

    @property
    def is_authenticated(self) -> bool:
        return self._is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def snapshot(self) -> AppStateSnapshot:
        return AppStateSnapshot(
            current_user=self._current_user,
            is_authenticated=self._is_authenticated,
            is_loading=self._is_loading,
        )

    def subscribe(self, listener: Callable[[AppStateSnapshot], None]) -> Unsubscribe:
        """Register an observer called with a snapshot after each change."""
        return self._observers.subscribe(listener)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    async def restore_session(self) -> None:
        """
        Rebuild state from the backend's current session.

        Fails closed: if the profile cannot be fetched the user is treated
        as signed out. Loading is cleared once the last in-flight restore
        exits, whichever way it exits.
        """
        self._generation += 1
        generation = self._generation
        self._pending_restores += 1
        self._set_loading(True)

        try:
            session = await self._auth.current_session()
            if session is None:
                if generation == self._generation:
                    self._set_user(None)
                return

            profile = await self._auth.fetch_profile(session.user_id)
            if generation != self._generation:
                logger.debug("Discarding result of a superseded session restore")
                return
            self._set_user(profile)
        except Exception as e:
            logger.warning(f"Failed to restore session: {e}")
            if generation == self._generation:
                self._set_user(None)
        finally:
            self._pending_restores -= 1
            self._set_loading(self._pending_restores > 0)

    def update_user(self, profile: UserProfile) -> None:
        """Mark a user as signed in, e.g. straight after sign-in or verification."""
        self._generation += 1
        self._set_user(profile)

    def clear_session(self) -> None:
        """Reset to the signed-out state unconditionally."""
        self._generation += 1
        self._set_user(None)

    async def sign_out(self) -> None:
        """
        Sign out at the backend, then clear local state.

        Local state is cleared even if the backend call fails: the user must
        always be able to leave.
        """
        try:
            await self._auth.sign_out()
        except Exception as e:
            logger.warning(f"Sign out error: {e}")
        finally:
            self.clear_session()

    async def handle_auth_event(
        self,
        event: AuthChangeEvent,
        session: Optional[AuthSession] = None,
    ) -> None:
        """Apply a backend auth change event."""
        if event is AuthChangeEvent.SIGNED_IN:
            await self.restore_session()
        elif event is AuthChangeEvent.SIGNED_OUT:
            self.clear_session()
        elif event is AuthChangeEvent.USER_UPDATED:
            await self._refresh_user(session)
        else:
            logger.debug(f"Ignoring auth event {event.value}")

    async def _refresh_user(self, session: Optional[AuthSession]) -> None:
        # Overwrites the profile of a signed-in user only; never flips is_authenticated.
        if not self._is_authenticated:
            logger.debug("Ignoring user update while signed out")
            return
        generation = self._generation
        try:
            user_id = session.user_id if session else await self._auth.current_user_id()
            if user_id is None:
                return
            profile = await self._auth.fetch_profile(user_id)
        except Exception as e:
            logger.warning(f"Failed to fetch updated user: {e}")
            return

        if generation != self._generation or not self._is_authenticated:
            logger.debug("Discarding profile refresh superseded by a newer change")
            return
        self._current_user = profile
        self._publish()

    def _set_user(self, profile: Optional[UserProfile]) -> None:
        self._current_user = profile
        self._is_authenticated = profile is not None
        self._publish()

    def _set_loading(self, loading: bool) -> None:
        self._is_loading = loading
        self._publish()

    def _publish(self) -> None:
        snapshot = self.snapshot()
        if snapshot == self._last_published:
            return
        self._last_published = snapshot
        self._observers.notify(snapshot)

    # ------------------------------------------------------------------
    # Backend subscription
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Subscribe to backend auth changes. Must be called from the event loop.

        Calling it again while running is a no-op.
        """
        if self._subscription is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()
        self._event_task = self._loop.create_task(self._consume_events())
        self._subscription = self._auth.subscribe(self._on_backend_event)

    async def close(self) -> None:
        """Unsubscribe from the backend and stop the event consumer."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        if self._event_task is not None:
            self._event_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._event_task
            self._event_task = None

        self._events = None
        self._loop = None

    async def wait_for_events(self) -> None:
        """Wait until every backend event received so far has been handled."""
        if self._events is None:
            return
        # Let pending call_soon_threadsafe hand-offs land in the queue first
        await asyncio.sleep(0)
        await self._events.join()

    def _on_backend_event(self, event: AuthChangeEvent, session: Optional[AuthSession]) -> None:
        # Runs on the Supabase client's thread.
        loop, events = self._loop, self._events
        if loop is None or events is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(events.put_nowait, (event, session))

    async def _consume_events(self) -> None:
        assert self._events is not None
        events = self._events
        while True:
            event, session = await events.get()
            try:
                await self.handle_auth_event(event, session)
            except Exception:
                logger.exception(f"Auth event {event.value} handler failed")
            finally:
                events.task_done()
