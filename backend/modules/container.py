"""
Composition root.

Builds every long-lived component once at process start and wires them
together explicitly. Nothing here is a global: the embedding app keeps the
container and calls start()/shutdown() around its event loop.

Example:
    container = build_container()
    await container.start()
    flow = container.new_onboarding_flow()
    ...
    await container.shutdown()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from supabase import Client

from shared.config import Settings, get_settings
from shared.database import get_supabase_client
from shared.logging_config import setup_logging

from modules.assistant.service import AssistantService
from modules.auth.service import AuthenticationService
from modules.onboarding.flow import OnboardingFlow
from modules.session.coordinator import AppCoordinator
from modules.session.state import AppState

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """The wired-up client core."""

    settings: Settings
    auth_service: AuthenticationService
    app_state: AppState
    coordinator: AppCoordinator
    assistant: AssistantService

    async def start(self) -> None:
        """Subscribe to backend auth events and settle the initial flow."""
        setup_logging(self.settings.log_level)
        self.app_state.start()
        await self.coordinator.initialize()
        logger.info(
            f"{self.settings.app_name} started in {self.coordinator.current_flow.value} flow"
        )

    async def shutdown(self) -> None:
        """Tear down subscriptions. In-flight service calls are left to finish."""
        self.coordinator.close()
        await self.app_state.close()

    def new_onboarding_flow(self) -> OnboardingFlow:
        return OnboardingFlow(self.auth_service, self.app_state)


def build_container(
    settings: Optional[Settings] = None,
    client: Optional[Client] = None,
) -> AppContainer:
    """
    Wire the client core.

    Args:
        settings: Settings to use; loaded from the environment if omitted
        client: Supabase client; created from settings if omitted
    """
    settings = settings or get_settings()
    client = client or get_supabase_client(settings)

    auth_service = AuthenticationService(client=client, settings=settings)
    app_state = AppState(auth_service)
    return AppContainer(
        settings=settings,
        auth_service=auth_service,
        app_state=app_state,
        coordinator=AppCoordinator(app_state, settings=settings),
        assistant=AssistantService(settings=settings),
    )
