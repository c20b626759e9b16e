"""
Realtime session controller.

Every call mints a fresh ephemeral credential upstream; nothing is cached
because the provider scopes each credential to one short-lived session.
"""
from typing import Any

from mr_relay.config.settings import Settings
from mr_relay.services.upstream import UpstreamClient


class SessionController:
    def __init__(self, upstream: UpstreamClient, settings: Settings):
        self.upstream = upstream
        self.settings = settings

    async def create_session(self) -> Any:
        return await self.upstream.create_realtime_session(model=self.settings.realtime_model)
