"""Identity of the actor performing verifications."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IdentityService(ABC):
    @abstractmethod
    async def current_actor_id(self) -> str | None:
        """Return the id of the signed-in actor, or None when anonymous."""


class StaticIdentity(IdentityService):
    """Fixed actor, used by the CLI and tests."""

    def __init__(self, actor_id: str | None = None):
        self.actor_id = actor_id

    async def current_actor_id(self) -> str | None:
        return self.actor_id
