"""Identity provider interface.

The identity provider (hosted auth service) owns user sessions; the engine
only asks it who is calling.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from starlette.requests import Request


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


class IdentityProvider(Protocol):
    async def get_current_user(self, request: Request) -> Optional[AuthUser]:
        """Resolve the caller's identity, or None when unauthenticated."""
        ...
