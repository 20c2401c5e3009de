"""Identity provider port.

Sign-in, sign-up and sessions live in an external auth service. A session is
owned by whoever holds its access token; checkout never asks the provider for
"the" current user.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    access_token: str = field(repr=False)


class IdentityProvider(ABC):
    @abstractmethod
    async def sign_up(self, email: str, password: str, profile: dict) -> str:
        """Create an identity and return its id. Raises ``IdentityError``."""
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        """Authenticate and issue a new session. Raises ``IdentityError``."""
        ...

    @abstractmethod
    async def get_session(self, access_token: str) -> Session | None:
        """The live session behind ``access_token``, or None."""
        ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None: ...
