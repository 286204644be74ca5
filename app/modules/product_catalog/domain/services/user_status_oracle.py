"""
Port for asking the user service whether an account may own new products.
"""

from abc import ABC, abstractmethod
from uuid import UUID


class UserStatusOracle(ABC):

    @abstractmethod
    async def ensure_active(self, user_id: UUID, bearer_token: str) -> None:
        """
        Succeed only when the user service confirms the account is active.

        Args:
            user_id: Account to check
            bearer_token: The caller's own token, forwarded unchanged

        Raises:
            AccountUnavailableError: Account inactive, missing or not visible to the caller
            UpstreamUnavailableError: The user service could not be reached in time
        """
