# 📄 File: app/modules/product_catalog/infrastructure/external/user_service_client.py
# 🧭 Purpose (Layman Explanation):
# Asks the user service whether a person's account is still switched on before they can add
# a product or bring their products back.
#
# 🧪 Purpose (Technical Summary):
# HTTP adapter for the user service on the shared aiohttp APIClient, guarded by a circuit
# breaker. Implements the UserStatusOracle port by forwarding the caller's bearer token to
# GET /api/users/{id} and reading `isActive`. Transport problems surface as
# UpstreamUnavailableError (503); every negative or unreadable answer as AccountUnavailableError (403).
#
# 🔗 Dependencies:
# - app.shared.infrastructure.external_apis.api_client (aiohttp client, bounded timeout)
# - app.shared.core.circuit_breaker (fail fast while the user service is down)
#
# 🔄 Connected Modules / Calls From:
# - app.modules.product_catalog.domain.services.product_service (ensure_active)
# - app.main (client lifecycle in the product service lifespan)

import logging
from typing import Optional
from uuid import UUID

from app.modules.product_catalog.domain.services.user_status_oracle import UserStatusOracle
from app.shared.config.settings import Settings
from app.shared.core.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from app.shared.core.exceptions import AccountUnavailableError, UpstreamUnavailableError
from app.shared.infrastructure.external_apis.api_client import APIClient, APIResponse

logger = logging.getLogger(__name__)

USER_SERVICE_NAME = "user-service"


class UserServiceClient(UserStatusOracle):
    """
    Client for the user service.

    Never mints tokens of its own; every call carries the end user's token.
    """

    def __init__(self, api_client: APIClient, circuit_breaker: Optional[CircuitBreaker] = None):
        self.api_client = api_client
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            USER_SERVICE_NAME,
            CircuitBreakerConfig(expected_exceptions=(UpstreamUnavailableError,)),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "UserServiceClient":
        api_client = APIClient(
            base_url=settings.USER_SERVICE_URL,
            api_name=USER_SERVICE_NAME,
            timeout=settings.USER_SERVICE_TIMEOUT_SECONDS,
        )
        breaker = CircuitBreaker(
            USER_SERVICE_NAME,
            CircuitBreakerConfig(
                failure_threshold=settings.USER_SERVICE_FAILURE_THRESHOLD,
                recovery_timeout=settings.USER_SERVICE_RECOVERY_TIMEOUT,
                expected_exceptions=(UpstreamUnavailableError,),
            ),
        )
        return cls(api_client, breaker)

    async def ensure_active(self, user_id: UUID, bearer_token: str) -> None:
        response = await self._call("GET", f"/api/users/{user_id}", bearer_token)

        if not response.ok:
            logger.warning(f"User service answered {response.status} for user {user_id}")
            raise AccountUnavailableError(user_id=str(user_id), details={"upstream_status": response.status})

        data = response.data
        if not isinstance(data, dict) or data.get("isActive") is not True:
            logger.warning(f"User {user_id} is inactive or the status answer is unusable")
            raise AccountUnavailableError(user_id=str(user_id))

        logger.debug(f"User {user_id} confirmed active")

    async def close(self) -> None:
        await self.api_client.close()

    async def _call(self, method: str, endpoint: str, bearer_token: str) -> APIResponse:
        headers = {"Authorization": f"Bearer {bearer_token}"}
        return await self.circuit_breaker.call(lambda: self.api_client.request(method, endpoint, headers=headers))
