"""HTTP client for the Flow subscription provider.

Every request is signed: parameters (including ``apiKey``) are sorted by key,
joined as ``key=value&...``, HMAC-SHA256 signed with the secret key, and the
hex signature is sent as the extra ``s`` parameter.
"""

import hashlib
import hmac
import logging
from typing import Any, Mapping

import httpx

from vuelve_engine.common.config import VuelveSettings, get_settings
from vuelve_engine.common.exceptions import ConfigurationError, ExternalDependencyError

logger = logging.getLogger(__name__)

# Subscription status value Flow reports for an active, paid subscription.
FLOW_STATUS_ACTIVE = 1


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def canonical_query(params: Mapping[str, Any]) -> str:
    return "&".join(f"{key}={_stringify(params[key])}" for key in sorted(params))


def sign_params(params: Mapping[str, Any], secret: str) -> str:
    """HMAC-SHA256 hex signature, independent of parameter order."""
    return hmac.new(
        secret.encode("utf-8"),
        canonical_query(params).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class FlowClient:
    """Signed request/response client for Flow subscriptions."""

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: VuelveSettings | None = None) -> "FlowClient":
        settings = settings or get_settings()
        return cls(settings.flow_api_key, settings.flow_secret_key, settings.flow_url)

    def signed_params(self, params: Mapping[str, Any]) -> dict[str, str]:
        all_params = {**params, "apiKey": self.api_key}
        signature = sign_params(all_params, self.secret_key)
        final = {key: _stringify(value) for key, value in all_params.items()}
        final["s"] = signature
        return final

    async def request(
        self, endpoint: str, params: Mapping[str, Any], method: str = "POST"
    ) -> dict[str, Any]:
        if not self.api_key or not self.secret_key or not self.base_url:
            raise ConfigurationError("Payment provider is not configured")

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        final = self.signed_params(params)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                if method.upper() == "GET":
                    resp = await client.get(url, params=final)
                else:
                    resp = await client.post(url, data=final)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Flow request to %s failed: %s", endpoint, exc)
            raise ExternalDependencyError() from exc

        if not isinstance(data, dict):
            logger.error("Flow request to %s returned a non-object body", endpoint)
            raise ExternalDependencyError()
        return data

    async def create_subscription(
        self, customer_email: str, plan_id: str, url_callback: str
    ) -> dict[str, Any]:
        return await self.request(
            "subscription/create",
            {"planId": plan_id, "customerEmail": customer_email, "urlCallback": url_callback},
        )

    async def get_subscription_status(self, token: str) -> dict[str, Any]:
        return await self.request("subscription/getStatus", {"token": token}, method="GET")

    @staticmethod
    def is_active(status_response: Mapping[str, Any]) -> bool:
        return status_response.get("status") == FLOW_STATUS_ACTIVE
