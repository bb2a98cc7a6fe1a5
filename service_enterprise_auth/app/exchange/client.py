"""
HTTP client for the verification gateway.
"""

from typing import Optional

import httpx

from shared.errors import ConfigurationError, GatewayHttpError
from shared.logging import get_logger

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=UTF-8"


class GatewayClient:
    """Posts signed form envelopes to the gateway.

    One request per call and no retries: failures surface immediately and
    the caller decides whether to try again.
    """

    def __init__(self, gateway_url: Optional[str], timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if not gateway_url:
            raise ConfigurationError("Gateway URL is not configured")
        self.gateway_url = gateway_url
        self.timeout = timeout
        self._transport = transport
        self.logger = get_logger("enterprise-auth.gateway_client")

    async def post_form(self, body: str) -> str:
        """Send ``body`` and return the response text."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.gateway_url,
                    content=body.encode("utf-8"),
                    headers={
                        "Content-Type": FORM_CONTENT_TYPE,
                        "Accept-Charset": "UTF-8",
                    },
                )
        except httpx.TimeoutException as e:
            self.logger.error("Gateway request timed out", error=str(e))
            raise GatewayHttpError("Gateway request timed out", details={"error": str(e)})
        except httpx.HTTPError as e:
            self.logger.error("Gateway HTTP error", error=str(e))
            raise GatewayHttpError("Gateway unavailable", details={"error": str(e)})

        if response.status_code != 200:
            self.logger.error("Gateway returned non-200 status", status_code=response.status_code)
            raise GatewayHttpError(
                f"HTTP request failed with status code: {response.status_code}",
                status=response.status_code
            )

        return response.content.decode("utf-8", errors="replace")
