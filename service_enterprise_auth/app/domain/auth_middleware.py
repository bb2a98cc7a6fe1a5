"""
Bearer token authentication for enterprise auth routes.
"""

from typing import Optional

from fastapi import Request

from shared.errors import AuthenticationError
from shared.logging import get_logger, set_user_context
from shared.metrics import MetricsCollector

from ..exchange.models import CallerIdentity
from ..tokens.codec import TokenCodec


class AuthMiddleware:
    """Validates the Authorization header and resolves the caller identity."""

    def __init__(self, token_codec: TokenCodec, metrics: Optional[MetricsCollector] = None):
        self.token_codec = token_codec
        self.metrics = metrics
        self.logger = get_logger("enterprise-auth.auth_middleware")

    async def authenticate_request(self, request: Request) -> CallerIdentity:
        """Authenticate the incoming request; raises AuthenticationError on failure."""
        try:
            claims = self.token_codec.validate(request.headers.get("Authorization"))
            user_id = claims.get("userId")
            if not isinstance(user_id, str) or not user_id:
                raise AuthenticationError("Token carries no caller identity")
        except AuthenticationError as e:
            self.logger.warning("Bearer authentication failed", code=e.code, path=request.url.path)
            self._record("token_rejected")
            raise

        identity = CallerIdentity(
            user_id=user_id,
            workspace_id=claims.get("workspaceId"),
            region_uid=claims.get("regionUid"),
        )
        set_user_context(user_id=identity.user_id, region_uid=identity.region_uid)
        request.state.identity = identity
        self._record("token_validated")
        return identity

    def _record(self, event_type: str) -> None:
        if self.metrics:
            self.metrics.record_business_event(event_type)
