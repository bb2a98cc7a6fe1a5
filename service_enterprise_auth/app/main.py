"""
Enterprise auth service.

Authenticates callers with HMAC bearer tokens and runs enterprise identity
verification against the external gateway.
"""

from typing import Dict, Optional

from fastapi import Depends, Request
from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import success_response

from .banks import DirectoryCache
from .domain import AuthMiddleware
from .exchange import CallerIdentity, EnterpriseAuthExchange, EnterpriseAuthRequest
from .tokens import TokenCodec

API_VERSION = "/v1"


class EnterpriseAuthService(BaseService):
    """Enterprise auth service implementation.

    Every collaborator is built here, once, at startup. A missing token
    secret or gateway setting aborts startup with ConfigurationError.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        token_codec: Optional[TokenCodec] = None,
        exchange: Optional[EnterpriseAuthExchange] = None,
        bank_directory: Optional[DirectoryCache] = None,
    ):
        super().__init__("enterprise-auth", config or get_config())

        self.token_codec = token_codec or TokenCodec.from_config(self.config)
        self.exchange = exchange or EnterpriseAuthExchange.from_config(self.config, metrics=self.metrics)
        self.bank_directory = bank_directory or DirectoryCache(
            self.config.bank_json_path, name="banks", metrics=self.metrics
        )
        self.auth_middleware = AuthMiddleware(self.token_codec, metrics=self.metrics)

        self.logger.info("Starting enterprise auth service", environment=self.config.app_env)
        self._setup_service_routes()

    def _setup_service_routes(self):
        """Set up enterprise-auth routes."""

        async def require_caller(request: Request) -> CallerIdentity:
            return await self.auth_middleware.authenticate_request(request)

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "enterprise-auth",
                "message": "Enterprise Auth Service",
                "version": "1.0.0"
            }

        @self.app.get("/test", response_class=PlainTextResponse)
        async def test(identity: CallerIdentity = Depends(require_caller)):
            return "Test response"

        @self.app.post(f"{API_VERSION}/enterprise-auth")
        async def enterprise_auth(
            request: EnterpriseAuthRequest,
            identity: CallerIdentity = Depends(require_caller),
        ):
            """Verify an enterprise against the gateway for the authenticated caller."""
            result = await self.exchange.run(request, identity)
            return success_response(result.to_wire())

        @self.app.get(f"{API_VERSION}/banks")
        def get_banks(identity: CallerIdentity = Depends(require_caller)):
            """Return the bank code to name mapping."""
            return success_response(dict(self.bank_directory.get()))

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check enterprise-auth dependencies."""
        return {
            "bank_directory": "ok" if self.bank_directory.exists() else "missing",
        }


def create_app(config: Optional[ServiceConfig] = None, **components):
    """Create FastAPI application."""
    service = EnterpriseAuthService(config, **components)
    return service.app


def main():
    service = EnterpriseAuthService()
    service.run()


if __name__ == "__main__":
    main()
