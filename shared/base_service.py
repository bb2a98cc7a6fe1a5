"""
Base service class for the enterprise auth service.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Dict, Any, Optional
import time
import os

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.errors import (
    AccessLayerException,
    ErrorBody,
    ErrorResponse,
    NotFoundError,
    ValidationError,
    generate_error_id,
    redacted_message,
)

REDACTED = "[REDACTED IN PRODUCTION]"
SENSITIVE_HEADERS = {"authorization", "cookie", "proxy-authorization"}


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.port = self.config.port
        self.logger = get_logger(service_name)
        self.metrics = metrics or get_metrics_collector(service_name)
        self._start_time = time.time()

        configure_logging(service_name, self.config.log_level)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"{self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.is_development else None,
            redoc_url="/redoc" if self.config.is_development else None,
            openapi_url="/openapi.json" if self.config.is_development else None,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def add_request_context(request: Request, call_next):
            start_time = time.time()
            request_id = set_request_id(request.headers.get("X-Request-ID"))

            try:
                response = await call_next(request)
            finally:
                duration = time.time() - start_time
                clear_context()

            response.headers["X-Request-ID"] = request_id

            # Route templates keep label cardinality bounded
            route = request.scope.get("route")
            self.metrics.record_http_request(
                method=request.method,
                endpoint=getattr(route, "path", None) or "unmatched",
                status_code=response.status_code,
                duration=duration
            )

            self.logger.info(
                "HTTP request",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2)
            )

            return response

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                dependencies = await self._check_dependencies()
                self.metrics.record_health_check("ok")

                return {
                    "service": self.service_name,
                    "status": "ok",
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": "1.0.0",
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={
                        "service": self.service_name,
                        "status": "error",
                        "error": str(e)
                    }
                )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
            return Response(
                content=generate_latest(self.metrics.registry),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(AccessLayerException)
        async def access_layer_exception_handler(request: Request, exc: AccessLayerException):
            """Handle AccessLayerException."""
            return self._error_response(request, exc)

        @self.app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request: Request, exc: RequestValidationError):
            """Report body validation failures as 400."""
            errors = [
                {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg")}
                for error in exc.errors()
            ]
            return self._error_response(request, ValidationError("Request validation failed", {"errors": errors}))

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Wrap framework HTTP errors in the error envelope."""
            if exc.status_code == 404:
                return self._error_response(request, NotFoundError(f"Resource not found: {request.url.path}"))
            error = AccessLayerException("HTTP_ERROR", str(exc.detail))
            error.status_code = exc.status_code
            return self._error_response(request, error)

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            error_id = generate_error_id()
            self.logger.error(
                "Unhandled exception",
                error_id=error_id,
                error=str(exc),
                **self._request_info(request),
                exc_info=True
            )
            self.metrics.record_error("INTERNAL_ERROR")
            message = str(exc) if self.config.is_development else redacted_message(error_id)
            body = ErrorResponse(error=ErrorBody(code="INTERNAL_ERROR", message=message, error_id=error_id))
            return JSONResponse(status_code=500, content=body.model_dump())

    def _error_response(self, request: Request, exc: AccessLayerException) -> JSONResponse:
        error_id = generate_error_id()
        log = self.logger.error if exc.status_code >= 500 else self.logger.warning
        log(
            "Request failed",
            error_id=error_id,
            code=exc.code,
            message=exc.message,
            details=exc.details,
            **self._request_info(request)
        )
        self.metrics.record_error(exc.code)
        response = exc.to_response(error_id, redact=self.config.is_production)
        return JSONResponse(status_code=exc.status_code, content=response.model_dump())

    def _request_info(self, request: Request) -> Dict[str, Any]:
        """Request metadata for the operational log; query redacted in production."""
        identity = getattr(request.state, "identity", None)
        headers = {
            name: value for name, value in request.headers.items()
            if name.lower() not in SENSITIVE_HEADERS
        }
        return {
            "user_id": identity.user_id if identity else "unknown",
            "region_uid": (identity.region_uid or "unknown") if identity else "unknown",
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
            "headers": headers,
            "query": dict(request.query_params) if self.config.is_development else REDACTED,
        }

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
