"""
Shared utilities for the enterprise auth service.

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and response envelopes
- base_service: FastAPI application skeleton with health and metrics routes

Do not import from service packages into shared/ (test_helpers excepted).
"""
