"""
Shared utilities for the 254Carbon Access Layer.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request/account correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- secrets_manager: Environment and encrypted-file secret lookup
- base_service: FastAPI application scaffolding

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service packages into shared/.
"""
