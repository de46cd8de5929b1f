"""
Shared utilities for the Storefront gateway stack.

This package aggregates common building blocks used by the gateway and
the mock backends:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- rpc_schema: Backend message and procedure definitions
- base_service: FastAPI service scaffolding

Do not import from service_gateway into shared/.
"""
