"""
API Gateway Service package for the Storefront.

The gateway fronts browser requests, translating each HTTP/JSON route
into calls on the catalog, shipping and review backends.

Structure:
- app.main: FastAPI app wiring and lifecycle.
- app.adapters: gRPC clients for the backends.
- app.domain: Route table, dispatch and response translation.
"""
