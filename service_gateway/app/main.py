"""
API Gateway service for the Storefront.

Translates the browser-facing HTTP/JSON contract into calls on the catalog,
shipping and review RPC backends.
"""

from typing import Any, Dict, Mapping, Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .adapters import CatalogClient, ReviewClient, ShippingClient
from .domain import ROUTES, GatewayRouter


class GatewayService(BaseService):
    """API Gateway service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 adapters: Optional[Mapping[str, Any]] = None):
        super().__init__("gateway", 8000, config=config)

        # One shared client handle per backend for the life of the process
        if adapters is None:
            timeout = self.config.rpc_timeout_seconds
            adapters = {
                "catalog": CatalogClient(self.config.catalog_service_address, timeout, self.metrics),
                "shipping": ShippingClient(self.config.shipping_service_address, timeout, self.metrics),
                "review": ReviewClient(self.config.review_service_address, timeout, self.metrics),
            }
        self.adapters = dict(adapters)

        self.router = GatewayRouter(self.adapters, ROUTES)
        self.router.mount(self.app)

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    async def on_startup(self) -> None:
        for name, adapter in self.adapters.items():
            connect = getattr(adapter, "connect", None)
            if connect is not None:
                connect()
                self.logger.info("Backend client ready", backend=name,
                                 address=getattr(adapter, "address", None))

    async def on_shutdown(self) -> None:
        for adapter in self.adapters.values():
            close = getattr(adapter, "close", None)
            if close is not None:
                await close()

    async def _check_dependencies(self) -> Dict[str, str]:
        dependencies = {}
        for name, adapter in self.adapters.items():
            state = getattr(adapter, "state", None)
            dependencies[name] = state() if state is not None else "unknown"
        return dependencies


def create_app(config: Optional[ServiceConfig] = None,
               adapters: Optional[Mapping[str, Any]] = None):
    """Create FastAPI application."""
    service = GatewayService(config=config, adapters=adapters)
    return service.app


if __name__ == "__main__":
    service = GatewayService()
    service.run()
