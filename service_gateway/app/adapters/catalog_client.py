"""
Catalog service client for Gateway.
"""

from typing import Optional

from shared.metrics import MetricsCollector
from shared.rpc_schema import CATALOG_SERVICE

from ..domain.outcome import Outcome
from .rpc_client import RpcClientAdapter


class CatalogClient(RpcClientAdapter):
    """Client for the catalog backend."""

    def __init__(self, address: str, timeout: Optional[float] = None,
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(CATALOG_SERVICE, address, timeout=timeout, metrics=metrics)

    async def list_products(self) -> Outcome:
        """List every product in the catalog."""
        return await self.invoke("ListProducts")
