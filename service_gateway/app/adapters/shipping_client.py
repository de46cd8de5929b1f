"""
Shipping service client for Gateway.
"""

from typing import Optional

from shared.metrics import MetricsCollector
from shared.rpc_schema import SHIPPING_SERVICE

from ..domain.outcome import Outcome
from .rpc_client import RpcClientAdapter


class ShippingClient(RpcClientAdapter):
    """Client for the shipping-quote backend."""

    def __init__(self, address: str, timeout: Optional[float] = None,
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(SHIPPING_SERVICE, address, timeout=timeout, metrics=metrics)

    async def get_shipping_rate(self, postal_code: str) -> Outcome:
        """Quote shipping to a normalized postal code."""
        return await self.invoke("GetShippingRate", {"postal_code": postal_code})
