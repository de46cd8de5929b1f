"""
Review service client for Gateway.
"""

from typing import Optional

from shared.metrics import MetricsCollector
from shared.rpc_schema import REVIEW_SERVICE

from ..domain.outcome import Outcome
from .rpc_client import RpcClientAdapter


class ReviewClient(RpcClientAdapter):
    """Client for the review backend."""

    def __init__(self, address: str, timeout: Optional[float] = None,
                 metrics: Optional[MetricsCollector] = None):
        super().__init__(REVIEW_SERVICE, address, timeout=timeout, metrics=metrics)

    async def list_reviews(self, product_id: int) -> Outcome:
        """List the reviews stored for a product, oldest first."""
        return await self.invoke("ListReviews", {"product_id": product_id})

    async def create_review(self, product_id: int, text: str, author: Optional[str] = None) -> Outcome:
        """Store a review and return it with its assigned id.

        An empty or missing ``author`` is left out of the request.
        """
        payload = {"product_id": product_id, "text": text}
        if author:
            payload["author"] = author
        return await self.invoke("CreateReview", payload)
