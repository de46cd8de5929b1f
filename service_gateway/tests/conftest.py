"""
Shared fixtures for Gateway tests.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from service_gateway.app.adapters import CatalogClient, ReviewClient, ShippingClient
from service_gateway.app.domain import Failure, Success
from service_gateway.app.main import GatewayService
from shared.config import get_config
from shared.errors import BackendUnavailable


def make_adapter(cls):
    """Test double for a backend client; async methods become AsyncMocks."""
    adapter = MagicMock(spec=cls)
    adapter.state.return_value = "ready"
    adapter.close = AsyncMock()
    return adapter


@pytest.fixture
def products():
    return [
        {"id": 1, "title": "Domain-Driven Design", "author": "Eric Evans",
         "price": 92.5, "image_url": "https://images.example.com/ddd.jpg"},
        {"id": 2, "title": "Building Microservices", "author": "Sam Newman",
         "price": 77.9, "image_url": "https://images.example.com/microservices.jpg"},
    ]


@pytest.fixture
def adapters(products):
    """Backend doubles that succeed by default."""
    catalog = make_adapter(CatalogClient)
    catalog.list_products = AsyncMock(return_value=Success({"products": products}))

    shipping = make_adapter(ShippingClient)
    shipping.get_shipping_rate = AsyncMock(return_value=Success({"value": 42.5}))

    review = make_adapter(ReviewClient)
    review.list_reviews = AsyncMock(return_value=Success({
        "reviews": [{"id": 1, "product_id": 7, "text": "loved it", "author": "ana"}]
    }))

    async def _create_review(product_id, text, author=None):
        return Success({"id": 2, "product_id": product_id, "text": text, "author": author or ""})

    review.create_review = AsyncMock(side_effect=_create_review)

    return {"catalog": catalog, "shipping": shipping, "review": review}


@pytest.fixture
def failure():
    return Failure("shipping: UNAVAILABLE: connection refused",
                   cause=BackendUnavailable("shipping", "UNAVAILABLE: connection refused"))


@pytest.fixture
def gateway_service(adapters):
    config = get_config("gateway", 8000, env="test", log_level="warning")
    return GatewayService(config=config, adapters=adapters)


@pytest.fixture
def client(gateway_service):
    """Test client with lifespan hooks running."""
    with TestClient(gateway_service.app) as test_client:
        yield test_client


@pytest.fixture
def adapter_factory():
    return make_adapter
