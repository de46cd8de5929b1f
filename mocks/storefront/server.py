"""
Mock storefront backends (catalog, shipping, reviews) for local development.

Each backend runs as its own gRPC server on its own port, speaking the
schema in ``shared.rpc_schema``. Data is static (catalog), pseudo-random
(shipping) or held in memory (reviews).
"""

import random
import threading
from concurrent import futures
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import grpc

from shared.logging import get_logger
from shared.rpc_schema import (
    CATALOG_SERVICE,
    REVIEW_SERVICE,
    SHIPPING_SERVICE,
    ServiceSchema,
    message_class,
)

Product = message_class("storefront.catalog.v1.Product")
ProductList = message_class("storefront.catalog.v1.ProductList")
ShippingRate = message_class("storefront.shipping.v1.ShippingRate")
Review = message_class("storefront.reviews.v1.Review")
ReviewList = message_class("storefront.reviews.v1.ReviewList")


DEFAULT_PRODUCTS = [
    {
        "id": 1,
        "title": "Domain-Driven Design",
        "author": "Eric Evans",
        "price": 92.5,
        "image_url": "https://images.example.com/ddd.jpg",
    },
    {
        "id": 2,
        "title": "Building Microservices",
        "author": "Sam Newman",
        "price": 77.9,
        "image_url": "https://images.example.com/microservices.jpg",
    },
    {
        "id": 3,
        "title": "Release It!",
        "author": "Michael T. Nygard",
        "price": 64.0,
        "image_url": "https://images.example.com/release-it.jpg",
    },
]


@dataclass
class MockFailure:
    """Abort every call of a backend with this status."""
    code: grpc.StatusCode
    details: str = "injected failure"


class MockCatalogService:
    """Static product catalog."""

    def __init__(self, products: Optional[List[Dict]] = None):
        self.products = products if products is not None else DEFAULT_PRODUCTS

    def ListProducts(self, request, context):
        return ProductList(products=[Product(**product) for product in self.products])


class MockShippingService:
    """Quotes a pseudo-random rate per request."""

    def __init__(self, seed: Optional[int] = None,
                 rate: Optional[Callable[[str], float]] = None):
        self._random = random.Random(seed)
        self._lock = threading.Lock()
        self._rate = rate

    def GetShippingRate(self, request, context):
        if self._rate is not None:
            return ShippingRate(value=self._rate(request.postal_code))
        with self._lock:
            value = round(self._random.uniform(1, 100), 2)
        return ShippingRate(value=value)


class MockReviewService:
    """In-memory review list."""

    def __init__(self):
        self._reviews: List[Dict] = []
        self._lock = threading.Lock()
        self._next_id = 1

    def ListReviews(self, request, context):
        with self._lock:
            matching = [r for r in self._reviews if r["product_id"] == request.product_id]
        return ReviewList(reviews=[Review(**review) for review in matching])

    def CreateReview(self, request, context):
        if not request.text:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, "review text is required")
        with self._lock:
            review = {
                "id": self._next_id,
                "product_id": request.product_id,
                "text": request.text,
                "author": request.author,
            }
            self._next_id += 1
            self._reviews.append(review)
        return Review(**review)


@dataclass
class _Backend:
    schema: ServiceSchema
    implementation: object
    server: Optional[grpc.Server] = None
    port: int = 0
    failure: Optional[MockFailure] = None
    calls: Dict[str, int] = field(default_factory=dict)


class MockStorefrontServer:
    """Runs the three mock backends, one gRPC server each."""

    def __init__(self, host: str = "127.0.0.1", ports: Optional[Dict[str, int]] = None,
                 shipping_seed: Optional[int] = None,
                 shipping_rate: Optional[Callable[[str], float]] = None):
        self.host = host
        self.logger = get_logger("mock.storefront")
        ports = ports or {}
        self._calls_lock = threading.Lock()
        self.backends: Dict[str, _Backend] = {
            "catalog": _Backend(CATALOG_SERVICE, MockCatalogService(), port=ports.get("catalog", 0)),
            "shipping": _Backend(
                SHIPPING_SERVICE,
                MockShippingService(seed=shipping_seed, rate=shipping_rate),
                port=ports.get("shipping", 0),
            ),
            "review": _Backend(REVIEW_SERVICE, MockReviewService(), port=ports.get("review", 0)),
        }

    @property
    def addresses(self) -> Dict[str, str]:
        return {name: f"{self.host}:{backend.port}" for name, backend in self.backends.items()}

    def fail(self, backend: str, code: grpc.StatusCode, details: str = "injected failure") -> None:
        self.backends[backend].failure = MockFailure(code, details)

    def recover(self, backend: str) -> None:
        self.backends[backend].failure = None

    def call_count(self, backend: str, procedure: str) -> int:
        with self._calls_lock:
            return self.backends[backend].calls.get(procedure, 0)

    def _handler(self, name: str, backend: _Backend):
        handlers = {}
        for procedure_name, procedure in backend.schema.procedures.items():
            handlers[procedure_name] = grpc.unary_unary_rpc_method_handler(
                self._behavior(name, backend, procedure_name),
                request_deserializer=procedure.request_class.FromString,
                response_serializer=procedure.response_class.SerializeToString,
            )
        return grpc.method_handlers_generic_handler(backend.schema.full_name, handlers)

    def _behavior(self, name: str, backend: _Backend, procedure_name: str):
        implementation = getattr(backend.implementation, procedure_name)

        def behavior(request, context):
            with self._calls_lock:
                backend.calls[procedure_name] = backend.calls.get(procedure_name, 0) + 1
            self.logger.info("Mock RPC", backend=name, procedure=procedure_name)
            if backend.failure is not None:
                context.abort(backend.failure.code, backend.failure.details)
            return implementation(request, context)

        return behavior

    def start(self) -> Dict[str, str]:
        for name, backend in self.backends.items():
            server = grpc.server(futures.ThreadPoolExecutor(max_workers=8))
            server.add_generic_rpc_handlers((self._handler(name, backend),))
            backend.port = server.add_insecure_port(f"{self.host}:{backend.port}")
            server.start()
            backend.server = server
            self.logger.info("Mock backend started", backend=name, port=backend.port)
        return self.addresses

    def stop(self, grace: Optional[float] = None) -> None:
        for backend in self.backends.values():
            if backend.server is not None:
                backend.server.stop(grace).wait()
                backend.server = None

    def wait_for_termination(self) -> None:
        for backend in self.backends.values():
            if backend.server is not None:
                backend.server.wait_for_termination()


if __name__ == "__main__":
    mock = MockStorefrontServer(
        host="0.0.0.0",
        ports={"catalog": 50051, "shipping": 50052, "review": 50053},
    )
    mock.start()
    mock.wait_for_termination()
