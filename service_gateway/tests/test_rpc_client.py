"""
Tests for the gRPC client adapters against in-process mock backends.
"""

import asyncio
import time

import grpc
import pytest

from mocks.storefront.server import MockStorefrontServer, ShippingRate
from service_gateway.app.adapters import CatalogClient, ReviewClient, RpcClientAdapter, ShippingClient
from service_gateway.app.domain import Failure, Success
from shared.errors import BackendApplicationError, BackendUnavailable
from shared.metrics import MetricsCollector
from shared.rpc_schema import SHIPPING_SERVICE


@pytest.fixture(scope="module")
def backends():
    """Mock catalog, shipping and review servers shared by this module."""
    server = MockStorefrontServer(shipping_rate=lambda postal_code: 42.5)
    server.start()
    yield server
    server.stop(0)


@pytest.fixture
def metrics():
    return MetricsCollector("gateway")


class TestSuccessfulCalls:
    """Decoded payloads for each backend procedure."""

    @pytest.mark.asyncio
    async def test_list_products(self, backends):
        client = CatalogClient(backends.addresses["catalog"], timeout=5)
        try:
            outcome = await client.list_products()
        finally:
            await client.close()

        assert isinstance(outcome, Success)
        products = outcome.payload["products"]
        assert [product["id"] for product in products] == [1, 2, 3]
        assert products[0]["title"] == "Domain-Driven Design"
        assert products[0]["price"] == 92.5
        assert set(products[0]) == {"id", "title", "author", "price", "image_url"}

    @pytest.mark.asyncio
    async def test_get_shipping_rate(self, backends):
        client = ShippingClient(backends.addresses["shipping"], timeout=5)
        try:
            outcome = await client.get_shipping_rate("01001000")
        finally:
            await client.close()

        assert outcome == Success({"value": 42.5})

    @pytest.mark.asyncio
    async def test_create_then_list_reviews(self, backends):
        client = ReviewClient(backends.addresses["review"], timeout=5)
        try:
            created = await client.create_review(101, "great book", author="ana")
            anonymous = await client.create_review(101, "meh")
            listed = await client.list_reviews(101)
            other = await client.list_reviews(102)
        finally:
            await client.close()

        assert created.payload["product_id"] == 101
        assert created.payload["text"] == "great book"
        assert created.payload["author"] == "ana"
        # Fields at their default value are still present
        assert anonymous.payload["author"] == ""
        assert [review["text"] for review in listed.payload["reviews"]] == ["great book", "meh"]
        assert other == Success({"reviews": []})

    @pytest.mark.asyncio
    async def test_unknown_payload_keys_are_ignored(self, backends):
        client = ReviewClient(backends.addresses["review"], timeout=5)
        try:
            outcome = await client.invoke("ListReviews", {"product_id": 555, "sort": "newest"})
        finally:
            await client.close()

        assert outcome == Success({"reviews": []})

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_channel(self, backends):
        client = ShippingClient(backends.addresses["shipping"], timeout=5)
        try:
            outcomes = await asyncio.gather(
                *(client.get_shipping_rate(f"01001{n:03d}") for n in range(20))
            )
        finally:
            await client.close()

        assert outcomes == [Success({"value": 42.5})] * 20

    @pytest.mark.asyncio
    async def test_every_invoke_reaches_the_backend(self, backends):
        before = backends.call_count("catalog", "ListProducts")
        client = CatalogClient(backends.addresses["catalog"], timeout=5)
        try:
            await client.list_products()
            await client.list_products()
        finally:
            await client.close()

        assert backends.call_count("catalog", "ListProducts") == before + 2


class TestFailures:
    """Every backend problem becomes a Failure outcome."""

    @pytest.mark.asyncio
    async def test_backend_reported_error(self, backends):
        backends.fail("catalog", grpc.StatusCode.INTERNAL, "catalog table missing")
        client = CatalogClient(backends.addresses["catalog"], timeout=5)
        try:
            outcome = await client.list_products()
        finally:
            backends.recover("catalog")
            await client.close()

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.cause, BackendApplicationError)
        assert "INTERNAL" in outcome.reason

    @pytest.mark.asyncio
    async def test_backend_rejects_argument(self, backends):
        client = ReviewClient(backends.addresses["review"], timeout=5)
        try:
            outcome = await client.invoke("CreateReview", {"product_id": 1, "text": ""})
        finally:
            await client.close()

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.cause, BackendApplicationError)

    @pytest.mark.asyncio
    async def test_unreachable_backend(self):
        client = ShippingClient("127.0.0.1:1", timeout=5)
        try:
            outcome = await client.get_shipping_rate("01001000")
        finally:
            await client.close()

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.cause, BackendUnavailable)

    @pytest.mark.asyncio
    async def test_deadline_exceeded(self):
        def slow_rate(postal_code):
            time.sleep(0.5)
            return 1.0

        server = MockStorefrontServer(shipping_rate=slow_rate)
        server.start()
        client = ShippingClient(server.addresses["shipping"], timeout=0.05)
        try:
            outcome = await client.get_shipping_rate("01001000")
        finally:
            await client.close()
            server.stop(0)

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.cause, BackendUnavailable)
        assert "DEADLINE_EXCEEDED" in outcome.reason

    @pytest.mark.asyncio
    async def test_unencodable_payload_never_reaches_backend(self, backends):
        before = backends.call_count("review", "ListReviews")
        client = ReviewClient(backends.addresses["review"], timeout=5)
        try:
            outcome = await client.invoke("ListReviews", {"product_id": "seven"})
        finally:
            await client.close()

        assert isinstance(outcome, Failure)
        assert backends.call_count("review", "ListReviews") == before

    @pytest.mark.asyncio
    async def test_unknown_procedure_is_a_programming_error(self, backends):
        client = CatalogClient(backends.addresses["catalog"])
        try:
            with pytest.raises(KeyError):
                await client.invoke("DeleteEverything")
        finally:
            await client.close()


class TestChannelLifecycle:
    """connect(), state() and close()."""

    @pytest.mark.asyncio
    async def test_connect_is_idempotent_and_close_releases(self, backends):
        client = CatalogClient(backends.addresses["catalog"])
        assert client.state() == "closed"

        client.connect()
        channel = client._channel
        client.connect()

        assert client._channel is channel
        assert client.state() in {"idle", "connecting", "ready"}

        await client.close()
        assert client.state() == "closed"
        assert not client.connected

    @pytest.mark.asyncio
    async def test_invoke_opens_channel_on_first_use(self, backends):
        client = CatalogClient(backends.addresses["catalog"], timeout=5)
        try:
            outcome = await client.list_products()
            assert client.connected
        finally:
            await client.close()

        assert isinstance(outcome, Success)


class TestObservability:
    """Calls are counted per backend, procedure and outcome."""

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, backends, metrics):
        client = ShippingClient(backends.addresses["shipping"], timeout=5, metrics=metrics)
        failing = ShippingClient("127.0.0.1:1", timeout=5, metrics=metrics)
        try:
            await client.get_shipping_rate("01001000")
            await failing.get_shipping_rate("01001000")
        finally:
            await client.close()
            await failing.close()

        labels = {"backend": "shipping", "procedure": "GetShippingRate"}
        assert metrics.registry.get_sample_value(
            "rpc_calls_total", {**labels, "outcome": "success"}) == 1.0
        assert metrics.registry.get_sample_value(
            "rpc_calls_total", {**labels, "outcome": "failure"}) == 1.0


class TestDecoding:
    """Responses from a newer schema still decode."""

    def test_unknown_response_fields_are_ignored(self):
        response_class = SHIPPING_SERVICE.procedure("GetShippingRate").response_class
        # Field 9 (varint) does not exist in this schema version
        wire = ShippingRate(value=42.5).SerializeToString() + b"\x48\x01"
        adapter = RpcClientAdapter(SHIPPING_SERVICE, "127.0.0.1:1")

        assert adapter._decode(response_class.FromString(wire)) == Success({"value": 42.5})
