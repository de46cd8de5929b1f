"""
Generic gRPC client adapter for storefront backends.
"""

import time
from typing import Any, Dict, Optional

import grpc
from google.protobuf import json_format
from google.protobuf.message import DecodeError, EncodeError, Message

from shared.errors import BackendApplicationError, BackendUnavailable, GatewayError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.rpc_schema import Procedure, ServiceSchema

from ..domain.outcome import Failure, Outcome, Success

# Status codes that mean the backend was never reached or never answered.
TRANSPORT_STATUS_CODES = frozenset({
    grpc.StatusCode.UNAVAILABLE,
    grpc.StatusCode.DEADLINE_EXCEEDED,
    grpc.StatusCode.CANCELLED,
})


class RpcClientAdapter:
    """Expose the procedures of one backend as awaitable outcome calls.

    One adapter owns one long-lived ``grpc.aio`` channel. The channel
    multiplexes concurrent calls, so ``invoke`` takes no lock.
    """

    def __init__(
        self,
        schema: ServiceSchema,
        address: str,
        timeout: Optional[float] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.schema = schema
        self.backend = schema.backend
        self.address = address
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger(f"gateway.{self.backend}_client")
        self._channel: Optional[grpc.aio.Channel] = None
        self._stubs: Dict[str, grpc.aio.UnaryUnaryMultiCallable] = {}

    @property
    def connected(self) -> bool:
        return self._channel is not None

    def connect(self) -> None:
        """Open the channel. Safe to call more than once."""
        if self._channel is not None:
            return
        self._channel = grpc.aio.insecure_channel(self.address)
        self._stubs = {
            name: self._channel.unary_unary(
                procedure.path,
                request_serializer=procedure.request_class.SerializeToString,
                response_deserializer=procedure.response_class.FromString,
            )
            for name, procedure in self.schema.procedures.items()
        }
        self.logger.info("RPC channel opened", backend=self.backend, address=self.address)

    async def close(self) -> None:
        if self._channel is None:
            return
        channel, self._channel = self._channel, None
        self._stubs = {}
        await channel.close()
        self.logger.info("RPC channel closed", backend=self.backend)

    def state(self) -> str:
        """Channel connectivity, for health reporting."""
        if self._channel is None:
            return "closed"
        return self._channel.get_state(try_to_connect=False).name.lower()

    async def invoke(self, procedure: str, payload: Optional[Dict[str, Any]] = None) -> Outcome:
        """Call ``procedure`` with ``payload`` and return its outcome.

        Unknown procedure names raise ``KeyError``; everything that can go
        wrong on the backend side comes back as ``Failure``.
        """
        definition = self.schema.procedure(procedure)
        if self._channel is None:
            self.connect()

        start_time = time.perf_counter()
        outcome = await self._call(definition, payload or {})
        duration = time.perf_counter() - start_time

        if isinstance(outcome, Success):
            self.logger.debug(
                "RPC call succeeded",
                backend=self.backend,
                procedure=procedure,
                duration_ms=round(duration * 1000, 2),
            )
        else:
            self.logger.error(
                "RPC call failed",
                backend=self.backend,
                procedure=procedure,
                code=outcome.cause.code if outcome.cause else None,
                reason=outcome.reason,
                duration_ms=round(duration * 1000, 2),
            )
        if self.metrics is not None:
            self.metrics.record_rpc_call(
                self.backend,
                procedure,
                "success" if outcome.ok else "failure",
                duration,
            )
        return outcome

    async def _call(self, procedure: Procedure, payload: Dict[str, Any]) -> Outcome:
        try:
            request = json_format.ParseDict(
                payload, procedure.request_class(), ignore_unknown_fields=True
            )
        except json_format.ParseError as exc:
            return self._failure(BackendApplicationError(self.backend, f"request encoding failed: {exc}"))

        stub = self._stubs[procedure.name]
        try:
            response = await stub(request, timeout=self.timeout)
        except grpc.aio.AioRpcError as exc:
            message = f"{exc.code().name}: {exc.details()}"
            if exc.code() in TRANSPORT_STATUS_CODES:
                return self._failure(BackendUnavailable(self.backend, message))
            return self._failure(BackendApplicationError(self.backend, message))
        except (grpc.RpcError, grpc.aio.UsageError) as exc:
            return self._failure(BackendUnavailable(self.backend, f"transport error: {exc}"))
        except (DecodeError, EncodeError) as exc:
            return self._failure(BackendApplicationError(self.backend, f"protocol error: {exc}"))

        return self._decode(response)

    def _decode(self, response: Message) -> Outcome:
        try:
            return Success(
                json_format.MessageToDict(
                    response,
                    preserving_proto_field_name=True,
                    always_print_fields_with_no_presence=True,
                )
            )
        except json_format.SerializeToJsonError as exc:
            return self._failure(BackendApplicationError(self.backend, f"response decoding failed: {exc}"))

    @staticmethod
    def _failure(error: GatewayError) -> Failure:
        return Failure(error.message, cause=error)
