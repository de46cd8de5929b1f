"""
Gateway router: HTTP request → validated parameters → backend call(s) →
translated response.
"""

import asyncio
import json
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.errors import InvalidParameter
from shared.logging import get_logger

from .outcome import Outcome, combine_outcomes
from .routes import ROUTES, BackendCall, RequestContext, Route
from .translator import error_body, translate


class GatewayRouter:
    """Owns the route table and dispatches requests to backend adapters.

    ``adapters`` maps backend names (``catalog``, ``shipping``, ``review``)
    to adapter objects. The router only holds references; adapters are
    shared by every request and never replaced after construction.
    """

    def __init__(self, adapters: Mapping[str, Any], routes: Sequence[Route] = ROUTES):
        self.adapters = MappingProxyType(dict(adapters))
        self.routes: Tuple[Route, ...] = tuple(routes)
        self.logger = get_logger("gateway.router")

        for route in self.routes:
            for call in route.calls:
                if call.backend not in self.adapters:
                    raise ValueError(f"route {route.name} uses unknown backend {call.backend!r}")

    def mount(self, app: FastAPI) -> None:
        """Register every route on ``app``."""
        for route in self.routes:
            endpoint = self._endpoint(route)
            app.add_api_route(route.path, endpoint, methods=[route.method], name=route.name)
            for path in route.missing_parameter_paths:
                app.add_api_route(
                    path,
                    endpoint,
                    methods=[route.method],
                    name=f"{route.name}_missing_parameter",
                    include_in_schema=False,
                )
            self.logger.debug("Route registered", route=route.name, method=route.method, path=route.path)

    def _endpoint(self, route: Route):
        async def endpoint(request: Request) -> JSONResponse:
            status_code, body = await self.handle(route, request)
            return JSONResponse(status_code=status_code, content=body)

        endpoint.__name__ = route.name
        return endpoint

    async def handle(self, route: Route, request: Request) -> Tuple[int, Any]:
        context = RequestContext(
            route=route.name,
            path_params=dict(request.path_params),
        )
        try:
            if route.reads_body:
                context.body = await self._read_json(request)
            context.params = route.params(context)
        except InvalidParameter as exc:
            self.logger.info(
                "Request rejected",
                route=route.name,
                parameter=exc.parameter,
                reason=exc.message,
            )
            return 400, error_body(400)

        context.outcome = await self.dispatch(route, context.params)
        return translate(context.outcome, route.shape)

    async def dispatch(self, route: Route, params: dict) -> Outcome:
        """Run the route's backend calls concurrently and fold their outcomes."""
        outcomes = await asyncio.gather(*(self._invoke(call, params) for call in route.calls))
        return combine_outcomes(outcomes, route.merge, route.tolerate_partial)

    async def _invoke(self, call: BackendCall, params: dict) -> Outcome:
        operation = getattr(self.adapters[call.backend], call.operation)
        return await operation(**call.arguments(params))

    @staticmethod
    async def _read_json(request: Request) -> Optional[Any]:
        raw = await request.body()
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            raise InvalidParameter("body", "malformed JSON") from exc
