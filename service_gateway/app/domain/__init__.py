"""
Domain layer for the Gateway Service.

Holds the transport-independent request pipeline: outcomes, the route
table, the response translator and the router that ties them together.
"""

from .outcome import Failure, Outcome, Success, combine_outcomes
from .router import GatewayRouter
from .routes import ROUTES, BackendCall, RequestContext, Route
from .translator import error_body, translate, unwrap

__all__ = [
    "Failure",
    "Outcome",
    "Success",
    "combine_outcomes",
    "GatewayRouter",
    "ROUTES",
    "BackendCall",
    "RequestContext",
    "Route",
    "error_body",
    "translate",
    "unwrap",
]
