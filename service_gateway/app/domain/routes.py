"""
Route table for the storefront gateway.

Each ``Route`` names the HTTP method and path it answers, the rule that turns
the request into validated parameters, the backend call(s) to make with them
and how a successful payload is shaped for the client. The table is built
once at import time and never mutated.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from shared.errors import InvalidParameter

from .outcome import MergeRule, Outcome
from .translator import SuccessShape, unwrap

INT32_MAX = 2 ** 31 - 1

_POSTAL_CODE = re.compile(r"([0-9]{5})-?([0-9]{3})")
_POSITIVE_INT = re.compile(r"[0-9]+")
_TRAILING_PARAM = re.compile(r"/\{[^/{}]+\}$")


@dataclass
class RequestContext:
    """Per-request state, discarded once the response is written."""

    route: str
    path_params: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    params: Dict[str, Any] = field(default_factory=dict)
    outcome: Optional[Outcome] = None


ParameterRule = Callable[[RequestContext], Dict[str, Any]]
ArgumentRule = Callable[[Dict[str, Any]], Dict[str, Any]]


def no_params(context: RequestContext) -> Dict[str, Any]:
    return {}


def no_arguments(params: Dict[str, Any]) -> Dict[str, Any]:
    return {}


def _path_value(context: RequestContext, name: str) -> str:
    value = context.path_params.get(name)
    if not value:
        raise InvalidParameter(name, "missing")
    return value


def parse_postal_code(value: str) -> str:
    """Normalize ``01001000`` or ``01001-000`` to eight digits."""
    match = _POSTAL_CODE.fullmatch(value)
    if not match:
        raise InvalidParameter("postal_code", "expected eight digits")
    return match.group(1) + match.group(2)


def parse_product_id(value: str) -> int:
    if not _POSITIVE_INT.fullmatch(value):
        raise InvalidParameter("product_id", "expected a positive integer")
    product_id = int(value)
    if product_id < 1 or product_id > INT32_MAX:
        raise InvalidParameter("product_id", "out of range")
    return product_id


def postal_code_param(context: RequestContext) -> Dict[str, Any]:
    return {"postal_code": parse_postal_code(_path_value(context, "postal_code"))}


def product_id_param(context: RequestContext) -> Dict[str, Any]:
    return {"product_id": parse_product_id(_path_value(context, "product_id"))}


def _utf8_text(value: str, name: str) -> str:
    """Strings reaching a backend must encode as UTF-8 (no lone surrogates)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidParameter(name, "not valid UTF-8") from exc
    return value


def review_submission_params(context: RequestContext) -> Dict[str, Any]:
    """Product id from the path plus ``text`` (and optional ``author``) from the body."""
    params = product_id_param(context)
    body = context.body
    if not isinstance(body, dict):
        raise InvalidParameter("body", "expected a JSON object")

    text = body.get("text")
    if not isinstance(text, str) or not text.strip():
        raise InvalidParameter("text", "expected a non-empty string")
    params["text"] = _utf8_text(text, "text")

    author = body.get("author")
    if author is not None:
        if not isinstance(author, str):
            raise InvalidParameter("author", "expected a string")
        params["author"] = _utf8_text(author, "author")
    return params


@dataclass(frozen=True)
class BackendCall:
    """One adapter operation a route performs.

    ``operation`` names a coroutine method on the backend's adapter;
    ``arguments`` maps validated parameters to its keyword arguments.
    """

    backend: str
    operation: str
    arguments: ArgumentRule = no_arguments


@dataclass(frozen=True)
class Route:
    name: str
    method: str
    path: str
    calls: Tuple[BackendCall, ...]
    params: ParameterRule = no_params
    shape: Optional[SuccessShape] = None
    merge: Optional[MergeRule] = None
    tolerate_partial: bool = False
    reads_body: bool = False

    def __post_init__(self):
        if not self.calls:
            raise ValueError(f"route {self.name} has no backend calls")

    @property
    def bare_path(self) -> Optional[str]:
        """Path with its trailing parameter segment removed, if it has one.

        Requests to the bare path reach the route with the parameter missing
        so validation can answer 400 instead of the router answering 404.
        """
        if not _TRAILING_PARAM.search(self.path):
            return None
        return _TRAILING_PARAM.sub("", self.path) or "/"

    @property
    def missing_parameter_paths(self) -> Tuple[str, ...]:
        """Bare path with and without a trailing slash.

        Both are registered explicitly so neither is answered with a slash
        redirect.
        """
        bare = self.bare_path
        if bare is None:
            return ()
        if bare == "/":
            return (bare,)
        return (bare, bare + "/")


def _postal_code_argument(params: Dict[str, Any]) -> Dict[str, Any]:
    return {"postal_code": params["postal_code"]}


def _product_id_argument(params: Dict[str, Any]) -> Dict[str, Any]:
    return {"product_id": params["product_id"]}


def _review_arguments(params: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "product_id": params["product_id"],
        "text": params["text"],
        "author": params.get("author"),
    }


ROUTES: Tuple[Route, ...] = (
    Route(
        name="list_products",
        method="GET",
        path="/products",
        calls=(BackendCall("catalog", "list_products"),),
        shape=unwrap("products", []),
    ),
    Route(
        name="get_shipping_quote",
        method="GET",
        path="/shipping/{postal_code}",
        calls=(BackendCall("shipping", "get_shipping_rate", _postal_code_argument),),
        params=postal_code_param,
    ),
    Route(
        name="list_reviews",
        method="GET",
        path="/reviews/{product_id}",
        calls=(BackendCall("review", "list_reviews", _product_id_argument),),
        params=product_id_param,
        shape=unwrap("reviews", []),
    ),
    Route(
        name="create_review",
        method="POST",
        path="/reviews/{product_id}",
        calls=(BackendCall("review", "create_review", _review_arguments),),
        params=review_submission_params,
        reads_body=True,
    ),
)
