"""
Adapters package for the Gateway Service.

Contains gRPC client wrappers for the storefront backends (catalog,
shipping, review). These adapters encapsulate:

- Backend addresses and the long-lived channel per backend
- Request encoding and response decoding against the shared schema
- Collapsing every backend failure into a ``Failure`` outcome

Adapters never retry. Keep them thin and side-effect free outside of
explicit calls.
"""

from .rpc_client import RpcClientAdapter
from .catalog_client import CatalogClient
from .shipping_client import ShippingClient
from .review_client import ReviewClient

__all__ = [
    "RpcClientAdapter",
    "CatalogClient",
    "ShippingClient",
    "ReviewClient",
]
