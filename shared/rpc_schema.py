"""
Runtime protobuf schema for the storefront backend RPC services.

The ``.proto`` files under ``shared/protos`` are the only definition of the
wire contract. They are compiled with ``grpc_tools.protoc`` into a descriptor
set when this module is imported and loaded into a private descriptor pool,
so the gateway and the mock backends share message classes without
checked-in generated modules. Field numbers are part of the contract: add
new fields with new numbers, never renumber.
"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Type, Union

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message
from grpc_tools import protoc

PROTO_ROOT = Path(__file__).resolve().parent / "protos"

PROTO_FILES = (
    "storefront/catalog/v1/catalog.proto",
    "storefront/shipping/v1/shipping.proto",
    "storefront/reviews/v1/reviews.proto",
)


class SchemaCompileError(RuntimeError):
    """protoc rejected one of the schema files."""


@dataclass(frozen=True)
class Procedure:
    """One unary remote procedure of a backend service."""

    name: str
    path: str
    request_class: Type[Message]
    response_class: Type[Message]


@dataclass(frozen=True)
class ServiceSchema:
    """Procedures exposed by one backend service."""

    backend: str
    full_name: str
    procedures: Dict[str, Procedure] = field(default_factory=dict)

    def procedure(self, name: str) -> Procedure:
        try:
            return self.procedures[name]
        except KeyError:
            raise KeyError(f"{self.full_name} has no procedure {name!r}") from None


def compile_descriptors(
    proto_root: Union[str, Path] = PROTO_ROOT,
    files: Iterable[str] = PROTO_FILES,
) -> descriptor_pb2.FileDescriptorSet:
    """Compile ``files`` (relative to ``proto_root``) into a descriptor set."""
    proto_root = Path(proto_root).resolve()
    with tempfile.TemporaryDirectory() as workdir:
        output = Path(workdir) / "schema.pb"
        code = protoc.main([
            "grpc_tools.protoc",
            f"--proto_path={proto_root}",
            f"--descriptor_set_out={output}",
            "--include_imports",
            *(str(proto_root / name) for name in files),
        ])
        if code != 0:
            raise SchemaCompileError(f"protoc returned {code} for {proto_root}")
        return descriptor_pb2.FileDescriptorSet.FromString(output.read_bytes())


def build_pool(descriptor_set: descriptor_pb2.FileDescriptorSet) -> descriptor_pool.DescriptorPool:
    pool = descriptor_pool.DescriptorPool()
    for file_proto in descriptor_set.file:
        pool.AddSerializedFile(file_proto.SerializeToString())
    return pool


def service_schema(pool: descriptor_pool.DescriptorPool, backend: str, full_name: str) -> ServiceSchema:
    """Describe the service ``full_name`` found in ``pool``."""
    service = pool.FindServiceByName(full_name)
    procedures = {}
    for method in service.methods:
        procedures[method.name] = Procedure(
            name=method.name,
            path=f"/{full_name}/{method.name}",
            request_class=message_factory.GetMessageClass(method.input_type),
            response_class=message_factory.GetMessageClass(method.output_type),
        )
    return ServiceSchema(backend=backend, full_name=full_name, procedures=procedures)


_pool = build_pool(compile_descriptors())

CATALOG_SERVICE = service_schema(_pool, "catalog", "storefront.catalog.v1.CatalogService")
SHIPPING_SERVICE = service_schema(_pool, "shipping", "storefront.shipping.v1.ShippingService")
REVIEW_SERVICE = service_schema(_pool, "review", "storefront.reviews.v1.ReviewService")


def message_class(full_name: str) -> Type[Message]:
    """Look up a message class by its fully qualified protobuf name."""
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(full_name))
