"""gRPC server.

Run via: python -m condoauth.entrypoints.grpc.server
"""

import asyncio
import json
import signal
from typing import Any

import grpc
import structlog

from condoauth.bootstrap import Services, build_services
from condoauth.config import Settings
from condoauth.entrypoints.grpc.auth import GrpcAccessAdapter
from condoauth.entrypoints.grpc.services import (
    PermissionsServicer,
    PoolsServicer,
    SessionContextServicer,
)

logger = structlog.get_logger()

SERVICE_PREFIX = "condoauth.v1"


def decode_message(data: bytes) -> dict[str, Any]:
    """Deserialize a JSON request message. An empty payload is an empty message."""
    if not data:
        return {}
    message = json.loads(data)
    if not isinstance(message, dict):
        raise ValueError("Request message must be a JSON object")
    return message


def encode_message(message: dict[str, Any]) -> bytes:
    """Serialize a JSON response message."""
    return json.dumps(message).encode("utf-8")


def _unary(method: Any) -> grpc.RpcMethodHandler:
    return grpc.unary_unary_rpc_method_handler(
        method,
        request_deserializer=decode_message,
        response_serializer=encode_message,
    )


def build_handlers(services: Services) -> list[grpc.GenericRpcHandler]:
    """Build the generic handlers for every service."""
    access = GrpcAccessAdapter(services.engine)
    session = SessionContextServicer(access)
    permissions = PermissionsServicer(access)
    pools = PoolsServicer(access, services.admin)
    return [
        grpc.method_handlers_generic_handler(
            f"{SERVICE_PREFIX}.SessionContext",
            {"GetSessionContext": _unary(session.GetSessionContext)},
        ),
        grpc.method_handlers_generic_handler(
            f"{SERVICE_PREFIX}.Permissions",
            {"Check": _unary(permissions.Check)},
        ),
        grpc.method_handlers_generic_handler(
            f"{SERVICE_PREFIX}.Pools",
            {"SetPoolActive": _unary(pools.SetPoolActive)},
        ),
    ]


def create_server(services: Services, port: int) -> grpc.aio.Server:
    """Create a server bound to the given port, not yet started."""
    server = grpc.aio.server()
    server.add_generic_rpc_handlers(build_handlers(services))
    server.add_insecure_port(f"[::]:{port}")
    logger.info("grpc_server_bound", port=port)
    return server


async def serve() -> None:
    """Run the gRPC server until SIGINT or SIGTERM."""
    settings = Settings()
    services = await build_services(settings)
    server = create_server(services, settings.grpc_port)
    await server.start()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        await server.stop(grace=5)
        await services.close()
        logger.info("grpc_server_stopped")


if __name__ == "__main__":
    asyncio.run(serve())
