"""
Transport surfaces for the key service (HTTP and gRPC).
"""

from .http_app import HTTP_STATUS, create_app
from .grpc_server import (
    SERVICE_NAME,
    KeyServiceServicer,
    build_generic_handler,
    create_grpc_server,
)

__all__ = [
    "HTTP_STATUS",
    "create_app",
    "SERVICE_NAME",
    "KeyServiceServicer",
    "build_generic_handler",
    "create_grpc_server",
]
