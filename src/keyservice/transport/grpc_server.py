# Copyright (c) Key-Service Contributors. All rights reserved.
# Licensed under the MIT License.
"""gRPC surface for the key service.

Exposes ``key.v1.KeyService`` with protobuf-style message schemas defined
as Python dataclasses (no protobuf compilation required). Messages travel
as UTF-8 JSON.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Awaitable, Callable, Optional, get_origin, get_type_hints

import grpc
from grpc import aio as grpc_aio

from keyservice.constants import PrincipalType, Status
from keyservice.observability.metrics import KeyServiceMetrics
from keyservice.services.credential_service import CredentialService, KeyResult

logger = logging.getLogger(__name__)

SERVICE_NAME = "key.v1.KeyService"


# ---------------------------------------------------------------------------
# Protobuf-style message schemas (pure Python dataclasses)
# ---------------------------------------------------------------------------


@dataclass
class AgentRequest:
    """Create or fetch keys for an agent owned by a company."""

    company_id: str = ""
    service_key: str = ""


@dataclass
class HooksRequest:
    """Create or fetch keys for a company's hooks integration."""

    company_id: str = ""
    service_key: str = ""


@dataclass
class UserRequest:
    """Create keys for a user."""

    user_id: str = ""
    service_key: str = ""


@dataclass
class ValidateSystemKeyRequest:
    """Validate an agent or hooks key/secret pair."""

    company_id: str = ""
    key: str = ""
    secret: str = ""
    service_key: str = ""


@dataclass
class ValidateUserKeyRequest:
    """Validate a user key/secret pair."""

    user_id: str = ""
    key: str = ""
    secret: str = ""
    service_key: str = ""


@dataclass
class KeyResponse:
    status: str = Status.OK.value
    key: str = ""
    secret: str = ""


@dataclass
class ValidKeyResponse:
    valid: bool = False
    status: str = Status.OK.value


@dataclass
class MultipleHooksResponse:
    status: str = Status.OK.value
    keys: list[KeyResponse] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def encode_message(message: Any) -> bytes:
    """Serialise a message dataclass to JSON bytes."""
    return json.dumps(asdict(message)).encode("utf-8")


def message_decoder(cls: type) -> Callable[[bytes], Any]:
    """Build a deserialiser for *cls*.

    Unknown fields are ignored. Fields whose JSON value does not match the
    declared type are dropped, and a payload that is not a JSON object
    decodes to an empty message, so malformed input reaches the servicer
    as missing values and is answered with a status.
    """
    hints = get_type_hints(cls)
    expected = {f.name: get_origin(hints[f.name]) or hints[f.name] for f in fields(cls)}

    def decode(raw: bytes) -> Any:
        try:
            data = json.loads(raw.decode("utf-8")) if raw else {}
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Undecodable %s payload", cls.__name__)
            return cls()
        if not isinstance(data, dict):
            logger.warning("%s payload is not a JSON object", cls.__name__)
            return cls()
        values = {}
        for name, value in data.items():
            if name not in expected:
                continue
            if not isinstance(value, expected[name]):
                logger.warning("Dropping %s.%s of type %s", cls.__name__, name, type(value).__name__)
                continue
            values[name] = value
        return cls(**values)

    return decode


def _key_response(result: KeyResult) -> KeyResponse:
    return KeyResponse(status=result.status.value, key=result.key, secret=result.secret)


# ---------------------------------------------------------------------------
# Servicer
# ---------------------------------------------------------------------------


class KeyServiceServicer:
    """RPC handlers delegating to a :class:`CredentialService`.

    Expected outcomes (missing or invalid input, not found) and internal
    failures are both reported in the response ``status``; no handler
    aborts the call.

    Args:
        service: The credential service to delegate to.
    """

    def __init__(self, service: CredentialService) -> None:
        self._service = service

    # -- Agent -----------------------------------------------------------------

    async def CreateAgentKeys(self, request: AgentRequest, context: Any) -> KeyResponse:
        result = await self._service.create_keys(
            PrincipalType.AGENT, request.company_id, request.service_key
        )
        return _key_response(result)

    async def GetAgentKeys(self, request: AgentRequest, context: Any) -> KeyResponse:
        result = await self._service.get_keys(
            PrincipalType.AGENT, request.company_id, request.service_key
        )
        return _key_response(result)

    async def ValidateAgentKey(
        self, request: ValidateSystemKeyRequest, context: Any
    ) -> ValidKeyResponse:
        result = await self._service.validate_keys(
            PrincipalType.AGENT,
            request.company_id,
            request.service_key,
            request.key,
            request.secret,
        )
        return ValidKeyResponse(valid=result.valid, status=result.status.value)

    # -- Hooks -----------------------------------------------------------------

    async def CreateHookKeys(self, request: HooksRequest, context: Any) -> KeyResponse:
        result = await self._service.create_keys(
            PrincipalType.HOOKS, request.company_id, request.service_key
        )
        return _key_response(result)

    async def GetHookKeys(self, request: HooksRequest, context: Any) -> KeyResponse:
        result = await self._service.get_keys(
            PrincipalType.HOOKS, request.company_id, request.service_key
        )
        return _key_response(result)

    async def GetHookKeysForCompany(
        self, request: HooksRequest, context: Any
    ) -> MultipleHooksResponse:
        # A company holds at most one hooks record.
        result = await self._service.get_keys(
            PrincipalType.HOOKS, request.company_id, request.service_key
        )
        if result.status == Status.NOT_FOUND:
            return MultipleHooksResponse()
        if not result.ok:
            return MultipleHooksResponse(status=result.status.value)
        return MultipleHooksResponse(keys=[_key_response(result)])

    async def ValidateHookKey(
        self, request: ValidateSystemKeyRequest, context: Any
    ) -> ValidKeyResponse:
        result = await self._service.validate_keys(
            PrincipalType.HOOKS,
            request.company_id,
            request.service_key,
            request.key,
            request.secret,
        )
        return ValidKeyResponse(valid=result.valid, status=result.status.value)

    # -- User ------------------------------------------------------------------

    async def CreateUserKeys(self, request: UserRequest, context: Any) -> KeyResponse:
        result = await self._service.create_keys(
            PrincipalType.USER, request.user_id, request.service_key
        )
        return _key_response(result)

    async def ValidateUserKeys(
        self, request: ValidateUserKeyRequest, context: Any
    ) -> ValidKeyResponse:
        result = await self._service.validate_keys(
            PrincipalType.USER,
            request.user_id,
            request.service_key,
            request.key,
            request.secret,
        )
        return ValidKeyResponse(valid=result.valid, status=result.status.value)


# Method name -> request message type.
RPC_METHODS: dict[str, type] = {
    "CreateAgentKeys": AgentRequest,
    "GetAgentKeys": AgentRequest,
    "ValidateAgentKey": ValidateSystemKeyRequest,
    "CreateHookKeys": HooksRequest,
    "GetHookKeys": HooksRequest,
    "GetHookKeysForCompany": HooksRequest,
    "ValidateHookKey": ValidateSystemKeyRequest,
    "CreateUserKeys": UserRequest,
    "ValidateUserKeys": ValidateUserKeyRequest,
}


def _timed(
    method: Callable[[Any, Any], Awaitable[Any]],
    name: str,
    metrics: Optional[KeyServiceMetrics],
) -> Callable[[Any, Any], Awaitable[Any]]:
    if metrics is None:
        return method

    async def handler(request: Any, context: Any) -> Any:
        started = time.perf_counter()
        try:
            return await method(request, context)
        finally:
            metrics.observe_request("grpc", name, time.perf_counter() - started)

    return handler


def build_generic_handler(
    servicer: KeyServiceServicer,
    metrics: Optional[KeyServiceMetrics] = None,
) -> grpc.GenericRpcHandler:
    """Register every RPC method of *servicer* under ``key.v1.KeyService``."""
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            _timed(getattr(servicer, name), name, metrics),
            request_deserializer=message_decoder(request_type),
            response_serializer=encode_message,
        )
        for name, request_type in RPC_METHODS.items()
    }
    return grpc.method_handlers_generic_handler(SERVICE_NAME, handlers)


def create_grpc_server(
    servicer: KeyServiceServicer,
    port: int,
    host: str = "[::]",
    metrics: Optional[KeyServiceMetrics] = None,
) -> grpc_aio.Server:
    """Create an asyncio gRPC server bound to *host*:*port* (not yet started)."""
    server = grpc_aio.server()
    server.add_generic_rpc_handlers((build_generic_handler(servicer, metrics),))
    bound = server.add_insecure_port(f"{host}:{port}")
    logger.info("Key gRPC server bound to %s:%d", host, bound)
    return server


__all__ = [
    "SERVICE_NAME",
    "AgentRequest",
    "HooksRequest",
    "UserRequest",
    "ValidateSystemKeyRequest",
    "ValidateUserKeyRequest",
    "KeyResponse",
    "ValidKeyResponse",
    "MultipleHooksResponse",
    "KeyServiceServicer",
    "RPC_METHODS",
    "build_generic_handler",
    "create_grpc_server",
    "encode_message",
    "message_decoder",
]
