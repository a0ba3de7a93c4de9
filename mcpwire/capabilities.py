"""Result and parameter types exchanged during initialisation and tool calls."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from mcpwire.messages import MessageFormatError


def _mapping(data: Any, owner: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise MessageFormatError(f"{owner}: expected an object, got {type(data).__name__}")
    return data


def _opt_bool(obj: Mapping, key: str, owner: str) -> bool | None:
    value = obj.get(key)
    if value is None or isinstance(value, bool):
        return value
    raise MessageFormatError(f"field {key} in {owner}: expected a boolean, got {value!r}")


def _opt_str(obj: Mapping, key: str, owner: str) -> str | None:
    value = obj.get(key)
    if value is None or isinstance(value, str):
        return value
    raise MessageFormatError(f"field {key} in {owner}: expected a string, got {value!r}")


def _opt_map(obj: Mapping, key: str, owner: str) -> dict:
    value = obj.get(key)
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    raise MessageFormatError(f"field {key} in {owner}: expected an object, got {value!r}")


@dataclass
class ServerCapabilitiesPrompts:
    """Present if the server offers prompt templates."""

    list_changed: bool | None = None

    def _to_dict(self) -> dict:
        return {} if self.list_changed is None else {"listChanged": self.list_changed}

    @classmethod
    def _from_mapping(cls, data: Any) -> ServerCapabilitiesPrompts:
        obj = _mapping(data, "prompts")
        return cls(list_changed=_opt_bool(obj, "listChanged", "prompts"))


@dataclass
class ServerCapabilitiesResources:
    """Present if the server offers resources to read."""

    list_changed: bool | None = None
    subscribe: bool | None = None

    def _to_dict(self) -> dict:
        out: dict[str, Any] = {}
        if self.list_changed is not None:
            out["listChanged"] = self.list_changed
        if self.subscribe is not None:
            out["subscribe"] = self.subscribe
        return out

    @classmethod
    def _from_mapping(cls, data: Any) -> ServerCapabilitiesResources:
        obj = _mapping(data, "resources")
        return cls(
            list_changed=_opt_bool(obj, "listChanged", "resources"),
            subscribe=_opt_bool(obj, "subscribe", "resources"),
        )


@dataclass
class ServerCapabilitiesTools:
    """Present if the server offers tools to call."""

    list_changed: bool | None = None

    def _to_dict(self) -> dict:
        return {} if self.list_changed is None else {"listChanged": self.list_changed}

    @classmethod
    def _from_mapping(cls, data: Any) -> ServerCapabilitiesTools:
        obj = _mapping(data, "tools")
        return cls(list_changed=_opt_bool(obj, "listChanged", "tools"))


@dataclass
class ServerCapabilities:
    """Capabilities a server may support; empty and absent parts are omitted."""

    experimental: dict[str, dict[str, Any]] = field(default_factory=dict)
    logging: dict[str, Any] = field(default_factory=dict)
    prompts: ServerCapabilitiesPrompts | None = None
    resources: ServerCapabilitiesResources | None = None
    tools: ServerCapabilitiesTools | None = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        if self.experimental:
            out["experimental"] = {name: dict(value) for name, value in self.experimental.items()}
        if self.logging:
            out["logging"] = dict(self.logging)
        if self.prompts is not None:
            out["prompts"] = self.prompts._to_dict()
        if self.resources is not None:
            out["resources"] = self.resources._to_dict()
        if self.tools is not None:
            out["tools"] = self.tools._to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> ServerCapabilities:
        owner = "ServerCapabilities"
        obj = _mapping(data, owner)
        experimental = _opt_map(obj, "experimental", owner)
        for name, value in experimental.items():
            if not isinstance(value, Mapping):
                raise MessageFormatError(
                    f"field experimental.{name} in {owner}: expected an object, got {value!r}"
                )
        prompts = obj.get("prompts")
        resources = obj.get("resources")
        tools = obj.get("tools")
        return cls(
            experimental={name: dict(value) for name, value in experimental.items()},
            logging=_opt_map(obj, "logging", owner),
            prompts=None if prompts is None else ServerCapabilitiesPrompts._from_mapping(prompts),
            resources=(
                None if resources is None else ServerCapabilitiesResources._from_mapping(resources)
            ),
            tools=None if tools is None else ServerCapabilitiesTools._from_mapping(tools),
        )


@dataclass
class Implementation:
    """The name and version of an implementation."""

    name: str
    version: str

    def to_dict(self) -> dict:
        return {"name": self.name, "version": self.version}

    @classmethod
    def from_dict(cls, data: Any) -> Implementation:
        owner = "implementation"
        if data is None:
            return cls(name="", version="")
        obj = _mapping(data, owner)
        for key in ("name", "version"):
            if key not in obj:
                raise MessageFormatError(f"field {key} in {owner}: required")
        name = _opt_str(obj, "name", owner)
        version = _opt_str(obj, "version", owner)
        return cls(name=name or "", version=version or "")


@dataclass
class InitializeResponse:
    """The result a server sends back for an initialize request."""

    capabilities: ServerCapabilities
    protocol_version: str
    server_info: Implementation
    instructions: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        if self.meta:
            out["_meta"] = dict(self.meta)
        out["capabilities"] = self.capabilities.to_dict()
        if self.instructions is not None:
            out["instructions"] = self.instructions
        out["protocolVersion"] = self.protocol_version
        out["serverInfo"] = self.server_info.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> InitializeResponse:
        owner = "initializeResult"
        obj = _mapping(data, owner)
        for key in ("capabilities", "protocolVersion", "serverInfo"):
            if key not in obj:
                raise MessageFormatError(f"field {key} in {owner}: required")
        capabilities = obj["capabilities"]
        return cls(
            capabilities=(
                ServerCapabilities() if capabilities is None
                else ServerCapabilities.from_dict(capabilities)
            ),
            protocol_version=_opt_str(obj, "protocolVersion", owner) or "",
            server_info=Implementation.from_dict(obj["serverInfo"]),
            instructions=_opt_str(obj, "instructions", owner),
            meta=_opt_map(obj, "_meta", owner),
        )


@dataclass
class CallToolRequestParams:
    """Parameters of a tools/call request; ``arguments`` stays as decoded JSON."""

    name: str = ""
    arguments: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> CallToolRequestParams:
        owner = "CallToolRequestParams"
        obj = _mapping(data, owner)
        return cls(name=_opt_str(obj, "name", owner) or "", arguments=obj.get("arguments"))


@dataclass
class ToolDefinition:
    """A tool the client can call, with the JSON Schema of its parameters."""

    name: str
    input_schema: Any = None
    description: str | None = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        if self.description is not None:
            out["description"] = self.description
        out["inputSchema"] = self.input_schema
        out["name"] = self.name
        return out


@dataclass
class ToolsResponse:
    """A page of tool definitions, with a cursor when more remain."""

    tools: list[ToolDefinition] = field(default_factory=list)
    next_cursor: str | None = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"tools": [tool.to_dict() for tool in self.tools]}
        if self.next_cursor is not None:
            out["nextCursor"] = self.next_cursor
        return out