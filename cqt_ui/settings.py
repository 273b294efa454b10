"""Validated runtime settings for the explorer."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from cqt_common.config.env import parse_csv_env
from cqt_common.errors import ConfigurationError
from cqt_source.protocols import DEFAULT_PORT, DEFAULT_ROW_LIMIT, Credentials

DEFAULT_ADDRESS = f"localhost:{DEFAULT_PORT}"


class KeyBindingsConfig(BaseModel):
    """Key names use prompt_toolkit spelling ("c-c", "pageup", "enter")."""

    quit: list[str] = Field(default_factory=lambda: ["q", "c-c"])
    search: list[str] = Field(default_factory=lambda: ["/"])
    enter: list[str] = Field(default_factory=lambda: ["enter"])
    scan: list[str] = Field(default_factory=lambda: ["r"])
    help: list[str] = Field(default_factory=lambda: ["?"])
    up: list[str] = Field(default_factory=lambda: ["up", "k"])
    down: list[str] = Field(default_factory=lambda: ["down", "j"])
    page_up: list[str] = Field(default_factory=lambda: ["pageup"])
    page_down: list[str] = Field(default_factory=lambda: ["pagedown"])
    home: list[str] = Field(default_factory=lambda: ["home"])
    end: list[str] = Field(default_factory=lambda: ["end"])
    details_up: list[str] = Field(default_factory=lambda: ["K", "s-up"])
    details_down: list[str] = Field(default_factory=lambda: ["J", "s-down"])
    submit: list[str] = Field(default_factory=lambda: ["enter"])
    cancel: list[str] = Field(default_factory=lambda: ["escape"])
    backspace: list[str] = Field(default_factory=lambda: ["backspace", "c-h"])

    def matches(self, binding: str, key: str) -> bool:
        return key in getattr(self, binding)

    def label(self, binding: str) -> str:
        return "/".join(getattr(self, binding))


class ExplorerSettings(BaseModel):
    hosts: list[str] = Field(default_factory=lambda: ["localhost"])
    port: int = DEFAULT_PORT
    keyspace: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    pretty_json: bool = True
    row_limit: int = Field(default=DEFAULT_ROW_LIMIT, gt=0)
    keys: KeyBindingsConfig = Field(default_factory=KeyBindingsConfig)

    @field_validator("keyspace", "username", "password")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_credentials(self) -> "ExplorerSettings":
        if (self.username is None) != (self.password is None):
            raise ValueError("username and password must be provided together")
        if not self.hosts:
            raise ValueError("at least one node address is required")
        return self

    @property
    def credentials(self) -> Credentials | None:
        if self.username is None or self.password is None:
            return None
        return Credentials(self.username, self.password)

    @classmethod
    def from_cli(
        cls,
        *,
        address: str,
        keyspace: str | None = None,
        username: str | None = None,
        password: str | None = None,
        pretty_json: bool = True,
        row_limit: int = DEFAULT_ROW_LIMIT,
    ) -> "ExplorerSettings":
        """Build settings from raw flag values, raising ConfigurationError."""
        hosts, port = parse_addresses(address)
        try:
            return cls(
                hosts=hosts,
                port=port,
                keyspace=keyspace,
                username=username,
                password=password,
                pretty_json=pretty_json,
                row_limit=row_limit,
            )
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            raise ConfigurationError(
                f"Invalid settings: {messages}", cause=exc
            ) from exc


def parse_addresses(address: str) -> tuple[list[str], int]:
    """Split "host[:port],host[:port]" into hosts and the single shared port.

    IPv6 hosts are given bare ("fe80::1") or bracketed with a port
    ("[fe80::1]:9042"). The driver takes one port for all contact points, so
    mixed ports are rejected.
    """
    tokens = parse_csv_env(address) or [DEFAULT_ADDRESS]
    hosts: list[str] = []
    ports: set[int] = set()
    for token in tokens:
        host, raw_port = _split_host_port(token)
        hosts.append(host)
        if raw_port is None:
            continue
        try:
            ports.add(int(raw_port))
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid port in address {token!r}", context={"address": token}
            ) from exc
    if len(ports) > 1:
        raise ConfigurationError(
            "All node addresses must use the same port",
            context={"address": address},
        )
    return hosts, ports.pop() if ports else DEFAULT_PORT


def _split_host_port(token: str) -> tuple[str, str | None]:
    if token.startswith("["):
        host, closed, rest = token[1:].partition("]")
        if not closed or not host or (rest and not rest.startswith(":")):
            raise ConfigurationError(
                f"Invalid address {token!r}", context={"address": token}
            )
        return host, rest[1:] if rest else None
    if token.count(":") > 1:
        return token, None
    host, sep, raw_port = token.partition(":")
    return (host, raw_port) if sep else (token, None)
