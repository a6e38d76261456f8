"""Loading of indicator connection settings from a CSV file."""

from __future__ import annotations

import re
from dataclasses import dataclass
from itertools import islice
from os import PathLike

MAX_CONNECTIONS = 30
DEFAULT_INDICATOR_IP = "127.0.0.1"
DEFAULT_INDICATOR_PORT = 5020
DEFAULT_UNIT_ID = 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class ConnectionConfig:
    """One indicator endpoint; plc_port 0 means it is assigned later."""

    indicator_ip: str
    indicator_port: int
    unit_id: int
    plc_port: int = 0


def _to_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _parse_line(line: str) -> ConnectionConfig:
    tokens = [token for token in line.split(",") if token]
    tokens += [""] * (3 - len(tokens))
    ip, port, unit = tokens[:3]
    return ConnectionConfig(ip, _to_int(port), _to_int(unit))


def load_connections(path: str | PathLike) -> list[ConnectionConfig]:
    """Read up to 30 connections from a CSV file whose first line is a header.

    Raises OSError if the file cannot be opened and ValueError if it holds no rows.
    """
    with open(path, encoding="utf-8", errors="replace") as handle:
        next(handle, None)
        lines = islice(handle, MAX_CONNECTIONS)
        connections = [_parse_line(line.rstrip("\r\n")) for line in lines]
    if not connections:
        raise ValueError(f"no connections found in {path}")
    return connections


def default_connections() -> list[ConnectionConfig]:
    """Return the single fallback connection used when no settings file loads."""
    return [ConnectionConfig(DEFAULT_INDICATOR_IP, DEFAULT_INDICATOR_PORT, DEFAULT_UNIT_ID)]