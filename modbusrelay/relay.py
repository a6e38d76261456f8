"""Relay that pairs Modbus-TCP indicators with PLC-facing listening ports."""

from __future__ import annotations

import asyncio
import errno
import socket
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Any

from .config import MAX_CONNECTIONS, ConnectionConfig
from .modbus import analyze_packet, hex_dump

DEFAULT_BASE_PORT = 5030
PORT_SEARCH_RANGE = 100
DEFAULT_CHECK_INTERVAL = 5.0
CONNECT_TIMEOUT = 3.0
RECEIVE_SIZE = 4096
RECONNECT_LOG_EVERY = 12


def find_available_port(start: int, end: int) -> int:
    """Return the first port in [start, end] that can be bound.

    Falls back to ``start`` when every port is in use or binding fails
    for a reason other than the address being in use.
    """
    for port in range(start, end + 1):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
                probe.bind(("", port))
        except OSError as exc:
            if exc.errno != errno.EADDRINUSE:
                return start
            continue
        return port
    return start


@dataclass
class ConnectionPair:
    """One indicator link together with the PLC listening port that mirrors it."""

    config: ConnectionConfig
    indicator_connected: bool = False
    plc_connected: bool = False
    indicator_writer: asyncio.StreamWriter | None = field(default=None, repr=False)
    plc_server: asyncio.AbstractServer | None = field(default=None, repr=False)
    plc_writer: asyncio.StreamWriter | None = field(default=None, repr=False)

    @property
    def endpoint(self) -> str:
        return f"{self.config.indicator_ip}:{self.config.indicator_port}"

    @property
    def plc_client_connected(self) -> bool:
        return self.plc_writer is not None and not self.plc_writer.is_closing()

    def describe(self, number: int) -> str:
        """Return the status line shown for this pair in the connection list."""
        indicator = "연결됨" if self.indicator_connected else "연결 안됨"
        if not self.plc_connected:
            plc = "중지됨"
        elif self.plc_client_connected:
            plc = "연결됨"
        else:
            plc = "대기 중"
        return (
            f"{number}. {self.endpoint}(Unit:{self.config.unit_id}) [{indicator}] "
            f"<-> PLC 포트:{self.config.plc_port} [{plc}]"
        )


class Relay:
    """Forwards traffic between each indicator and the PLC attached to its port."""

    def __init__(
        self,
        configs: Iterable[ConnectionConfig],
        base_port: int = DEFAULT_BASE_PORT,
        log: Callable[[str], Any] | None = None,
    ) -> None:
        self.pairs = [ConnectionPair(config) for config in list(configs)[:MAX_CONNECTIONS]]
        self.base_port = base_port
        self._sink = log if log is not None else print
        self._reconnect_attempts = 0
        self._tasks: set[asyncio.Task] = set()

    def log(self, message: str) -> None:
        """Emit a message prefixed with the current time."""
        stamp = datetime.now().strftime("%H:%M:%S")
        self._sink(f"[{stamp}] {message}")

    def log_data(self, prefix: str, data: bytes) -> None:
        """Emit a hex dump of data after a prefix."""
        self._sink(hex_dump(prefix, data))

    def assign_ports(self) -> None:
        """Give every pair its own free PLC port, searching upward from the base port."""
        base = self.base_port
        for pair in self.pairs:
            port = find_available_port(base, base + PORT_SEARCH_RANGE)
            pair.config.plc_port = port
            base = port + 1
            self.log(
                f"인디케이터 {pair.endpoint}(Unit ID: {pair.config.unit_id}) "
                f"- PLC 서버 포트: {port} 할당됨"
            )

    async def connect_indicator(self, index: int) -> bool:
        """Open the connection to an indicator; return whether it succeeded."""
        pair = self.pairs[index]
        self._close_indicator(pair)
        config = pair.config
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(config.indicator_ip, config.indicator_port),
                CONNECT_TIMEOUT,
            )
        except asyncio.TimeoutError:
            self.log(f"인디케이터 {pair.endpoint} 연결 실패: 오류 코드 {errno.ETIMEDOUT}")
            return False
        except OSError as exc:
            self.log(f"인디케이터 {pair.endpoint} 연결 실패: 오류 코드 {exc.errno or 0}")
            return False

        pair.indicator_writer = writer
        pair.indicator_connected = True
        self.log(f"인디케이터 {pair.endpoint} 연결 성공")
        self._spawn(self._pump_indicator(pair, reader, writer))
        return True

    async def start_plc_server(self, index: int) -> bool:
        """Start listening for the PLC on the pair's port; return whether it succeeded."""
        pair = self.pairs[index]
        port = pair.config.plc_port
        try:
            server = await asyncio.start_server(
                partial(self._accept_plc, pair), host="0.0.0.0", port=port
            )
        except OSError as exc:
            self.log(f"PLC 서버 시작 실패: 포트 {port}, 오류 코드 {exc.errno or 0}")
            return False

        pair.plc_server = server
        pair.plc_connected = True
        self.log(f"PLC 서버 모드 시작: 포트 {port} 대기 중 (인디케이터 {pair.endpoint} 용)")
        return True

    async def start_all(self) -> None:
        """Connect every indicator and start every PLC server that is not running."""
        self.log("모든 연결 시작...")
        for index, pair in enumerate(self.pairs):
            if not pair.indicator_connected:
                await self.connect_indicator(index)
            if not pair.plc_connected:
                await self.start_plc_server(index)

    def stop_all(self) -> None:
        """Close every indicator connection and every PLC server."""
        self.log("모든 연결 중지...")
        for pair in self.pairs:
            if pair.indicator_connected:
                self._close_indicator(pair)
            if pair.plc_connected:
                self._close_plc(pair)

    async def toggle(self) -> bool:
        """Stop everything if all is connected, otherwise start; return True if started."""
        if all(pair.indicator_connected and pair.plc_connected for pair in self.pairs):
            self.stop_all()
            return False
        await self.start_all()
        return True

    async def check_connections(self) -> None:
        """Reconnect lost indicators and restart stopped PLC servers."""
        for index, pair in enumerate(self.pairs):
            if not pair.indicator_connected:
                self._close_indicator(pair)
                if self._reconnect_attempts % RECONNECT_LOG_EVERY == 0:
                    self.log(f"인디케이터 {pair.endpoint} 자동 재연결 시도...")
                self._reconnect_attempts += 1
                await self.connect_indicator(index)
            if not pair.plc_connected:
                self._close_plc(pair)
                await self.start_plc_server(index)

    def connection_lines(self) -> list[str]:
        """Return one numbered status line per pair."""
        return [pair.describe(number) for number, pair in enumerate(self.pairs, start=1)]

    def status_line(self) -> str:
        """Return the overall connection summary."""
        total = len(self.pairs)
        indicators = sum(pair.indicator_connected for pair in self.pairs)
        plcs = sum(pair.plc_connected for pair in self.pairs)
        return (
            f"ModBus-TCP 릴레이 프로그램 - 연결 현황: "
            f"인디케이터 {indicators}/{total}, PLC {plcs}/{total}"
        )

    async def run(self, check_interval: float = DEFAULT_CHECK_INTERVAL) -> None:
        """Check connections periodically until cancelled, then shut everything down."""
        try:
            while True:
                await asyncio.sleep(check_interval)
                await self.check_connections()
        finally:
            self.stop_all()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    def _close_indicator(pair: ConnectionPair) -> None:
        writer, pair.indicator_writer = pair.indicator_writer, None
        pair.indicator_connected = False
        if writer is not None:
            writer.close()

    @staticmethod
    def _close_plc(pair: ConnectionPair) -> None:
        server, pair.plc_server = pair.plc_server, None
        writer, pair.plc_writer = pair.plc_writer, None
        pair.plc_connected = False
        if server is not None:
            server.close()
        if writer is not None:
            writer.close()

    @staticmethod
    async def _send(writer: asyncio.StreamWriter, data: bytes) -> bool:
        try:
            writer.write(data)
            await writer.drain()
        except OSError:
            return False
        return True

    async def _pump_indicator(
        self, pair: ConnectionPair, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        try:
            while data := await reader.read(RECEIVE_SIZE):
                analysis = analyze_packet(data)
                if analysis:
                    self.log(f"[인디케이터 {pair.endpoint}] {analysis}")
                await self._indicator_to_plc(pair, data)
        except OSError:
            pass
        if pair.indicator_writer is writer:
            self._close_indicator(pair)
            self.log(f"인디케이터 {pair.endpoint} 연결 종료됨")

    async def _accept_plc(
        self, pair: ConnectionPair, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        previous, pair.plc_writer = pair.plc_writer, writer
        if previous is not None:
            previous.close()
        peer = writer.get_extra_info("peername") or ("?", 0)
        port = pair.config.plc_port
        self.log(
            f"포트 {port}에 클라이언트 접속: {peer[0]}:{peer[1]} (인디케이터 {pair.endpoint} 용)"
        )
        try:
            while data := await reader.read(RECEIVE_SIZE):
                analysis = analyze_packet(data)
                if analysis:
                    self.log(f"[PLC 포트 {port}] {analysis}")
                await self._plc_to_indicator(pair, data)
        except OSError:
            pass
        if pair.plc_writer is writer:
            pair.plc_writer = None
            writer.close()
            self.log(f"PLC 포트 {port} 클라이언트 연결 종료됨")

    async def _indicator_to_plc(self, pair: ConnectionPair, data: bytes) -> None:
        port = pair.config.plc_port
        writer = pair.plc_writer
        if writer is None or writer.is_closing():
            self.log(f"PLC 포트 {port} 클라이언트 연결 안됨: 데이터 전송 실패")
            return
        self.log_data(f"인디케이터 {pair.endpoint} → PLC 포트 {port}: ", data)
        if not await self._send(writer, data):
            self.log(f"인디케이터 {pair.endpoint} → PLC 포트 {port}: 데이터 전송 실패")

    async def _plc_to_indicator(self, pair: ConnectionPair, data: bytes) -> None:
        port = pair.config.plc_port
        writer = pair.indicator_writer
        if not pair.indicator_connected or writer is None:
            self.log(f"인디케이터 {pair.endpoint} 연결 안됨: 데이터 전송 실패")
            return
        self.log_data(f"PLC 포트 {port} → 인디케이터 {pair.endpoint}: ", data)
        if not await self._send(writer, data):
            self.log(f"PLC 포트 {port} → 인디케이터 {pair.endpoint}: 데이터 전송 실패")