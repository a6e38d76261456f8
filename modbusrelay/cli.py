"""Command line entry point for the Modbus-TCP relay."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence

from .config import default_connections, load_connections
from .relay import DEFAULT_BASE_PORT, DEFAULT_CHECK_INTERVAL, Relay

DEFAULT_CONFIG = "set.csv"


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modbusrelay",
        description="Relay Modbus-TCP traffic between indicators and PLCs.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="CSV file of indicators")
    parser.add_argument("--base-port", type=int, default=DEFAULT_BASE_PORT,
                        help="first PLC port to try")
    parser.add_argument("--interval", type=float, default=DEFAULT_CHECK_INTERVAL,
                        help="seconds between connection checks")
    parser.add_argument("--checks", type=int, default=None,
                        help="stop after this many connection checks")
    return parser


async def _serve(relay: Relay, interval: float, checks: int | None) -> None:
    if checks is None:
        await relay.run(interval)
        return
    try:
        for _ in range(checks):
            await asyncio.sleep(interval)
            await relay.check_connections()
            print(relay.status_line())
    finally:
        relay.stop_all()


def main(argv: Sequence[str] | None = None) -> int:
    """Load the settings, assign PLC ports and keep the relay running."""
    args = _parser().parse_args(argv)
    path = args.config

    notes = []
    try:
        configs = load_connections(path)
        notes.append(f"{path} 파일 로드 성공")
    except OSError:
        notes.append(f"CSV 파일을 열 수 없습니다: {path}")
        notes.append(f"{path} 파일 로드 실패, 기본 연결 생성")
        configs = default_connections()
    except ValueError:
        notes.append(f"{path} 파일 로드 실패, 기본 연결 생성")
        configs = default_connections()

    relay = Relay(configs, args.base_port, log=print)
    for note in notes:
        relay.log(note)
    relay.assign_ports()
    relay.log("ModBus-TCP 릴레이 프로그램 시작")
    relay.log("여러 인디케이터와 PLC 간의 통신을 중계합니다.")
    print(relay.status_line())

    try:
        asyncio.run(_serve(relay, args.interval, args.checks))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())