import socket

from modbusrelay.cli import main


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("", 0))
        return probe.getsockname()[1]


def _write_csv(tmp_path, rows):
    path = tmp_path / "set.csv"
    path.write_text("ip,port,unit\n" + "".join(f"{row}\n" for row in rows), encoding="utf-8")
    return path


def test_loads_settings_file(tmp_path, capsys):
    path = _write_csv(tmp_path, [f"127.0.0.1,{_free_port()},3", f"127.0.0.1,{_free_port()},4"])
    code = main(["--config", str(path), "--checks", "0", "--base-port", str(_free_port())])
    out = capsys.readouterr().out
    assert code == 0
    assert f"{path} 파일 로드 성공" in out
    assert "ModBus-TCP 릴레이 프로그램 - 연결 현황: 인디케이터 0/2, PLC 0/2" in out
    assert out.count("할당됨") == 2


def test_missing_file_uses_default_connection(tmp_path, capsys):
    missing = tmp_path / "absent.csv"
    code = main(["--config", str(missing), "--checks", "0", "--base-port", str(_free_port())])
    out = capsys.readouterr().out
    assert code == 0
    assert f"CSV 파일을 열 수 없습니다: {missing}" in out
    assert "기본 연결 생성" in out
    assert "인디케이터 127.0.0.1:5020(Unit ID: 1)" in out


def test_header_only_file_falls_back(tmp_path, capsys):
    path = _write_csv(tmp_path, [])
    main(["--config", str(path), "--checks", "0", "--base-port", str(_free_port())])
    out = capsys.readouterr().out
    assert "로드 실패, 기본 연결 생성" in out
    assert "CSV 파일을 열 수 없습니다" not in out


def test_check_cycle_starts_plc_server(tmp_path, capsys):
    path = _write_csv(tmp_path, [f"127.0.0.1,{_free_port()},1"])
    code = main([
        "--config", str(path), "--checks", "1", "--interval", "0",
        "--base-port", str(_free_port()),
    ])
    out = capsys.readouterr().out
    assert code == 0
    assert "자동 재연결 시도" in out
    assert "인디케이터 0/1, PLC 1/1" in out
    assert "모든 연결 중지..." in out