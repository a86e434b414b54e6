import json

import pytest
from typer.testing import CliRunner

import elf2flash.main as cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def session_log(tmp_path, monkeypatch):
    path = tmp_path / "logs" / "session.jsonl"
    monkeypatch.setattr(cli, "LOG_FILE", path)
    return path


def read_events(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def good_segments(pattern):
    return [{"vaddr": 0x10000000, "data": pattern(0x200)}]


def test_boards_lists_all():
    result = runner.invoke(cli.app, ["boards"])
    assert result.exit_code == 0
    assert "rp2040" in result.output
    assert "rp2350" in result.output


def test_convert_success(elf_file, data_pattern, tmp_path, session_log):
    src = elf_file(0x10000001, good_segments(data_pattern))
    result = runner.invoke(cli.app, ["convert", str(src), "--board", "rp2040", "--no-progress"])
    assert result.exit_code == 0, result.output
    assert "UF2 family: 0xe48bff56" in result.output
    out = tmp_path / "fw.uf2"
    assert out.stat().st_size == 2 * 512

    events = read_events(session_log)
    assert events[-1]["kind"] == "convert"
    assert events[-1]["payload"]["blocks"] == 2


def test_convert_with_family_and_output(elf_file, data_pattern, tmp_path):
    src = elf_file(0x10000001, good_segments(data_pattern))
    dest = tmp_path / "build" / "app"
    dest.parent.mkdir()
    result = runner.invoke(cli.app, ["convert", str(src), str(dest), "--board", "rp2350",
                                     "--family", "rp2350_riscv", "-v"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "build" / "app.uf2").exists()


def test_convert_missing_input(tmp_path):
    result = runner.invoke(cli.app, ["convert", str(tmp_path / "nope.elf")])
    assert result.exit_code == 2


def test_convert_unknown_board(elf_file, data_pattern):
    src = elf_file(0x10000001, good_segments(data_pattern))
    result = runner.invoke(cli.app, ["convert", str(src), "--board", "esp32"])
    assert result.exit_code == 2


def test_convert_unknown_family(elf_file, data_pattern):
    src = elf_file(0x10000001, good_segments(data_pattern))
    result = runner.invoke(cli.app, ["convert", str(src), "--family", "zz"])
    assert result.exit_code == 2


def test_convert_error_is_logged(elf_file, data_pattern, tmp_path, session_log):
    src = elf_file(0x10000001, good_segments(data_pattern) + [
        {"vaddr": 0x20000000, "data": data_pattern(0x10)},
    ])
    result = runner.invoke(cli.app, ["convert", str(src), "--no-progress"])
    assert result.exit_code == 1
    assert not (tmp_path / "fw.uf2").exists()

    event = read_events(session_log)[-1]
    assert event["kind"] == "convert_error"
    assert event["payload"]["error"] == "ContentsForUninitializedMemoryError"


def test_info_on_converted_file(elf_file, data_pattern, tmp_path):
    src = elf_file(0x10000001, good_segments(data_pattern))
    assert runner.invoke(cli.app, ["convert", str(src), "--no-progress"]).exit_code == 0

    result = runner.invoke(cli.app, ["info", str(tmp_path / "fw.uf2")])
    assert result.exit_code == 0, result.output
    assert "0x10000000" in result.output
    assert "RP2040" in result.output


def test_info_on_garbage(tmp_path):
    bad = tmp_path / "bad.uf2"
    bad.write_bytes(b"\x00" * 512)
    result = runner.invoke(cli.app, ["info", str(bad)])
    assert result.exit_code == 1


def test_convert_refuses_to_overwrite_input(elf_file, data_pattern, session_log):
    src = elf_file(0x10000001, good_segments(data_pattern), name="fw.uf2")
    original = src.read_bytes()
    result = runner.invoke(cli.app, ["convert", str(src), "--no-progress"])
    assert result.exit_code == 1
    assert src.read_bytes() == original
    assert read_events(session_log)[-1]["payload"]["error"] == "OutputOverwritesInputError"
