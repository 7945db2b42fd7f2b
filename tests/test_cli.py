"""Tests for the command-line interface."""

import json
import logging
import socket

import pytest

from portscout import targets
from portscout.cli import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK, build_parser, main
from portscout.port_scanner import PortScanner
from portscout.ports import COMMON_PORTS


class FakeSocket:
    def close(self):
        pass


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def all_open(monkeypatch):
    monkeypatch.setattr(PortScanner, "_connect", lambda self, port: FakeSocket())


@pytest.fixture
def all_refused(monkeypatch):
    def refuse(self, port):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(PortScanner, "_connect", refuse)


def test_parser_defaults():
    args = build_parser().parse_args(["-t", "10.0.0.1"])
    assert args.target == "10.0.0.1"
    assert args.ports is None
    assert not args.all
    assert args.timeout == 1.0
    assert args.threads == 100
    assert args.format == "text"
    assert args.output is None


def test_parser_requires_target():
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args([])
    assert excinfo.value.code == 2


def test_ports_and_all_are_mutually_exclusive():
    with pytest.raises(SystemExit) as excinfo:
        main(["-t", "10.0.0.1", "-p", "80", "--all"])
    assert excinfo.value.code == 2


def test_rejects_zero_threads():
    with pytest.raises(SystemExit) as excinfo:
        main(["-q", "-t", "10.0.0.1", "--threads", "0"])
    assert excinfo.value.code == 2


@pytest.mark.parametrize("timeout", ["0", "-1", "nan", "inf"])
def test_rejects_unusable_timeout(all_refused, timeout, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["-q", "-t", "127.0.0.1", "-p", "22,80", "--timeout", timeout])
    assert excinfo.value.code == 2
    assert capsys.readouterr().out == ""


def test_invalid_port_spec_exits_with_failure(capsys):
    code = main(["-q", "-t", "10.0.0.1", "-p", "5-3"])
    captured = capsys.readouterr()
    assert code == EXIT_FAILURE
    assert captured.out == ""
    assert "Invalid port specification" in captured.err


def test_unresolvable_target_exits_with_failure(monkeypatch, capsys):
    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(targets.socket, "getaddrinfo", fail)

    code = main(["-q", "-t", "no-such-host.invalid", "-p", "80"])
    captured = capsys.readouterr()

    assert code == EXIT_FAILURE
    assert captured.out == ""
    assert "Cannot resolve target" in captured.err


def test_text_scan_end_to_end(all_open, capsys):
    code = main(["-q", "-t", "192.168.1.45", "-p", "21,22,80,3389"])
    out = capsys.readouterr().out

    assert code == EXIT_OK
    assert "Target: 192.168.1.45 (192.168.1.45)" in out
    assert "21\t\topen\t\tFTP" in out
    assert "3389\t\topen\t\tRDP" in out
    assert "uses unencrypted communication" in out
    assert "ensure strong authentication" in out


def test_structured_scan_end_to_end(all_open, capsys):
    code = main(["-q", "-t", "192.168.1.45", "-p", "3389,80,22,21", "--format", "structured"])
    data = json.loads(capsys.readouterr().out)

    assert code == EXIT_OK
    assert data["open_ports"] == [
        {"port": 21, "service": "FTP", "state": "open"},
        {"port": 22, "service": "SSH", "state": "open"},
        {"port": 80, "service": "HTTP", "state": "open"},
        {"port": 3389, "service": "RDP", "state": "open"},
    ]
    assert data["total_open"] == 4


def test_default_scans_common_ports(all_refused, capsys):
    code = main(["-q", "-t", "127.0.0.1", "--format", "json"])
    data = json.loads(capsys.readouterr().out)

    assert code == EXIT_OK
    assert data["total_ports_scanned"] == len(COMMON_PORTS)
    assert data["open_ports"] == []


def test_no_open_ports_text(all_refused, capsys):
    code = main(["-q", "-t", "127.0.0.1", "-p", "1-10"])
    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "No open ports found." in out
    assert "No obvious security concerns detected." in out


def test_output_file_matches_stdout(all_open, tmp_path, capsys):
    out_file = tmp_path / "report.txt"

    code = main(["-q", "-t", "192.168.1.45", "-p", "22,80", "-o", str(out_file)])

    assert code == EXIT_OK
    assert out_file.read_text(encoding="utf-8") == capsys.readouterr().out


def test_output_write_failure_keeps_stdout_report(all_open, tmp_path, capsys):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    code = main(["-q", "-t", "192.168.1.45", "-p", "22", "-o", str(blocker / "report.txt")])
    captured = capsys.readouterr()

    assert code == EXIT_FAILURE
    assert "22\t\topen\t\tSSH" in captured.out
    assert "Cannot write report" in captured.err


def test_verbose_prints_each_port(monkeypatch, capsys):
    def connect(self, port):
        if port == 22:
            return FakeSocket()
        if port == 443:
            raise socket.timeout("timed out")
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(PortScanner, "_connect", connect)

    code = main(["-q", "-v", "-t", "127.0.0.1", "-p", "22,80,443"])
    err = capsys.readouterr().err

    assert code == EXIT_OK
    assert "Port 22 is OPEN - SSH" in err
    assert "Port 80 is CLOSED" in err
    assert "Port 443 timed out" in err


def test_interrupt_prints_partial_report(monkeypatch, capsys):
    def connect(self, port):
        if port == 80:
            raise KeyboardInterrupt
        return FakeSocket()

    monkeypatch.setattr(PortScanner, "_connect", connect)

    code = main(["-q", "-t", "127.0.0.1", "-p", "80", "--threads", "1"])
    captured = capsys.readouterr()

    assert code == EXIT_INTERRUPTED
    assert "Scan Report" in captured.out
    assert "results are partial" in captured.out
    assert "interrupted" in captured.err


def test_banner_shown_unless_quiet(all_refused, capsys):
    main(["-t", "127.0.0.1", "-p", "1"])
    assert "DISCLAIMER" in capsys.readouterr().err
