"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet mode
- Token and table rendering per format
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from e2eauth import output as output_module
from e2eauth.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("e2eauth.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("e2eauth.output._is_tty", lambda: True)


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestStdoutStderrDiscipline:
    def test_token_goes_to_stdout(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        mgr.print_token("abc")
        captured = capfd.readouterr()
        assert captured.out == "abc\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("a message")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "a message" in captured.err


class TestQuiet:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden too")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warnings_and_errors(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.warning("careful")
        mgr.error("broken")
        err = capfd.readouterr().err
        assert "Warning: careful" in err
        assert "Error: broken" in err


class TestDataRendering:
    def test_json_token(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_token("abc")
        assert json.loads(capfd.readouterr().out) == {"token": "abc"}

    def test_json_response(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"realm": "r"})
        assert json.loads(capfd.readouterr().out) == {"realm": "r"}

    def test_plain_response(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response({"realm": "r", "client_id": "c"})
        assert capfd.readouterr().out == "realm\tr\nclient_id\tc\n"

    def test_plain_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(["a", "b"], [["1", "2"]])
        assert capfd.readouterr().out == "a\tb\n1\t2\n"

    def test_json_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(["a", "b"], [["1", "2"]])
        assert json.loads(capfd.readouterr().out) == [{"a": "1", "b": "2"}]


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_output_installs_instance(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        set_output(mgr)
        assert get_output() is mgr
        output_module.print_token("xyz")
        output_module.info("note")
        captured = capfd.readouterr()
        assert captured.out == "xyz\n"
        assert "note" in captured.err
