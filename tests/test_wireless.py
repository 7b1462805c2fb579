"""Tests for the current network name source."""

import pytest

import wireless


@pytest.fixture
def commands(monkeypatch):
    """Maps a command's first word to the (code, stdout, stderr) it returns."""
    answers = {}

    def fake_run(cmd, timeout=None):
        return answers.get(cmd[0], (255, "", "not found"))

    monkeypatch.setattr(wireless, "run_command", fake_run)
    return answers


def _platform(monkeypatch, name):
    monkeypatch.setattr(wireless.platform, "system", lambda: name)


def test_linux_iwgetid(commands, monkeypatch):
    _platform(monkeypatch, "Linux")
    commands["iwgetid"] = (0, "HomeWiFi\n", "")
    assert wireless.get_current_network_name() == "HomeWiFi"


def test_linux_nmcli_fallback(commands, monkeypatch):
    _platform(monkeypatch, "Linux")
    commands["nmcli"] = (0, "no:Neighbour\nyes:Office\n", "")
    assert wireless.get_current_network_name() == "Office"


def test_linux_wired_only(commands, monkeypatch):
    _platform(monkeypatch, "Linux")
    assert wireless.get_current_network_name() is None


def test_macos(commands, monkeypatch):
    _platform(monkeypatch, "Darwin")
    commands["networksetup"] = (0, "Current Wi-Fi Network: Cafe 5G\n", "")
    assert wireless.get_current_network_name("en0") == "Cafe 5G"


def test_macos_not_associated(commands, monkeypatch):
    _platform(monkeypatch, "Darwin")
    commands["networksetup"] = (0, "You are not associated with an AirPort network.\n", "")
    assert wireless.get_current_network_name() is None


def test_windows_ignores_bssid(commands, monkeypatch):
    _platform(monkeypatch, "Windows")
    output = (
        "    Name                   : Wi-Fi\n"
        "    State                  : connected\n"
        "    SSID                   : HomeWiFi\n"
        "    BSSID                  : aa:bb:cc:dd:ee:ff\n"
    )
    commands["netsh"] = (0, output, "")
    assert wireless.get_current_network_name() == "HomeWiFi"
