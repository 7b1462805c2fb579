"""Tests for the system prober and its neighbor-table parsers."""

import socket
import time

import pytest
from dynaconf import Dynaconf

import probes.system as system
from probes import SystemProber, get_prober
from probes.system import parse_neighbor_line, parse_neighbor_output, parse_proc_net_arp

PROC_NET_ARP = """IP address       HW type     Flags       HW address            Mask     Device
192.168.1.1      0x1         0x2         aa:bb:cc:dd:ee:01     *        wlan0
192.168.1.7      0x1         0x0         00:00:00:00:00:00     *        wlan0
192.168.1.254    0x1         0x2         B8:27:EB:00:00:FE     *        wlan0
"""

MACOS_ARP = """? (192.168.1.1) at aa:bb:cc:dd:ee:1 on en0 ifscope [ethernet]
? (192.168.1.7) at (incomplete) on en0 ifscope [ethernet]
? (192.168.1.255) at ff:ff:ff:ff:ff:ff on en0 ifscope [ethernet]
"""

WINDOWS_ARP = """
Interface: 192.168.1.5 --- 0x3
  Internet Address      Physical Address      Type
  192.168.1.1           aa-bb-cc-dd-ee-01     dynamic
  192.168.1.255         ff-ff-ff-ff-ff-ff     static
"""


class TestNeighborParsers:

    def test_proc_net_arp_skips_incomplete(self):
        assert parse_proc_net_arp(PROC_NET_ARP) == [
            ("192.168.1.1", "AA:BB:CC:DD:EE:01"),
            ("192.168.1.254", "B8:27:EB:00:00:FE"),
        ]

    def test_macos_arp(self):
        assert parse_neighbor_output(MACOS_ARP) == [("192.168.1.1", "AA:BB:CC:DD:EE:01")]

    def test_windows_arp(self):
        assert parse_neighbor_output(WINDOWS_ARP) == [("192.168.1.1", "AA:BB:CC:DD:EE:01")]

    def test_ip_neigh(self):
        line = "192.168.1.1 dev wlan0 lladdr aa:bb:cc:dd:ee:01 REACHABLE"
        assert parse_neighbor_line(line) == ("192.168.1.1", "AA:BB:CC:DD:EE:01")

    def test_ip_neigh_incomplete(self):
        assert parse_neighbor_line("192.168.1.7 dev wlan0 INCOMPLETE") is None
        assert parse_neighbor_line("192.168.1.8 dev wlan0 FAILED") is None

    def test_garbage_line(self):
        assert parse_neighbor_line("Address HWtype HWaddress Flags Mask Iface") is None


@pytest.fixture
def prober():
    p = SystemProber(ping_timeout=0.7, dns_timeout=0.5)
    yield p
    p.close()


class TestSystemProber:

    def test_is_alive_parses_reply(self, prober, monkeypatch):
        reply = "64 bytes from 192.168.1.1: icmp_seq=1 ttl=64 time=1.2 ms\n1 packets transmitted, 1 received"
        monkeypatch.setattr(system, "run_command", lambda cmd, timeout=None: (0, reply, ""))
        assert prober.is_alive("192.168.1.1")

    def test_is_alive_fails_closed(self, prober, monkeypatch):
        monkeypatch.setattr(system, "run_command", lambda cmd, timeout=None: (255, "", "timeout"))
        assert not prober.is_alive("192.168.1.1")

    def test_ping_command_bounds_wait(self, prober):
        prober.system = "linux"
        assert prober._ping_command("10.0.0.1") == ["ping", "-c", "1", "-W", "0.7", "10.0.0.1"]
        prober.system = "windows"
        assert prober._ping_command("10.0.0.1") == ["ping", "-n", "1", "-w", "700", "10.0.0.1"]

    def test_resolve_neighbor_from_proc(self, prober, tmp_path, monkeypatch):
        arp = tmp_path / "arp"
        arp.write_text(PROC_NET_ARP)
        monkeypatch.setattr(system, "PROC_NET_ARP", arp)
        assert prober.resolve_neighbor("192.168.1.254") == "B8:27:EB:00:00:FE"
        assert prober.resolve_neighbor("192.168.1.7") is None

    def test_resolve_neighbor_from_arp_command(self, prober, tmp_path, monkeypatch):
        monkeypatch.setattr(system, "PROC_NET_ARP", tmp_path / "missing")
        prober.system = "darwin"
        monkeypatch.setattr(system, "run_command", lambda cmd, timeout=None: (0, MACOS_ARP, ""))
        assert prober.resolve_neighbor("192.168.1.1") == "AA:BB:CC:DD:EE:01"
        assert prober.resolve_neighbor("192.168.1.7") is None

    def test_snapshot_neighbor_table(self, prober, tmp_path, monkeypatch):
        monkeypatch.setattr(system, "PROC_NET_ARP", tmp_path / "missing")
        prober.system = "windows"
        monkeypatch.setattr(system, "run_command", lambda cmd, timeout=None: (0, WINDOWS_ARP, ""))
        assert prober.snapshot_neighbor_table() == [("192.168.1.1", "AA:BB:CC:DD:EE:01")]

    def test_resolve_hostname(self, prober, monkeypatch):
        monkeypatch.setattr(system.socket, "gethostbyaddr", lambda ip: ("printer.lan", [], [ip]))
        assert prober.resolve_hostname("192.168.1.30") == "printer.lan"

    def test_resolve_hostname_absent(self, prober, monkeypatch):
        def no_ptr(ip):
            raise socket.herror(1, "Unknown host")

        monkeypatch.setattr(system.socket, "gethostbyaddr", no_ptr)
        assert prober.resolve_hostname("192.168.1.30") is None

    def test_resolve_hostname_is_bounded_by_dns_timeout(self, monkeypatch):
        def slow_ptr(ip):
            time.sleep(1.0)
            return ("late.lan", [], [ip])

        monkeypatch.setattr(system.socket, "gethostbyaddr", slow_ptr)
        slow = SystemProber(dns_timeout=0.2)
        try:
            started = time.monotonic()
            assert slow.resolve_hostname("192.168.1.30") is None
            assert time.monotonic() - started < 0.9
        finally:
            slow.close()


class TestGetProber:

    def test_default_is_system(self):
        prober = get_prober(Dynaconf())
        try:
            assert isinstance(prober, SystemProber)
            assert prober.ping_timeout == 0.7
        finally:
            prober.close()

    def test_unsupported(self):
        settings = Dynaconf()
        settings.set("scan.prober", "carrier-pigeon")
        with pytest.raises(ValueError):
            get_prober(settings)
