"""Tests for device filtering and CSV export."""

import io

from device import Device, OFFLINE
from export import export_csv, filter_devices, write_csv

DEVICES = [
    Device(ip="192.168.1.1", mac="AA:BB:CC:DD:EE:01", hostname="router.lan", brand="Ubiquiti"),
    Device(ip="192.168.1.20", mac=None, hostname=None),
    Device(ip="192.168.1.30", mac="AA:BB:CC:DD:EE:1E", hostname="printer.lan", owner='Dana "D"'),
]


class TestFilterDevices:

    def test_empty_query_keeps_all(self):
        assert filter_devices(DEVICES) == DEVICES

    def test_query_matches_name_ip_and_mac(self):
        assert [d.ip for d in filter_devices(DEVICES, "PRINTER")] == ["192.168.1.30"]
        assert [d.ip for d in filter_devices(DEVICES, "1.20")] == ["192.168.1.20"]
        assert [d.ip for d in filter_devices(DEVICES, "ee:01")] == ["192.168.1.1"]

    def test_only_with_mac(self):
        assert [d.ip for d in filter_devices(DEVICES, only_with_mac=True)] == ["192.168.1.1", "192.168.1.30"]


class TestCsv:

    def test_quoted_rows(self):
        stream = io.StringIO()
        write_csv(DEVICES, stream)
        lines = stream.getvalue().splitlines()
        assert lines[0] == '"ip","mac","hostname","owner","brand","model"'
        assert lines[1] == '"192.168.1.1","AA:BB:CC:DD:EE:01","router.lan","","Ubiquiti",""'
        assert lines[2] == '"192.168.1.20","","","","",""'
        assert lines[3] == '"192.168.1.30","AA:BB:CC:DD:EE:1E","printer.lan","Dana ""D""","",""'

    def test_status_column(self):
        stream = io.StringIO()
        write_csv(DEVICES[:1], stream, include_status=True)
        header, row = stream.getvalue().splitlines()
        assert header.endswith('"status"')
        assert row.endswith(f'"{OFFLINE}"')

    def test_export_to_file(self, tmp_path):
        path = tmp_path / "devices.csv"
        assert export_csv(DEVICES, path)
        assert len(path.read_text(encoding="utf-8").splitlines()) == 4

    def test_export_failure(self, tmp_path):
        assert export_csv(DEVICES, tmp_path / "missing-dir" / "devices.csv") is False
