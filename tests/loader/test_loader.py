# tests/loader/test_loader.py
"""
i8080_tracer.loader.loaderモジュールの単体テスト。
"""
import pytest
from i8080_tracer.transport.bus import Bus, RAM
from i8080_tracer.loader.loader import BinaryLoader, IntelHexLoader
from i8080_tracer.common.errors import LoadError, TracerError

# @intent:test_suite 生バイナリとIntel HEXのロード、および不正な入力に対するLoadErrorを検証します。

@pytest.fixture
def bus():
    bus = Bus()
    bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
    return bus

def hex_record(address: int, data, record_type: int = 0x00) -> str:
    body = [len(data), address >> 8, address & 0xFF, record_type] + list(data)
    checksum = (-sum(body)) & 0xFF
    return ":" + "".join(f"{b:02X}" for b in body) + f"{checksum:02X}"

class TestBinaryLoader:

    def test_load_at_zero(self, bus, tmp_path):
        image = tmp_path / "prog.bin"
        image.write_bytes(bytes([0x06, 0x05, 0x3E, 0x03, 0x80]))
        end = BinaryLoader().load_binary(str(image), bus)
        assert end == 5
        assert [bus.peek(i) for i in range(5)] == [0x06, 0x05, 0x3E, 0x03, 0x80]
        assert bus.get_and_clear_activity_log() == []

    def test_load_at_address(self, bus, tmp_path):
        image = tmp_path / "prog.bin"
        image.write_bytes(bytes([0xAA, 0xBB]))
        assert BinaryLoader().load_binary(str(image), bus, address=0x0100) == 0x0102
        assert bus.peek(0x0100) == 0xAA

    # @intent:test_case_full 64KBちょうどのイメージはロードでき、それを越えるとLoadErrorになることを検証します。
    def test_full_address_space(self, bus, tmp_path):
        image = tmp_path / "full.bin"
        image.write_bytes(bytes([0x11]) * 0x10000)
        assert BinaryLoader().load_binary(str(image), bus) == 0x10000
        assert bus.peek(0xFFFF) == 0x11

    @pytest.mark.parametrize("size, address", [(0x10001, 0x0000), (0x0101, 0xFF00)])
    def test_oversized_image(self, bus, tmp_path, size, address):
        image = tmp_path / "big.bin"
        image.write_bytes(bytes(size))
        with pytest.raises(LoadError, match="does not fit"):
            BinaryLoader().load_binary(str(image), bus, address=address)

    def test_unreadable_file(self, bus, tmp_path):
        missing = tmp_path / "missing.bin"
        with pytest.raises(LoadError) as excinfo:
            BinaryLoader().load_binary(str(missing), bus)
        assert isinstance(excinfo.value, TracerError)
        assert excinfo.value.path == str(missing)
        assert str(missing) in str(excinfo.value)

class TestIntelHexLoader:

    def test_load_records(self, bus, tmp_path):
        image = tmp_path / "prog.hex"
        image.write_text("\n".join([
            hex_record(0x0100, [0x3E, 0xFF, 0x3C]),
            hex_record(0x0200, [0x76]),
            hex_record(0x0000, [], record_type=0x01),
        ]) + "\n")
        loader = IntelHexLoader()
        end = loader.load_intel_hex(str(image), bus)
        assert end == 0x0201
        assert loader.image_start == 0x0100
        assert [bus.peek(0x0100 + i) for i in range(3)] == [0x3E, 0xFF, 0x3C]
        assert bus.peek(0x0200) == 0x76

    # @intent:test_case_eof EOFレコード以降のデータは無視されることを検証します。
    def test_stops_at_eof(self, bus, tmp_path):
        image = tmp_path / "prog.hex"
        image.write_text("\n".join([
            hex_record(0x0000, [0x01]),
            hex_record(0x0000, [], record_type=0x01),
            hex_record(0x0010, [0x02]),
        ]))
        IntelHexLoader().load_intel_hex(str(image), bus)
        assert bus.peek(0x0000) == 0x01
        assert bus.peek(0x0010) == 0x00

    def test_checksum_mismatch(self, bus, tmp_path):
        record = hex_record(0x0000, [0x01])
        image = tmp_path / "bad.hex"
        image.write_text(record[:-2] + "00\n")
        with pytest.raises(LoadError, match="Checksum mismatch"):
            IntelHexLoader().load_intel_hex(str(image), bus)

    @pytest.mark.parametrize("line", [":0000", ":0200000001FD", ":ZZ00000001FF"])
    def test_malformed_records(self, bus, tmp_path, line):
        image = tmp_path / "bad.hex"
        image.write_text(line + "\n")
        with pytest.raises(LoadError):
            IntelHexLoader().load_intel_hex(str(image), bus)

    def test_unknown_record_type(self, bus, tmp_path):
        image = tmp_path / "bad.hex"
        image.write_text(hex_record(0x0000, [0x00], record_type=0x07) + "\n")
        with pytest.raises(LoadError, match="Unknown Intel HEX record type"):
            IntelHexLoader().load_intel_hex(str(image), bus)

    # @intent:test_case_extended 拡張アドレスで64KBを越える位置へのデータはLoadErrorになることを検証します。
    def test_record_beyond_address_space(self, bus, tmp_path):
        image = tmp_path / "far.hex"
        image.write_text("\n".join([
            hex_record(0x0000, [0x00, 0x01], record_type=0x04),
            hex_record(0x0000, [0x11]),
        ]))
        with pytest.raises(LoadError, match="does not fit"):
            IntelHexLoader().load_intel_hex(str(image), bus)

    def test_unreadable_file(self, bus, tmp_path):
        with pytest.raises(LoadError):
            IntelHexLoader().load_intel_hex(str(tmp_path / "missing.hex"), bus)
