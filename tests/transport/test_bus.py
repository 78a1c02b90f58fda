# tests/transport/test_bus.py
"""
i8080_tracer.transport.busモジュールの単体テスト。
"""
import pytest
from i8080_tracer.transport.bus import Bus, RAM, PortLatch, BusAccessType

# @intent:test_suite 共通バスとデバイスの基本的な機能とエラーハンドリングを検証します。

class TestRAM:
    """
    RAMデバイスの単体テスト。
    """
    # @intent:test_case_init RAMクラスが正しいサイズで0初期化されることを検証します。
    def test_ram_init_valid_size(self):
        ram = RAM(16)
        assert ram.get_size() == 16
        assert all(ram.read(i) == 0 for i in range(16))

    # @intent:test_case_init 無効なサイズでRAMを初期化するとValueErrorが発生することを検証します。
    @pytest.mark.parametrize("size", [0, -1, 1.5])
    def test_ram_init_invalid_size(self, size):
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(size)

    def test_ram_read_write_within_bounds(self):
        ram = RAM(4)
        ram.write(0, 0x12)
        ram.write(3, 0x78)
        assert ram.read(0) == 0x12
        assert ram.read(3) == 0x78

    # @intent:test_case_oob 境界外アドレスへのアクセス時にIndexErrorが発生することを検証します。
    def test_ram_read_write_out_of_bounds(self):
        ram = RAM(4)
        with pytest.raises(IndexError, match="Address 4 out of bounds for RAM of size 4."):
            ram.read(4)
        with pytest.raises(IndexError, match="Address -1 out of bounds for RAM of size 4."):
            ram.write(-1, 0x00)

    # @intent:test_case_data 8bitを超えるデータの書き込みでValueErrorが発生することを検証します。
    def test_ram_write_invalid_data(self):
        ram = RAM(1)
        with pytest.raises(ValueError, match="Data 256 is not an 8-bit value."):
            ram.write(0, 0x100)
        with pytest.raises(ValueError, match="Data -1 is not an 8-bit value."):
            ram.write(0, -1)

class TestBus:
    """
    Busの単体テスト。
    """
    @pytest.fixture
    def bus(self):
        bus = Bus()
        bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
        return bus

    # @intent:test_case_register RAMサイズとアドレス範囲が一致しない登録は拒否されることを検証します。
    def test_register_device_size_mismatch(self):
        bus = Bus()
        with pytest.raises(ValueError, match="does not match"):
            bus.register_device(0x0000, 0x00FF, RAM(0x80))

    def test_register_device_invalid_range(self):
        bus = Bus()
        with pytest.raises(ValueError, match="Invalid address range"):
            bus.register_device(0x0100, 0x0000, RAM(1))
        with pytest.raises(TypeError):
            bus.register_device(0x0000, 0x0000, object())

    def test_unmapped_address_raises(self):
        bus = Bus()
        with pytest.raises(IndexError, match="not mapped"):
            bus.read(0x1234)

    # @intent:test_case_log 読み書きが記録され、書き込みには以前の値が含まれることを検証します。
    def test_read_write_logging(self, bus):
        bus.write(0x1000, 0x11)
        bus.write(0x1000, 0x22)
        assert bus.read(0x1000) == 0x22

        log = bus.get_and_clear_activity_log()
        assert [access.access_type for access in log] == [
            BusAccessType.WRITE, BusAccessType.WRITE, BusAccessType.READ
        ]
        assert log[0].previous_data == 0x00
        assert log[1].previous_data == 0x11
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_peek peekとloadはアクセスログを汚さないことを検証します。
    def test_peek_and_load_are_not_logged(self, bus):
        bus.load(0x2000, 0xAB)
        assert bus.peek(0x2000) == 0xAB
        assert bus.get_and_clear_activity_log() == []

class TestIoSpace:
    """
    I/Oポート空間の単体テスト。
    """
    @pytest.fixture
    def bus(self):
        return Bus()

    # @intent:test_case_unmapped 未接続ポートの読み出しはNone、書き込みは何も起こさないことを検証します。
    def test_unmapped_port(self, bus):
        assert bus.has_io_device(0x10) is False
        assert bus.read_io(0x10) is None
        bus.write_io(0x10, 0x55)
        assert bus.get_and_clear_activity_log() == []

    def test_port_latch_round_trip(self, bus):
        latch = PortLatch("console", initial_value=0x42)
        bus.register_io_device(0x01, latch)
        assert bus.has_io_device(0x01)
        assert bus.read_io(0x01) == 0x42
        bus.write_io(0x01, 0x99)
        assert bus.read_io(0x01) == 0x99
        assert latch.history == [0x99]
        log = bus.get_and_clear_activity_log()
        assert [access.access_type for access in log] == [
            BusAccessType.IO_READ, BusAccessType.IO_WRITE, BusAccessType.IO_READ
        ]

    @pytest.mark.parametrize("port", [-1, 0x100])
    def test_register_invalid_port(self, bus, port):
        with pytest.raises(ValueError, match="out of range"):
            bus.register_io_device(port, PortLatch())
