# tests/core/test_snapshot.py
"""
i8080_tracer.core.snapshotモジュールの単体テスト。
"""
import pytest
from i8080_tracer.core.state import CpuState
from i8080_tracer.core.snapshot import (
    BusAccessType,
    BusAccess,
    Operation,
    Metadata,
    Snapshot,
)

# @intent:test_suite CPUとバスの状態を記録する不変スナップショットデータ構造の検証。

class TestBusAccess:
    """
    BusAccessデータクラスの単体テスト。
    """
    # @intent:test_case_init BusAccessが正しく初期化されることを検証します。
    def test_bus_access_init(self):
        access = BusAccess(address=0x1000, data=0xAA, access_type=BusAccessType.WRITE, previous_data=0x55)
        assert access.address == 0x1000
        assert access.data == 0xAA
        assert access.access_type == BusAccessType.WRITE
        assert access.previous_data == 0x55

    # @intent:test_case_immutability BusAccessが不変であることを検証します。
    def test_bus_access_immutability(self):
        access = BusAccess(address=0x1000, data=0xAA, access_type=BusAccessType.READ)
        with pytest.raises(AttributeError):
            access.address = 0x2000

class TestOperation:
    """
    Operationデータクラスの単体テスト。
    """
    def test_operation_init_with_operands(self):
        op = Operation(opcode_hex="C3", mnemonic="JMP", operands=["$1234"],
                       operand_bytes=[0x34, 0x12], value=0x1234, cycle_count=10, length=3)
        assert op.opcode == 0xC3
        assert op.operands == ["$1234"]
        assert op.operand_bytes == [0x34, 0x12]
        assert op.value == 0x1234
        assert op.length == 3

    # @intent:test_case_defaults 省略時は1バイト、オペランドなしの命令になることを検証します。
    def test_operation_defaults(self):
        op = Operation(opcode_hex="00", mnemonic="NOP")
        assert op.operands == []
        assert op.operand_bytes == []
        assert op.value is None
        assert op.length == 1

    def test_operation_immutability(self):
        op = Operation(opcode_hex="C3", mnemonic="JMP")
        with pytest.raises(AttributeError):
            op.mnemonic = "CALL"

class TestSnapshot:
    """
    Snapshotデータクラスの単体テスト。
    """
    @pytest.fixture
    def snapshot(self):
        return Snapshot(
            state=CpuState(pc=0x0003, sp=0x2400),
            operation=Operation(opcode_hex="32", mnemonic="STA", operands=["$2000"], length=3),
            metadata=Metadata(cycle_count=13, symbol_info="STA $2000", step_count=1, address=0x0000),
            bus_activity=[
                BusAccess(0x0000, 0x32, BusAccessType.READ),
                BusAccess(0x0001, 0x00, BusAccessType.READ),
                BusAccess(0x0002, 0x20, BusAccessType.READ),
                BusAccess(0x2000, 0x07, BusAccessType.WRITE, previous_data=0x00),
            ],
        )

    # @intent:test_case_filter accesses()が指定種別のアクセスだけを返すことを検証します。
    def test_accesses_filters_by_type(self, snapshot):
        writes = snapshot.accesses(BusAccessType.WRITE)
        assert [access.address for access in writes] == [0x2000]
        assert len(snapshot.accesses(BusAccessType.READ)) == 3
        assert snapshot.accesses(BusAccessType.IO_READ) == []

    def test_snapshot_immutability(self, snapshot):
        with pytest.raises(AttributeError):
            snapshot.operation = Operation(opcode_hex="00", mnemonic="NOP")
        assert snapshot.metadata.address == 0x0000
