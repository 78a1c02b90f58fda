# tests/debugger/test_debugger.py
"""
i8080_tracer.debugger.debuggerモジュールの単体テスト。
Debuggerの実行制御、ブレークポイント管理、停止理由、およびステップバックを検証します。
"""
import pytest
from unittest.mock import patch

from i8080_tracer.transport.bus import Bus, RAM, PortLatch
from i8080_tracer.arch.i8080.cpu import I8080Cpu
from i8080_tracer.common.errors import AddressOverrunError
from i8080_tracer.debugger.debugger import (
    Debugger, BreakpointCondition, BreakpointConditionType, StopReason, DEFAULT_HISTORY_LIMIT
)

# @intent:test_suite デバッガのブレークポイントと実行制御機能の検証。

def load_program(bus: Bus, program, address: int = 0x0000) -> int:
    for offset, byte in enumerate(program):
        bus.load(address + offset, byte)
    return address + len(program)

class TestDebugger:
    """
    Debuggerの単体テスト。
    """
    @pytest.fixture
    def setup_cpu(self):
        bus = Bus()
        bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
        cpu = I8080Cpu(bus)
        return cpu, bus

    # @intent:test_case_add_remove_breakpoint ブレークポイントの追加、更新、削除が正しく行われることを検証します。
    def test_breakpoint_management(self, setup_cpu):
        cpu, _ = setup_cpu
        debugger = Debugger(cpu)
        bp1 = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x1000)
        bp2 = BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x2000)

        debugger.add_breakpoint(bp1)
        debugger.add_breakpoint(bp2)
        debugger.add_breakpoint(bp1) # 重複追加は無視される
        assert debugger.get_breakpoints() == [bp1, bp2]

        bp1_disabled = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x1000, enabled=False)
        debugger.update_breakpoint(bp1, bp1_disabled)
        assert debugger.get_breakpoints() == [bp1_disabled, bp2]

        debugger.remove_breakpoint(bp2)
        debugger.remove_breakpoint(bp2) # 存在しないブレークポイントの削除はエラーにならない
        assert debugger.get_breakpoints() == [bp1_disabled]

    # @intent:test_case_halted HLTで停止し、StopReason.HALTEDを返すことを検証します。
    def test_run_until_halt(self, setup_cpu):
        cpu, bus = setup_cpu
        end = load_program(bus, [0x3E, 0x01, 0x3C, 0x76])  # MVI A,1 / INR A / HLT
        debugger = Debugger(cpu, image_end=end)
        assert debugger.run() == StopReason.HALTED
        assert cpu.get_state().a == 0x02
        assert len(debugger.get_history()) == 3
        assert debugger.get_last_snapshot().operation.mnemonic == "HLT"

    # @intent:test_case_image_end PCがロード済みイメージを離れるとADDRESS_OVERRUNで停止することを検証します。
    def test_run_off_end_of_image(self, setup_cpu):
        cpu, bus = setup_cpu
        end = load_program(bus, [0x3E, 0xFF, 0x3C])
        debugger = Debugger(cpu, image_end=end)
        assert debugger.run() == StopReason.ADDRESS_OVERRUN
        assert debugger.last_error.address == 0x0003
        assert cpu.get_state().a == 0x00
        assert cpu.get_state().flag_z is True

    def test_step_instruction_past_image_end_raises(self, setup_cpu):
        cpu, bus = setup_cpu
        end = load_program(bus, [0x00])
        debugger = Debugger(cpu, image_end=end)
        debugger.step_instruction()
        with pytest.raises(AddressOverrunError):
            debugger.step_instruction()

    def test_run_wraps_address_space(self, setup_cpu):
        cpu, _ = setup_cpu
        cpu.get_state().pc = 0xFFFE
        debugger = Debugger(cpu)
        assert debugger.run() == StopReason.ADDRESS_OVERRUN
        assert debugger.last_error.address == 0xFFFF

    def test_run_halts_on_hlt_at_last_address(self, setup_cpu):
        cpu, bus = setup_cpu
        end = load_program(bus, [0x3C, 0x76], address=0xFFFE)  # INR A / HLT
        cpu.get_state().pc = 0xFFFE
        debugger = Debugger(cpu, image_end=end)
        assert end == 0x10000
        assert debugger.run() == StopReason.HALTED
        assert debugger.last_error is None
        assert cpu.get_state().a == 0x01

    def test_step_limit(self, setup_cpu):
        cpu, _ = setup_cpu
        debugger = Debugger(cpu, max_steps=10)
        assert debugger.run() == StopReason.STEP_LIMIT
        assert cpu.get_state().pc == 0x000A

    # @intent:test_case_pc_breakpoint PC一致のブレークポイントで命令実行前に停止し、再開時は同じ位置で止まらないことを検証します。
    def test_pc_breakpoint_and_resume(self, setup_cpu):
        cpu, bus = setup_cpu
        end = load_program(bus, [0x00, 0x00, 0x3C, 0x76])
        debugger = Debugger(cpu, image_end=end)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x0002))

        assert debugger.run() == StopReason.BREAKPOINT
        assert cpu.get_state().pc == 0x0002
        assert cpu.get_state().a == 0x00

        assert debugger.run() == StopReason.HALTED
        assert cpu.get_state().a == 0x01

    def test_disabled_breakpoint_is_ignored(self, setup_cpu):
        cpu, bus = setup_cpu
        end = load_program(bus, [0x00, 0x76])
        debugger = Debugger(cpu, image_end=end)
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=0x0001, enabled=False))
        assert debugger.run() == StopReason.HALTED

    @pytest.mark.parametrize("condition", [
        BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x2000),
        BreakpointCondition(BreakpointConditionType.MEMORY_READ, address=0x2000),
        BreakpointCondition(BreakpointConditionType.REGISTER_VALUE, register_name="a", value=0x07),
        BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="a"),
    ])
    def test_access_and_register_breakpoints(self, setup_cpu, condition):
        cpu, bus = setup_cpu
        # 0000: NOP / 0001: MVI A,07 / 0003: STA 2000 / 0006: LDA 2000 / 0009: HLT
        end = load_program(bus, [0x00, 0x3E, 0x07, 0x32, 0x00, 0x20, 0x3A, 0x00, 0x20, 0x76])
        debugger = Debugger(cpu, image_end=end)
        debugger.add_breakpoint(condition)

        assert debugger.run() == StopReason.BREAKPOINT
        expected_pc = {
            BreakpointConditionType.MEMORY_WRITE: 0x0006,
            BreakpointConditionType.MEMORY_READ: 0x0009,
            BreakpointConditionType.REGISTER_VALUE: 0x0003,
            BreakpointConditionType.REGISTER_CHANGE: 0x0003,
        }[condition.condition_type]
        assert cpu.get_state().pc == expected_pc

    @pytest.mark.parametrize("condition_type, opcode", [
        (BreakpointConditionType.IO_WRITE, 0xD3),
        (BreakpointConditionType.IO_READ, 0xDB),
    ])
    def test_io_breakpoints(self, setup_cpu, condition_type, opcode):
        cpu, bus = setup_cpu
        bus.register_io_device(0x01, PortLatch())
        end = load_program(bus, [0x00, opcode, 0x01, 0x76])
        debugger = Debugger(cpu, image_end=end)
        debugger.add_breakpoint(BreakpointCondition(condition_type, address=0x01))
        assert debugger.run() == StopReason.BREAKPOINT
        assert cpu.get_state().pc == 0x0003

    # @intent:test_case_stop コールバック内でstop()を呼ぶとSTOPPEDで停止することを検証します。
    def test_stop_from_callback(self, setup_cpu):
        cpu, _ = setup_cpu
        debugger = Debugger(cpu)
        seen = []

        def on_step(snapshot):
            seen.append(snapshot.metadata.address)
            if len(seen) == 3:
                debugger.stop()

        assert debugger.run(on_step=on_step) == StopReason.STOPPED
        assert seen == [0x0000, 0x0001, 0x0002]

    # @intent:test_case_step_back ステップバックでレジスタとメモリが以前の状態に戻ることを検証します。
    def test_step_back_restores_memory_and_state(self, setup_cpu):
        cpu, bus = setup_cpu
        bus.load(0x2000, 0x55)
        load_program(bus, [0x3E, 0x07, 0x32, 0x00, 0x20])  # MVI A,07 / STA 2000
        debugger = Debugger(cpu)

        debugger.step_instruction()
        debugger.step_instruction()
        assert bus.peek(0x2000) == 0x07

        previous = debugger.step_back()
        assert bus.peek(0x2000) == 0x55
        assert previous.operation.mnemonic == "MVI"
        assert cpu.get_state().pc == 0x0002
        assert cpu.get_state().a == 0x07

        assert debugger.step_back() is None
        assert cpu.get_state().pc == 0x0000
        assert cpu.get_state().a == 0x00
        assert debugger.get_last_snapshot() is None
        assert debugger.step_back() is None

    # @intent:test_case_history_limit 長時間の実行でも履歴が上限を越えて増えないことを検証します。
    def test_history_is_bounded(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(bus, [0xC3, 0x00, 0x00])  # JMP $0000
        debugger = Debugger(cpu, max_steps=5000, history_limit=100)
        assert debugger.run() == StopReason.STEP_LIMIT
        assert cpu.step_count == 5000
        history = debugger.get_history()
        assert len(history) == 100
        assert history[-1].metadata.step_count == 5000
        assert history[0].metadata.step_count == 4901

    def test_default_history_limit(self, setup_cpu):
        cpu, _ = setup_cpu
        debugger = Debugger(cpu, max_steps=DEFAULT_HISTORY_LIMIT + 10)
        debugger.run()
        assert len(debugger.get_history()) == DEFAULT_HISTORY_LIMIT

    def test_history_disabled(self, setup_cpu):
        cpu, _ = setup_cpu
        debugger = Debugger(cpu, max_steps=50, history_limit=0)
        assert debugger.run() == StopReason.STEP_LIMIT
        assert debugger.get_history() == []
        assert debugger.get_last_snapshot().metadata.step_count == 50
        assert debugger.step_back() is None
        assert cpu.get_state().pc == 0x0032

    # @intent:test_case_step_back_trimmed 破棄された履歴より前には戻らず、保持している最古の直前の状態で止まることを検証します。
    def test_step_back_stops_at_oldest_kept_step(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(bus, [0x3C, 0x3C, 0x3C, 0x3C])  # INR A x4
        debugger = Debugger(cpu, history_limit=2)
        for _ in range(4):
            debugger.step_instruction()
        assert cpu.get_state().a == 0x04

        assert debugger.step_back().state.a == 0x03
        assert debugger.step_back() is None
        assert cpu.get_state().a == 0x02
        assert cpu.get_state().pc == 0x0002
        assert debugger.step_back() is None
        assert cpu.get_state().a == 0x02

    def test_step_instruction_delegates_to_cpu(self, setup_cpu):
        cpu, _ = setup_cpu
        debugger = Debugger(cpu)
        with patch.object(cpu, "step", wraps=cpu.step) as mock_step:
            snapshot = debugger.step_instruction()
        mock_step.assert_called_once()
        assert debugger.get_history() == [snapshot]
