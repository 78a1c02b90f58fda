"""
Intel 8080 CPUエミュレーションの中心モジュール。

このモジュールは8080 CPUの具体的な実装を提供し、
AbstractCpuインターフェースを実装します。
"""
from dataclasses import replace
from typing import Dict, List, Optional

from i8080_tracer.core.cpu import AbstractCpu, ADDRESS_SPACE_SIZE
from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation, Metadata, Snapshot
from i8080_tracer.arch.i8080.instructions import decode_opcode, execute_instruction
from i8080_tracer.arch.i8080.instructions.table import decode
from i8080_tracer.arch.i8080 import disassembler
from i8080_tracer.common.types import RegisterLayoutInfo, RegisterInfo
from i8080_tracer.common.errors import AddressOverrunError

HLT_OPCODE = 0x76

# @intent:responsibility 8080 CPUの具体的なエミュレーションロジックを提供します。
class I8080Cpu(AbstractCpu):
    """
    Intel 8080 CPUをエミュレートするクラス。
    AbstractCpuを継承し、8080固有の動作を実装します。
    """
    def __init__(self, bus: Bus):
        super().__init__(bus)

    def _create_initial_state(self) -> I8080CpuState:
        return I8080CpuState()

    # @intent:responsibility 現在のPCからオペコードをフェッチします。PCの更新はstepで命令長に応じて行います。
    def _fetch(self) -> int:
        return self._bus.read(self._state.pc)

    # @intent:responsibility フェッチしたオペコードをデコードします。
    # @intent:pre-condition 命令全体がアドレス空間に収まらない場合、オペランドを読む前にAddressOverrunErrorを送出します。
    def _decode(self, opcode: int) -> Operation:
        pc = self._state.pc
        if pc + decode(opcode).length > ADDRESS_SPACE_SIZE:
            raise AddressOverrunError(pc)
        return decode_opcode(opcode, self._bus, pc)

    # @intent:responsibility アドレス空間末尾(0xFFFF)のHLTは、それ以上フェッチが起きないため停止として扱います。
    # @intent:post-condition その場合PCは実機と同様に0x0000へ折り返し、CPUはHALT状態になります。
    def _update_pc(self, operation: Operation) -> None:
        if operation.opcode == HLT_OPCODE and self._state.pc + operation.length == ADDRESS_SPACE_SIZE:
            self._state.pc = 0x0000
            return
        super()._update_pc(operation)

    def _execute(self, operation: Operation) -> int:
        return execute_instruction(operation, self._state, self._bus)

    # @intent:responsibility CPUがHALT状態の場合、メモリを読まずにPCを維持したスナップショットを返します。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if not self._state.halted:
            return None
        operation = Operation(opcode_hex="76", mnemonic="HLT (suspended)", cycle_count=0, length=0)
        return Snapshot(
            state=replace(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count,
                              symbol_info=f"PC: {current_pc:#06x} -> HLT (suspended)",
                              step_count=self._step_count, address=current_pc),
            bus_activity=[],
        )

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        return {
            "A": s.a, "F": s.flags_byte, "B": s.b, "C": s.c, "D": s.d, "E": s.e, "H": s.h, "L": s.l,
            "BC": s.bc, "DE": s.de, "HL": s.hl, "PSW": s.psw,
            "SP": s.sp, "PC": s.pc,
        }

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("Main Registers", [
                RegisterInfo("A", 8), RegisterInfo("B", 8), RegisterInfo("C", 8), RegisterInfo("D", 8),
                RegisterInfo("E", 8), RegisterInfo("H", 8), RegisterInfo("L", 8),
            ]),
            RegisterLayoutInfo("Register Pairs", [
                RegisterInfo("PSW", 16), RegisterInfo("BC", 16), RegisterInfo("DE", 16), RegisterInfo("HL", 16)
            ]),
            RegisterLayoutInfo("Control", [
                RegisterInfo("SP", 16), RegisterInfo("PC", 16)
            ]),
        ]

    def get_flag_state(self) -> Dict[str, bool]:
        s = self._state
        return {
            "S": s.flag_s,
            "Z": s.flag_z,
            "AC": s.flag_ac,
            "P": s.flag_p,
            "CY": s.flag_cy,
        }

    def disassemble(self, start_addr: int, length: int) -> List[disassembler.DisassembledLine]:
        return disassembler.disassemble(self._bus, start_addr, length)
