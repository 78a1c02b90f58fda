"""
8080 制御命令（分岐、サブルーチン、I/O、マシン制御）の実装。

実行時点でPCは既に次の命令を指しています（CPUがデコード後に命令長分進めるため）。
したがってCALL/RSTが積む戻り番地は現在のPCそのものです。
"""
from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from .base import condition_met, push16, pop16


def execute_nop(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    # Intentional: no-op (including unassigned opcodes)
    pass

# @intent:responsibility HLT。CPUを停止状態にし、実行ループの終端とします。
def execute_hlt(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.halted = True

def execute_jmp(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = operation.value

# @intent:responsibility Jcc。条件不成立の場合も3バイトを消費して次の命令へ進みます。
def execute_jcc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    if condition_met(state, (operation.opcode >> 3) & 0b111):
        state.pc = operation.value

def execute_call(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    push16(state, bus, state.pc)
    state.pc = operation.value

def execute_ccc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    if condition_met(state, (operation.opcode >> 3) & 0b111):
        push16(state, bus, state.pc)
        state.pc = operation.value

def execute_ret(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = pop16(state, bus)

def execute_rcc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    if condition_met(state, (operation.opcode >> 3) & 0b111):
        state.pc = pop16(state, bus)

# @intent:responsibility RST n。戻り番地を積み、n*8番地へ分岐します。
def execute_rst(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    push16(state, bus, state.pc)
    state.pc = operation.opcode & 0b00111000

def execute_pchl(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = state.hl

# @intent:responsibility IN port。ポートにデバイスが接続されていない場合、Aは変化しません。
def execute_in(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    data = bus.read_io(operation.value)
    if data is not None:
        state.a = data & 0xFF

def execute_out(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    bus.write_io(operation.value, state.a)

def execute_ei(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.interrupts_enabled = True

def execute_di(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.interrupts_enabled = False
