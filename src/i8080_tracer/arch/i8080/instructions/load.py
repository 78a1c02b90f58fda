"""
8080 データ転送命令およびスタック命令の実装。

MOV, MVI, LXI, LDA, STA, LDAX, STAX, LHLD, SHLD, XCHG, XTHL, SPHL, PUSH, POP。
これらの命令はフラグに影響しません（POP PSWを除く）。
"""
from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from .base import (
    get_register_value, set_register_value, get_pair, push16, pop16, read16, write16
)
from .table import decode


def execute_mov(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    dst, src = decode(operation.opcode).registers
    set_register_value(state, bus, dst, get_register_value(state, bus, src))

def execute_mvi(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (dst,) = decode(operation.opcode).registers
    set_register_value(state, bus, dst, operation.value)

def execute_lxi(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (pair,) = decode(operation.opcode).registers
    state.set_pair(get_pair(pair), operation.value)

def execute_lda(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.a = bus.read(operation.value)

def execute_sta(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    bus.write(operation.value, state.a)

# @intent:responsibility LDAX B/D: BCまたはDEが指すアドレスからAへロードします。
def execute_ldax(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (pair,) = decode(operation.opcode).registers
    state.a = bus.read(state.get_pair(get_pair(pair)))

def execute_stax(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (pair,) = decode(operation.opcode).registers
    bus.write(state.get_pair(get_pair(pair)), state.a)

# @intent:responsibility LHLD: アドレスの内容をLへ、アドレス+1の内容をHへロードします。
def execute_lhld(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.hl = read16(bus, operation.value)

def execute_shld(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    write16(bus, operation.value, state.hl)

def execute_xchg(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.hl, state.de = state.de, state.hl

# @intent:responsibility XTHL: LとSPの内容、HとSP+1の内容を交換します。SPは変化しません。
def execute_xthl(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    top = read16(bus, state.sp)
    write16(bus, state.sp, state.hl)
    state.hl = top

def execute_sphl(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.sp = state.hl

# @intent:responsibility PUSH B/D/H/PSW。PSWの場合はAとフラグバイト（固定ビット込み）を積みます。
def execute_push(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (pair,) = decode(operation.opcode).registers
    push16(state, bus, state.get_pair(get_pair(pair)))

# @intent:responsibility POP B/D/H/PSW。POP PSWはAと5つのフラグ全てを復元します。
def execute_pop(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (pair,) = decode(operation.opcode).registers
    state.set_pair(get_pair(pair), pop16(state, bus))
