"""
8080 算術・論理演算命令の実装。
"""
from i8080_tracer.arch.i8080.state import I8080CpuState, Flag
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from i8080_tracer.arch.i8080.alu import (
    add8, sub8, inc8, dec8, logic8, add16, daa, apply_flags
)
from .base import get_register_value, set_register_value, get_pair
from .table import decode


# @intent:responsibility アキュムレータと8bitオペランドの演算を1か所で定義します。
# @intent:rationale レジスタ版(ADD r 等)と即値版(ADI 等)は同じ演算表を共有します。
def _accumulate(state: I8080CpuState, index: int, value: int) -> None:
    a = state.a
    carry_in = 1 if state.flag_cy else 0
    if index == 0:   # ADD / ADI
        state.a = add8(state, a, value)
    elif index == 1: # ADC / ACI
        state.a = add8(state, a, value, carry_in=carry_in)
    elif index == 2: # SUB / SUI
        state.a = sub8(state, a, value)
    elif index == 3: # SBB / SBI
        state.a = sub8(state, a, value, borrow_in=carry_in)
    elif index == 4: # ANA / ANI
        # 8080のANDはオペランドどちらかのbit3が立っていればACをセットする
        state.a = logic8(state, a & value, ac=((a | value) & 0x08) != 0)
    elif index == 5: # XRA / XRI
        state.a = logic8(state, a ^ value)
    elif index == 6: # ORA / ORI
        state.a = logic8(state, a | value)
    else:            # CMP / CPI (結果は破棄)
        sub8(state, a, value)


def execute_alu_r(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    opcode = operation.opcode
    (src,) = decode(opcode).registers
    _accumulate(state, (opcode >> 3) & 0b111, get_register_value(state, bus, src))

def execute_alu_immediate(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    _accumulate(state, (operation.opcode >> 3) & 0b111, operation.value)

def execute_inr(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (reg,) = decode(operation.opcode).registers
    set_register_value(state, bus, reg, inc8(state, get_register_value(state, bus, reg)))

def execute_dcr(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    (reg,) = decode(operation.opcode).registers
    set_register_value(state, bus, reg, dec8(state, get_register_value(state, bus, reg)))

# @intent:responsibility INX/DCX。16bitで折り返し、フラグは一切変化しません。
def execute_inx(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    pair = get_pair(decode(operation.opcode).registers[0])
    state.set_pair(pair, state.get_pair(pair) + 1)

def execute_dcx(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    pair = get_pair(decode(operation.opcode).registers[0])
    state.set_pair(pair, state.get_pair(pair) - 1)

def execute_dad(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    pair = get_pair(decode(operation.opcode).registers[0])
    state.hl = add16(state, state.hl, state.get_pair(pair))

def execute_daa(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    daa(state)

# @intent:responsibility RLC/RRC/RAL/RAR。アキュムレータを1bit回転し、CYのみ更新します。
def execute_rotate(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    a = state.a
    mnemonic = decode(operation.opcode).mnemonic
    old_cy = 1 if state.flag_cy else 0
    if mnemonic == "RLC":
        cy = a >> 7
        result = ((a << 1) | cy) & 0xFF
    elif mnemonic == "RRC":
        cy = a & 1
        result = (a >> 1) | (cy << 7)
    elif mnemonic == "RAL":
        cy = a >> 7
        result = ((a << 1) | old_cy) & 0xFF
    else: # RAR
        cy = a & 1
        result = (a >> 1) | (old_cy << 7)
    apply_flags(state, Flag.CY, result, cy=bool(cy))
    state.a = result

def execute_cma(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.a = ~state.a & 0xFF

def execute_stc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.flag_cy = True

def execute_cmc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.flag_cy = not state.flag_cy
