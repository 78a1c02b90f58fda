"""
8080命令セット実装のための共通ヘルパー関数と定数。
"""
from i8080_tracer.arch.i8080.state import I8080CpuState, RegisterPair
from i8080_tracer.transport.bus import Bus

# @intent:constant 命令中のペア名（B/D/H/SP/PSW）からRegisterPairへの対応。
PAIR_CODES = {
    "B": RegisterPair.BC, "D": RegisterPair.DE, "H": RegisterPair.HL,
    "SP": RegisterPair.SP, "PSW": RegisterPair.PSW,
}

CONDITION_CODES = ("NZ", "Z", "NC", "C", "PO", "PE", "P", "M")

# @intent:utility_function レジスタ名（またはM）に基づいて現在の値を取得します。
def get_register_value(state: I8080CpuState, bus: Bus, reg_name: str) -> int:
    if reg_name == "M":
        return bus.read(state.hl)
    return getattr(state, reg_name.lower())

# @intent:utility_function レジスタ名（またはM）に値を設定します。
def set_register_value(state: I8080CpuState, bus: Bus, reg_name: str, value: int) -> None:
    if reg_name == "M":
        bus.write(state.hl, value & 0xFF)
    else:
        setattr(state, reg_name.lower(), value & 0xFF)

def get_pair(name: str) -> RegisterPair:
    return PAIR_CODES[name]

# @intent:utility_function 条件フィールドを現在のフラグで評価します。
def condition_met(state: I8080CpuState, code: int) -> bool:
    cond = CONDITION_CODES[code & 0b111]
    if cond == "NZ":
        return not state.flag_z
    if cond == "Z":
        return state.flag_z
    if cond == "NC":
        return not state.flag_cy
    if cond == "C":
        return state.flag_cy
    if cond == "PO":
        return not state.flag_p
    if cond == "PE":
        return state.flag_p
    if cond == "P":
        return not state.flag_s
    return state.flag_s # M

# @intent:utility_function 16bit値をスタックに積みます。上位バイトをSP-1、下位バイトをSP-2に書き込みます。
def push16(state: I8080CpuState, bus: Bus, value: int) -> None:
    bus.write((state.sp - 1) & 0xFFFF, (value >> 8) & 0xFF)
    bus.write((state.sp - 2) & 0xFFFF, value & 0xFF)
    state.sp = (state.sp - 2) & 0xFFFF

# @intent:utility_function スタックから16bit値を取り出します。
def pop16(state: I8080CpuState, bus: Bus) -> int:
    low = bus.read(state.sp)
    high = bus.read((state.sp + 1) & 0xFFFF)
    state.sp = (state.sp + 2) & 0xFFFF
    return (high << 8) | low

def read16(bus: Bus, address: int) -> int:
    return bus.read(address & 0xFFFF) | (bus.read((address + 1) & 0xFFFF) << 8)

def write16(bus: Bus, address: int, value: int) -> None:
    bus.write(address & 0xFFFF, value & 0xFF)
    bus.write((address + 1) & 0xFFFF, (value >> 8) & 0xFF)
