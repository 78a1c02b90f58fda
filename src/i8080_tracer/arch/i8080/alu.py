"""
8080 ALU (算術論理演算ユニット) およびフラグ操作ユーティリティ。

演算結果に基づいたフラグ（Z, S, P, AC, CY）の計算と更新を担当します。
各命令は影響するフラグ集合を明示して apply_flags を呼び出し、
集合に含まれないフラグは決して変更されません。
"""
from typing import Optional, Tuple

from i8080_tracer.arch.i8080.state import I8080CpuState, Flag, ALL_FLAGS, ZSPAC_FLAGS

# --- Flag primitives ---

# @intent:responsibility 指定されたバイト値のパリティ（ビット1の数が偶数ならTrue）を計算します。
def parity(value: int) -> bool:
    """8ビット値のパリティ（偶数ならTrue）を計算します。"""
    value &= 0xFF
    value ^= value >> 4
    value ^= value >> 2
    value ^= value >> 1
    return (value & 1) == 0

def sign(value: int) -> bool:
    return (value & 0x80) != 0

def zero(value: int) -> bool:
    return (value & 0xFF) == 0

# @intent:responsibility bit7からの桁上がり（加算）またはbit7への借り（減算）を判定します。
# @intent:rationale 8bitに切り詰めた後の比較ではなく、拡張した中間値で判定します。
def carry(value: int, operand: int, subtraction: bool = False, carry_in: int = 0) -> bool:
    """
    演算前の被演算子 `value` と `operand` からキャリー/ボローを計算します。
    加算: value + operand + carry_in > 0xFF
    減算: value - operand - carry_in < 0
    """
    if subtraction:
        return (value & 0xFF) - (operand & 0xFF) - carry_in < 0
    return (value & 0xFF) + (operand & 0xFF) + carry_in > 0xFF

# @intent:responsibility bit3からbit4への桁上がりを判定します。
# @intent:rationale 8080の減算は補数の加算 a + ~v + (1 - borrow) で行われ、ACはその下位ニブルの桁上がりです。
def aux_carry(value: int, operand: int, subtraction: bool = False, carry_in: int = 0) -> bool:
    """下位ニブル同士と入力キャリーから補助キャリーを計算します。"""
    if subtraction:
        return (value & 0x0F) + (~operand & 0x0F) + (1 - carry_in) > 0x0F
    return (value & 0x0F) + (operand & 0x0F) + carry_in > 0x0F

# @intent:responsibility 影響フラグ集合に含まれるフラグだけを更新する共通ステップです。
# @intent:pre-condition AC/CYが集合に含まれる場合、その値を呼び出し側が計算して渡す必要があります。
def apply_flags(state: I8080CpuState, affected: Flag, result: int,
                ac: Optional[bool] = None, cy: Optional[bool] = None) -> None:
    """
    Z, S, P は result から計算し、AC と CY は渡された値を設定します。
    affected に含まれないフラグは変更しません。
    """
    if affected & Flag.Z:
        state.flag_z = zero(result)
    if affected & Flag.S:
        state.flag_s = sign(result)
    if affected & Flag.P:
        state.flag_p = parity(result)
    if affected & Flag.AC:
        if ac is None:
            raise ValueError("AC is in the affected set but no value was supplied.")
        state.flag_ac = ac
    if affected & Flag.CY:
        if cy is None:
            raise ValueError("CY is in the affected set but no value was supplied.")
        state.flag_cy = cy

# --- Arithmetic helpers ---

# @intent:responsibility 8ビット加算（ADD/ADC/ADI/ACI）を行い、全フラグを更新して結果を返します。
def add8(state: I8080CpuState, value: int, operand: int, carry_in: int = 0) -> int:
    result = (value + operand + carry_in) & 0xFF
    apply_flags(state, ALL_FLAGS, result,
                ac=aux_carry(value, operand, carry_in=carry_in),
                cy=carry(value, operand, carry_in=carry_in))
    return result

# @intent:responsibility 8ビット減算（SUB/SBB/SUI/SBI/CMP/CPI）を行い、全フラグを更新して結果を返します。
def sub8(state: I8080CpuState, value: int, operand: int, borrow_in: int = 0) -> int:
    result = (value - operand - borrow_in) & 0xFF
    apply_flags(state, ALL_FLAGS, result,
                ac=aux_carry(value, operand, subtraction=True, carry_in=borrow_in),
                cy=carry(value, operand, subtraction=True, carry_in=borrow_in))
    return result

# @intent:responsibility INR/DCR。CYは変化しません。
def inc8(state: I8080CpuState, value: int) -> int:
    result = (value + 1) & 0xFF
    apply_flags(state, ZSPAC_FLAGS, result, ac=aux_carry(value, 1))
    return result

def dec8(state: I8080CpuState, value: int) -> int:
    result = (value - 1) & 0xFF
    apply_flags(state, ZSPAC_FLAGS, result, ac=aux_carry(value, 1, subtraction=True))
    return result

# @intent:responsibility 論理演算の結果に基づいてフラグを更新します。CYは常にクリアされます。
def logic8(state: I8080CpuState, result: int, ac: bool = False) -> int:
    result &= 0xFF
    apply_flags(state, ALL_FLAGS, result, ac=ac, cy=False)
    return result

# @intent:responsibility DADの16ビット加算。CYのみ更新されます。
def add16(state: I8080CpuState, value: int, operand: int) -> int:
    wide = (value & 0xFFFF) + (operand & 0xFFFF)
    apply_flags(state, Flag.CY, wide, cy=wide > 0xFFFF)
    return wide & 0xFFFF

# @intent:responsibility DAAの十進補正規則。補正後の値と新しいAC/CYを返します。
def decimal_adjust(value: int, ac: bool, cy: bool) -> Tuple[int, bool, bool]:
    """
    下位ニブルが9を越えるかACが立っていれば0x06を加算し、
    上位ニブルが9を越える、CYが立っている、または上位ニブルが9以上かつ下位ニブルが9を越える場合は0x60を加算します。
    0x60を加算した場合CYは1になり、それ以外ではCYは保持されます。
    """
    low = value & 0x0F
    high = value >> 4
    correction = 0
    new_cy = cy
    if ac or low > 9:
        correction |= 0x06
    if cy or high > 9 or (high >= 9 and low > 9):
        correction |= 0x60
        new_cy = True
    new_ac = aux_carry(value, correction)
    return (value + correction) & 0xFF, new_ac, new_cy

def daa(state: I8080CpuState) -> None:
    result, ac, cy = decimal_adjust(state.a, state.flag_ac, state.flag_cy)
    apply_flags(state, ALL_FLAGS, result, ac=ac, cy=cy)
    state.a = result
