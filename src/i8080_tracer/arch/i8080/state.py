"""
Intel 8080 CPU固有の状態定義。

このモジュールは、8080のレジスタ、フラグ、およびその他の状態を保持するデータ構造を定義します。
"""
from dataclasses import dataclass
from enum import Enum, IntFlag

from i8080_tracer.core.state import CpuState

# @intent:constant 8080フラグレジスタ（PSWの下位バイト）内の各フラグビットの位置を定義します。
class Flag(IntFlag):
    CY = 0b00000001  # Carry (キャリー)
    # 0b00000010 # 常に1
    P = 0b00000100   # Parity (パリティ)
    # 0b00001000 # 常に0
    AC = 0b00010000  # Auxiliary Carry (補助キャリー)
    # 0b00100000 # 常に0
    Z = 0b01000000   # Zero (ゼロ)
    S = 0b10000000   # Sign (符号)

# @intent:constant 命令ごとの影響フラグ集合として頻出する組み合わせ。
ALL_FLAGS = Flag.S | Flag.Z | Flag.AC | Flag.P | Flag.CY
ZSPAC_FLAGS = Flag.S | Flag.Z | Flag.AC | Flag.P

# @intent:constant PUSH PSWで積まれるフラグバイトの固定ビット（bit1=1, bit3=bit5=0）。
FLAGS_FIXED_SET = 0b00000010
FLAGS_MASK = int(ALL_FLAGS)

# @intent:responsibility 16bitレジスタペアを識別するタグです。
class RegisterPair(Enum):
    BC = "bc"
    DE = "de"
    HL = "hl"
    SP = "sp"
    PSW = "psw"

# @intent:responsibility 8080 CPUの全てのレジスタとフラグの状態を保持します。
@dataclass
class I8080CpuState(CpuState):
    """
    8080 CPUのレジスタ状態を保持するデータクラス。
    CpuStateを拡張し、8080固有のレジスタを含みます。
    """
    a: int = 0x00
    b: int = 0x00
    c: int = 0x00
    d: int = 0x00
    e: int = 0x00
    h: int = 0x00
    l: int = 0x00
    f: int = 0x00  # Flag register

    interrupts_enabled: bool = False # EI/DIで切り替わるラッチ
    halted: bool = False # HLTによる停止状態

    # @intent:accessor Fレジスタの各フラグビットにアクセスするためのプロパティを提供します。
    # @intent:rationale フラグを直接ビット操作する代わりに、名前付きのプロパティとして提供することで可読性を高めます。

    def get_flag(self, flag: Flag) -> bool:
        return (self.f & int(flag)) != 0

    def set_flag(self, flag: Flag, value: bool) -> None:
        if value:
            self.f |= int(flag)
        else:
            self.f &= ~int(flag) & 0xFF

    @property
    def flag_s(self) -> bool:
        return self.get_flag(Flag.S)

    @flag_s.setter
    def flag_s(self, value: bool) -> None:
        self.set_flag(Flag.S, value)

    @property
    def flag_z(self) -> bool:
        return self.get_flag(Flag.Z)

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        self.set_flag(Flag.Z, value)

    @property
    def flag_ac(self) -> bool:
        return self.get_flag(Flag.AC)

    @flag_ac.setter
    def flag_ac(self, value: bool) -> None:
        self.set_flag(Flag.AC, value)

    @property
    def flag_p(self) -> bool:
        return self.get_flag(Flag.P)

    @flag_p.setter
    def flag_p(self, value: bool) -> None:
        self.set_flag(Flag.P, value)

    @property
    def flag_cy(self) -> bool:
        return self.get_flag(Flag.CY)

    @flag_cy.setter
    def flag_cy(self, value: bool) -> None:
        self.set_flag(Flag.CY, value)

    # 16-bit register pairs
    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF

    # @intent:accessor PSW (A + フラグバイト)。読み出し時は固定ビットを含む実機と同じバイト列を返します。
    @property
    def psw(self) -> int:
        return (self.a << 8) | self.flags_byte

    @psw.setter
    def psw(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f = value & FLAGS_MASK

    @property
    def flags_byte(self) -> int:
        return (self.f & FLAGS_MASK) | FLAGS_FIXED_SET

    # @intent:responsibility レジスタペア識別子による汎用アクセサ。ペア演算はこれを介して一度だけ記述されます。
    def get_pair(self, pair: RegisterPair) -> int:
        return getattr(self, pair.value)

    def set_pair(self, pair: RegisterPair, value: int) -> None:
        setattr(self, pair.value, value & 0xFFFF)
