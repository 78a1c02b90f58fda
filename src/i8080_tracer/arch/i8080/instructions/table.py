"""
8080 デコードテーブル。

オペコード(0x00-0xFF)から命令の「形」（ニーモニック、レジスタオペランド、
後続バイトの種類、命令長、分類）への純粋な対応表を定義します。
逆アセンブラと実行エンジンの両方がこのテーブルを参照します。
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


# @intent:responsibility 命令に続くオペランドバイトの種類と表示形式を定義します。
class OperandKind(Enum):
    NONE = 0    # 後続バイトなし
    IMM8 = 1    # 8bit即値 (#$XX)
    PORT = 2    # 8bit I/Oポート番号 (#$XX)
    IMM16 = 3   # 16bit即値 (#$XXXX) 下位→上位の順でストリームに並ぶ
    ADDR16 = 4  # 16bitアドレス ($XXXX) 下位→上位の順でストリームに並ぶ

    @property
    def operand_length(self) -> int:
        if self is OperandKind.NONE:
            return 0
        if self in (OperandKind.IMM8, OperandKind.PORT):
            return 1
        return 2


class Category(Enum):
    TRANSFER = "TRANSFER"
    ARITHMETIC = "ARITHMETIC"
    LOGICAL = "LOGICAL"
    BRANCH = "BRANCH"
    CONTROL = "CONTROL" # スタック、I/O、マシン制御


# @intent:data_structure 1オペコード分のデコード結果を表す不変レコードです。
@dataclass(frozen=True)
class OpcodeInfo:
    opcode: int
    mnemonic: str
    registers: Tuple[str, ...] = ()
    kind: OperandKind = OperandKind.NONE
    cycle_count: int = 4
    category: Category = Category.CONTROL
    undocumented: bool = False

    @property
    def length(self) -> int:
        return 1 + self.kind.operand_length


# @intent:constant レジスタフィールド(3bit)の並び。6はH:Lによる間接参照(M)です。
REGISTER_NAMES = ("B", "C", "D", "E", "H", "L", "M", "A")
# @intent:constant LXI/INX/DCX/DADのレジスタペアフィールド(2bit)。
PAIR_NAMES = ("B", "D", "H", "SP")
# @intent:constant PUSH/POPのレジスタペアフィールド(2bit)。
STACK_PAIR_NAMES = ("B", "D", "H", "PSW")
# @intent:constant 条件フィールド(3bit)。
CONDITION_NAMES = ("NZ", "Z", "NC", "C", "PO", "PE", "P", "M")
ALU_NAMES = ("ADD", "ADC", "SUB", "SBB", "ANA", "XRA", "ORA", "CMP")
ALU_IMMEDIATE_NAMES = ("ADI", "ACI", "SUI", "SBI", "ANI", "XRI", "ORI", "CPI")

# @intent:constant 8080の命令セットで未割り当てのオペコード。1バイトのNOPとして扱います。
UNASSIGNED_OPCODES = (0x08, 0x10, 0x18, 0x20, 0x28, 0x30, 0x38, 0xCB, 0xD9, 0xDD, 0xED, 0xFD)


def _alu_category(index: int) -> Category:
    return Category.ARITHMETIC if index < 4 else Category.LOGICAL


# @intent:responsibility 256エントリのデコードテーブルを構築します。
def _build_table() -> List[OpcodeInfo]:
    table: List[Optional[OpcodeInfo]] = [None] * 0x100

    def put(opcode: int, mnemonic: str, registers: Tuple[str, ...] = (), kind: OperandKind = OperandKind.NONE,
            cycles: int = 4, category: Category = Category.CONTROL) -> None:
        if table[opcode] is not None:
            raise ValueError(f"Opcode {opcode:02X} defined twice")
        table[opcode] = OpcodeInfo(opcode, mnemonic, registers, kind, cycles, category)

    # --- 0x00-0x3F ---
    put(0x00, "NOP")
    for code, pair in enumerate(PAIR_NAMES):
        base = code << 4
        put(0x01 | base, "LXI", (pair,), OperandKind.IMM16, 10, Category.TRANSFER)
        put(0x03 | base, "INX", (pair,), cycles=5, category=Category.ARITHMETIC)
        put(0x09 | base, "DAD", (pair,), cycles=10, category=Category.ARITHMETIC)
        put(0x0B | base, "DCX", (pair,), cycles=5, category=Category.ARITHMETIC)
    for code, reg in enumerate(REGISTER_NAMES):
        base = code << 3
        memory = reg == "M"
        put(0x04 | base, "INR", (reg,), cycles=10 if memory else 5, category=Category.ARITHMETIC)
        put(0x05 | base, "DCR", (reg,), cycles=10 if memory else 5, category=Category.ARITHMETIC)
        put(0x06 | base, "MVI", (reg,), OperandKind.IMM8, 10 if memory else 7, Category.TRANSFER)
    put(0x02, "STAX", ("B",), cycles=7, category=Category.TRANSFER)
    put(0x12, "STAX", ("D",), cycles=7, category=Category.TRANSFER)
    put(0x0A, "LDAX", ("B",), cycles=7, category=Category.TRANSFER)
    put(0x1A, "LDAX", ("D",), cycles=7, category=Category.TRANSFER)
    put(0x22, "SHLD", (), OperandKind.ADDR16, 16, Category.TRANSFER)
    put(0x2A, "LHLD", (), OperandKind.ADDR16, 16, Category.TRANSFER)
    put(0x32, "STA", (), OperandKind.ADDR16, 13, Category.TRANSFER)
    put(0x3A, "LDA", (), OperandKind.ADDR16, 13, Category.TRANSFER)
    put(0x07, "RLC", category=Category.LOGICAL)
    put(0x0F, "RRC", category=Category.LOGICAL)
    put(0x17, "RAL", category=Category.LOGICAL)
    put(0x1F, "RAR", category=Category.LOGICAL)
    put(0x27, "DAA", category=Category.ARITHMETIC)
    put(0x2F, "CMA", category=Category.LOGICAL)
    put(0x37, "STC", category=Category.LOGICAL)
    put(0x3F, "CMC", category=Category.LOGICAL)

    # --- 0x40-0x7F: MOV / HLT ---
    for opcode in range(0x40, 0x80):
        if opcode == 0x76:
            put(0x76, "HLT", cycles=7)
            continue
        dst = REGISTER_NAMES[(opcode >> 3) & 0b111]
        src = REGISTER_NAMES[opcode & 0b111]
        put(opcode, "MOV", (dst, src), cycles=7 if "M" in (dst, src) else 5, category=Category.TRANSFER)

    # --- 0x80-0xBF: ALU r ---
    for index, name in enumerate(ALU_NAMES):
        for code, reg in enumerate(REGISTER_NAMES):
            put(0x80 | (index << 3) | code, name, (reg,), cycles=7 if reg == "M" else 4,
                category=_alu_category(index))

    # --- 0xC0-0xFF ---
    for index, name in enumerate(ALU_IMMEDIATE_NAMES):
        put(0xC6 | (index << 3), name, (), OperandKind.IMM8, 7, _alu_category(index))
    for index, cond in enumerate(CONDITION_NAMES):
        base = index << 3
        put(0xC0 | base, f"R{cond}", cycles=11, category=Category.BRANCH)
        put(0xC2 | base, f"J{cond}", (), OperandKind.ADDR16, 10, Category.BRANCH)
        put(0xC4 | base, f"C{cond}", (), OperandKind.ADDR16, 17, Category.BRANCH)
        put(0xC7 | base, "RST", (str(index),), cycles=11, category=Category.BRANCH)
    for code, pair in enumerate(STACK_PAIR_NAMES):
        put(0xC1 | (code << 4), "POP", (pair,), cycles=10)
        put(0xC5 | (code << 4), "PUSH", (pair,), cycles=11)
    put(0xC3, "JMP", (), OperandKind.ADDR16, 10, Category.BRANCH)
    put(0xC9, "RET", cycles=10, category=Category.BRANCH)
    put(0xCD, "CALL", (), OperandKind.ADDR16, 17, Category.BRANCH)
    put(0xE9, "PCHL", cycles=5, category=Category.BRANCH)
    put(0xD3, "OUT", (), OperandKind.PORT, 10)
    put(0xDB, "IN", (), OperandKind.PORT, 10)
    put(0xE3, "XTHL", cycles=18, category=Category.TRANSFER)
    put(0xEB, "XCHG", cycles=5, category=Category.TRANSFER)
    put(0xF3, "DI")
    put(0xFB, "EI")
    put(0xF9, "SPHL", cycles=5)

    for opcode in UNASSIGNED_OPCODES:
        table[opcode] = OpcodeInfo(opcode, "NOP", undocumented=True)

    missing = [f"{op:02X}" for op, info in enumerate(table) if info is None]
    if missing:
        raise ValueError(f"Decode table is missing opcodes: {', '.join(missing)}")
    return table


OPCODE_TABLE: Tuple[OpcodeInfo, ...] = tuple(_build_table())


# @intent:responsibility オペコードバイトからデコード結果を返す純粋関数です。全ての値(0-255)に対して定義されます。
def decode(opcode: int) -> OpcodeInfo:
    return OPCODE_TABLE[opcode & 0xFF]


# @intent:responsibility 再構成済みのオペランド値を表示用文字列に変換します。
def format_operand(kind: OperandKind, value: int) -> str:
    if kind in (OperandKind.IMM8, OperandKind.PORT):
        return f"#${value:02X}"
    if kind is OperandKind.IMM16:
        return f"#${value:04X}"
    if kind is OperandKind.ADDR16:
        return f"${value:04X}"
    return ""


# @intent:utility_function 命令ストリーム順（下位→上位）のバイト列から値を再構成します。
def combine_operand_bytes(operand_bytes: List[int]) -> Optional[int]:
    if not operand_bytes:
        return None
    if len(operand_bytes) == 1:
        return operand_bytes[0]
    low, high = operand_bytes[0], operand_bytes[1]
    return (high << 8) | low
