"""
8080逆アセンブラモジュール。

メモリ上またはバイト列のバイナリデータを解析し、8080アセンブリ言語のニーモニック形式に変換します。
出力先（コンソール、ファイル、テスト）は呼び出し側が決めるため、このモジュールは
行レコードのリストを返すだけで、一切の入出力を行いません。
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from i8080_tracer.transport.bus import Bus
from i8080_tracer.arch.i8080.instructions.table import decode, OperandKind, OpcodeInfo

# @intent:constant ニーモニック欄の幅。
MNEMONIC_COLUMN = 6


# @intent:responsibility 逆アセンブル結果の1行を表す不変レコードです。
@dataclass(frozen=True)
class DisassembledLine:
    address: int
    hex_bytes: str # 例: "C3 34 12"
    mnemonic: str # 例: "JMP"
    operands: List[str] = field(default_factory=list) # 例: ["$1234"]
    length: int = 1
    truncated: bool = False

    @property
    def text(self) -> str:
        """`MVI   B, #$05` 形式の命令テキスト。"""
        if not self.operands:
            return self.mnemonic
        return f"{self.mnemonic:<{MNEMONIC_COLUMN}}{', '.join(self.operands)}"

    def __str__(self) -> str:
        return f"{self.address:04X}  {self.hex_bytes:<8}  {self.text}"


# @intent:utility_function オペランドを上位バイト→下位バイトの順で表示します。欠けたバイトは"??"になります。
def _render_operand(kind: OperandKind, operand_bytes: Sequence[int]) -> str:
    digits = [f"{b:02X}" for b in operand_bytes]
    digits += ["??"] * (kind.operand_length - len(digits))
    rendered = "".join(reversed(digits))
    prefix = "$" if kind is OperandKind.ADDR16 else "#$"
    return prefix + rendered


def _render(address: int, info: OpcodeInfo, operand_bytes: Sequence[int]) -> DisassembledLine:
    operands = list(info.registers)
    if info.kind is not OperandKind.NONE:
        operands.append(_render_operand(info.kind, operand_bytes))
    hex_bytes = " ".join([f"{info.opcode:02X}"] + [f"{b:02X}" for b in operand_bytes])
    return DisassembledLine(
        address=address,
        hex_bytes=hex_bytes,
        mnemonic=info.mnemonic,
        operands=operands,
        length=info.length,
        truncated=len(operand_bytes) < info.kind.operand_length,
    )


# @intent:responsibility バイト列を先頭から逆アセンブルします。バッファ末尾を越えて読むことはありません。
def disassemble_bytes(data: bytes, origin: int = 0, count: Optional[int] = None) -> List[DisassembledLine]:
    """
    バイト列 `data` を `origin` 番地に置かれたものとして逆アセンブルし、行レコードのリストを返します。
    `count` を指定した場合はその命令数で打ち切ります。
    """
    result: List[DisassembledLine] = []
    offset = 0
    while offset < len(data):
        if count is not None and len(result) >= count:
            break
        info = decode(data[offset])
        operand_bytes = list(data[offset + 1:offset + info.length])
        result.append(_render((origin + offset) & 0xFFFF, info, operand_bytes))
        offset += info.length
    return result


# @intent:responsibility 指定されたメモリ範囲のバイナリデータを解析し、行レコードのリストを返します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[DisassembledLine]:
    """
    バス上のメモリを読み取り（peekを使用するためアクセスログは汚れません）、
    start_addr から length バイトの範囲を逆アセンブルします。
    """
    result: List[DisassembledLine] = []
    current_addr = start_addr
    end_addr = min(start_addr + length, 0x10000)

    while current_addr < end_addr:
        info = decode(bus.peek(current_addr))
        last = min(current_addr + info.length, end_addr)
        operand_bytes = [bus.peek(addr) for addr in range(current_addr + 1, last)]
        result.append(_render(current_addr, info, operand_bytes))
        current_addr += info.length

    return result
