"""
8080命令セット実装パッケージ。
"""
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from i8080_tracer.arch.i8080.state import I8080CpuState
from .table import decode, format_operand, combine_operand_bytes, OperandKind
from .maps import EXECUTE_MAP

# @intent:responsibility 与えられたオペコードを8080の命令としてデコードします。
# @intent:pre-condition `pc`はデコードするオペコードの先頭アドレスを指している必要があります。
def decode_opcode(opcode: int, bus: Bus, pc: int) -> Operation:
    """
    デコードテーブルに基づいてオペランドバイトを読み出し、Operationオブジェクトを返します。
    16bitオペランドは命令ストリーム上で下位→上位の順に並び、(high << 8) | low として再構成されます。
    読み出しは pc + length - 1 を越えません。
    """
    info = decode(opcode)
    operand_bytes = [bus.read((pc + offset) & 0xFFFF) for offset in range(1, info.length)]
    value = combine_operand_bytes(operand_bytes)
    operands = list(info.registers)
    if info.kind is not OperandKind.NONE:
        operands.append(format_operand(info.kind, value))
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=info.mnemonic,
        operands=operands,
        operand_bytes=operand_bytes,
        value=value,
        cycle_count=info.cycle_count,
        length=info.length,
    )

# @intent:responsibility デコードされた8080命令を実行し、CPUの状態を変更します。
# @intent:post-condition 戻り値は命令が消費したバイト長で、デコードテーブルの命令長と常に一致します。
def execute_instruction(operation: Operation, state: I8080CpuState, bus: Bus) -> int:
    executor = EXECUTE_MAP[operation.opcode]
    executor(state, bus, operation)
    return operation.length
