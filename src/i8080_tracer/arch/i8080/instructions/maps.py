"""
8080 命令マッピング定義。
各命令モジュールから関数をインポートし、オペコードと実行関数の対応表を構築します。
デコード（命令の形）は table.OPCODE_TABLE が、実行（命令の意味）はこの EXECUTE_MAP が担います。
"""
from .table import UNASSIGNED_OPCODES
from .alu import (
    execute_alu_r, execute_alu_immediate, execute_inr, execute_dcr, execute_inx, execute_dcx,
    execute_dad, execute_daa, execute_rotate, execute_cma, execute_stc, execute_cmc
)
from .load import (
    execute_mov, execute_mvi, execute_lxi, execute_lda, execute_sta, execute_ldax, execute_stax,
    execute_lhld, execute_shld, execute_xchg, execute_xthl, execute_sphl, execute_push, execute_pop
)
from .control import (
    execute_nop, execute_hlt, execute_jmp, execute_jcc, execute_call, execute_ccc, execute_ret,
    execute_rcc, execute_rst, execute_pchl, execute_in, execute_out, execute_ei, execute_di
)

EXECUTE_MAP = {
    0x00: execute_nop,
    0x02: execute_stax,
    0x12: execute_stax,
    0x0A: execute_ldax,
    0x1A: execute_ldax,
    0x22: execute_shld,
    0x2A: execute_lhld,
    0x32: execute_sta,
    0x3A: execute_lda,
    0x07: execute_rotate,
    0x0F: execute_rotate,
    0x17: execute_rotate,
    0x1F: execute_rotate,
    0x27: execute_daa,
    0x2F: execute_cma,
    0x37: execute_stc,
    0x3F: execute_cmc,
    0x76: execute_hlt,
    0xC3: execute_jmp,
    0xC9: execute_ret,
    0xCD: execute_call,
    0xD3: execute_out,
    0xDB: execute_in,
    0xE3: execute_xthl,
    0xE9: execute_pchl,
    0xEB: execute_xchg,
    0xF3: execute_di,
    0xF9: execute_sphl,
    0xFB: execute_ei,
    **{op: execute_lxi for op in range(0x01, 0x40, 0x10)}, # LXI B/D/H/SP
    **{op: execute_inx for op in range(0x03, 0x40, 0x10)}, # INX
    **{op: execute_dad for op in range(0x09, 0x40, 0x10)}, # DAD
    **{op: execute_dcx for op in range(0x0B, 0x40, 0x10)}, # DCX
    **{op: execute_inr for op in range(0x04, 0x40, 0x08)}, # INR r
    **{op: execute_dcr for op in range(0x05, 0x40, 0x08)}, # DCR r
    **{op: execute_mvi for op in range(0x06, 0x40, 0x08)}, # MVI r
    **{op: execute_mov for op in range(0x40, 0x80) if op != 0x76},
    **{op: execute_alu_r for op in range(0x80, 0xC0)}, # ADD..CMP r
    **{op: execute_alu_immediate for op in range(0xC6, 0x100, 0x08)}, # ADI..CPI
    **{op: execute_rcc for op in range(0xC0, 0x100, 0x08)}, # Rcc
    **{op: execute_jcc for op in range(0xC2, 0x100, 0x08)}, # Jcc
    **{op: execute_ccc for op in range(0xC4, 0x100, 0x08)}, # Ccc
    **{op: execute_rst for op in range(0xC7, 0x100, 0x08)}, # RST n
    **{op: execute_pop for op in range(0xC1, 0x100, 0x10)}, # POP B/D/H/PSW
    **{op: execute_push for op in range(0xC5, 0x100, 0x10)}, # PUSH B/D/H/PSW
    **{op: execute_nop for op in UNASSIGNED_OPCODES},
}
