# i8080_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、CPUとバスの状態を記録した不変のデータ構造を定義します。
CLIやデバッガへの情報提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from i8080_tracer.core.state import CpuState
from i8080_tracer.transport.bus import BusAccessType, BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    デコードされた命令の詳細（HEX、ニーモニック、オペランド）を記録するデータクラス。
    """
    opcode_hex: str # 例: "C3"
    mnemonic: str # 例: "JMP"
    operands: List[str] = field(default_factory=list) # 例: ["$1234"]
    operand_bytes: List[int] = field(default_factory=list) # 命令ストリーム順の生オペランドバイト（下位→上位）
    value: Optional[int] = None # 再構成された即値またはアドレス ((high << 8) | low)
    cycle_count: int = 0 # 命令実行に必要なステート数（情報用）
    length: int = 1 # 命令のバイト長

    @property
    def opcode(self) -> int:
        return int(self.opcode_hex, 16)

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    """
    実行に関するメタデータ（累計ステート数、ステップ番号、シンボル情報など）を記録するデータクラス。
    """
    cycle_count: int
    symbol_info: Optional[str] = None # 例: "main_loop: JMP $1234"
    step_count: int = 0
    address: Optional[int] = None # 命令の先頭アドレス（実行前のPC）

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    ある一時点における、CPUとバスの状態を記録した不変のデータ構造。
    stateにはステップ実行直後の状態のコピーが格納されます。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)

    # @intent:utility_function このステップで指定種別のアクセスがあったアドレスの一覧を返します。
    def accesses(self, access_type: BusAccessType) -> List[BusAccess]:
        return [access for access in self.bus_activity if access.access_type == access_type]
