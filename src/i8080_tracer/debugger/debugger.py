# i8080_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）、
HLT、アドレスオーバーラン、ステップ数上限のいずれかで実行を中断させる責務を負います。
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from collections import deque
from typing import Callable, Deque, List, Optional

from i8080_tracer.core.cpu import AbstractCpu
from i8080_tracer.core.snapshot import Snapshot, BusAccessType
from i8080_tracer.core.state import CpuState
from i8080_tracer.common.errors import AddressOverrunError

logger = logging.getLogger(__name__)

# @intent:constant ステップバック用に保持するSnapshotの既定の最大数。
DEFAULT_HISTORY_LIMIT = 10000

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    IO_READ = "IO_READ"                 # 特定のI/Oポートが読み込まれた
    IO_WRITE = "IO_WRITE"               # 特定のI/Oポートに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility run() が停止した理由を表します。
class StopReason(Enum):
    HALTED = "HALTED"
    BREAKPOINT = "BREAKPOINT"
    ADDRESS_OVERRUN = "ADDRESS_OVERRUN"
    STEP_LIMIT = "STEP_LIMIT"
    STOPPED = "STOPPED"

_ACCESS_TYPES = {
    BreakpointConditionType.MEMORY_READ: BusAccessType.READ,
    BreakpointConditionType.MEMORY_WRITE: BusAccessType.WRITE,
    BreakpointConditionType.IO_READ: BusAccessType.IO_READ,
    BreakpointConditionType.IO_WRITE: BusAccessType.IO_WRITE,
}

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITE, IO_READ, IO_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用（例: "a", "hl", "sp"）
    enabled: bool = True                  # 有効/無効状態

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理を行うクラス。

    `image_end` を指定すると、PCがロード済みイメージ（image_end未満のアドレス）を
    離れた時点でAddressOverrunErrorとして扱います。
    `max_steps` は run() 1回あたりの実行命令数の上限です。
    `history_limit` はステップバック用に保持する履歴の最大数で、古いものから破棄されます。
    0を指定すると履歴を記録せず、Noneを指定すると無制限に保持します。
    """
    def __init__(self, cpu: AbstractCpu, image_end: Optional[int] = None, max_steps: Optional[int] = None,
                 history_limit: Optional[int] = DEFAULT_HISTORY_LIMIT):
        self._cpu = cpu
        self._image_end = image_end
        self._max_steps = max_steps
        self._breakpoints: List[BreakpointCondition] = []
        self._running: bool = False
        self._previous_state: CpuState = replace(self._cpu.get_state())
        self._last_snapshot: Optional[Snapshot] = None
        self._last_error: Optional[AddressOverrunError] = None
        # @intent:responsibility 実行履歴を保持し、ステップバックをサポートします。
        self._history: Deque[Snapshot] = deque(maxlen=history_limit)
        # @intent:responsibility 履歴が尽きた時に戻るための状態を保持します。最古の履歴が破棄されるとその状態に進みます。
        self._initial_state: CpuState = replace(self._cpu.get_state())

    @property
    def image_end(self) -> Optional[int]:
        return self._image_end

    @property
    def last_error(self) -> Optional[AddressOverrunError]:
        """直近の run() をADDRESS_OVERRUNで止めた例外。"""
        return self._last_error

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        """
        ブレークポイント条件を追加します。
        """
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        """
        現在設定されている全てのブレークポイントのリストを返します。
        """
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def _is_pc_breakpoint(self, pc: int) -> bool:
        return any(bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
                   for bp in self._breakpoints)

    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            access_type = _ACCESS_TYPES.get(bp.condition_type)
            if access_type is not None:
                if any(access.address == bp.address for access in snapshot.accesses(access_type)):
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name and hasattr(current_state, bp.register_name):
                    if getattr(current_state, bp.register_name) == bp.value:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                if bp.register_name and hasattr(current_state, bp.register_name):
                    if getattr(current_state, bp.register_name) != getattr(self._previous_state, bp.register_name):
                        return True
        return False

    # @intent:responsibility CPUを1命令分実行し、その結果のSnapshotを返します。
    # @intent:pre-condition PCがimage_end以上の場合、命令をフェッチせずAddressOverrunErrorを送出します。
    def step_instruction(self) -> Snapshot:
        state = self._cpu.get_state()
        if self._image_end is not None and not getattr(state, "halted", False) and state.pc >= self._image_end:
            raise AddressOverrunError(
                state.pc, f"Program counter left the loaded image at {state.pc:#06x}")

        self._previous_state = replace(state)
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot
        self._record(snapshot)
        return snapshot

    def _record(self, snapshot: Snapshot) -> None:
        if self._history.maxlen == 0:
            return
        if len(self._history) == self._history.maxlen:
            self._initial_state = replace(self._history[0].state)
        self._history.append(snapshot)

    def step_back(self) -> Optional[Snapshot]:
        """
        実行履歴を1つ戻り、CPUとメモリの状態を復元します。
        """
        if not self._history:
            return None

        snapshot_to_revert = self._history.pop()
        bus = self._cpu.bus

        # バスアクティビティを逆順にスキャンし、書き込み操作があれば元に戻す
        for access in reversed(snapshot_to_revert.accesses(BusAccessType.WRITE)):
            if access.previous_data is not None:
                bus.load(access.address, access.previous_data)

        if self._history:
            previous_snapshot = self._history[-1]
            self._cpu.restore_state(previous_snapshot.state)
            self._last_snapshot = previous_snapshot
            return previous_snapshot

        self._cpu.restore_state(self._initial_state)
        self._last_snapshot = None
        return None

    # @intent:responsibility 停止条件のいずれかを満たすまでCPUを実行し、停止理由を返します。
    # @intent:post-condition AddressOverrunErrorは伝播せず、StopReason.ADDRESS_OVERRUNとして報告されます。
    def run(self, on_step: Optional[Callable[[Snapshot], None]] = None) -> StopReason:
        """
        `on_step` を指定すると、各命令の実行直後にそのSnapshotを渡して呼び出します。
        コールバック内で stop() を呼ぶと、StopReason.STOPPEDで停止します。
        """
        self._running = True
        self._last_error = None
        steps = 0

        # 現在のPCにあるブレークポイントで即座に止まらないよう、最初の1命令は無条件に実行します。
        skip_pc_check = self._is_pc_breakpoint(self._cpu.get_state().pc)

        while self._running:
            state = self._cpu.get_state()
            if getattr(state, "halted", False):
                self._running = False
                logger.info("CPU halted at PC: %#06x", state.pc)
                return StopReason.HALTED

            if not skip_pc_check and self._is_pc_breakpoint(state.pc):
                self._running = False
                logger.info("Breakpoint hit at PC: %#06x", state.pc)
                return StopReason.BREAKPOINT
            skip_pc_check = False

            if self._max_steps is not None and steps >= self._max_steps:
                self._running = False
                logger.info("Step limit of %d reached at PC: %#06x", self._max_steps, state.pc)
                return StopReason.STEP_LIMIT

            try:
                snapshot = self.step_instruction()
            except AddressOverrunError as e:
                self._running = False
                self._last_error = e
                logger.info("%s", e)
                return StopReason.ADDRESS_OVERRUN
            steps += 1
            if on_step is not None:
                on_step(snapshot)

            if self._check_other_breakpoints(snapshot):
                self._running = False
                logger.info("Breakpoint hit at PC: %#06x", snapshot.state.pc)
                return StopReason.BREAKPOINT

        return StopReason.STOPPED

    def stop(self) -> None:
        self._running = False
