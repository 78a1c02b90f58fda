from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass
class IoPort:
    port: int
    label: str = ""
    initial_value: int = 0x00

@dataclass
class CpuInitialState:
    pc: int = 0x0000
    sp: int = 0x0000
    registers: Dict[str, int] = field(default_factory=dict) # 例: {"a": 0x12, "hl": 0x2000}
    interrupts_enabled: bool = False

@dataclass
class RunConfig:
    max_steps: Optional[int] = None # Noneなら無制限
    stop_at_image_end: bool = True # PCがロード済みイメージを越えたら停止する

@dataclass
class SystemConfig:
    load_address: int = 0x0000
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
    run: RunConfig = field(default_factory=RunConfig)
    io_ports: List[IoPort] = field(default_factory=list)
