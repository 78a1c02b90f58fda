import logging
from typing import Tuple
from i8080_tracer.transport.bus import Bus, RAM, PortLatch
from i8080_tracer.arch.i8080.cpu import I8080Cpu
from i8080_tracer.arch.i8080.state import RegisterPair
from i8080_tracer.common.errors import ConfigError
from .models import SystemConfig, CpuInitialState

logger = logging.getLogger(__name__)

# @intent:constant 8080のメモリ空間は64KBのフラットなRAM1枚で構成します。
MEMORY_SIZE = 0x10000

_BYTE_REGISTERS = ("a", "b", "c", "d", "e", "h", "l", "f")
_PAIR_REGISTERS = {"bc": RegisterPair.BC, "de": RegisterPair.DE, "hl": RegisterPair.HL, "psw": RegisterPair.PSW}

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: SystemConfig) -> Tuple[I8080Cpu, Bus]:
        bus = Bus()
        bus.register_device(0x0000, MEMORY_SIZE - 1, RAM(MEMORY_SIZE))
        logger.debug("Mapped RAM %#06x-%#06x", 0, MEMORY_SIZE - 1)

        for io_port in config.io_ports:
            bus.register_io_device(io_port.port, PortLatch(io_port.label, io_port.initial_value))
            logger.debug("Mapped I/O port %#04x (%s)", io_port.port, io_port.label or "latch")

        cpu = I8080Cpu(bus)

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        return cpu, bus

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: I8080Cpu, config_state: CpuInitialState):
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        8bitレジスタ（a, b, ... l, f）に加えて、レジスタペア（bc, de, hl, psw）も指定できます。
        """
        cpu.reset()
        state = cpu.get_state()

        state.pc = config_state.pc
        state.sp = config_state.sp
        state.interrupts_enabled = config_state.interrupts_enabled

        for reg_name, value in config_state.registers.items():
            if reg_name in _BYTE_REGISTERS:
                if not 0 <= value <= 0xFF:
                    raise ConfigError(f"Register {reg_name} value {value:#x} is not an 8-bit value")
                if reg_name == "f":
                    state.psw = (state.a << 8) | value
                else:
                    setattr(state, reg_name, value)
            elif reg_name in _PAIR_REGISTERS:
                if not 0 <= value <= 0xFFFF:
                    raise ConfigError(f"Register pair {reg_name} value {value:#x} is not a 16-bit value")
                state.set_pair(_PAIR_REGISTERS[reg_name], value)
            else:
                raise ConfigError(f"Unknown register '{reg_name}'")
