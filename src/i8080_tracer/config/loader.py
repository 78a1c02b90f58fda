import yaml
from typing import Dict, Any, Optional
from i8080_tracer.common.errors import ConfigError
from .models import SystemConfig, CpuInitialState, RunConfig, IoPort

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"{path}: cannot read configuration: {e.strerror}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e
        return self.parse(data)

    # @intent:responsibility YAMLから得た辞書をSystemConfigへ変換します。空のファイルは既定値の構成になります。
    def parse(self, data: Optional[Dict[str, Any]]) -> SystemConfig:
        if data is None:
            return SystemConfig()
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")

        load_address = self._parse_address(data.get("load_address", 0), "load_address")

        # Parse Initial State
        initial_state_data = self._section(data, "initial_state")
        registers = {}
        for reg_name, value in (initial_state_data.get("registers") or {}).items():
            registers[str(reg_name).lower()] = self._parse_int(value, f"registers.{reg_name}")
        initial_state = CpuInitialState(
            pc=self._parse_address(initial_state_data.get("pc", 0), "initial_state.pc"),
            sp=self._parse_address(initial_state_data.get("sp", 0), "initial_state.sp"),
            registers=registers,
            interrupts_enabled=bool(initial_state_data.get("interrupts_enabled", False)),
        )

        # Parse Run Settings
        run_data = self._section(data, "run")
        max_steps = run_data.get("max_steps")
        run = RunConfig(
            max_steps=None if max_steps is None else self._parse_int(max_steps, "run.max_steps"),
            stop_at_image_end=bool(run_data.get("stop_at_image_end", True)),
        )

        # Parse I/O Ports
        io_ports = []
        for port_data in data.get("io_ports") or []:
            if not isinstance(port_data, dict) or "port" not in port_data:
                raise ConfigError(f"Invalid io_ports entry: {port_data!r}")
            port = self._parse_int(port_data["port"], "io_ports.port")
            if not 0 <= port <= 0xFF:
                raise ConfigError(f"I/O port {port:#04x} is out of range (0x00-0xFF)")
            io_ports.append(IoPort(
                port=port,
                label=str(port_data.get("label", "")),
                initial_value=self._parse_int(port_data.get("initial_value", 0), "io_ports.initial_value") & 0xFF,
            ))

        return SystemConfig(
            load_address=load_address,
            initial_state=initial_state,
            run=run,
            io_ports=io_ports,
        )

    def _section(self, data: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"'{name}' must be a mapping")
        return section

    def _parse_address(self, value: Any, name: str) -> int:
        address = self._parse_int(value, name)
        if not 0 <= address <= 0xFFFF:
            raise ConfigError(f"{name} {address:#x} is outside the 16-bit address space")
        return address

    def _parse_int(self, value: Any, name: str = "value") -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format for {name}: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip()
            try:
                if text.lower().startswith("0x"):
                    return int(text, 16)
                if text.startswith("$"):
                    return int(text[1:], 16)
                return int(text)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer format for {name}: {value}")
