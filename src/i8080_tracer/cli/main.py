"""
i8080-tracer - Intel 8080 Disassembler / Tracer Command-Line Interface
======================================================================
バイナリイメージ（または Intel HEX）を読み込み、逆アセンブルするか、
8080 CPU上で実行して最終的なレジスタ状態を表示します。

Usage Examples
--------------
逆アセンブル（既定）:
    $ i8080-tracer program.bin

Intel HEX を実行し、1命令ごとにトレース:
    $ i8080-tracer program.hex --hex --run --trace

構成ファイルとステップ数上限を指定して実行:
    $ i8080-tracer program.bin --run -c system.yaml -n 5000
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from i8080_tracer import __version__
from i8080_tracer.common.errors import TracerError
from i8080_tracer.config.models import SystemConfig
from i8080_tracer.config.loader import ConfigLoader
from i8080_tracer.config.builder import SystemBuilder
from i8080_tracer.loader.loader import BinaryLoader, IntelHexLoader
from i8080_tracer.debugger.debugger import Debugger, StopReason
from i8080_tracer.core.snapshot import Snapshot

logger = logging.getLogger(__name__)

# @intent:constant 終了コード。使用法エラー(2)はclick自身が返します。
EXIT_SUCCESS = 0
EXIT_ERROR = 1


def _format_trace(snapshot: Snapshot) -> str:
    address = snapshot.metadata.address
    text = snapshot.operation.mnemonic
    if snapshot.operation.operands:
        text = f"{text:<6}{', '.join(snapshot.operation.operands)}"
    return f"{address:04X}  {snapshot.operation.opcode_hex}  {text}"


# @intent:responsibility レジスタレイアウトのグループごとに1行ずつ、最後にフラグを1行で整形します。
def _format_registers(cpu) -> str:
    regs = cpu.get_register_map()
    lines = []
    for group in cpu.get_register_layout():
        lines.append(" ".join(
            f"{reg.name}={regs[reg.name]:0{reg.width // 4}X}" for reg in group.registers
        ))
    lines.append(" ".join(f"{name}={int(value)}" for name, value in cpu.get_flag_state().items()))
    return "\n".join(lines)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "image",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--disassemble/--run",
    "disassemble_mode",
    default=True,
    help="Disassemble the image (default) or execute it",
)
@click.option(
    "--hex",
    "intel_hex",
    is_flag=True,
    help="Treat IMAGE as Intel HEX instead of raw binary",
)
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML system configuration file",
)
@click.option(
    "-n", "--max-steps",
    type=click.IntRange(min=0),
    default=None,
    help="Maximum number of instructions to execute (overrides the configuration)",
)
@click.option(
    "--trace",
    is_flag=True,
    help="In run mode, print one line per executed instruction",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="i8080-tracer")
def main(
    image: Path,
    disassemble_mode: bool,
    intel_hex: bool,
    config_path: Optional[Path],
    max_steps: Optional[int],
    trace: bool,
    verbose: bool,
) -> None:
    """
    Disassemble or execute Intel 8080 machine code.

    IMAGE is the binary (or Intel HEX) file to load.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ConfigLoader().load_from_file(str(config_path)) if config_path else SystemConfig()
        cpu, bus = SystemBuilder().build_system(config)

        if intel_hex:
            hex_loader = IntelHexLoader()
            image_end = hex_loader.load_intel_hex(str(image), bus)
            image_start = hex_loader.image_start if hex_loader.image_start is not None else config.load_address
        else:
            image_start = config.load_address
            image_end = BinaryLoader().load_binary(str(image), bus, config.load_address)
        logger.debug("Image occupies %#06x-%#06x", image_start, image_end)

        if disassemble_mode:
            for line in cpu.disassemble(image_start, image_end - image_start):
                click.echo(str(line))
            return

        limit = max_steps if max_steps is not None else config.run.max_steps
        debugger = Debugger(
            cpu,
            image_end=image_end if config.run.stop_at_image_end else None,
            max_steps=limit,
            history_limit=0,
        )
        on_step = (lambda snapshot: click.echo(_format_trace(snapshot))) if trace else None
        reason = debugger.run(on_step=on_step)
    except TracerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ERROR)

    click.echo(_format_registers(cpu))
    click.echo(f"Stopped: {reason.value}")
    if reason is StopReason.ADDRESS_OVERRUN:
        click.echo(f"Error: {debugger.last_error}", err=True)
        sys.exit(EXIT_ERROR)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
