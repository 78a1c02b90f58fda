# i8080_tracer/loader/loader.py
"""
コードローダーモジュール。
生バイナリおよび Intel HEX 形式のロードをサポートします。
"""
import logging
from typing import Optional

from i8080_tracer.transport.bus import Bus
from i8080_tracer.common.errors import LoadError

logger = logging.getLogger(__name__)

# @intent:constant ロード可能なアドレス空間のサイズ。
ADDRESS_SPACE_SIZE = 0x10000


# @intent:responsibility 生バイナリファイルを指定アドレスからバスへロードします。
class BinaryLoader:
    """
    ヘッダを持たない生のバイナリイメージをそのままメモリへ配置するローダー。
    """
    # @intent:post-condition 戻り値はイメージ末尾の次のアドレス（ロードアドレス + バイト数）です。
    def load_binary(self, file_path: str, bus: Bus, address: int = 0) -> int:
        try:
            with open(file_path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise LoadError(f"Cannot read image: {e.strerror}", path=file_path) from e

        if not 0 <= address < ADDRESS_SPACE_SIZE:
            raise LoadError(f"Load address {address:#06x} is outside the address space", path=file_path)
        if address + len(data) > ADDRESS_SPACE_SIZE:
            raise LoadError(
                f"Image of {len(data)} bytes does not fit at {address:#06x}", path=file_path)

        for offset, byte_data in enumerate(data):
            bus.load(address + offset, byte_data)

        logger.debug("Loaded %d bytes from %s at %#06x", len(data), file_path, address)
        return address + len(data)


class IntelHexLoader:
    """
    Intel HEX形式のファイルを解析し、データをバスにロードするローダー。
    """
    def __init__(self):
        # @intent:state 直近のロードでデータレコードが書き込んだ最小アドレス（データがなければNone）。
        self.image_start: Optional[int] = None

    # @intent:post-condition 戻り値はデータレコードが書き込んだ最大アドレスの次のアドレスです。
    def load_intel_hex(self, file_path: str, bus: Bus) -> int:
        current_extended_address = 0x0000
        self.image_start = None
        image_end = 0

        try:
            with open(file_path, 'r') as f:
                lines = f.readlines()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"Cannot read image: {e}", path=file_path) from e

        for line_num, line in enumerate(lines, 1):
            line = line.strip()
            if not line or not line.startswith(':'):
                continue

            comment_start = line.find(';')
            if comment_start != -1:
                line = line[:comment_start].strip()

            if len(line) < 11:
                raise LoadError(f"Invalid Intel HEX record on line {line_num}: Too short - {line}", path=file_path)

            try:
                data_length = int(line[1:3], 16)
                address_field = int(line[3:7], 16)
                record_type = int(line[7:9], 16)
                data_part_str = line[9:-2]
                checksum_field = int(line[-2:], 16)
                data = [int(data_part_str[i*2:(i*2)+2], 16) for i in range(len(data_part_str) // 2)]
            except ValueError as e:
                raise LoadError(f"Error parsing Intel HEX line {line_num}: {line} - {e}", path=file_path) from e

            if len(data_part_str) != data_length * 2:
                raise LoadError(f"Data length mismatch on line {line_num}", path=file_path)

            checksum_sum = data_length + (address_field >> 8) + (address_field & 0xFF) + record_type + sum(data)
            calculated_checksum = (~checksum_sum + 1) & 0xFF
            if calculated_checksum != checksum_field:
                raise LoadError(
                    f"Checksum mismatch on line {line_num}: Calculated {calculated_checksum:02X}, "
                    f"Expected {checksum_field:02X}", path=file_path)

            if record_type == 0x00:
                load_address = current_extended_address + address_field
                if load_address + data_length > ADDRESS_SPACE_SIZE:
                    raise LoadError(
                        f"Record on line {line_num} does not fit in the address space", path=file_path)
                for i, byte_data in enumerate(data):
                    bus.load(load_address + i, byte_data)
                image_end = max(image_end, load_address + data_length)
                if data_length and (self.image_start is None or load_address < self.image_start):
                    self.image_start = load_address
            elif record_type == 0x01:
                break
            elif record_type == 0x02:
                current_extended_address = combine_segment(data) << 4
            elif record_type == 0x04:
                current_extended_address = combine_segment(data) << 16
            elif record_type == 0x03 or record_type == 0x05:
                pass
            else:
                raise LoadError(f"Unknown Intel HEX record type {record_type:02X} on line {line_num}", path=file_path)

        logger.debug("Loaded Intel HEX %s, image ends at %#06x", file_path, image_end)
        return image_end


def combine_segment(data) -> int:
    value = 0
    for byte_data in data:
        value = (value << 8) | byte_data
    return value
