# i8080_tracer/transport/bus.py
"""
Transport Layer (共通バス)

このモジュールは、システム全体のメモリアドレス空間と8080の独立したI/Oポート空間を抽象化し、
読み書きアクセスを適切なデバイスに委譲する責務を負います。
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
from enum import Enum

# @intent:constant 8080のI/Oポート空間は8bit（256ポート）です。
IO_PORT_COUNT = 0x100

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"
    IO_READ = "IO_READ"
    IO_WRITE = "IO_WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType
    # @intent:rationale 書き込み前の値を保持しておくことで、デバッガのステップバック（Undo）を可能にします。
    previous_data: Optional[int] = None

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class Device(ABC):
    """
    メモリ空間またはI/O空間に接続されるデバイス。
    メモリデバイスにはマップ先頭からのオフセットが、I/Oデバイスにはポート番号が渡されます。
    """
    @abstractmethod
    def read(self, address: int) -> int:
        pass

    # @intent:pre-condition dataは0x00-0xFFの範囲である必要があります。
    @abstractmethod
    def write(self, address: int, data: int) -> None:
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    """
    8080の64KBフラットメモリを表現するRAMデバイス。
    """
    # @intent:responsibility 指定されたサイズのメモリ領域を初期化します。
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    # @intent:responsibility RAMのサイズを返します。
    def get_size(self) -> int:
        return self._size

# @intent:responsibility 1バイトの値を保持するだけの単純なI/Oポートデバイスです。
class PortLatch(Device):
    """
    OUTで書き込まれた最後の値を保持し、INでその値を返すラッチ。
    周辺機器モデルを持たない構成でポートの入出力を観測するために使用します。
    """
    def __init__(self, label: str = "", initial_value: int = 0x00):
        self.label = label
        self._value = initial_value & 0xFF
        self.history: List[int] = []

    def read(self, address: int) -> int:
        return self._value

    def write(self, address: int, data: int) -> None:
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._value = data
        self.history.append(data)

# @intent:responsibility メモリアドレス空間とI/Oポート空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class Bus:
    """
    メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
    バス上で行われた全てのメモリ/IOアクセスを記録する機能を提供します。
    """
    def __init__(self):
        # メモリマップ: (start_address, end_address, device) のタプルリスト
        self._memory_map: List[Tuple[int, int, Device]] = []
        self._io_map: Dict[int, Device] = {}
        self._bus_activity_log: List[BusAccess] = []

    def _log_access(self, address: int, data: int, access_type: BusAccessType,
                    previous_data: Optional[int] = None) -> None:
        self._bus_activity_log.append(
            BusAccess(address=address, data=data, access_type=access_type, previous_data=previous_data)
        )

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        """
        現在のバスアクティビティログを返し、内部ログをクリアします。
        """
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:pre-condition start_address <= end_addressかつ非負であり、deviceはDeviceのインスタンスである必要があります。
    # @intent:rationale アドレス範囲の重複チェックは行いません。これはBusの責務ではなく、システム構築層で管理されます。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        if not (0 <= start_address <= end_address):
            raise ValueError("Invalid address range: start_address must be <= end_address and non-negative.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")

        if isinstance(device, RAM):
            expected_size = end_address - start_address + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

        self._memory_map.append((start_address, end_address, device))

    # @intent:responsibility I/Oポートにデバイスを接続します。
    def register_io_device(self, port: int, device: Device) -> None:
        """
        指定されたI/Oポート（0x00-0xFF）にデバイスを登録します。
        同じポートへの再登録は以前のデバイスを置き換えます。
        """
        if not 0 <= port < IO_PORT_COUNT:
            raise ValueError(f"I/O port {port} is out of range (0x00-0xFF).")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        self._io_map[port] = device

    def has_io_device(self, port: int) -> bool:
        return port in self._io_map

    # @intent:responsibility 指定されたアドレスに対応するデバイスとオフセットを検索します。
    # @intent:post-condition デバイスが見つからなかった場合、IndexErrorを発生させます。
    def _find_device(self, address: int) -> Tuple[Device, int]:
        for start, end, device in self._memory_map:
            if start <= address <= end:
                return device, address - start
        raise IndexError(f"Address {address:#06x} not mapped to any device.")

    def read(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アクセスはログに記録されます。
        """
        device, offset = self._find_device(address)
        data = device.read(offset)
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します。
    def peek(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します（ログ記録なし）。
        逆アセンブラやCLIのダンプなどのインスペクタ用。
        """
        device, offset = self._find_device(address)
        return device.read(offset)

    def write(self, address: int, data: int) -> None:
        """
        指定されたアドレスに8bitのデータを書き込みます。
        書き込み前の値も合わせてログに記録されます。
        """
        device, offset = self._find_device(address)
        previous = device.read(offset)
        device.write(offset, data)
        self._log_access(address, data, BusAccessType.WRITE, previous_data=previous)

    # @intent:responsibility ローダーやデバッガが使用する、ログを残さない書き込みです。
    def load(self, address: int, data: int) -> None:
        device, offset = self._find_device(address)
        device.write(offset, data)

    # @intent:responsibility 指定されたI/Oポートから8bitのデータを読み出します。
    # @intent:post-condition デバイスが接続されていないポートではNoneを返し、ログも記録しません。
    def read_io(self, port: int) -> Optional[int]:
        device = self._io_map.get(port)
        if device is None:
            return None
        data = device.read(port)
        self._log_access(port, data, BusAccessType.IO_READ)
        return data

    # @intent:responsibility 指定されたI/Oポートに8bitのデータを書き込みます。
    # @intent:post-condition デバイスが接続されていないポートへの書き込みは何も起こしません。
    def write_io(self, port: int, data: int) -> None:
        device = self._io_map.get(port)
        if device is None:
            return
        device.write(port, data)
        self._log_access(port, data, BusAccessType.IO_WRITE)
