"""
例外階層の定義。

トレーサ全体で送出される例外はすべて TracerError を基底とするため、
呼び出し側は単一の except 節でまとめて捕捉できます。

TracerError
├── LoadError            - イメージの読み込み失敗（読めない / 64KBを超える / 形式不正）
├── AddressOverrunError  - PCがロード済みイメージの外、または0xFFFFを越えて進んだ
└── ConfigError          - YAML構成ファイルの値が不正

算術演算のオーバーフローは例外になりません。8bit/16bit演算は常に
256 / 65536 を法として折り返し、オーバーフローはフラグでのみ通知されます。
"""
from typing import Optional


class TracerError(Exception):
    """全てのトレーサ例外の基底クラス。"""
    pass


# @intent:responsibility イメージのロード失敗を表します。命令実行前に報告される致命的エラーです。
class LoadError(TracerError):
    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


# @intent:responsibility プログラムカウンタがアドレス空間（またはロード済みイメージ）を越えたことを表します。
class AddressOverrunError(TracerError):
    def __init__(self, address: int, message: Optional[str] = None):
        self.address = address
        super().__init__(message or f"Program counter overran the address space at {address:#06x}")


class ConfigError(TracerError):
    """構成ファイルの値が解釈できない場合に送出されます。"""
    pass
