"""
どこで: `common` パッケージ。
何を: `callstat` が使う環境変数パーサ/設定/ロギング/ID 生成の軽量ユーティリティ。
なぜ: 反射呼び出しのコア（`callstat`）から周辺関心事を分離し、依存の向きを単純化するため。
"""

from .func_id import impl_id
from .logging import setup_default_logging

__all__ = [
    "impl_id",
    "setup_default_logging",
]
