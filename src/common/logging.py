"""
`callstat` 向けの軽量ロギングユーティリティ。

要点:
- ライブラリ内の各モジュールは `logging.getLogger(__name__)` でロガーを取得するだけで、
  ハンドラは設定しない。
- アプリ/テスト側で設定が無い場合に、最小構成を 1 度だけ適用するヘルパーを提供する。
  レベルは引数 > `CALLSTAT_LOG_LEVEL` の順で決まる。
"""

from __future__ import annotations

import logging

from . import settings
from .env import parse_level

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_default_logging(level: int | str | None = None) -> bool:
    """最小限のロギング設定を 1 度だけ適用する。

    - ルートロガーにハンドラが既にあれば何もしない（no-op、False を返す）
    - 適用した場合は True を返す
    """
    if level is None:
        level = settings.get().LOG_LEVEL
    lvl = parse_level(level)

    root = logging.getLogger()
    if root.handlers:
        # Assume the app has configured logging
        return False
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    return True


__all__ = ["setup_default_logging", "LOG_FORMAT"]
