"""
どこで: `common.settings`
何を: `callstat` の環境変数（`CALLSTAT_*`）を型付きで一元管理し、import 時に読み込む。
なぜ: プール/キャッシュ/ログの既定値を 1 か所にまとめ、テストで差し替えやすくするため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_int, env_str


@dataclass
class _Settings:
    # 引数プール
    POOL_MAX_IDLE: int = 64
    USE_POOL: bool = True

    # 型キャッシュ
    TYPE_CACHE_ENABLED: bool = True
    DEBUG_CACHE: bool = False

    # ロギング
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込する。

    - 整数は下限 0 へ丸める。
    - 不正値は既定値へフォールバックする。
    """
    _settings.POOL_MAX_IDLE = env_int("CALLSTAT_POOL_MAX_IDLE", 64, min_value=0) or 0
    _settings.USE_POOL = env_bool("CALLSTAT_USE_POOL", True)

    _settings.TYPE_CACHE_ENABLED = env_bool("CALLSTAT_TYPE_CACHE_ENABLED", True)
    _settings.DEBUG_CACHE = env_bool("CALLSTAT_DEBUG_CACHE", False)

    _settings.LOG_LEVEL = env_str("CALLSTAT_LOG_LEVEL", "INFO")


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
