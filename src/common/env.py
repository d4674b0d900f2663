"""
どこで: `common.env`
何を: `CALLSTAT_*` 環境変数を型付きで読むための小さなパーサ群。
なぜ: `os.getenv` + 例外/境界ガードを設定層（`common.settings`）に集約するため。
"""

from __future__ import annotations

import logging
import os
from typing import Optional

_TRUE = {"true", "t", "yes", "y", "on"}
_FALSE = {"false", "f", "no", "n", "off"}


def env_int(
    name: str, default: Optional[int] = None, *, min_value: Optional[int] = None
) -> Optional[int]:
    """整数の環境変数を読む（未設定/不正値は `default`）。

    Parameters
    ----------
    name : str
        環境変数名。
    default : Optional[int]
        既定値。
    min_value : Optional[int]
        下限。指定時は結果を下限へ丸める。

    Returns
    -------
    Optional[int]
        解釈した整数値。
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        val = int(raw.strip())
    except ValueError:
        return default
    if min_value is not None and val < min_value:
        val = min_value
    return val


def env_bool(name: str, default: bool = False) -> bool:
    """真偽の環境変数を読む（0/1, true/false, on/off を許容）。"""
    raw = os.getenv(name)
    if raw is None:
        return bool(default)
    s = raw.strip().lower()
    try:
        return int(s) != 0
    except ValueError:
        pass
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return bool(default)


def env_str(name: str, default: str) -> str:
    """文字列の環境変数を読む（空文字は未設定扱い）。"""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def parse_level(value: int | str, default: int = logging.INFO) -> int:
    """`"DEBUG"` や `10` をロギングレベル値へ変換する（不明な名前は `default`）。"""
    if isinstance(value, int):
        return value
    s = value.strip()
    if s.isdigit():
        return int(s)
    lvl = logging.getLevelName(s.upper())
    return lvl if isinstance(lvl, int) else default


__all__ = ["env_int", "env_bool", "env_str", "parse_level"]
