"""
どこで: `common.func_id`
何を: 呼び出し可能オブジェクトから表示/ログ用の安定 ID（`module:qualname`）を得る。
なぜ: `Func`/`Method` の repr やデバッグログで、どの実装を呼ぶのかを一貫した形で示すため。
"""

from __future__ import annotations

import functools
from typing import Any


def impl_id(fn: Any) -> str:
    """呼び出し可能の ID を返す。

    - 関数/クラス: `module:qualname`
    - バウンドメソッド: 実体関数の ID
    - `functools.partial`: `partial(<元関数の ID>)`
    - 呼び出し可能インスタンス: その型の ID
    - いずれも取れない場合は `str(id(fn))`
    """
    if isinstance(fn, functools.partial):
        return f"partial({impl_id(fn.func)})"
    target = getattr(fn, "__func__", fn)
    qn = getattr(target, "__qualname__", None) or getattr(target, "__name__", None)
    if qn is None:
        target = type(fn)
        qn = target.__qualname__
    mod = getattr(target, "__module__", "") or ""
    s = f"{mod}:{qn}".strip(":")
    return s or str(id(fn))


__all__ = ["impl_id"]
