"""
どこで: `callstat.receiver`
何を: 「このメソッド群が今どの値に対して動くか」を保持する共有セル。
なぜ: 1 つの `Instance` の全 `Method` が同じセルを参照し、`rebind` 1 回で全員の
      レシーバを差し替えられるようにするため（記述子の再構築は不要）。

注意:
- 型（`type`）は生成時に固定され、以後変わらない。
- `rebind` はロックを取らない。実行中の `args()`/`call()` と並行させる場合は呼び出し側で直列化する。
"""

from __future__ import annotations

from typing import Any

from .errors import RebindTypeError


class Receiver:
    """レシーバの共有セル。"""

    __slots__ = ("value", "type")

    def __init__(self, value: Any, type_: type) -> None:
        self.value = value
        self.type = type_

    def rebind(self, value: Any) -> None:
        """値を差し替える。`type(value)` が元の型と異なれば `RebindTypeError`（値は変えない）。"""
        if type(value) is not self.type:
            raise RebindTypeError(self.type, value)
        self.value = value

    def copy(self) -> "Receiver":
        return Receiver(self.value, self.type)

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"Receiver({self.type.__qualname__}, {self.value!r})"


__all__ = ["Receiver"]
