"""
どこで: `callstat.method`
何を: クラスのメソッド 1 つ分の記述子 `Method` と、その並び `Methods`。
なぜ: `Func` の生成計画にレシーバ（暗黙の第 0 引数）を足し、同じ型の多数の値へ
      同じ記述子を使い回せるようにするため。
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from .errors import MethodNotFoundError
from .func import Func
from .pool import ArgAllocator, Args
from .receiver import Receiver


class Method(Func):
    """メソッド記述子（`Func` の上位互換）。

    位置 0 は常にレシーバ。`args()` は呼び出し時点の `receiver.value` を入れ、
    ハンドルは付けない（レシーバは個別に書き換える対象ではない）。
    """

    def __init__(
        self,
        name: str,
        method: Callable[..., Any],
        owner: type,
        receiver: Receiver,
        *,
        pool: ArgAllocator | None = None,
    ) -> None:
        super().__init__(method, owner=owner, pool=pool)
        self.name = name
        self.method = method
        self._receiver = receiver

    @property
    def receiver(self) -> Receiver:
        return self._receiver

    @property
    def takes_receiver(self) -> bool:
        """先頭が位置引数（レシーバを渡せる）か。keyword-only 始まりや引数無しは False。"""
        return self._num_pos > 0

    def args(self) -> Args:
        args = super().args()
        args.values[0] = self._receiver.value
        args.handles[0] = None
        return args

    def bind(self, receiver: Receiver) -> "Method":
        """生成計画を複製し、`receiver` を参照する新しい `Method` を返す。"""
        cp = self.clone()
        cp._receiver = receiver
        return cp

    def pretty(self) -> str:
        """`Name(T0, T1) R` 形式の表示文字列。"""
        return self.name + self._signature_text()


class Methods(list[Method]):
    """`Method` の並び（型が列挙した順、ソートしない）。"""

    def __init__(self, methods: Iterable[Method] = ()) -> None:
        super().__init__(methods)

    def named(self, name: str) -> Method:
        """名前で検索する。無ければ `MethodNotFoundError`（回復可能）。"""
        for m in self:
            if m.name == name:
                return m
        raise MethodNotFoundError(name)

    def names(self) -> list[str]:
        return [m.name for m in self]


__all__ = ["Method", "Methods"]
