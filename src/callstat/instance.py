"""
どこで: `callstat.instance`
何を: ある型の全メソッドと、それらが共有するレシーバセルをまとめた `Instance`。
なぜ: キャッシュ済みのテンプレートから作業用コピーを作り、prune/rebind を
      テンプレートや他のコピーに波及させずに行うため。
"""

from __future__ import annotations

from typing import Any

from .method import Methods
from .receiver import Receiver


class Instance:
    """型の要約。`methods` の各要素は同じ `receiver` に束縛される。"""

    def __init__(self, methods: Methods, receiver: Receiver) -> None:
        self.methods = methods
        self.receiver = receiver

    @property
    def type(self) -> type:
        """生成時に捕捉した型（不変）。"""
        return self.receiver.type

    @property
    def value(self) -> Any:
        """現在のレシーバ値。"""
        return self.receiver.value

    def copy(self) -> "Instance":
        """作業用コピーを作る。

        - レシーバセルは新規（現在値を引き継ぐ）
        - 各 `Method` は生成計画ごと複製され、新しいセルへ束縛される
        コピー側での prune/rebind は元（およびキャッシュのテンプレート）に影響しない。
        """
        receiver = self.receiver.copy()
        return Instance(Methods(m.bind(receiver) for m in self.methods), receiver)

    def rebind(self, value: Any) -> None:
        """レシーバを差し替える（型が異なれば `RebindTypeError`）。

        全 `Method` が次の `args()` から新しい値を使う。記述子は作り直さない。
        """
        self.receiver.rebind(value)

    def __repr__(self) -> str:
        return f"<Instance {self.type.__qualname__} methods={self.methods.names()}>"


__all__ = ["Instance"]
