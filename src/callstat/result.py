"""
どこで: `callstat.result`
何を: `Func.call()`/`Method.call()` 1 回分の結果。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Result:
    """呼び出し結果。

    - `values`: 戻り値を宣言順に並べたもの（戻り値が複数宣言なら展開済み）。
    - `error`: `values` のうち `Exception` インスタンスである最後のもの（無ければ None）。
      `values` にも含まれる。分岐の利便のために別途保持する。
    """

    values: list[Any] = field(default_factory=list)
    error: Exception | None = None

    @classmethod
    def from_values(cls, values: list[Any]) -> "Result":
        err = None
        for v in values:
            if isinstance(v, Exception):
                err = v
        return cls(values=values, error=err)

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = ["Result"]
