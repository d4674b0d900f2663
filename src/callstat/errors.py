"""
どこで: `callstat.errors`
何を: 反射呼び出し層の例外階層。
なぜ: 「呼び出し側のバグ（即中断すべき誤用）」と「想定内で回復可能な結果」を型で区別するため。

- `MisuseError` 系: 型の異なる値での rebind、呼び出し不能な値の stat、未充填スロットでの call、
  解放済みハンドルへのアクセス。リトライせず、握りつぶさないこと。
- `MethodNotFoundError`: 名前によるメソッド検索の失敗。呼び出し側で分岐して扱う。
"""

from __future__ import annotations

from typing import Any


class CallstatError(Exception):
    """`callstat` が送出する例外の基底。"""


class MisuseError(CallstatError):
    """API の誤用（プログラミングエラー）。"""


class RebindTypeError(MisuseError, TypeError):
    """レシーバを元の型と異なる型の値へ付け替えようとした。"""

    def __init__(self, expected: type, got: Any) -> None:
        self.expected = expected
        self.got = type(got)
        super().__init__(
            f"rebind には同一の型が必要です: original {expected.__qualname__} "
            f"not compatible with incoming {self.got.__qualname__}"
        )


class NotCallableError(MisuseError, TypeError):
    """`stat_func` に関数（シグネチャを取得できる呼び出し可能）以外が渡された。"""

    def __init__(self, obj: Any, reason: str = "function argument expected") -> None:
        self.obj = obj
        super().__init__(f"{reason}: got {type(obj).__qualname__}")


class MissingArgumentError(MisuseError, TypeError):
    """`call()` 時に値が入っていないスロットがある（prune 後に未供給など）。"""

    def __init__(self, position: int, declared: Any, name: str | None = None) -> None:
        self.position = position
        self.declared = declared
        self.name = name
        label = f"{position} ({name})" if name else str(position)
        super().__init__(f"argument {label} is unset; prune 済みの引数は call 前に供給してください")


class ReleasedArgsError(MisuseError, RuntimeError):
    """`call()` で解放済みの引数コンテナ/ハンドルにアクセスした。"""


class MethodNotFoundError(CallstatError, KeyError):
    """`Methods.named()` で該当名のメソッドが無い。"""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"method not found: {self.name!r}"


__all__ = [
    "CallstatError",
    "MisuseError",
    "RebindTypeError",
    "NotCallableError",
    "MissingArgumentError",
    "ReleasedArgsError",
    "MethodNotFoundError",
]
