"""
どこで: `callstat.pool`
何を: 引数コンテナ `Args`（値スロット + アドレス可能ハンドル）と、その再利用プール。
なぜ: `args()` → `call()` を大量に繰り返す用途で、コンテナ確保のコストを抑えるため。

使い方（ライフサイクル）:
    args = f.args()        # プールから取得（pooled）
    args.handles[1].value = "Hi!"
    f.call(args)           # 値/ハンドルをクリアしてプールへ返却
    # 以後 args/handle に触れてはならない（ハンドルは ReleasedArgsError を送出）

注意:
- スロットの中身（個々の値オブジェクト）はプール対象ではないので、call 後も保持してよい。
- 解放済みコンテナは無関係な次の呼び出しへ貸し出されうる。
"""

from __future__ import annotations

import threading
from typing import Any, Protocol

from common import settings

from .errors import ReleasedArgsError


class _Unset:
    """未充填スロットの番兵。"""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class Handle:
    """`Args` の 1 スロットを指すアドレス可能ハンドル。

    `handle.value` の読み書きは `args.values[index]` の読み書きと同じ。
    デコーダ等へ「書き込み先」として渡す用途を想定する。
    """

    __slots__ = ("_args", "_index")

    def __init__(self, args: "Args", index: int) -> None:
        self._args: Args | None = args
        self._index = index

    @property
    def index(self) -> int:
        return self._index

    @property
    def value(self) -> Any:
        return self._target().values[self._index]

    @value.setter
    def value(self, v: Any) -> None:
        self._target().values[self._index] = v

    @property
    def released(self) -> bool:
        return self._args is None

    def _target(self) -> "Args":
        args = self._args
        if args is None:
            raise ReleasedArgsError(f"handle for argument {self._index} used after call()")
        return args

    def _detach(self) -> None:
        self._args = None

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        if self._args is None:
            return f"Handle({self._index}, released)"
        return f"Handle({self._index}, {self._args.values[self._index]!r})"


class Args:
    """`Func.args()`/`Method.args()` が返す引数コンテナ。

    `values` は呼び出しに使う値、`handles` は同じ位置のハンドル（共有プレースホルダ/prune 済み/
    レシーバの位置では None）。両者は常に同じ長さ。
    `released` は `clear()` で立ち、次の貸し出し（`reset()`）で下りる。
    """

    __slots__ = ("values", "handles", "released")

    def __init__(self, size: int = 0) -> None:
        self.values: list[Any] = [UNSET] * size
        self.handles: list[Handle | None] = [None] * size
        self.released = False

    def __len__(self) -> int:
        return len(self.values)

    def reset(self, size: int) -> None:
        """長さを `size` に合わせる（不足分は UNSET/None で埋める）。"""
        self.released = False
        n = len(self.values)
        if size > n:
            self.values.extend([UNSET] * (size - n))
            self.handles.extend([None] * (size - n))
        elif size < n:
            del self.values[size:]
            del self.handles[size:]

    def clear(self) -> None:
        """全スロットを UNSET に戻し、ハンドルを切り離して捨てる。"""
        values, handles = self.values, self.handles
        for k in range(len(values)):
            values[k] = UNSET
            h = handles[k]
            if h is not None:
                h._detach()
                handles[k] = None
        self.released = True

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"Args(values={self.values!r})"


class ArgAllocator(Protocol):
    """`Func` が依存する引数コンテナの供給元（差し替え可能）。"""

    def checkout(self, size: int) -> Args: ...

    def release(self, args: Args) -> None: ...


class ArgPool:
    """スレッドセーフな `Args` プール。

    - `checkout(size)`: 長さ `size` のコンテナを貸し出す（返却済みがあれば長さを合わせて再利用）。
    - `release(args)`: 中身をクリアして返却。`max_idle` を超える分は捨てる。
    """

    def __init__(self, max_idle: int | None = None) -> None:
        s = settings.get()
        self._max_idle = s.POOL_MAX_IDLE if max_idle is None else max(0, int(max_idle))
        self._free: list[Args] = []
        self._lock = threading.Lock()

    @property
    def idle(self) -> int:
        """返却済みで再利用待ちのコンテナ数。"""
        return len(self._free)

    def checkout(self, size: int) -> Args:
        with self._lock:
            args = self._free.pop() if self._free else None
        if args is None:
            return Args(size)
        args.reset(size)
        return args

    def release(self, args: Args) -> None:
        if args.released:
            # 二重返却は無視（同じコンテナを 2 度貸し出さない）
            return
        args.clear()
        with self._lock:
            if len(self._free) < self._max_idle:
                self._free.append(args)


class UnpooledArgPool:
    """毎回新しい `Args` を作るアロケータ（プールを使わない比較/テスト用）。"""

    def checkout(self, size: int) -> Args:
        return Args(size)

    def release(self, args: Args) -> None:
        if not args.released:
            args.clear()


_default_pool: ArgAllocator | None = None
_default_lock = threading.Lock()


def default_arg_pool() -> ArgAllocator:
    """プロセス共有の既定アロケータ（初回使用時に生成、破棄しない）。

    `CALLSTAT_USE_POOL=0` の場合は `UnpooledArgPool`。
    """
    global _default_pool
    pool = _default_pool
    if pool is None:
        with _default_lock:
            if _default_pool is None:
                _default_pool = ArgPool() if settings.get().USE_POOL else UnpooledArgPool()
            pool = _default_pool
    return pool


__all__ = [
    "UNSET",
    "Handle",
    "Args",
    "ArgAllocator",
    "ArgPool",
    "UnpooledArgPool",
    "default_arg_pool",
]
