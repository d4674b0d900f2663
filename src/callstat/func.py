"""
どこで: `callstat.func`
何を: 呼び出し可能 1 つ分の記述子 `Func`（引数/戻り値の型、引数の生成計画）と `stat_func`。
なぜ: シグネチャ解析を 1 度で済ませ、`args()` → `call()` を汎用かつ低コストに繰り返すため。

引数の生成計画:
- `in_create`: `args()` のたびに新しいゼロ値（または宣言済みの既定値）を入れる位置。ハンドル付き。
- `in_cache`: INTERFACE 種別の位置。具体型を選べないので、記述子ごとに 1 つの
  プレースホルダ（None か既定値）を使い回す。ハンドルは None。
- `prune_in()` で取り除いた位置は `args()` で一切埋めない。`call()` 前に呼び出し側が供給する。
"""

from __future__ import annotations

import copy
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, get_args, get_origin

from common.func_id import impl_id

from .errors import MissingArgumentError, NotCallableError, ReleasedArgsError
from .kinds import Kind, ZeroFactory, hint_target, kind_of, resolve_hints, type_name, zero_factory
from .pool import UNSET, ArgAllocator, Args, Handle, default_arg_pool
from .result import Result

logger = logging.getLogger(__name__)

_SKIPPED = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True)
class Arg:
    """引数 1 つの記述（位置 `n`、型 `t`、共有プレースホルダ `v`）。"""

    n: int
    t: Any
    kind: Kind
    name: str = ""
    v: Any = None
    keyword: bool = False
    factory: ZeroFactory | None = field(default=None, repr=False, compare=False)


def _out_types(fn: Any, sig: inspect.Signature, hints: dict[str, Any]) -> tuple[Any, ...]:
    if inspect.isclass(fn):
        return (fn,)
    ret = hints.get("return", sig.return_annotation)
    if ret is None or ret is type(None) or ret == "None":
        return ()
    if ret is sig.empty:
        return (Any,)
    if get_origin(ret) is tuple:
        items = get_args(ret)
        if items and items != ((),) and not (len(items) == 2 and items[1] is Ellipsis):
            return items
    return (ret,)


class Func:
    """関数 1 つ分の記述子。

    >>> f = stat_func(lambda s, n: print(s, n))
    >>> args = f.args()
    >>> args.values[0], args.values[1] = "Hi!", 42
    >>> f.call(args)        # args はここでプールへ返却される
    """

    def __init__(
        self, func: Callable[..., Any], *, owner: type | None = None, pool: ArgAllocator | None = None
    ) -> None:
        try:
            sig = inspect.signature(func)
        except (TypeError, ValueError) as exc:
            raise NotCallableError(func, "signature unavailable") from exc
        hints = resolve_hints(hint_target(func))

        in_types: list[Any] = []
        in_kinds: list[Kind] = []
        in_names: list[str] = []
        in_create: list[Arg] = []
        in_cache: list[Arg] = []
        keywords: list[tuple[int, str]] = []
        for p in sig.parameters.values():
            if p.kind in _SKIPPED:
                continue
            n = len(in_types)
            receiver_slot = owner is not None and n == 0
            t = owner if receiver_slot else hints.get(p.name, p.annotation)
            kind = kind_of(t)
            in_types.append(t)
            in_kinds.append(kind)
            in_names.append(p.name)
            is_kw = p.kind is p.KEYWORD_ONLY
            if is_kw:
                keywords.append((n, p.name))
            if receiver_slot:
                continue
            has_default = p.default is not p.empty
            if kind is Kind.INTERFACE:
                v = p.default if has_default else None
                in_cache.append(Arg(n, t, kind, p.name, v=v, keyword=is_kw))
            else:
                make = (lambda d=p.default: d) if has_default else zero_factory(t, kind)
                in_create.append(Arg(n, t, kind, p.name, keyword=is_kw, factory=make))

        self.func = func
        self.num_in = len(in_types)
        self.in_types = tuple(in_types)
        self.in_kinds = tuple(in_kinds)
        self.in_names = tuple(in_names)
        self.in_create = in_create
        self.in_cache = in_cache
        self.out_types = _out_types(func, sig, hints)
        self.num_out = len(self.out_types)
        # keyword-only 引数は位置引数の後ろに並ぶ
        self._keywords = tuple(keywords)
        self._num_pos = keywords[0][0] if keywords else self.num_in
        self._pool = pool if pool is not None else default_arg_pool()

    # ---- 引数の生成と呼び出し ---------------------------------------------
    def args(self) -> Args:
        """呼び出し用の引数コンテナを返す（プール資源。`call()` で返却される）。

        - `in_create` の位置: 新しい値 + `Handle`
        - `in_cache` の位置: 共有プレースホルダ + None
        - それ以外（prune 済み/レシーバ）: UNSET + None

        `handles[k].value = ...` で位置 k を書き換えられる。ハンドルが None の位置は
        `values[k] = ...` で直接供給する。
        """
        args = self._pool.checkout(self.num_in)
        values, handles = args.values, args.handles
        for arg in self.in_create:
            values[arg.n] = arg.factory()
            handles[arg.n] = Handle(args, arg.n)
        for arg in self.in_cache:
            values[arg.n] = arg.v
        return args

    def call(self, args: Args) -> Result:
        """`args` で関数を 1 回呼び出す。

        どの経路で抜けても（呼び出し先の例外を含む）`args` はクリアされてプールへ返る。
        未充填スロットがあれば呼び出さずに `MissingArgumentError`。
        解放済みの `args`（2 度目の `call()`）は `ReleasedArgsError`（プールへは返さない）。
        """
        if args.released:
            raise ReleasedArgsError("args already consumed by call(); take new args()")
        try:
            values = args.values
            for k, v in enumerate(values):
                if v is UNSET:
                    raise MissingArgumentError(k, self.in_types[k], self.in_names[k])
            if self._keywords:
                kwargs = {name: values[k] for k, name in self._keywords}
                ret = self.func(*values[: self._num_pos], **kwargs)
            else:
                ret = self.func(*values)
        finally:
            self._pool.release(args)
        return Result.from_values(self._box(ret))

    def _box(self, ret: Any) -> list[Any]:
        if self.num_out == 0 and ret is None:
            return []
        if self.num_out > 1 and isinstance(ret, tuple) and len(ret) == self.num_out:
            return list(ret)
        return [ret]

    # ---- 記述子の操作 -----------------------------------------------------
    def prune_in(self, *types: Any) -> list[Arg]:
        """指定型の位置を `in_cache`/`in_create` から取り除き、取り除いた `Arg` を返す。

        以後 `args()` はその位置を埋めない。呼び出し側が知っている引数（リクエスト等）を
        自前で供給する場合に、無駄な生成を省くための一度きりの設定操作。
        この記述子自身を破壊的に変更するので、キャッシュから得た作業用コピーにだけ使うこと。
        """
        removed: list[Arg] = []

        def prune(arglist: list[Arg]) -> list[Arg]:
            for T in types:
                hit = [a for a in arglist if a.t == T]
                if hit:
                    removed.extend(hit)
                    arglist = [a for a in arglist if a.t != T]
            return arglist

        self.in_cache = prune(self.in_cache)
        self.in_create = prune(self.in_create)
        if removed:
            logger.debug(
                "pruned %s from %s at %s",
                ", ".join(type_name(t) for t in types),
                impl_id(self.func),
                [a.n for a in removed],
            )
        return removed

    def clone(self) -> "Func":
        """生成計画を独立させたコピー（prune してもコピー元に影響しない）。"""
        cp = copy.copy(self)
        cp.in_create = list(self.in_create)
        cp.in_cache = list(self.in_cache)
        return cp

    # ---- 表示 -------------------------------------------------------------
    def _signature_text(self) -> str:
        argstr = ", ".join(type_name(t) for t in self.in_types)
        outs = [type_name(t) for t in self.out_types]
        if len(outs) == 1:
            tail = " " + outs[0]
        elif len(outs) > 1:
            tail = " (" + ", ".join(outs) + ")"
        else:
            tail = ""
        return f"({argstr}){tail}"

    def pretty(self) -> str:
        """`func(T1, T2) R` 形式の表示文字列（診断/ログ用）。"""
        return "func" + self._signature_text()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {impl_id(self.func)} {self.pretty()}>"


def stat_func(fn: Any, *, pool: ArgAllocator | None = None) -> Func:
    """任意の呼び出し可能から `Func` を作る。呼び出し不能なら `NotCallableError`。"""
    if not callable(fn):
        raise NotCallableError(fn)
    return Func(fn, pool=pool)


__all__ = ["Arg", "Func", "stat_func"]
