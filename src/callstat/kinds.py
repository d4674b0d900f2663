"""
どこで: `callstat.kinds`
何を: 型注釈の「種別（Kind）」判定、ゼロ値ファクトリの生成、表示名、公開メソッドの列挙。
なぜ: `Func`/`Method` の記述子を 1 回の型走査で組み立て、呼び出しごとの再解析を避けるため。

設計メモ:
- INTERFACE 種別は「具体型を選べない」注釈（Any/object/Protocol/抽象クラス/複数型の Union など）。
  値は生成せず、記述子ごとに 1 つの共有プレースホルダ（既定 None）を使い回す。
- それ以外は呼び出しごとに新しいゼロ値を作る。ファクトリは記述子構築時に 1 度だけ決める。
- 型注釈は `typing.get_type_hints` で解決する。解決できない（前方参照など）注釈は INTERFACE 扱い。
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import enum
import functools
import inspect
import logging
import sys
import types
import typing
from typing import Annotated, Any, Callable, Literal, Union, get_args, get_origin

import numpy as np

from common.func_id import impl_id

logger = logging.getLogger(__name__)

ZeroFactory = Callable[[], Any]


class Kind(enum.Enum):
    """引数/戻り値の型の大分類。"""

    INTERFACE = "interface"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    COMPLEX = "complex"
    STR = "str"
    BYTES = "bytes"
    NUMPY = "numpy"
    NDARRAY = "ndarray"
    OPTIONAL = "optional"
    FUNC = "func"
    LIST = "list"
    DICT = "dict"
    SET = "set"
    TUPLE = "tuple"
    LITERAL = "literal"
    ENUM = "enum"
    STRUCT = "struct"
    CLASS = "class"


_SCALARS: dict[type, Kind] = {
    bool: Kind.BOOL,
    int: Kind.INT,
    float: Kind.FLOAT,
    complex: Kind.COMPLEX,
    str: Kind.STR,
    bytes: Kind.BYTES,
    bytearray: Kind.BYTES,
}
_SELF_ZERO = frozenset(_SCALARS.values()) | {Kind.NUMPY, Kind.LIST, Kind.DICT, Kind.SET}
_NONE_ZERO = frozenset({Kind.INTERFACE, Kind.OPTIONAL, Kind.FUNC})

# インスタンス化できない NumPy の抽象スカラー階層
_NUMPY_ABSTRACT = (
    np.generic,
    np.number,
    np.integer,
    np.signedinteger,
    np.unsignedinteger,
    np.inexact,
    np.floating,
    np.complexfloating,
    np.flexible,
    np.character,
)
_UNION_ORIGINS = (Union, types.UnionType)


def _none() -> None:
    return None


def _empty_array() -> np.ndarray:
    return np.zeros(0)


def _is_protocol(tp: type) -> bool:
    return bool(getattr(tp, "_is_protocol", False))


def _is_namedtuple(tp: type) -> bool:
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


def strip_annotation(tp: Any) -> Any:
    """`Annotated[...]` と `NewType` を剥がして中身の型を返す。"""
    while True:
        if get_origin(tp) is Annotated:
            tp = get_args(tp)[0]
        elif hasattr(tp, "__supertype__"):
            tp = tp.__supertype__
        else:
            return tp


def kind_of(tp: Any) -> Kind:
    """型注釈を `Kind` に分類する。"""
    tp = strip_annotation(tp)
    if tp is Any or tp is object or tp is inspect.Parameter.empty:
        return Kind.INTERFACE
    if isinstance(tp, (str, typing.ForwardRef, typing.TypeVar)):
        return Kind.INTERFACE
    if tp is None or tp is type(None):
        return Kind.OPTIONAL
    origin = get_origin(tp)
    if origin is not None:
        if origin in _UNION_ORIGINS:
            args = get_args(tp)
            members = [a for a in args if a is not type(None)]
            if len(members) == 1 and len(members) < len(args):
                return Kind.OPTIONAL
            return Kind.INTERFACE
        if origin is Literal:
            return Kind.LITERAL
        if origin is type:
            return Kind.INTERFACE
        if isinstance(origin, type):
            return _kind_of_class(origin)
        return Kind.INTERFACE
    if isinstance(tp, type):
        return _kind_of_class(tp)
    return Kind.INTERFACE


def _kind_of_class(tp: type) -> Kind:
    kind = _SCALARS.get(tp)
    if kind is not None:
        return kind
    if tp is cabc.Callable:
        return Kind.FUNC
    if issubclass(tp, np.ndarray):
        return Kind.NDARRAY
    if issubclass(tp, np.generic):
        # void / record は dtype 無しではゼロ値を作れない
        if tp in _NUMPY_ABSTRACT or issubclass(tp, np.void):
            return Kind.INTERFACE
        return Kind.NUMPY
    if issubclass(tp, enum.Enum):
        return Kind.ENUM
    if _is_protocol(tp) or inspect.isabstract(tp):
        return Kind.INTERFACE
    if dataclasses.is_dataclass(tp) or _is_namedtuple(tp):
        return Kind.STRUCT
    if issubclass(tp, tuple):
        return Kind.TUPLE
    if issubclass(tp, list):
        return Kind.LIST
    if issubclass(tp, dict):
        return Kind.DICT
    if issubclass(tp, (set, frozenset)):
        return Kind.SET
    return Kind.CLASS


def zero_factory(tp: Any, kind: Kind | None = None, *, _seen: frozenset = frozenset()) -> ZeroFactory:
    """`tp` のゼロ値を毎回新しく作るファクトリを返す。

    INTERFACE/OPTIONAL/FUNC は None。自己参照する構造体は 2 段目以降を None で打ち切る。
    """
    if kind is None:
        kind = kind_of(tp)
    if kind in _NONE_ZERO:
        return _none
    base = strip_annotation(tp)
    cls = get_origin(base) or base
    if kind in _SELF_ZERO:
        return cls
    if kind is Kind.NDARRAY:
        return _empty_array
    if kind is Kind.LITERAL:
        first = get_args(base)[0]
        return lambda: first
    if kind is Kind.ENUM:
        members = list(cls)
        head = members[0] if members else None
        return lambda: head
    if kind is Kind.TUPLE:
        return _tuple_factory(base, cls, _seen)
    if cls in _seen:
        return _none
    if kind is Kind.STRUCT:
        return _struct_factory(cls, _seen | {cls})
    return _class_factory(cls)


def _tuple_factory(base: Any, cls: type, seen: frozenset) -> ZeroFactory:
    args = get_args(base)
    if not args or (len(args) == 2 and args[1] is Ellipsis) or args == ((),):
        return cls
    items = [zero_factory(a, _seen=seen) for a in args]
    return lambda: tuple(make() for make in items)


def _struct_factory(cls: type, seen: frozenset) -> ZeroFactory:
    hints = resolve_hints(cls)
    parts: list[tuple[str, ZeroFactory]] = []
    if dataclasses.is_dataclass(cls):
        for f in dataclasses.fields(cls):
            if not f.init:
                continue
            if f.default is not dataclasses.MISSING:
                parts.append((f.name, functools.partial(_const, f.default)))
            elif f.default_factory is not dataclasses.MISSING:
                parts.append((f.name, f.default_factory))
            else:
                parts.append((f.name, zero_factory(hints.get(f.name, Any), _seen=seen)))
    else:
        defaults = getattr(cls, "_field_defaults", {})
        for name in cls._fields:
            if name not in defaults:
                parts.append((name, zero_factory(hints.get(name, Any), _seen=seen)))
    return lambda: cls(**{name: make() for name, make in parts})


def _const(value: Any) -> Any:
    return value


def _class_factory(cls: type) -> ZeroFactory:
    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        sig = None
    if sig is not None and all(
        p.default is not p.empty or p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        for p in sig.parameters.values()
    ):
        return cls
    # 引数必須のコンストラクタは __init__ を通さない（未初期化インスタンス）
    return lambda: cls.__new__(cls)


def hint_target(fn: Any) -> Any:
    """型ヒントを読むべき実体（partial の元関数、クラスの `__init__` など）を返す。"""
    if isinstance(fn, functools.partial):
        return hint_target(fn.func)
    if inspect.isclass(fn):
        return fn.__init__
    if inspect.isfunction(fn) or inspect.ismethod(fn) or inspect.isbuiltin(fn):
        return fn
    return getattr(type(fn), "__call__", fn)


def resolve_hints(obj: Any) -> dict[str, Any]:
    """`typing.get_type_hints` のラッパ。

    一括解決に失敗した場合（`TYPE_CHECKING` 下の import など）は注釈を 1 つずつ評価し、
    解決できたものだけを返す。解決できない名前は結果に含めない（呼び出し側で INTERFACE 扱い）。
    """
    try:
        return typing.get_type_hints(obj)
    except Exception as exc:  # NameError（前方参照）/ TypeError（非対応オブジェクト）
        logger.debug("type hints unavailable for %s: %s", impl_id(obj), exc)
    hints: dict[str, Any] = {}
    for annotations, globalns, localns in _annotation_scopes(obj):
        for name, ann in annotations.items():
            if isinstance(ann, str):
                try:
                    ann = eval(ann, globalns, localns)  # noqa: S307 - 注釈文字列の評価
                except Exception as exc:
                    logger.debug("unresolved annotation %s=%r on %s: %s", name, ann, impl_id(obj), exc)
                    hints.pop(name, None)
                    continue
            hints[name] = type(None) if ann is None else ann
    return hints


def _annotation_scopes(obj: Any) -> list[tuple[dict[str, Any], dict[str, Any], dict[str, Any] | None]]:
    """注釈と、それを評価する名前空間の組を返す（クラスは MRO の基底側から）。"""
    try:
        if inspect.isclass(obj):
            return [
                (
                    inspect.get_annotations(klass),
                    dict(vars(sys.modules[klass.__module__])) if klass.__module__ in sys.modules else {},
                    dict(vars(klass)),
                )
                for klass in reversed(obj.__mro__)
            ]
        target = inspect.unwrap(getattr(obj, "__func__", obj))
        return [(inspect.get_annotations(target), getattr(target, "__globals__", {}), None)]
    except (TypeError, ValueError):
        return []


def type_name(tp: Any) -> str:
    """診断用の型表示名（`handlers.Request`, `list[int]`, `str | None` など）。"""
    if tp is inspect.Parameter.empty or tp is Any:
        return "Any"
    if tp is None or tp is type(None):
        return "None"
    if tp is Ellipsis:
        return "..."
    if isinstance(tp, str):
        return tp
    if isinstance(tp, typing.ForwardRef):
        return tp.__forward_arg__
    if isinstance(tp, typing.TypeVar):
        return tp.__name__
    if isinstance(tp, list):
        return "[" + ", ".join(type_name(a) for a in tp) + "]"
    origin = get_origin(tp)
    if origin is not None:
        args = get_args(tp)
        if origin is Annotated:
            return type_name(args[0])
        if origin in _UNION_ORIGINS:
            return " | ".join(type_name(a) for a in args)
        if origin is Literal:
            return "Literal[" + ", ".join(repr(a) for a in args) + "]"
        base = "Callable" if origin is cabc.Callable else type_name(origin)
        if not args:
            return base
        return f"{base}[" + ", ".join(type_name(a) for a in args) + "]"
    if isinstance(tp, type):
        mod = tp.__module__
        if mod == "builtins":
            return tp.__qualname__
        return f"{mod.rsplit('.', 1)[-1]}.{tp.__qualname__}"
    return repr(tp).replace("typing.", "")


def exported_methods(cls: type) -> list[tuple[str, Callable[..., Any]]]:
    """公開メソッド（先頭 `_` 以外の通常関数）を MRO 順・宣言順で列挙する。

    派生クラス側の定義を優先し、同名は最初の 1 つだけ。staticmethod/classmethod/property は除外。
    """
    seen: set[str] = set()
    out: list[tuple[str, Callable[..., Any]]] = []
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, attr in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            if not name.startswith("_") and inspect.isfunction(attr):
                out.append((name, attr))
    return out


__all__ = [
    "Kind",
    "ZeroFactory",
    "kind_of",
    "zero_factory",
    "strip_annotation",
    "hint_target",
    "resolve_hints",
    "type_name",
    "exported_methods",
]
