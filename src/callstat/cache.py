"""
どこで: `callstat.cache`
何を: 型 → メソッド記述子（テンプレート `Instance`）のプロセス共有キャッシュと `stat`/`stat_type`。
なぜ: 型ごとのメソッド列挙/シグネチャ解析を 1 度だけ行い、以降はコピーして再利用するため。

設計メモ:
- テンプレートは外へ出さない。`stat_type`/`stat` は常に `copy()` した作業用 `Instance` を返す
  （prune/rebind でテンプレートが壊れないように）。
- 未登録の型に対する同時 miss は同等のテンプレートを重複して作りうる。最後の格納が勝つ。
  同じ型から作ったテンプレートは振る舞いが等しいので、dict 代入以上の同期はしない。
- `CALLSTAT_TYPE_CACHE_ENABLED=0` でテンプレートを保存しない（毎回構築、デバッグ用）。
"""

from __future__ import annotations

import logging
from typing import Any

from common import settings

from .instance import Instance
from .kinds import exported_methods, zero_factory
from .method import Method, Methods
from .pool import ArgAllocator
from .receiver import Receiver

logger = logging.getLogger(__name__)


class TypeInfoCache:
    """型情報キャッシュ。`pool` はこのキャッシュが作る全記述子の引数アロケータ。"""

    def __init__(self, *, pool: ArgAllocator | None = None) -> None:
        self._cache: dict[type, Instance] = {}
        self._pool = pool

    def stat(self, value: Any) -> Instance | None:
        """`value` に束縛された作業用 `Instance` を返す（`value` が None なら None）。"""
        if value is None:
            return None
        instance = self.stat_type(type(value))
        instance.rebind(value)
        return instance

    def stat_type(self, cls: type) -> Instance:
        """`cls` の作業用 `Instance` を返す（レシーバは `cls` のゼロ値）。"""
        if not isinstance(cls, type):
            raise TypeError(f"stat_type にはクラスを渡してください: got {cls!r}")
        template = self._cache.get(cls)
        if template is None:
            template = self._build(cls)
            if settings.get().TYPE_CACHE_ENABLED:
                self._cache[cls] = template
        elif settings.get().DEBUG_CACHE:
            logger.debug("type cache hit: %s", cls.__qualname__)
        return template.copy()

    def _build(self, cls: type) -> Instance:
        receiver = Receiver(_zero_receiver(cls), cls)
        methods = Methods()
        for name, fn in exported_methods(cls):
            method = Method(name, fn, cls, receiver, pool=self._pool)
            if not method.takes_receiver:
                # self を位置で受け取れない関数はメソッドとして呼べない
                logger.debug("skip %s.%s: no positional receiver parameter", cls.__qualname__, name)
                continue
            methods.append(method)
        logger.debug("built type info: %s (%d methods)", cls.__qualname__, len(methods))
        return Instance(methods, receiver)

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, cls: object) -> bool:
        return cls in self._cache

    def __len__(self) -> int:
        return len(self._cache)


def _zero_receiver(cls: type) -> Any:
    try:
        return zero_factory(cls)()
    except Exception as exc:  # ユーザー定義コンストラクタの失敗はテンプレートを壊さない
        logger.debug("zero receiver unavailable for %s: %s", cls.__qualname__, exc)
        return None


# プロセス共有キャッシュ
TYPE_CACHE = TypeInfoCache()


def stat(value: Any) -> Instance | None:
    """`TYPE_CACHE.stat(value)` の短縮形。"""
    return TYPE_CACHE.stat(value)


def stat_type(cls: type) -> Instance:
    """`TYPE_CACHE.stat_type(cls)` の短縮形。"""
    return TYPE_CACHE.stat_type(cls)


__all__ = ["TypeInfoCache", "TYPE_CACHE", "stat", "stat_type"]
