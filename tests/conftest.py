"""共通フィクスチャ。

- 空の型キャッシュ
- プールを使わないアロケータ / 小さなプール
- `CALLSTAT_*` 環境変数の差し替えと設定の再読込
"""

from __future__ import annotations

from typing import Callable, Iterator

import pytest

from callstat import ArgPool, TypeInfoCache, UnpooledArgPool
from common import settings


@pytest.fixture()
def cache() -> TypeInfoCache:
    return TypeInfoCache()


@pytest.fixture()
def unpooled() -> UnpooledArgPool:
    return UnpooledArgPool()


@pytest.fixture()
def pool() -> ArgPool:
    return ArgPool(max_idle=4)


@pytest.fixture()
def set_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[Callable[[str, str], None]]:
    """環境変数を設定して `settings.reload_from_env()` する。終了時に既定へ戻す。"""

    def _set(name: str, value: str) -> None:
        monkeypatch.setenv(name, value)
        settings.reload_from_env()

    yield _set
    monkeypatch.undo()
    settings.reload_from_env()
