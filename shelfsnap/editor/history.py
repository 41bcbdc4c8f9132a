"""Bounded undo/redo history of planogram snapshots."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shelfsnap.models.data_models import Planogram

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50


class PlanogramHistory:
    """プラノグラムの履歴管理クラス

    編集後のプラノグラムのディープコピーを保持するリングバッファ。
    カーソル（index）は -1（履歴なし）から len(entries) - 1 の範囲をとる。

    Attributes:
        max_entries: 保持する最大スナップショット数
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if not isinstance(max_entries, int) or max_entries <= 0:
            raise ValueError(f"max_entries must be a positive integer, got {max_entries!r}")
        self.max_entries = max_entries
        self._entries: list[Planogram] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def push(self, planogram: Planogram) -> None:
        """スナップショットを追加する

        カーソルより後ろ（やり直し可能な履歴）は破棄し、
        最大件数を超えた古いスナップショットは先頭から削除する。
        """
        del self._entries[self._index + 1 :]
        self._entries.append(copy.deepcopy(planogram))
        if len(self._entries) > self.max_entries:
            del self._entries[: len(self._entries) - self.max_entries]
        self._index = len(self._entries) - 1
        logger.debug(f"履歴追加: index={self._index}, size={len(self._entries)}")

    def undo(self) -> Planogram | None:
        """1つ前のスナップショットを返す（先頭の場合はNone）"""
        if not self.can_undo:
            return None
        self._index -= 1
        return copy.deepcopy(self._entries[self._index])

    def redo(self) -> Planogram | None:
        """1つ後のスナップショットを返す（末尾の場合はNone）"""
        if not self.can_redo:
            return None
        self._index += 1
        return copy.deepcopy(self._entries[self._index])

    def assign_id(self, planogram_id: str) -> None:
        """保持しているすべてのスナップショットに永続化IDを設定する"""
        for entry in self._entries:
            entry.id = planogram_id

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
