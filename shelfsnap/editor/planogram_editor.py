"""Planogram editor: explicit state container with undo/redo."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from shelfsnap.core.errors import ShelfSnapError
from shelfsnap.editor.history import DEFAULT_MAX_ENTRIES, PlanogramHistory
from shelfsnap.layout import planogram_layout
from shelfsnap.reconciliation.reconciler import PlanogramReconciler
from shelfsnap.utils.serialization import planogram_to_dict

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from shelfsnap.config import ConfigManager
    from shelfsnap.layout.planogram_layout import PositionLike
    from shelfsnap.models.data_models import Discrepancy, Observation, Planogram, Product, ReconciliationResult

logger = logging.getLogger(__name__)


class PlanogramEditor:
    """プラノグラム編集クラス

    現在のプラノグラム、観測結果、照合結果、履歴を1つの状態として保持する。
    編集・取り消し・やり直し・再解析のたびに照合を再計算し、購読者へ通知する。
    同一インスタンスへの同時編集はサポートしない（呼び出し側で直列化すること）。
    """

    def __init__(
        self,
        planogram: Planogram,
        max_history: int = DEFAULT_MAX_ENTRIES,
        reconciler: PlanogramReconciler | None = None,
        snap_to_grid: bool = False,
    ):
        """PlanogramEditorを初期化

        Args:
            planogram: 編集対象のプラノグラム
            max_history: 保持する履歴の最大件数
            reconciler: 照合器（省略時は既定の PlanogramReconciler）
            snap_to_grid: 追加・移動の座標をスロットへ寄せる前に編集グリッドへ寄せるかどうか
        """
        self._planogram = copy.deepcopy(planogram)
        self._observations: list[Observation] = []
        self._history = PlanogramHistory(max_history)
        self._reconciler = reconciler or PlanogramReconciler()
        self.snap_to_grid = snap_to_grid
        self._listeners: list[Callable[[PlanogramEditor], None]] = []
        self._result: ReconciliationResult = self._reconciler.reconcile(self._planogram, self._observations)

        logger.info(
            f"PlanogramEditor initialized: '{self._planogram.name}', "
            f"{len(self._planogram.products)} products, max_history={max_history}, snap_to_grid={snap_to_grid}"
        )

    @classmethod
    def from_config(cls, config: ConfigManager, planogram: Planogram | None = None) -> PlanogramEditor:
        """設定からエディタを生成する（プラノグラム省略時は空で初期化）"""
        if planogram is None:
            planogram = planogram_layout.initialize(
                config.get("planogram.levels"),
                config.get("planogram.slots_per_level"),
                config.get("planogram.slot_width"),
                config.get("planogram.slot_height"),
                name=config.get("planogram.name", "New Planogram"),
                grid_size=config.get("planogram.grid_size", 20),
            )
        return cls(
            planogram,
            max_history=config.get("history.max_entries", DEFAULT_MAX_ENTRIES),
            snap_to_grid=config.get("planogram.snap_to_grid", True),
        )

    # ------------------------------------------------------------------
    # 状態参照
    # ------------------------------------------------------------------

    @property
    def planogram(self) -> Planogram:
        return self._planogram

    @property
    def observations(self) -> list[Observation]:
        return self._observations

    @property
    def result(self) -> ReconciliationResult:
        return self._result

    @property
    def discrepancies(self) -> list[Discrepancy]:
        return self._result.discrepancies

    @property
    def compliance_score(self) -> float:
        return self._result.compliance_score

    @property
    def history_index(self) -> int:
        return self._history.index

    @property
    def history_size(self) -> int:
        return len(self._history)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def state(self) -> dict[str, Any]:
        """表示層向けのシリアライズ可能な状態を返す"""
        return {
            "planogram": planogram_to_dict(self._planogram),
            "discrepancies": [d.to_dict() for d in self._result.discrepancies],
            "complianceScore": self._result.compliance_score,
            "historyIndex": self._history.index,
            "canUndo": self.can_undo,
            "canRedo": self.can_redo,
        }

    # ------------------------------------------------------------------
    # 購読
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[PlanogramEditor], None]) -> Callable[[], None]:
        """状態変更の通知を購読する

        Returns:
            購読を解除する関数
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _refresh(self) -> None:
        self._result = self._reconciler.reconcile(self._planogram, self._observations)
        self._notify()

    # ------------------------------------------------------------------
    # 編集操作
    # ------------------------------------------------------------------

    def _commit(self, updated: Planogram) -> bool:
        """編集結果を反映し、変更があれば履歴に積む"""
        if updated == self._planogram:
            return False

        if len(self._history) == 0:
            # 最初の編集を取り消せるよう、編集前の状態を基点として記録する
            self._history.push(self._planogram)
        self._history.push(updated)
        self._planogram = updated
        self._refresh()
        return True

    def _apply(self, operation: str, func: Callable[..., Planogram], *args: Any, **kwargs: Any) -> bool:
        try:
            updated = func(self._planogram, *args, **kwargs)
        except ShelfSnapError as e:
            logger.warning(f"{operation} を拒否しました: {e}")
            raise
        return self._commit(updated)

    def add_product(self, draft: Mapping[str, Any], position: PositionLike) -> Product:
        """商品を追加する

        Returns:
            追加された商品

        Raises:
            ValidationError: 商品情報が不正な場合
            SlotOccupiedError: スロットが占有されている場合
        """
        before = {p.id for p in self._planogram.products}
        self._apply(
            "add_product", planogram_layout.add_product, draft, position, grid_snap=self.snap_to_grid
        )
        return next(p for p in self._planogram.products if p.id not in before)

    def remove_product(self, product_id: str) -> bool:
        """商品を削除する。存在しないIDは無視し False を返す"""
        return self._apply("remove_product", planogram_layout.remove_product, product_id)

    def move_product(self, product_id: str, new_position: PositionLike) -> bool:
        """商品を移動する。変更が反映された場合 True を返す

        Raises:
            SlotOccupiedError: 移動先が別の商品で占有されている場合
        """
        return self._apply(
            "move_product", planogram_layout.move_product, product_id, new_position, grid_snap=self.snap_to_grid
        )

    def update_product(self, product_id: str, changes: Mapping[str, Any]) -> bool:
        """商品の属性を更新する。存在しないIDは無視し False を返す"""
        return self._apply("update_product", planogram_layout.update_product, product_id, changes)

    def undo(self) -> bool:
        """直前の編集を取り消す"""
        snapshot = self._history.undo()
        if snapshot is None:
            return False
        self._planogram = snapshot
        self._refresh()
        logger.debug(f"undo: index={self._history.index}")
        return True

    def redo(self) -> bool:
        """取り消した編集をやり直す"""
        snapshot = self._history.redo()
        if snapshot is None:
            return False
        self._planogram = snapshot
        self._refresh()
        logger.debug(f"redo: index={self._history.index}")
        return True

    def reanalyze(self, observations: Sequence[Observation]) -> ReconciliationResult:
        """観測結果を丸ごと差し替えて照合を再計算する"""
        self._observations = list(observations)
        self._refresh()
        logger.info(
            f"再解析: 観測={len(self._observations)}件, score={self._result.compliance_score}, "
            f"差異={len(self._result.discrepancies)}件"
        )
        return self._result

    def mark_saved(self, planogram_id: str) -> None:
        """永続化で採番されたIDを反映する（編集履歴には含めない）"""
        self._planogram.id = planogram_id
        self._history.assign_id(planogram_id)
        self._notify()

    def load(self, planogram: Planogram) -> None:
        """プラノグラムを読み込み直す（履歴は破棄する）"""
        self._planogram = copy.deepcopy(planogram)
        self._history.clear()
        self._refresh()

    def reset(self) -> None:
        """同じグリッド構成の空のプラノグラムに戻す（履歴は破棄する）"""
        current = self._planogram
        shelves = current.shelves
        slots_per_level = shelves[0].slot_count if shelves else max(1, int(current.width // current.slot_width))
        levels = len(shelves) if shelves else max(1, int(current.height // current.slot_height))
        fresh = planogram_layout.initialize(
            levels,
            slots_per_level,
            current.slot_width,
            current.slot_height,
            name=current.name,
            store_id=current.store_id,
            shelf_id=current.shelf_id,
            grid_size=current.metadata.grid_size,
        )
        self.load(fresh)
