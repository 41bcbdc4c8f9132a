"""ポートインターフェース定義。

検出器や永続化サービスなどの外部コラボレータはここで定義される Protocol に依存し、
具体実装は adapters 層へ分離する。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import numpy as np

    from shelfsnap.models.data_models import RawDetection


class DetectorPort(Protocol):
    """商品検出ポート。"""

    def detect(self, image: np.ndarray) -> list[RawDetection]:
        """画像 (H, W, C) から生の検出結果を返す。"""


class PlanogramRepositoryPort(Protocol):
    """プラノグラム永続化ポート。"""

    async def save(self, record: dict[str, Any]) -> str:
        """レコードを作成または更新し、IDを返す。"""

    async def get(self, planogram_id: str, strict: bool = False) -> dict[str, Any] | None:
        """IDに対応するレコードを返す。strict=True の場合は存在しなければ NotFoundError。"""
