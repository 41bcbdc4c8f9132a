"""テスト・ローカル実行向けの軽量な Fake 実装群。"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any
import uuid

from shelfsnap.core.errors import NotFoundError
from shelfsnap.core.interfaces import DetectorPort, PlanogramRepositoryPort

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np

    from shelfsnap.models.data_models import RawDetection


class FixedDetector(DetectorPort):
    """記録済みの検出結果をそのまま返す検出器。"""

    def __init__(self, detections: Sequence[RawDetection]):
        self.detections = list(detections)
        self.calls = 0

    def detect(self, image: np.ndarray) -> list[RawDetection]:
        _ = image  # 未使用引数
        self.calls += 1
        return copy.deepcopy(self.detections)


class InMemoryPlanogramRepository(PlanogramRepositoryPort):
    """メモリ上でレコードを保持するリポジトリ。

    id を持たないレコードは新規作成として id を採番し、id を持つレコードは上書きする。
    """

    def __init__(self):
        self.records: dict[str, dict[str, Any]] = {}

    async def save(self, record: dict[str, Any]) -> str:
        planogram_id = record.get("id") or str(uuid.uuid4())
        stored = copy.deepcopy(record)
        stored["id"] = planogram_id
        self.records[planogram_id] = stored
        return planogram_id

    async def get(self, planogram_id: str, strict: bool = False) -> dict[str, Any] | None:
        record = self.records.get(planogram_id)
        if record is None:
            if strict:
                raise NotFoundError(f"プラノグラム {planogram_id} が見つかりません。")
            return None
        return copy.deepcopy(record)
