"""Detection postprocessing: confidence filtering and non-maximum suppression."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

import numpy as np

from shelfsnap.core.errors import ValidationError
from shelfsnap.geometry.box_utils import snap_to_slot
from shelfsnap.models.data_models import Observation, RawDetection
from shelfsnap.utils.stats_utils import DetectionSummary, summarize_detections

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shelfsnap.models.data_models import Planogram

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.6
DEFAULT_IOU_THRESHOLD = 0.4


@dataclass
class PostprocessResult:
    """後処理結果

    Attributes:
        detections: 重複除去後の検出結果（信頼度降順）
        observations: スロット座標を付与した観測結果
        summary: ラベル別集計
    """

    detections: list[RawDetection]
    observations: list[Observation]
    summary: DetectionSummary


def _pairwise_iou(boxes: np.ndarray, index: int, others: np.ndarray) -> np.ndarray:
    """boxes[index] と boxes[others] のIoUをまとめて計算する

    boxes は (N, 4) の (x1, y1, x2, y2) 配列。
    """
    x1 = np.maximum(boxes[index, 0], boxes[others, 0])
    y1 = np.maximum(boxes[index, 1], boxes[others, 1])
    x2 = np.minimum(boxes[index, 2], boxes[others, 2])
    y2 = np.minimum(boxes[index, 3], boxes[others, 3])

    inter = np.clip(x2 - x1, 0.0, None) * np.clip(y2 - y1, 0.0, None)
    areas = (boxes[:, 2] - boxes[:, 0]) * (boxes[:, 3] - boxes[:, 1])
    union = areas[index] + areas[others] - inter

    result = np.zeros_like(inter)
    np.divide(inter, union, out=result, where=union > 0)
    return result


def non_max_suppression(detections: Sequence[RawDetection], iou_threshold: float) -> list[RawDetection]:
    """貪欲法によるNMS（Non-Maximum Suppression）

    信頼度の高い順に検出を採用し、採用した検出とのIoUが閾値を超える検出を除去する。
    信頼度が同じ場合は入力順を保持する。

    Args:
        detections: 検出結果
        iou_threshold: 抑制のIoU閾値

    Returns:
        残った検出結果（信頼度降順）
    """
    if len(detections) == 0:
        return []

    boxes = np.array([[d.x, d.y, d.x + d.width, d.y + d.height] for d in detections], dtype=np.float64)
    scores = np.array([d.confidence for d in detections], dtype=np.float64)

    # 安定ソートで同点の入力順を保つ
    order = np.argsort(-scores, kind="stable")
    keep: list[int] = []

    while order.size > 0:
        best = int(order[0])
        keep.append(best)
        rest = order[1:]
        if rest.size == 0:
            break
        overlaps = _pairwise_iou(boxes, best, rest)
        order = rest[overlaps <= iou_threshold]

    return [detections[i] for i in keep]


class DetectionPostprocessor:
    """検出結果の後処理クラス

    信頼度フィルタとNMSで重複を除去し、各検出にスロットへスナップした
    プラノグラム座標を付与した観測結果を生成する。入力は変更しない。

    Attributes:
        confidence_threshold: 信頼度閾値（この値以下の検出は除外）
        iou_threshold: NMSのIoU閾値（この値を超えて重なる検出は除外）
        slot_width: スロット幅
        slot_height: スロット高さ
    """

    def __init__(
        self,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        iou_threshold: float = DEFAULT_IOU_THRESHOLD,
        slot_width: float = 60,
        slot_height: float = 80,
    ):
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValidationError(f"confidence_threshold must be between 0.0 and 1.0, got {confidence_threshold}")
        if not 0.0 <= iou_threshold <= 1.0:
            raise ValidationError(f"iou_threshold must be between 0.0 and 1.0, got {iou_threshold}")
        if slot_width <= 0 or slot_height <= 0:
            raise ValidationError(f"slot size must be positive, got ({slot_width}, {slot_height})")

        self.confidence_threshold = confidence_threshold
        self.iou_threshold = iou_threshold
        self.slot_width = slot_width
        self.slot_height = slot_height

        logger.info(
            f"DetectionPostprocessor initialized: confidence_threshold={confidence_threshold}, "
            f"iou_threshold={iou_threshold}, slot=({slot_width}x{slot_height})"
        )

    @classmethod
    def for_planogram(
        cls,
        planogram: Planogram,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        iou_threshold: float = DEFAULT_IOU_THRESHOLD,
    ) -> DetectionPostprocessor:
        """プラノグラムのスロットサイズを使用して生成する"""
        return cls(
            confidence_threshold=confidence_threshold,
            iou_threshold=iou_threshold,
            slot_width=planogram.slot_width,
            slot_height=planogram.slot_height,
        )

    def filter_by_confidence(self, detections: Sequence[RawDetection]) -> list[RawDetection]:
        """信頼度が閾値を超える検出のみを残す"""
        return [d for d in detections if d.confidence > self.confidence_threshold]

    def to_observation(self, detection: RawDetection) -> Observation:
        """検出をスロット座標付きの観測結果に変換する"""
        slot = snap_to_slot(detection.x, detection.y, self.slot_width, self.slot_height)
        return Observation.from_detection(detection, slot.x, slot.y)

    def process(self, detections: Sequence[RawDetection]) -> PostprocessResult:
        """後処理を実行する

        Args:
            detections: 生の検出結果

        Returns:
            PostprocessResult: 後処理結果
        """
        candidates = self.filter_by_confidence(detections)
        kept = non_max_suppression(candidates, self.iou_threshold)
        observations = [self.to_observation(d) for d in kept]
        summary = summarize_detections(kept)

        logger.debug(
            f"後処理完了: 入力={len(detections)}, 信頼度通過={len(candidates)}, NMS後={len(kept)}, "
            f"ユニークSKU={summary.unique_sku_count}"
        )
        return PostprocessResult(detections=kept, observations=observations, summary=summary)
