"""Statistics calculation utilities."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

import numpy as np

from shelfsnap.models import Observation, RawDetection


@dataclass
class DetectionSummary:
    """検出結果のラベル別集計

    Attributes:
        total_count: 検出総数
        unique_sku_count: ユニークなSKU数（SKUがない場合はラベルで代用）
        counts_by_label: ラベル別の検出数
    """
    total_count: int
    unique_sku_count: int
    counts_by_label: Dict[str, int] = field(default_factory=dict)


@dataclass
class ConfidenceStatistics:
    """信頼度スコアの統計情報データクラス"""
    count: int
    mean: float
    min: float
    max: float
    std: float
    median: float


def summarize_detections(
    detections: Iterable[Union[RawDetection, Observation]]
) -> DetectionSummary:
    """検出結果をラベル別に集計する

    Args:
        detections: 検出結果（生の検出または後処理済みの観測）

    Returns:
        DetectionSummary: 集計結果
    """
    items = list(detections)
    counts = Counter(d.label for d in items)
    sku_keys = {d.sku if d.sku else d.label for d in items}

    return DetectionSummary(
        total_count=len(items),
        unique_sku_count=len(sku_keys),
        counts_by_label=dict(counts),
    )


def calculate_confidence_statistics(
    detections: Iterable[Union[RawDetection, Observation]]
) -> ConfidenceStatistics:
    """検出結果の信頼度スコアの統計情報を計算する

    Args:
        detections: 検出結果

    Returns:
        ConfidenceStatistics: 統計情報（空の場合はすべて0）
    """
    confidences = [d.confidence for d in detections]

    if not confidences:
        return ConfidenceStatistics(count=0, mean=0.0, min=0.0, max=0.0, std=0.0, median=0.0)

    values = np.asarray(confidences, dtype=np.float64)
    return ConfidenceStatistics(
        count=len(confidences),
        mean=float(np.mean(values)),
        min=float(np.min(values)),
        max=float(np.max(values)),
        std=float(np.std(values)),
        median=float(np.median(values)),
    )


def average_compliance(scores: List[Optional[float]]) -> int:
    """スキャン群の平均コンプライアンスを計算する

    未算出（None）のスコアは0として扱う。

    Args:
        scores: 各スキャンのコンプライアンススコア

    Returns:
        四捨五入した平均値。スキャンがない場合は0
    """
    if not scores:
        return 0
    mean = float(np.mean([s or 0.0 for s in scores]))
    return int(np.floor(mean + 0.5))
