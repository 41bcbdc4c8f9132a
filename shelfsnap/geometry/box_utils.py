"""Axis-aligned box geometry and grid snapping utilities."""

from __future__ import annotations

from collections import defaultdict
import logging
import math
from typing import TYPE_CHECKING

from shelfsnap.models.data_models import Box, Point

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from shelfsnap.models.data_models import RawDetection

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    # Python の round() は偶数丸めのため、0.5 は常に切り上げる
    return math.floor(value + 0.5)


def iou(a: Box, b: Box) -> float:
    """IoU（Intersection over Union）を計算

    Args:
        a: バウンディングボックス1
        b: バウンディングボックス2

    Returns:
        IoU値（0.0-1.0）。重なりがない場合は0.0
    """
    inter_w = min(a.x2, b.x2) - max(a.x, b.x)
    inter_h = min(a.y2, b.y2) - max(a.y, b.y)

    # 交差領域がない場合（幅・高さが負になる）
    if inter_w <= 0 or inter_h <= 0:
        return 0.0

    inter_area = inter_w * inter_h
    union_area = a.area + b.area - inter_area
    if union_area <= 0:
        return 0.0

    return inter_area / union_area


def bounding_box_of(polygon: Sequence[Point]) -> Box:
    """ポリゴンの外接矩形を計算

    Args:
        polygon: 頂点のリスト

    Returns:
        外接矩形。空の入力の場合は (0, 0, 0, 0)
    """
    if not polygon:
        return Box(0.0, 0.0, 0.0, 0.0)

    xs = [p.x for p in polygon]
    ys = [p.y for p in polygon]
    min_x, min_y = min(xs), min(ys)
    return Box(min_x, min_y, max(xs) - min_x, max(ys) - min_y)


def box_center(box: Box) -> tuple[float, float]:
    """ボックスの中心座標 (cx, cy) を返す"""
    return (box.x + box.width / 2, box.y + box.height / 2)


def snap_to_grid(value: float, grid_size: float, enabled: bool = True) -> float:
    """値を最も近いグリッドの倍数に丸める

    Args:
        value: 座標値
        grid_size: グリッドサイズ
        enabled: Falseの場合は値をそのまま返す

    Returns:
        スナップ後の値
    """
    if not enabled:
        return value
    if grid_size <= 0:
        raise ValueError(f"grid_size must be positive, got {grid_size}")
    return _round_half_up(value / grid_size) * grid_size


def snap_to_slot(
    x: float,
    y: float,
    slot_width: float,
    slot_height: float,
    bounds_width: float | None = None,
    bounds_height: float | None = None,
) -> Point:
    """座標を最も近いスロット原点にスナップする

    境界が指定された場合は ``[0, bounds - slot_size]`` にクランプし、
    スナップ後のボックスがプラノグラム外にはみ出さないようにする。

    Args:
        x: X座標
        y: Y座標
        slot_width: スロット幅
        slot_height: スロット高さ
        bounds_width: プラノグラム全体の幅（Noneの場合はクランプしない）
        bounds_height: プラノグラム全体の高さ（Noneの場合はクランプしない）

    Returns:
        スロット原点
    """
    slot_x = snap_to_grid(x, slot_width)
    slot_y = snap_to_grid(y, slot_height)

    if bounds_width is not None:
        slot_x = max(0, min(slot_x, bounds_width - slot_width))
    if bounds_height is not None:
        slot_y = max(0, min(slot_y, bounds_height - slot_height))

    return Point(slot_x, slot_y)


def estimate_shelf_lines(detections: Iterable[RawDetection]) -> list[float]:
    """検出結果から棚板のY座標を推定する

    棚段インデックスごとに「上端Yの平均 + 高さの平均」を棚板位置とする。
    棚段インデックスを持たない検出は無視する。

    Args:
        detections: 生の検出結果

    Returns:
        棚段インデックス昇順の棚板Y座標（0以下の値は除外）
    """
    by_shelf: dict[int, list[RawDetection]] = defaultdict(list)
    for detection in detections:
        if detection.shelf_index is not None:
            by_shelf[detection.shelf_index].append(detection)

    lines: list[float] = []
    for shelf_index in sorted(by_shelf):
        items = by_shelf[shelf_index]
        mean_y = sum(d.y for d in items) / len(items)
        mean_h = sum(d.height for d in items) / len(items)
        line = mean_y + mean_h
        if line > 0:
            lines.append(line)

    logger.debug(f"棚板推定: {len(lines)}段 {lines}")
    return lines
