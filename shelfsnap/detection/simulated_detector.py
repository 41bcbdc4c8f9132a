"""Simulated shelf-aware product detector.

Stands in for real inference behind ``DetectorPort``: products are placed from a
fixed catalogue expressed as fractions of the image size, resting on fixed
shelf baselines, with rectangular mask polygons.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from shelfsnap.models.data_models import Point, RawDetection

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

# 画像高さに対する各棚板の位置（割合）
DEFAULT_SHELF_BASELINES: tuple[float, ...] = (0.25, 0.4, 0.55, 0.7, 0.85)

# w, h, x は画像サイズに対する割合
DEFAULT_CATALOGUE: tuple[dict[str, Any], ...] = (
    {"name": "Odor-Eaters Insoles", "w": 0.06, "h": 0.25, "shelf": 0, "x": 0.45},
    {"name": "Blue Box Product", "w": 0.08, "h": 0.12, "shelf": 1, "x": 0.2},
    {"name": "Small White Bottle", "w": 0.03, "h": 0.1, "shelf": 2, "x": 0.3},
    {"name": "Small White Bottle", "w": 0.03, "h": 0.1, "shelf": 2, "x": 0.35},
    {"name": "Small White Bottle", "w": 0.03, "h": 0.1, "shelf": 2, "x": 0.4},
    {"name": "Red Box Product", "w": 0.07, "h": 0.08, "shelf": 3, "x": 0.15},
    {"name": "Band-Aid", "w": 0.1, "h": 0.07, "shelf": 4, "x": 0.5},
)


class SimulatedShelfDetector:
    """シミュレーション商品検出器

    実際の推論は行わず、カタログに基づいて棚上に商品を配置した検出結果を生成する。
    DetectorPort を満たすため、実モデルの検出器と差し替え可能。

    Attributes:
        catalogue: 配置する商品定義のリスト
        shelf_baselines: 棚板位置（画像高さに対する割合）
        confidence_range: 信頼度の範囲 [low, high)
    """

    def __init__(
        self,
        catalogue: Sequence[dict[str, Any]] = DEFAULT_CATALOGUE,
        shelf_baselines: Sequence[float] = DEFAULT_SHELF_BASELINES,
        confidence_range: tuple[float, float] = (0.95, 1.0),
        seed: int | None = None,
    ):
        """SimulatedShelfDetectorを初期化

        Args:
            catalogue: 商品定義のリスト（name, w, h, shelf, x, 任意で sku）
            shelf_baselines: 棚板位置のリスト
            confidence_range: 信頼度の範囲
            seed: 乱数シード（再現性が必要な場合に指定）

        Raises:
            ValueError: 商品定義の棚番号が棚板の数を超える場合
        """
        for i, item in enumerate(catalogue):
            shelf = item.get("shelf")
            if not isinstance(shelf, int) or not 0 <= shelf < len(shelf_baselines):
                raise ValueError(f"catalogue[{i}].shelf が棚板の範囲外です: {shelf}")

        low, high = confidence_range
        if not 0.0 <= low < high <= 1.0:
            raise ValueError(f"confidence_range が不正です: {confidence_range}")

        self.catalogue = list(catalogue)
        self.shelf_baselines = list(shelf_baselines)
        self.confidence_range = confidence_range
        self._rng = np.random.default_rng(seed)

        logger.info(
            f"SimulatedShelfDetector initialized: {len(self.catalogue)} products, "
            f"{len(self.shelf_baselines)} shelves, seed={seed}"
        )

    def detect(self, image: np.ndarray) -> list[RawDetection]:
        """画像サイズに合わせて検出結果を生成する

        Args:
            image: 入力画像 (H, W, C) または (H, W)

        Returns:
            検出結果のリスト（マスクポリゴン付き）
        """
        if image.ndim < 2:
            raise ValueError(f"image must be at least 2-dimensional, got shape {image.shape}")

        image_height, image_width = image.shape[:2]
        low, high = self.confidence_range
        detections: list[RawDetection] = []

        for index, item in enumerate(self.catalogue):
            baseline = self.shelf_baselines[item["shelf"]]
            width = item["w"] * image_width
            height = item["h"] * image_height
            x = item["x"] * image_width
            # 商品の下端を棚板に揃える
            y = baseline * image_height - height

            polygon = [
                Point(x, y),
                Point(x + width, y),
                Point(x + width, y + height),
                Point(x, y + height),
            ]
            confidence = float(self._rng.uniform(low, high))

            detections.append(
                RawDetection.from_polygon(
                    polygon,
                    confidence,
                    item["name"],
                    sku=item.get("sku"),
                    shelf_index=item["shelf"],
                    item_position=index,
                )
            )

        logger.debug(f"Simulated {len(detections)} detections for image {image_width}x{image_height}")
        return detections
