"""Planogram-vs-observation reconciliation and compliance scoring."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from shelfsnap.models.data_models import Discrepancy, Point, ProductRef, ReconciliationResult, utc_now_iso

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shelfsnap.models.data_models import Observation, Planogram, Product

logger = logging.getLogger(__name__)


def compliance_grade(score: float | None, good_threshold: float = 80, warning_threshold: float = 60) -> str:
    """コンプライアンススコアを表示用の評価区分に変換する

    Args:
        score: コンプライアンススコア（0-100）
        good_threshold: "good" となる下限
        warning_threshold: "warning" となる下限

    Returns:
        "good", "warning", "poor" のいずれか
    """
    if score is None:
        return "poor"
    if score >= good_threshold:
        return "good"
    if score >= warning_threshold:
        return "warning"
    return "poor"


def compute_compliance_score(matched_count: int, total_expected: int) -> float:
    """期待商品のうち正しい位置で検出された割合（%）を小数1桁で返す

    期待商品がない場合は100.0。
    """
    if total_expected <= 0:
        return 100.0
    # 0.05 の端数は切り上げる（偶数丸めにしない）
    return math.floor(matched_count / total_expected * 1000 + 0.5) / 10


class PlanogramReconciler:
    """プラノグラム照合クラス

    期待される商品配置と観測結果を突き合わせ、差異の分類と
    コンプライアンススコアの算出を行う。

    照合条件は「SKU一致 または ラベルと商品名の一致」かつ
    「スロット座標の差がスロット幅・高さ未満」。条件を満たす観測が複数ある場合は
    観測リストの先頭のものを採用する（信頼度や距離では選ばない）。
    """

    def _identity_matches(self, observation: Observation, product: Product) -> bool:
        sku_match = observation.sku is not None and observation.sku == product.sku
        return sku_match or observation.label == product.name

    def _position_matches(self, observation: Observation, product: Product, planogram: Planogram) -> bool:
        return (
            abs(observation.planogram_x - product.x) < planogram.slot_width
            and abs(observation.planogram_y - product.y) < planogram.slot_height
        )

    def reconcile(self, planogram: Planogram, observations: Sequence[Observation]) -> ReconciliationResult:
        """照合を実行する

        商品と観測の matched フラグ、およびプラノグラムの compliance_score /
        last_checked を更新する（いずれも一時的な値）。

        Args:
            planogram: 期待状態のプラノグラム
            observations: 後処理済みの観測結果

        Returns:
            ReconciliationResult: 差異リストとコンプライアンススコア
        """
        products = planogram.products
        discrepancies: list[Discrepancy] = []

        # matched フラグは照合のたびに再計算する
        for product in products:
            product.matched = False
        for observation in observations:
            observation.matched = False

        for product in products:
            match = next(
                (
                    obs
                    for obs in observations
                    if self._identity_matches(obs, product) and self._position_matches(obs, product, planogram)
                ),
                None,
            )

            if match is not None:
                match.matched = True
                product.matched = True
                if match.quantity != product.quantity:
                    discrepancies.append(
                        Discrepancy(
                            type="quantity_mismatch",
                            product=ProductRef.from_product(product),
                            severity="medium",
                            detected=match.quantity,
                            expected=product.quantity,
                        )
                    )
                continue

            elsewhere = next((obs for obs in observations if self._identity_matches(obs, product)), None)
            if elsewhere is not None:
                elsewhere.matched = True
                discrepancies.append(
                    Discrepancy(
                        type="wrong_position",
                        product=ProductRef.from_product(product),
                        severity="medium",
                        detected_position=Point(elsewhere.planogram_x, elsewhere.planogram_y),
                        expected_position=Point(product.x, product.y),
                    )
                )
            else:
                discrepancies.append(
                    Discrepancy(type="missing", product=ProductRef.from_product(product), severity="high")
                )

        for observation in observations:
            if not observation.matched:
                discrepancies.append(
                    Discrepancy(type="unexpected", product=ProductRef.from_observation(observation), severity="low")
                )

        matched_ids = [p.id for p in products if p.matched]
        score = compute_compliance_score(len(matched_ids), len(products))
        checked_at = utc_now_iso()

        planogram.compliance_score = score
        planogram.last_checked = checked_at

        result = ReconciliationResult(
            discrepancies=discrepancies,
            compliance_score=score,
            matched_product_ids=matched_ids,
            checked_at=checked_at,
        )
        logger.debug(f"照合完了: score={score}, counts={result.counts_by_type()}")
        return result


def reconcile(planogram: Planogram, observations: Sequence[Observation]) -> ReconciliationResult:
    """PlanogramReconciler.reconcile の簡易ラッパー"""
    return PlanogramReconciler().reconcile(planogram, observations)
