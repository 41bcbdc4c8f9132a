"""Shelf scan pipeline: detection, postprocessing, reconciliation, persistence."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from shelfsnap.adapters.converters import to_persistence_record
from shelfsnap.detection.postprocessor import DetectionPostprocessor
from shelfsnap.geometry.box_utils import estimate_shelf_lines
from shelfsnap.reconciliation.reconciler import compliance_grade
from shelfsnap.utils.stats_utils import calculate_confidence_statistics

if TYPE_CHECKING:
    import numpy as np

    from shelfsnap.config import ConfigManager
    from shelfsnap.core.interfaces import DetectorPort, PlanogramRepositoryPort
    from shelfsnap.editor.planogram_editor import PlanogramEditor
    from shelfsnap.models.data_models import Observation, RawDetection, ReconciliationResult
    from shelfsnap.utils.stats_utils import ConfidenceStatistics, DetectionSummary


@dataclass
class ScanResult:
    """1回の棚スキャンの結果

    Attributes:
        raw_detections: 検出器の出力
        observations: 後処理済みの観測結果
        summary: 検出結果の集計
        confidence: 観測結果の信頼度スコアの統計
        reconciliation: 照合結果
        grade: コンプライアンス評価区分
        shelf_lines: 推定した棚板のY座標
    """

    raw_detections: list[RawDetection]
    observations: list[Observation]
    summary: DetectionSummary
    confidence: ConfidenceStatistics
    reconciliation: ReconciliationResult
    grade: str
    shelf_lines: list[float]


class ScanPipeline:
    """棚スキャンのパイプライン

    検出器の出力を後処理し、エディタの観測結果を丸ごと差し替えて照合する。
    外部コラボレータ（検出器・リポジトリ）の失敗はそのまま呼び出し側へ伝播し、再試行はしない。
    """

    def __init__(
        self,
        config: ConfigManager,
        detector: DetectorPort,
        editor: PlanogramEditor,
        repository: PlanogramRepositoryPort | None = None,
        logger: logging.Logger | None = None,
    ):
        """初期化

        Args:
            config: ConfigManagerインスタンス
            detector: 検出器
            editor: プラノグラムエディタ
            repository: 永続化リポジトリ（保存しない場合は None）
            logger: ロガー
        """
        self.config = config
        self.detector = detector
        self.editor = editor
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)

    def _build_postprocessor(self) -> DetectionPostprocessor:
        return DetectionPostprocessor.for_planogram(
            self.editor.planogram,
            confidence_threshold=self.config.get("detection.confidence_threshold", 0.6),
            iou_threshold=self.config.get("detection.iou_threshold", 0.4),
        )

    def analyze(self, image: np.ndarray) -> ScanResult:
        """画像を解析して照合結果を返す

        Args:
            image: 棚の画像 (H, W, C)

        Returns:
            ScanResult: スキャン結果
        """
        self.logger.info("=" * 80)
        self.logger.info("棚スキャン解析")
        self.logger.info("=" * 80)

        raw_detections = self.detector.detect(image)
        return self.analyze_detections(raw_detections)

    def analyze_detections(self, raw_detections: list[RawDetection]) -> ScanResult:
        """検出済みの結果から照合結果を求める

        Args:
            raw_detections: 生の検出結果

        Returns:
            ScanResult: スキャン結果
        """
        processed = self._build_postprocessor().process(raw_detections)
        reconciliation = self.editor.reanalyze(processed.observations)
        grade = compliance_grade(
            reconciliation.compliance_score,
            self.config.get("compliance.good_threshold", 80),
            self.config.get("compliance.warning_threshold", 60),
        )

        self.logger.info(
            f"検出 {len(raw_detections)}件 -> 観測 {len(processed.observations)}件, "
            f"コンプライアンス {reconciliation.compliance_score}% ({grade})"
        )
        return ScanResult(
            raw_detections=raw_detections,
            observations=processed.observations,
            summary=processed.summary,
            confidence=calculate_confidence_statistics(processed.observations),
            reconciliation=reconciliation,
            grade=grade,
            shelf_lines=estimate_shelf_lines(raw_detections),
        )

    async def save(self, user_id: str | None = None) -> str:
        """現在のプラノグラムを保存する

        Args:
            user_id: 保存するユーザーのID

        Returns:
            保存したプラノグラムのID

        Raises:
            RuntimeError: リポジトリが設定されていない場合
        """
        if self.repository is None:
            raise RuntimeError("Repository not configured.")

        record = to_persistence_record(self.editor.planogram, user_id)
        planogram_id = await self.repository.save(record)
        if self.editor.planogram.id != planogram_id:
            self.editor.mark_saved(planogram_id)

        self.logger.info(f"プラノグラムを保存しました: {planogram_id}")
        return planogram_id
