"""Export utilities for compliance reports."""

from __future__ import annotations

from datetime import datetime
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd

if TYPE_CHECKING:
    from shelfsnap.models.data_models import Planogram, ReconciliationResult
    from shelfsnap.utils.stats_utils import ConfidenceStatistics, DetectionSummary

logger = logging.getLogger(__name__)

DISCREPANCY_COLUMNS = [
    "type",
    "severity",
    "product_id",
    "sku",
    "name",
    "x",
    "y",
    "expected_quantity",
    "detected_quantity",
    "detected_x",
    "detected_y",
]


def discrepancies_to_dataframe(result: ReconciliationResult) -> pd.DataFrame:
    """差異リストを1行1件のDataFrameに変換する"""
    rows = []
    for d in result.discrepancies:
        rows.append(
            {
                "type": d.type,
                "severity": d.severity,
                "product_id": d.product.id,
                "sku": d.product.sku,
                "name": d.product.name,
                "x": d.product.x,
                "y": d.product.y,
                "expected_quantity": d.expected,
                "detected_quantity": d.detected,
                "detected_x": d.detected_position.x if d.detected_position else None,
                "detected_y": d.detected_position.y if d.detected_position else None,
            }
        )
    return pd.DataFrame(rows, columns=DISCREPANCY_COLUMNS)


class ReportExporter:
    """コンプライアンスレポートのエクスポートクラス

    照合結果をJSONおよびCSV形式で出力します。
    """

    def __init__(self, output_dir: str | Path):
        """ReportExporterを初期化

        Args:
            output_dir: 出力ディレクトリ
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"ReportExporter initialized: {self.output_dir}")

    def export_json(
        self,
        result: ReconciliationResult,
        planogram: Planogram,
        summary: DetectionSummary | None = None,
        grade: str | None = None,
        confidence: ConfidenceStatistics | None = None,
        filename: str = "compliance_report.json",
    ) -> Path:
        """照合結果をJSON形式でエクスポート

        Args:
            result: 照合結果
            planogram: 照合対象のプラノグラム
            summary: 検出結果の集計（任意）
            grade: コンプライアンス評価区分（任意）
            confidence: 検出結果の信頼度スコアの統計（任意）
            filename: 出力ファイル名

        Returns:
            出力ファイルのパス
        """
        output_path = self.output_dir / filename

        data: dict[str, Any] = {
            "planogram": {
                "id": planogram.id,
                "name": planogram.name,
                "storeId": planogram.store_id,
                "shelfId": planogram.shelf_id,
                "productCount": len(planogram.products),
            },
            "result": result.to_dict(),
            "metadata": {"exported_at": datetime.now().isoformat()},
        }
        if grade is not None:
            data["result"]["grade"] = grade
        if summary is not None:
            data["detections"] = {
                "totalCount": summary.total_count,
                "uniqueSkuCount": summary.unique_sku_count,
                "countsByLabel": summary.counts_by_label,
            }
        if confidence is not None:
            data.setdefault("detections", {})["confidence"] = {
                "count": confidence.count,
                "mean": confidence.mean,
                "min": confidence.min,
                "max": confidence.max,
                "std": confidence.std,
                "median": confidence.median,
            }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"JSON exported: {output_path}")
        return output_path

    def export_discrepancies_csv(
        self,
        result: ReconciliationResult,
        filename: str = "discrepancies.csv",
    ) -> Path:
        """差異リストをCSV形式でエクスポート

        Args:
            result: 照合結果
            filename: 出力ファイル名

        Returns:
            出力ファイルのパス
        """
        output_path = self.output_dir / filename
        df = discrepancies_to_dataframe(result)
        df.to_csv(output_path, index=False, encoding="utf-8")

        logger.info(f"CSV exported: {output_path} ({len(df)} rows)")
        return output_path
