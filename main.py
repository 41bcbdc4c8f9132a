#!/usr/bin/env python
"""
棚割りコンプライアンスシステム - メインエントリーポイント

棚の検出結果をプラノグラム（棚割り計画）と照合し、
欠品・位置違い・数量違い・想定外商品を洗い出して
コンプライアンススコアとレポートを出力します。
"""

import logging
from pathlib import Path
import sys

import cv2
import numpy as np

from shelfsnap.adapters import FixedDetector
from shelfsnap.cli import parse_arguments
from shelfsnap.config import ConfigManager
from shelfsnap.core.errors import ShelfSnapError
from shelfsnap.detection import SimulatedShelfDetector
from shelfsnap.editor import PlanogramEditor
from shelfsnap.pipeline import ScanPipeline
from shelfsnap.utils import (
    ReportExporter,
    export_planogram_json,
    load_detections_json,
    load_planogram_json,
    setup_logging,
)


def build_detector(args, config, planogram):
    """引数と設定から検出器と入力画像を用意する

    Returns:
        (detector, image) のタプル
    """
    if args.detections:
        return FixedDetector(load_detections_json(args.detections)), None

    if config.get("detection.detector") == "fixed":
        raise ValueError("detection.detector が fixed の場合は --detections を指定してください")

    if args.image:
        image = cv2.imread(args.image)
        if image is None:
            raise FileNotFoundError(f"画像を読み込めません: {args.image}")
    else:
        # 画像未指定時はプラノグラムと同じ大きさの空画像をシミュレーション対象にする
        image = np.zeros((int(planogram.height), int(planogram.width), 3), dtype=np.uint8)

    return SimulatedShelfDetector(seed=args.seed), image


def main(argv=None):
    """メイン処理"""
    args = parse_arguments(argv)

    # 初期ロギング設定（設定ファイル読み込み前）
    setup_logging(args.debug, log_to_file=False)
    logger = logging.getLogger(__name__)

    logger.info("=" * 80)
    logger.info("棚割りコンプライアンスシステム 起動")
    logger.info("=" * 80)

    try:
        # 設定ファイルの読み込み
        logger.info(f"設定ファイルを読み込んでいます: {args.config}")
        config = ConfigManager(args.config)

        if args.output:
            config.set("output.directory", args.output)
        if args.debug:
            config.set("output.debug_mode", True)
            logger.info("デバッグモードが有効になりました")

        config.validate()

        # ロギングを再設定（出力ディレクトリを反映）
        output_dir = Path(config.get("output.directory", "output"))
        setup_logging(config.get("output.debug_mode", False), str(output_dir))
        logger = logging.getLogger(__name__)

        # プラノグラムの用意
        planogram = load_planogram_json(args.planogram) if args.planogram else None
        editor = PlanogramEditor.from_config(config, planogram)

        # 検出と照合
        detector, image = build_detector(args, config, editor.planogram)
        pipeline = ScanPipeline(config, detector, editor, logger=logger)
        scan = pipeline.analyze(image)

        # レポート出力
        exporter = ReportExporter(output_dir)
        exporter.export_json(
            scan.reconciliation,
            editor.planogram,
            summary=scan.summary,
            grade=scan.grade,
            confidence=scan.confidence,
        )
        if config.get("output.save_report_csv", True):
            exporter.export_discrepancies_csv(scan.reconciliation)
        export_planogram_json(editor.planogram, output_dir)

        counts = scan.reconciliation.counts_by_type()
        logger.info("=" * 80)
        logger.info(f"コンプライアンススコア: {scan.reconciliation.compliance_score}% ({scan.grade})")
        logger.info(
            f"欠品: {counts['missing']}, 位置違い: {counts['wrong_position']}, "
            f"数量違い: {counts['quantity_mismatch']}, 想定外: {counts['unexpected']}"
        )
        logger.info(f"出力ディレクトリ: {output_dir.absolute()}")
        logger.info("=" * 80)

        return 0

    except FileNotFoundError as e:
        logger.error(f"ファイルが見つかりません: {e}")
        return 1
    except ShelfSnapError as e:
        logger.error(f"入力データエラー: {e}")
        return 1
    except ValueError as e:
        logger.error(f"設定エラー: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("処理が中断されました")
        return 130
    except Exception as e:
        logger.error(f"予期しないエラーが発生しました: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
