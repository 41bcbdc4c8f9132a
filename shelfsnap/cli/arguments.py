"""Command-line argument parsing."""

import argparse
from typing import Optional, Sequence


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """コマンドライン引数をパースする

    Args:
        argv: 引数リスト（省略時は sys.argv を使用）

    Returns:
        パース済み引数
    """
    parser = argparse.ArgumentParser(description="棚割りコンプライアンスシステム - 検出結果とプラノグラムの照合")

    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="設定ファイルのパス（デフォルト: config.yaml）",
    )

    parser.add_argument(
        "--planogram", type=str, help="プラノグラムJSONのパス、指定しない場合は設定に従って空のプラノグラムを生成"
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--detections", type=str, help="検出結果JSONのパス（固定検出器として使用）")
    source.add_argument("--image", type=str, help="棚画像のパス（シミュレーション検出器で解析）")

    parser.add_argument("--seed", type=int, help="シミュレーション検出器の乱数シード")

    parser.add_argument("--output", type=str, help="出力ディレクトリ（設定の output.directory を上書き）")

    parser.add_argument("--debug", action="store_true", help="デバッグモードで実行（詳細ログ）")

    return parser.parse_args(argv)
