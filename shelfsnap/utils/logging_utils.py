"""Logging utilities for the shelf compliance system."""

import logging
import sys
from pathlib import Path

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'shelfsnap.log'


def setup_logging(debug_mode: bool = False, output_dir: str = 'output', log_to_file: bool = True) -> None:
    """ロギングを設定する

    ルートロガーの既存ハンドラを置き換え、標準出力と
    ``<output_dir>/shelfsnap.log`` へ出力する。

    Args:
        debug_mode: デバッグモードの場合True（DEBUGレベル）
        output_dir: ログファイルの出力ディレクトリ
        log_to_file: Falseの場合はファイル出力を行わない
    """
    log_level = logging.DEBUG if debug_mode else logging.INFO
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_dir = Path(output_dir)
        log_dir.mkdir(exist_ok=True, parents=True)

        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(log_level)
