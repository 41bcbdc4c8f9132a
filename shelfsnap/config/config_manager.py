"""Configuration management module for the shelf compliance system."""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shelfsnap.config.resolver import apply_env_overrides, merge_overrides

logger = logging.getLogger(__name__)


class ConfigManager:
    """設定ファイル管理クラス

    YAML/JSON形式の設定ファイルを読み込み、検証し、設定値を提供する。
    ファイルに存在しない項目はデフォルト設定で補完し、環境変数
    ``SHELFSNAP_<SECTION>__<KEY>`` で上書きできる。

    Attributes:
        config_path: 設定ファイルのパス
        config: 読み込まれた設定データ
    """

    # 必須項目の定義
    REQUIRED_KEYS = {
        "planogram": ["levels", "slots_per_level", "slot_width", "slot_height"],
        "detection": ["confidence_threshold", "iou_threshold"],
        "history": ["max_entries"],
        "compliance": ["good_threshold", "warning_threshold"],
        "output": ["directory"],
    }

    DETECTORS = ["simulated", "fixed"]

    # デフォルト設定値
    DEFAULT_CONFIG = {
        "planogram": {
            "name": "New Planogram",
            "levels": 5,
            "slots_per_level": 12,
            "slot_width": 60,
            "slot_height": 80,
            "grid_size": 20,
            "snap_to_grid": True,
        },
        "detection": {
            "confidence_threshold": 0.6,
            "iou_threshold": 0.4,
            "detector": "simulated",
        },
        "history": {
            "max_entries": 50,
        },
        "compliance": {
            "good_threshold": 80,
            "warning_threshold": 60,
        },
        "output": {
            "directory": "output",
            "save_report_csv": True,
            "debug_mode": False,
        },
    }

    def __init__(self, config_path: str = "config.yaml", use_env: bool = True):
        """ConfigManagerを初期化する

        Args:
            config_path: 設定ファイルのパス（デフォルト: config.yaml）
            use_env: 環境変数による上書きを適用する場合True
        """
        self.config_path = config_path
        config = merge_overrides(self.DEFAULT_CONFIG, self._load_config())
        self.config = apply_env_overrides(config) if use_env else config

    def _load_config(self) -> Dict[str, Any]:
        """設定ファイルを読み込む

        Returns:
            読み込まれた設定データ（ファイルがない場合は空の辞書）

        Raises:
            ValueError: 設定ファイルの形式が不正な場合
        """
        if not os.path.exists(self.config_path):
            logger.warning(f"設定ファイル '{self.config_path}' が見つかりません。デフォルト設定を使用します。")
            return {}

        file_ext = Path(self.config_path).suffix.lower()
        if file_ext not in [".yaml", ".yml", ".json"]:
            raise ValueError(f"サポートされていないファイル形式: {file_ext}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                if file_ext == ".json":
                    config = json.load(f)
                else:
                    config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"YAML解析エラー: {e}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON解析エラー: {e}") from e

        if config is None:
            logger.warning("設定ファイルが空です。デフォルト設定を使用します。")
            return {}
        if not isinstance(config, dict):
            raise ValueError("設定ファイルは辞書形式である必要があります。")

        logger.info(f"設定ファイル '{self.config_path}' を読み込みました。")
        return config

    def validate(self) -> bool:
        """設定値の妥当性を検証する

        必須キーの有無を確認したうえで、セクションごとに型と範囲を検証する。

        Returns:
            検証が成功した場合True

        Raises:
            ValueError: 設定値が不正な場合
        """
        self._check_required_keys()

        self._validate_planogram_config()
        self._validate_detection_config()
        self._validate_history_config()
        self._validate_compliance_config()
        self._validate_output_config()

        logger.info("設定の検証に成功しました。")
        return True

    def _check_required_keys(self):
        """必須セクションと必須キーがそろっているか確認する"""
        missing = []
        for section, required_keys in self.REQUIRED_KEYS.items():
            section_config = self.config.get(section)
            if not isinstance(section_config, dict):
                raise ValueError(f"セクション '{section}' がないか、辞書形式ではありません。")
            missing.extend(f"{section}.{key}" for key in required_keys if key not in section_config)

        if missing:
            raise ValueError(f"必須項目が不足しています: {', '.join(missing)}")

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    @staticmethod
    def _is_positive_int(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value > 0

    def _validate_planogram_config(self):
        """planogram セクションの検証"""
        planogram_config = self.config["planogram"]

        for key in ["levels", "slots_per_level"]:
            if not self._is_positive_int(planogram_config.get(key)):
                raise ValueError(f"planogram.{key} は正の整数である必要があります。")

        for key in ["slot_width", "slot_height", "grid_size"]:
            if key not in planogram_config:
                continue
            value = planogram_config[key]
            if not self._is_number(value) or value <= 0:
                raise ValueError(f"planogram.{key} は正の数値である必要があります。")

        if "snap_to_grid" in planogram_config and not isinstance(planogram_config["snap_to_grid"], bool):
            raise ValueError("planogram.snap_to_grid はブール値である必要があります。")

        if "name" in planogram_config and not isinstance(planogram_config["name"], str):
            raise ValueError("planogram.name は文字列である必要があります。")

    def _validate_detection_config(self):
        """detection セクションの検証"""
        detection_config = self.config["detection"]

        for key in ["confidence_threshold", "iou_threshold"]:
            value = detection_config.get(key)
            if not self._is_number(value) or not (0.0 <= value <= 1.0):
                raise ValueError(f"detection.{key} は 0.0 から 1.0 の範囲である必要があります。")

        if "detector" in detection_config and detection_config["detector"] not in self.DETECTORS:
            raise ValueError(f"detection.detector は {self.DETECTORS} のいずれかである必要があります。")

    def _validate_history_config(self):
        """history セクションの検証"""
        if not self._is_positive_int(self.config["history"].get("max_entries")):
            raise ValueError("history.max_entries は正の整数である必要があります。")

    def _validate_compliance_config(self):
        """compliance セクションの検証"""
        compliance_config = self.config["compliance"]
        good = compliance_config.get("good_threshold")
        warning = compliance_config.get("warning_threshold")

        for key, value in [("good_threshold", good), ("warning_threshold", warning)]:
            if not self._is_number(value) or not (0 <= value <= 100):
                raise ValueError(f"compliance.{key} は 0 から 100 の範囲である必要があります。")

        if warning > good:
            raise ValueError("compliance.warning_threshold は good_threshold 以下である必要があります。")

    def _validate_output_config(self):
        """output セクションの検証"""
        output_config = self.config["output"]

        if not isinstance(output_config.get("directory"), str):
            raise ValueError("output.directory は文字列である必要があります。")

        for field in ["save_report_csv", "debug_mode"]:
            if field in output_config and not isinstance(output_config[field], bool):
                raise ValueError(f"output.{field} はブール値である必要があります。")

    def get(self, key: str, default: Any = None) -> Any:
        """ドット区切りのキーで設定値を参照する

        例: get("detection.iou_threshold")

        Args:
            key: 設定キー（ドット記法をサポート）
            default: 途中のキーが見つからない場合に返す値

        Returns:
            設定値（見つからない場合は default）
        """
        value = self.config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """セクション単位で設定を取り出す

        Args:
            section: セクション名（例: 'planogram', 'detection'）

        Returns:
            セクションの設定データのコピー
        """
        return copy.deepcopy(self.config.get(section, {}))

    def set(self, key: str, value: Any):
        """実行時に設定値を上書きする（CLI引数の反映など）

        Args:
            key: ドット区切りの設定キー。途中のセクションがなければ作成する
            value: 新しい値
        """
        keys = key.split(".")
        config = self.config

        for k in keys[:-1]:
            config = config.setdefault(k, {})

        config[keys[-1]] = value
        logger.debug(f"設定値を変更しました: {key} = {value}")

    def save(self, output_path: Optional[str] = None):
        """現在の設定をYAMLまたはJSONで書き出す

        Args:
            output_path: 書き出し先（省略時は読み込み元に上書き）

        Raises:
            ValueError: サポートされていないファイル形式の場合
        """
        save_path = output_path or self.config_path
        file_ext = Path(save_path).suffix.lower()
        if file_ext not in [".yaml", ".yml", ".json"]:
            raise ValueError(f"サポートされていないファイル形式: {file_ext}")

        with open(save_path, "w", encoding="utf-8") as f:
            if file_ext == ".json":
                json.dump(self.config, f, indent=2, ensure_ascii=False)
            else:
                yaml.dump(self.config, f, default_flow_style=False, allow_unicode=True)

        logger.info(f"設定ファイルを保存しました: {save_path}")
