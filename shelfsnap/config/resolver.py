"""CLI/環境変数の上書きを行う簡易リゾルバ。"""

from __future__ import annotations

import copy
import os
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "SHELFSNAP_"


def merge_overrides(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """辞書を再帰的にマージして統合する（overrides 側を優先）。"""
    merged = copy.deepcopy(dict(base))
    for k, v in overrides.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = merge_overrides(merged[k], v)
        else:
            merged[k] = copy.deepcopy(v)
    return merged


def apply_env_overrides(
    config: Mapping[str, Any],
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """環境変数による上書き。

    ``SHELFSNAP_DETECTION__IOU_THRESHOLD=0.5`` は ``detection.iou_threshold`` を上書きする。
    値はYAMLのスカラーとして解釈する。
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for env_key, env_val in environ.items():
        if not env_key.startswith(prefix):
            continue
        path = env_key[len(prefix) :].lower().split("__")
        node = overrides
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = yaml.safe_load(env_val)
    return merge_overrides(config, overrides)
