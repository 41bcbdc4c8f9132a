"""Canonical JSON serialization of planograms."""

from __future__ import annotations

import json
import logging
from pathlib import Path
import time
from typing import Any

from shelfsnap.core.errors import ValidationError
from shelfsnap.geometry.box_utils import snap_to_slot
from shelfsnap.models.data_models import Planogram, PlanogramMetadata, Product, RawDetection, ShelfLevel

logger = logging.getLogger(__name__)


def product_to_dict(product: Product) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": product.id,
        "sku": product.sku,
        "name": product.name,
        "x": product.x,
        "y": product.y,
        "width": product.width,
        "height": product.height,
        "quantity": product.quantity,
        "matched": product.matched,
    }
    if product.category is not None:
        data["category"] = product.category
    return data


def product_from_dict(data: dict[str, Any]) -> Product:
    try:
        return Product(
            id=data["id"],
            sku=data["sku"],
            name=data["name"],
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
            quantity=data.get("quantity", 1),
            category=data.get("category"),
            matched=data.get("matched", False),
        )
    except KeyError as e:
        raise ValidationError(f"商品レコードに必須項目 {e} がありません。") from e


def shelf_to_dict(shelf: ShelfLevel) -> dict[str, Any]:
    return {
        "id": shelf.id,
        "level": shelf.level,
        "y": shelf.y,
        "height": shelf.height,
        "slots": shelf.slot_count,
    }


def shelf_from_dict(data: dict[str, Any]) -> ShelfLevel:
    try:
        return ShelfLevel(
            id=data["id"],
            level=data["level"],
            y=data["y"],
            height=data["height"],
            slot_count=data["slots"],
        )
    except KeyError as e:
        raise ValidationError(f"棚段レコードに必須項目 {e} がありません。") from e


def planogram_to_dict(planogram: Planogram) -> dict[str, Any]:
    """プラノグラムを正規化されたJSON互換の辞書に変換する

    Args:
        planogram: プラノグラム

    Returns:
        キャメルケースのキーを持つ辞書
    """
    metadata = planogram.metadata
    return {
        "id": planogram.id,
        "name": planogram.name,
        "storeId": planogram.store_id,
        "shelfId": planogram.shelf_id,
        "width": planogram.width,
        "height": planogram.height,
        "products": [product_to_dict(p) for p in planogram.products],
        "shelves": [shelf_to_dict(s) for s in planogram.shelves],
        "metadata": {
            "gridSize": metadata.grid_size,
            "slotWidth": metadata.slot_width,
            "slotHeight": metadata.slot_height,
            "created": metadata.created,
            "lastModified": metadata.last_modified,
        },
        "complianceScore": planogram.compliance_score,
        "lastChecked": planogram.last_checked,
        "lastModified": planogram.last_modified,
    }


def planogram_from_dict(data: dict[str, Any]) -> Planogram:
    """planogram_to_dict の出力からプラノグラムを復元する

    Raises:
        ValidationError: 必須項目が欠けている場合、商品がスロット原点にない場合、
            またはスロットが重複している場合
    """
    if not isinstance(data, dict):
        raise ValidationError("プラノグラムレコードは辞書である必要があります。")

    try:
        meta = data["metadata"]
        metadata = PlanogramMetadata(
            grid_size=meta["gridSize"],
            slot_width=meta["slotWidth"],
            slot_height=meta["slotHeight"],
            created=meta["created"],
            last_modified=meta["lastModified"],
        )
        planogram = Planogram(
            id=data.get("id"),
            name=data["name"],
            store_id=data.get("storeId"),
            shelf_id=data.get("shelfId"),
            width=data["width"],
            height=data["height"],
            products=[product_from_dict(p) for p in data.get("products", [])],
            shelves=[shelf_from_dict(s) for s in data.get("shelves", [])],
            metadata=metadata,
            compliance_score=data.get("complianceScore"),
            last_checked=data.get("lastChecked"),
            last_modified=data.get("lastModified"),
        )
    except KeyError as e:
        raise ValidationError(f"プラノグラムレコードに必須項目 {e} がありません。") from e

    seen: dict[tuple[float, float], str] = {}
    for product in planogram.products:
        origin = snap_to_slot(
            product.x,
            product.y,
            planogram.slot_width,
            planogram.slot_height,
            planogram.width,
            planogram.height,
        )
        if (origin.x, origin.y) != (product.x, product.y):
            raise ValidationError(
                f"商品 {product.id} の位置 ({product.x}, {product.y}) がスロット原点ではないか、範囲外です。"
            )
        slot = (product.x, product.y)
        if slot in seen:
            raise ValidationError(f"商品 {seen[slot]} と {product.id} が同じスロット {slot} を占有しています。")
        seen[slot] = product.id

    return planogram


def export_planogram_json(planogram: Planogram, output_dir: str | Path) -> Path:
    """プラノグラムをJSONファイルとしてエクスポートする

    ファイル名は ``planogram-<id|new>-<エポックミリ秒>.json``。

    Args:
        planogram: プラノグラム
        output_dir: 出力ディレクトリ

    Returns:
        出力ファイルのパス
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    output_path = output_dir / f"planogram-{planogram.id or 'new'}-{int(time.time() * 1000)}.json"
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(planogram_to_dict(planogram), f, indent=2, ensure_ascii=False)

    logger.info(f"プラノグラムをエクスポートしました: {output_path}")
    return output_path


def load_planogram_json(path: str | Path) -> Planogram:
    """JSONファイルからプラノグラムを読み込む

    Raises:
        FileNotFoundError: ファイルが存在しない場合
        ValidationError: 内容が不正な場合
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"プラノグラムファイルが見つかりません: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"JSON解析エラー: {e}") from e

    planogram = planogram_from_dict(data)
    logger.info(f"プラノグラムを読み込みました: {path} ({len(planogram.products)} products)")
    return planogram


def load_detections_json(path: str | Path) -> list[RawDetection]:
    """解析サービスが出力した検出結果JSONを読み込む

    トップレベルがリストの場合と ``{"detections": [...]}`` の場合の両方を受け付ける。

    Raises:
        FileNotFoundError: ファイルが存在しない場合
        ValidationError: 内容が不正な場合
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"検出結果ファイルが見つかりません: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"JSON解析エラー: {e}") from e

    if isinstance(data, dict):
        data = data.get("detections")
    if not isinstance(data, list):
        raise ValidationError("検出結果はリストである必要があります。")

    detections = [RawDetection.from_dict(record) for record in data]
    logger.info(f"検出結果を読み込みました: {path} ({len(detections)}件)")
    return detections
