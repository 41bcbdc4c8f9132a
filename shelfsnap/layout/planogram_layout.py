"""Planogram layout model.

Every operation returns a new ``Planogram`` and leaves its input untouched.
Product positions are always slot origins inside the planogram bounds, and no
two products share a slot.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
from dataclasses import fields
import logging
from typing import Any
import uuid

from shelfsnap.core.errors import SlotOccupiedError, ValidationError
from shelfsnap.geometry.box_utils import snap_to_grid, snap_to_slot
from shelfsnap.models.data_models import Planogram, PlanogramMetadata, Point, Product, ShelfLevel, utc_now_iso

logger = logging.getLogger(__name__)

# 更新で変更できない項目（位置は move_product、IDは不変）
_IMMUTABLE_FIELDS = {"id", "x", "y"}
_PRODUCT_FIELDS = {f.name for f in fields(Product)}

PositionLike = Point | tuple[float, float] | Mapping[str, float]


def _new_product_id() -> str:
    return f"product-{uuid.uuid4().hex}"


def _coerce_position(position: PositionLike) -> Point:
    """位置指定を Point に変換する

    Raises:
        ValidationError: 数値の (x, y) として解釈できない場合
    """
    if isinstance(position, Point):
        x, y = position.x, position.y
    elif isinstance(position, tuple) and len(position) == 2:
        x, y = position
    elif hasattr(position, "get"):
        x, y = position.get("x"), position.get("y")
    else:
        raise ValidationError(f"位置は (x, y) 形式である必要があります: {position!r}")

    for value in (x, y):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"位置の座標は数値である必要があります: {position!r}")
    return Point(x, y)


def _snap(planogram: Planogram, position: PositionLike, grid_snap: bool = False) -> Point:
    point = _coerce_position(position)
    # 編集グリッドへ寄せてからスロット原点へ寄せる
    grid_size = planogram.metadata.grid_size
    x = snap_to_grid(point.x, grid_size, enabled=grid_snap)
    y = snap_to_grid(point.y, grid_size, enabled=grid_snap)
    return snap_to_slot(
        x,
        y,
        planogram.slot_width,
        planogram.slot_height,
        planogram.width,
        planogram.height,
    )


def _stamp(planogram: Planogram) -> None:
    now = utc_now_iso()
    planogram.last_modified = now
    planogram.metadata.last_modified = now


def initialize(
    levels: int,
    slots_per_level: int,
    slot_width: float,
    slot_height: float,
    *,
    name: str = "New Planogram",
    store_id: str | None = None,
    shelf_id: str | None = None,
    grid_size: float = 20,
) -> Planogram:
    """空のプラノグラムを生成する

    Args:
        levels: 棚段数
        slots_per_level: 段あたりのスロット数
        slot_width: スロット幅
        slot_height: スロット高さ
        name: プラノグラム名
        store_id: 店舗ID
        shelf_id: 棚ID
        grid_size: 編集グリッドのサイズ

    Returns:
        棚段のみを持つ空のプラノグラム

    Raises:
        ValidationError: グリッド設定が不正な場合
    """
    if not isinstance(levels, int) or levels <= 0:
        raise ValidationError(f"levels は正の整数である必要があります: {levels!r}")
    if not isinstance(slots_per_level, int) or slots_per_level <= 0:
        raise ValidationError(f"slots_per_level は正の整数である必要があります: {slots_per_level!r}")
    if slot_width <= 0 or slot_height <= 0:
        raise ValidationError(f"スロットサイズは正の数値である必要があります: ({slot_width}, {slot_height})")
    if grid_size <= 0:
        raise ValidationError(f"grid_size は正の数値である必要があります: {grid_size}")

    shelves = [
        ShelfLevel(
            id=f"shelf-{level}",
            level=level,
            y=level * slot_height,
            height=slot_height,
            slot_count=slots_per_level,
        )
        for level in range(levels)
    ]
    metadata = PlanogramMetadata(grid_size=grid_size, slot_width=slot_width, slot_height=slot_height)

    planogram = Planogram(
        id=None,
        name=name,
        store_id=store_id,
        shelf_id=shelf_id,
        width=slots_per_level * slot_width,
        height=levels * slot_height,
        products=[],
        shelves=shelves,
        metadata=metadata,
        last_modified=metadata.last_modified,
    )
    logger.info(f"プラノグラムを初期化しました: {levels}段 x {slots_per_level}スロット ({slot_width}x{slot_height})")
    return planogram


def add_product(
    planogram: Planogram,
    draft: Mapping[str, Any],
    position: PositionLike,
    grid_snap: bool = False,
) -> Planogram:
    """商品を最も近いスロットに追加する

    Args:
        planogram: 現在のプラノグラム
        draft: 商品情報（sku, name は必須。quantity, category は任意）
        position: 配置したい座標
        grid_snap: スロットへ寄せる前に編集グリッドへ寄せるかどうか

    Returns:
        商品を追加した新しいプラノグラム

    Raises:
        ValidationError: 商品情報が不正な場合
        SlotOccupiedError: スナップ先のスロットが既に占有されている場合
    """
    slot = _snap(planogram, position, grid_snap)

    occupant = planogram.product_at(slot.x, slot.y)
    if occupant is not None:
        raise SlotOccupiedError(slot.x, slot.y, occupant.id)

    product = Product(
        id=_new_product_id(),
        sku=draft.get("sku"),
        name=draft.get("name"),
        x=slot.x,
        y=slot.y,
        width=planogram.slot_width,
        height=planogram.slot_height,
        quantity=draft.get("quantity", 1),
        category=draft.get("category"),
    )

    updated = copy.deepcopy(planogram)
    updated.products.append(product)
    _stamp(updated)

    logger.debug(f"商品を追加しました: {product.id} ({product.sku}) at ({slot.x}, {slot.y})")
    return updated


def remove_product(planogram: Planogram, product_id: str) -> Planogram:
    """商品を削除する（存在しないIDの場合は何もしない）

    Args:
        planogram: 現在のプラノグラム
        product_id: 削除する商品ID

    Returns:
        新しいプラノグラム
    """
    updated = copy.deepcopy(planogram)
    if updated.find_product(product_id) is None:
        logger.debug(f"削除対象の商品が見つかりません: {product_id}")
        return updated

    updated.products = [p for p in updated.products if p.id != product_id]
    _stamp(updated)
    logger.debug(f"商品を削除しました: {product_id}")
    return updated


def move_product(
    planogram: Planogram,
    product_id: str,
    new_position: PositionLike,
    grid_snap: bool = False,
) -> Planogram:
    """商品を別のスロットへ移動する

    Args:
        planogram: 現在のプラノグラム
        product_id: 移動する商品ID
        new_position: 移動先の座標
        grid_snap: スロットへ寄せる前に編集グリッドへ寄せるかどうか

    Returns:
        新しいプラノグラム（存在しないIDの場合は変更なし）

    Raises:
        ValidationError: 座標が不正な場合
        SlotOccupiedError: 移動先が別の商品で占有されている場合
    """
    slot = _snap(planogram, new_position, grid_snap)

    occupant = planogram.product_at(slot.x, slot.y)
    if occupant is not None and occupant.id != product_id:
        raise SlotOccupiedError(slot.x, slot.y, occupant.id)

    updated = copy.deepcopy(planogram)
    product = updated.find_product(product_id)
    if product is None:
        logger.debug(f"移動対象の商品が見つかりません: {product_id}")
        return updated

    product.x = slot.x
    product.y = slot.y
    _stamp(updated)
    logger.debug(f"商品を移動しました: {product_id} -> ({slot.x}, {slot.y})")
    return updated


def update_product(planogram: Planogram, product_id: str, changes: Mapping[str, Any]) -> Planogram:
    """商品の属性（数量など）を更新する

    Args:
        planogram: 現在のプラノグラム
        product_id: 更新する商品ID
        changes: 更新する項目

    Returns:
        新しいプラノグラム（存在しないIDの場合は変更なし）

    Raises:
        ValidationError: 更新できない項目、または不正な値が含まれる場合
    """
    unknown = set(changes) - _PRODUCT_FIELDS
    if unknown:
        raise ValidationError(f"不明な商品項目です: {sorted(unknown)}")
    immutable = set(changes) & _IMMUTABLE_FIELDS
    if immutable:
        raise ValidationError(f"これらの項目は update_product で変更できません: {sorted(immutable)}")

    updated = copy.deepcopy(planogram)
    for i, product in enumerate(updated.products):
        if product.id != product_id:
            continue
        # Product の検証を通すため、新しいインスタンスとして再構築する
        merged = {f.name: getattr(product, f.name) for f in fields(Product)}
        merged.update(changes)
        updated.products[i] = Product(**merged)
        _stamp(updated)
        logger.debug(f"商品を更新しました: {product_id} {dict(changes)}")
        return updated

    logger.debug(f"更新対象の商品が見つかりません: {product_id}")
    return updated
