"""Unit tests for the planogram layout model."""

from __future__ import annotations

import pytest

from shelfsnap.core.errors import SlotOccupiedError, ValidationError
from shelfsnap.layout import add_product, initialize, move_product, remove_product, update_product
from shelfsnap.models import Point


def test_initialize_builds_shelves():
    """段数分の棚段が y = level * slot_height に生成される"""
    planogram = initialize(3, 4, 50, 100)

    assert planogram.products == []
    assert [s.level for s in planogram.shelves] == [0, 1, 2]
    assert [s.y for s in planogram.shelves] == [0, 100, 200]
    assert all(s.slot_count == 4 for s in planogram.shelves)
    assert planogram.width == 200
    assert planogram.height == 300
    assert planogram.slot_width == 50
    assert planogram.slot_height == 100
    assert planogram.id is None


@pytest.mark.parametrize("args", [(0, 4, 50, 100), (3, 0, 50, 100), (3, 4, 0, 100), (3, 4, 50, -1)])
def test_initialize_invalid_grid(args):
    with pytest.raises(ValidationError):
        initialize(*args)


def test_add_product_snaps_to_slot(empty_planogram):
    """追加した商品は最も近いスロット原点に配置される"""
    updated = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (95, 35))

    product = updated.products[0]
    assert (product.x, product.y) == (120, 0)
    assert (product.width, product.height) == (60, 80)
    assert product.quantity == 1
    assert product.id.startswith("product-")


def test_add_product_grid_snap_before_slot(empty_planogram):
    """grid_snap 指定時は編集グリッド (20) に寄せてからスロットに寄せる"""
    plain = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (95, 35))
    snapped = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (95, 35), grid_snap=True)

    assert (plain.products[0].x, plain.products[0].y) == (120, 0)
    # y=35 はグリッド 40 に寄り、スロット境界 (40) を越える
    assert (snapped.products[0].x, snapped.products[0].y) == (120, 80)


def test_add_product_does_not_mutate_input(empty_planogram):
    """入力のプラノグラムは変更されない"""
    add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    assert empty_planogram.products == []


def test_add_product_clamps_into_bounds(empty_planogram):
    """プラノグラム外の座標は境界内にクランプされる"""
    updated = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, {"x": 5000, "y": -300})
    product = updated.products[0]
    assert (product.x, product.y) == (660, 0)


def test_add_product_assigns_unique_ids(empty_planogram):
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    planogram = add_product(planogram, {"sku": "A1", "name": "Cola"}, (60, 0))
    assert len({p.id for p in planogram.products}) == 2


def test_add_product_to_occupied_slot(stocked_planogram):
    """占有済みスロットへの追加は SlotOccupiedError"""
    occupant = stocked_planogram.product_at(0, 0)

    with pytest.raises(SlotOccupiedError) as exc_info:
        add_product(stocked_planogram, {"sku": "Z9", "name": "Other"}, (10, 10))

    assert exc_info.value.occupant_id == occupant.id
    assert (exc_info.value.x, exc_info.value.y) == (0, 0)


@pytest.mark.parametrize(
    "draft",
    [
        {"name": "No SKU"},
        {"sku": "A1"},
        {"sku": "A1", "name": "Cola", "quantity": 0},
        {"sku": "A1", "name": "Cola", "quantity": -2},
    ],
)
def test_add_product_invalid_draft(empty_planogram, draft):
    """必須項目の欠落や不正な数量は ValidationError"""
    with pytest.raises(ValidationError):
        add_product(empty_planogram, draft, (0, 0))


def test_add_product_invalid_position(empty_planogram):
    with pytest.raises(ValidationError):
        add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, ("a", 0))


def test_remove_product(stocked_planogram):
    target = stocked_planogram.products[0]
    updated = remove_product(stocked_planogram, target.id)

    assert updated.find_product(target.id) is None
    assert len(updated.products) == 2
    assert len(stocked_planogram.products) == 3


def test_remove_missing_product_is_noop(stocked_planogram):
    """存在しないIDの削除はエラーにならず変更なし"""
    updated = remove_product(stocked_planogram, "product-unknown")
    assert updated == stocked_planogram


def test_move_product(stocked_planogram):
    target = stocked_planogram.products[0]
    updated = move_product(stocked_planogram, target.id, Point(250, 170))

    moved = updated.find_product(target.id)
    assert (moved.x, moved.y) == (240, 160)
    assert stocked_planogram.find_product(target.id).x == 0


def test_move_product_grid_snap(stocked_planogram):
    target = stocked_planogram.products[0]
    updated = move_product(stocked_planogram, target.id, (250, 35), grid_snap=True)

    moved = updated.find_product(target.id)
    assert (moved.x, moved.y) == (240, 80)


def test_move_product_onto_itself_is_allowed(stocked_planogram):
    """自分自身が占有するスロットへの移動はエラーにならない"""
    target = stocked_planogram.products[0]
    updated = move_product(stocked_planogram, target.id, (5, 5))
    assert (updated.find_product(target.id).x, updated.find_product(target.id).y) == (0, 0)


def test_move_product_to_occupied_slot(stocked_planogram):
    """別の商品が占有するスロットへの移動は SlotOccupiedError"""
    first, second = stocked_planogram.products[:2]
    with pytest.raises(SlotOccupiedError):
        move_product(stocked_planogram, first.id, (second.x, second.y))


def test_move_missing_product_is_noop(stocked_planogram):
    assert move_product(stocked_planogram, "product-unknown", (300, 0)) == stocked_planogram


def test_update_product_quantity(stocked_planogram):
    target = stocked_planogram.products[0]
    updated = update_product(stocked_planogram, target.id, {"quantity": 4, "category": "drinks"})

    product = updated.find_product(target.id)
    assert product.quantity == 4
    assert product.category == "drinks"
    assert stocked_planogram.find_product(target.id).quantity == 1


def test_update_product_invalid_quantity(stocked_planogram):
    target = stocked_planogram.products[0]
    with pytest.raises(ValidationError):
        update_product(stocked_planogram, target.id, {"quantity": -1})


def test_update_product_rejects_position_and_unknown_fields(stocked_planogram):
    """位置・ID・未知の項目は update_product で変更できない"""
    target = stocked_planogram.products[0]
    with pytest.raises(ValidationError):
        update_product(stocked_planogram, target.id, {"x": 300})
    with pytest.raises(ValidationError):
        update_product(stocked_planogram, target.id, {"colour": "red"})


def test_update_missing_product_is_noop(stocked_planogram):
    assert update_product(stocked_planogram, "product-unknown", {"quantity": 3}) == stocked_planogram


def test_no_two_products_share_a_slot(empty_planogram):
    """どの操作の後でもスロットの重複はない"""
    planogram = empty_planogram
    for i in range(12):
        try:
            planogram = add_product(planogram, {"sku": f"S{i}", "name": f"P{i}"}, (i * 37, (i % 3) * 50))
        except SlotOccupiedError:
            pass

    slots = [(p.x, p.y) for p in planogram.products]
    assert len(slots) == len(set(slots))
