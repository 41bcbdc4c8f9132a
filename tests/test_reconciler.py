"""Unit tests for PlanogramReconciler."""

from __future__ import annotations

import pytest

from conftest import make_observation
from shelfsnap.layout import add_product
from shelfsnap.reconciliation import PlanogramReconciler, compliance_grade, compute_compliance_score, reconcile


@pytest.fixture
def reconciler() -> PlanogramReconciler:
    return PlanogramReconciler()


def test_quantity_mismatch_still_counts_as_matched(empty_planogram, reconciler):
    """数量違いでも位置が合っていれば照合済みとしてスコアに含める"""
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola", "quantity": 2}, (0, 0))
    observations = [make_observation("Cola", 0, 0, sku="A1", quantity=1)]

    result = reconciler.reconcile(planogram, observations)

    assert len(result.discrepancies) == 1
    discrepancy = result.discrepancies[0]
    assert discrepancy.type == "quantity_mismatch"
    assert discrepancy.severity == "medium"
    assert (discrepancy.detected, discrepancy.expected) == (1, 2)
    assert result.compliance_score == 100.0


def test_wrong_position(empty_planogram, reconciler):
    """許容範囲外の同一SKUは位置違いとなり、欠品・想定外は出ない"""
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    observations = [make_observation("Cola", 180, 0, sku="A1")]

    result = reconciler.reconcile(planogram, observations)

    assert [d.type for d in result.discrepancies] == ["wrong_position"]
    discrepancy = result.discrepancies[0]
    assert discrepancy.severity == "medium"
    assert (discrepancy.detected_position.x, discrepancy.detected_position.y) == (180, 0)
    assert (discrepancy.expected_position.x, discrepancy.expected_position.y) == (0, 0)
    assert result.compliance_score == 0.0


def test_missing_and_unexpected(empty_planogram, reconciler):
    """一致しない商品は欠品、どの商品にも対応しない観測は想定外"""
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    observations = [make_observation("Mystery", 300, 160, sku="Z9")]

    result = reconciler.reconcile(planogram, observations)

    types = sorted(d.type for d in result.discrepancies)
    assert types == ["missing", "unexpected"]
    missing = next(d for d in result.discrepancies if d.type == "missing")
    unexpected = next(d for d in result.discrepancies if d.type == "unexpected")
    assert missing.severity == "high"
    assert unexpected.severity == "low"
    assert unexpected.product.id is None
    assert (unexpected.product.x, unexpected.product.y) == (300, 160)
    assert unexpected.product.name == "Mystery"


def test_label_matches_product_name_without_sku(empty_planogram, reconciler):
    """SKUがなくてもラベルと商品名が一致すれば照合される"""
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    result = reconciler.reconcile(planogram, [make_observation("Cola", 0, 0)])

    assert result.discrepancies == []
    assert result.compliance_score == 100.0


def test_position_tolerance_is_strictly_less_than_slot_size(empty_planogram, reconciler):
    """隣のスロット（差がちょうどスロット幅）は位置一致とみなさない"""
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    result = reconciler.reconcile(planogram, [make_observation("Cola", 60, 0, sku="A1")])

    assert [d.type for d in result.discrepancies] == ["wrong_position"]


def test_full_compliance(stocked_planogram, reconciler):
    observations = [
        make_observation("Cola", 0, 0, sku="A1"),
        make_observation("Chips", 60, 0, sku="B2"),
        make_observation("Water", 120, 80, sku="C3", quantity=2),
    ]
    result = reconciler.reconcile(stocked_planogram, observations)

    assert result.discrepancies == []
    assert result.compliance_score == 100.0
    assert sorted(result.matched_product_ids) == sorted(p.id for p in stocked_planogram.products)


def test_partial_compliance_score_rounded(stocked_planogram, reconciler):
    """スコアは小数1桁に丸められる"""
    result = reconciler.reconcile(stocked_planogram, [make_observation("Cola", 0, 0, sku="A1")])

    assert result.compliance_score == 33.3
    assert result.counts_by_type() == {
        "missing": 2,
        "wrong_position": 0,
        "quantity_mismatch": 0,
        "unexpected": 0,
    }


def test_no_observations_everything_missing(stocked_planogram, reconciler):
    result = reconciler.reconcile(stocked_planogram, [])

    assert [d.type for d in result.discrepancies] == ["missing"] * 3
    assert result.compliance_score == 0.0


def test_empty_planogram_scores_100(empty_planogram, reconciler):
    """期待商品がない場合のスコアは100、観測はすべて想定外"""
    result = reconciler.reconcile(empty_planogram, [make_observation("Cola", 0, 0)])

    assert result.compliance_score == 100.0
    assert [d.type for d in result.discrepancies] == ["unexpected"]


def test_first_qualifying_observation_wins(empty_planogram, reconciler):
    """条件を満たす観測が複数ある場合は先頭の観測を採用する"""
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola", "quantity": 3}, (0, 0))
    first = make_observation("Cola", 0, 0, sku="A1", quantity=1, confidence=0.7)
    second = make_observation("Cola", 0, 0, sku="A1", quantity=3, confidence=0.99)

    result = reconciler.reconcile(planogram, [first, second])

    assert first.matched is True
    quantity = next(d for d in result.discrepancies if d.type == "quantity_mismatch")
    assert quantity.detected == 1
    # 採用されなかった観測は想定外として報告される
    assert [d.type for d in result.discrepancies].count("unexpected") == 1


def test_matched_flags_recomputed_each_pass(empty_planogram, reconciler):
    """matched フラグは照合のたびに再計算される"""
    planogram = add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    observation = make_observation("Cola", 0, 0, sku="A1")

    reconciler.reconcile(planogram, [observation])
    assert planogram.products[0].matched is True
    assert observation.matched is True

    reconciler.reconcile(planogram, [])
    assert planogram.products[0].matched is False


def test_reconcile_stamps_planogram(stocked_planogram):
    """照合結果のスコアと日時がプラノグラムに記録される"""
    result = reconcile(stocked_planogram, [])

    assert stocked_planogram.compliance_score == result.compliance_score
    assert stocked_planogram.last_checked == result.checked_at


def test_result_to_dict(stocked_planogram, reconciler):
    observations = [make_observation("Water", 120, 80, sku="C3", quantity=1), make_observation("Cola", 240, 0, sku="A1")]
    data = reconciler.reconcile(stocked_planogram, observations).to_dict()

    assert set(data) == {"complianceScore", "checkedAt", "matchedProductIds", "counts", "discrepancies"}
    by_type = {d["type"]: d for d in data["discrepancies"]}
    assert by_type["quantity_mismatch"]["detected"] == 1
    assert by_type["quantity_mismatch"]["expected"] == 2
    assert by_type["wrong_position"]["detectedPosition"] == {"x": 240, "y": 0}
    assert by_type["wrong_position"]["expectedPosition"] == {"x": 0, "y": 0}
    assert by_type["missing"]["product"]["sku"] == "B2"


@pytest.mark.parametrize(
    "matched, total, expected",
    [
        (0, 0, 100.0),
        (1, 1, 100.0),
        (2, 3, 66.7),
        (1, 6, 16.7),
        (0, 4, 0.0),
        # 0.05 の端数は切り上げ
        (1, 16, 6.3),
        (5, 16, 31.3),
    ],
)
def test_compute_compliance_score(matched, total, expected):
    assert compute_compliance_score(matched, total) == expected


@pytest.mark.parametrize(
    "score, expected",
    [(100.0, "good"), (80.0, "good"), (79.9, "warning"), (60.0, "warning"), (59.9, "poor"), (None, "poor")],
)
def test_compliance_grade(score, expected):
    assert compliance_grade(score) == expected


def test_reconcile_rounds_half_up(empty_planogram, reconciler):
    """16商品中1件一致のスコアは 6.25 を切り上げて 6.3"""
    planogram = empty_planogram
    for i in range(16):
        planogram = add_product(planogram, {"sku": f"S{i}", "name": f"Item {i}"}, (60 * (i % 12), 80 * (i // 12)))

    result = reconciler.reconcile(planogram, [make_observation("Item 0", 0, 0, sku="S0")])

    assert result.compliance_score == 6.3
    assert len(result.discrepancies) == 15
