"""Unit tests for DetectionPostprocessor and non-maximum suppression."""

from __future__ import annotations

import pytest

from shelfsnap.core.errors import ValidationError
from shelfsnap.detection import DetectionPostprocessor, non_max_suppression
from shelfsnap.models import Observation, RawDetection


def _det(x, y, confidence, label="item", width=60, height=80, sku=None):
    return RawDetection(x=x, y=y, width=width, height=height, confidence=confidence, label=label, sku=sku)


@pytest.fixture
def postprocessor() -> DetectionPostprocessor:
    """DetectionPostprocessorインスタンス"""
    return DetectionPostprocessor(confidence_threshold=0.6, iou_threshold=0.4, slot_width=60, slot_height=80)


def test_init_invalid_thresholds():
    """閾値が範囲外の場合はエラー"""
    with pytest.raises(ValidationError):
        DetectionPostprocessor(confidence_threshold=1.5)
    with pytest.raises(ValidationError):
        DetectionPostprocessor(iou_threshold=-0.1)
    with pytest.raises(ValidationError):
        DetectionPostprocessor(slot_width=0)


def test_for_planogram_uses_slot_size(empty_planogram):
    """プラノグラムのスロットサイズを引き継ぐ"""
    pp = DetectionPostprocessor.for_planogram(empty_planogram, confidence_threshold=0.5)
    assert pp.slot_width == 60
    assert pp.slot_height == 80
    assert pp.confidence_threshold == 0.5


def test_duplicate_pair_keeps_higher_confidence(postprocessor):
    """同一物体の重複検出は信頼度の高い方のみ残る"""
    low = _det(0, 0, 0.9)
    high = _det(10, 5, 0.95)

    result = postprocessor.process([low, high])

    assert result.detections == [high]
    assert len(result.observations) == 1
    assert result.observations[0].confidence == 0.95


def test_filter_by_confidence_is_strict(postprocessor):
    """信頼度が閾値と等しい検出は除外される"""
    at_threshold = _det(0, 0, 0.6)
    above = _det(200, 0, 0.61)

    assert postprocessor.filter_by_confidence([at_threshold, above]) == [above]


def test_empty_input(postprocessor):
    """空の入力は空の出力"""
    result = postprocessor.process([])
    assert result.detections == []
    assert result.observations == []
    assert result.summary.total_count == 0


def test_all_below_threshold(postprocessor):
    """全件が閾値以下なら空の出力"""
    result = postprocessor.process([_det(0, 0, 0.3), _det(100, 0, 0.5)])
    assert result.observations == []


def test_single_detection_is_kept(postprocessor):
    """単一の検出は常に残る"""
    detection = _det(0, 0, 0.7)
    assert postprocessor.process([detection]).detections == [detection]


def test_non_overlapping_detections_all_kept(postprocessor):
    """重ならない検出はすべて残り、信頼度降順に並ぶ"""
    a = _det(0, 0, 0.7, label="a")
    b = _det(120, 0, 0.9, label="b")
    c = _det(300, 80, 0.8, label="c")

    result = postprocessor.process([a, b, c])

    assert result.detections == [b, c, a]


def test_output_is_pairwise_below_iou_threshold(postprocessor):
    """出力の任意の2件のIoUは閾値以下"""
    from shelfsnap.geometry import iou

    detections = [_det(i * 15, 0, 0.7 + i * 0.02) for i in range(10)]
    kept = postprocessor.process(detections).detections

    for i, a in enumerate(kept):
        for b in kept[i + 1 :]:
            assert iou(a.box, b.box) <= postprocessor.iou_threshold


def test_process_is_idempotent(postprocessor, sample_detections):
    """後処理済みの検出を再度処理しても変化しない"""
    first = postprocessor.process(sample_detections).detections
    second = postprocessor.process(first).detections
    assert second == first


def test_process_does_not_mutate_input(postprocessor, sample_detections):
    """入力リストは変更されない"""
    before = list(sample_detections)
    postprocessor.process(sample_detections)
    assert sample_detections == before


def test_equal_confidence_keeps_input_order():
    """同じ信頼度の場合は入力順で先の検出が採用される"""
    first = _det(0, 0, 0.8, label="first")
    second = _det(5, 5, 0.8, label="second")

    assert non_max_suppression([first, second], 0.4) == [first]


def test_iou_exactly_at_threshold_is_kept():
    """IoUが閾値と等しい場合は抑制しない"""
    a = _det(0, 0, 0.9, width=10, height=10)
    # 交差 50, 和集合 150 -> IoU 1/3
    b = _det(5, 0, 0.8, width=10, height=10)

    assert non_max_suppression([a, b], 1 / 3) == [a, b]
    assert non_max_suppression([a, b], 0.3) == [a]


def test_observation_snapped_to_slot(postprocessor):
    """観測結果にはスロットにスナップした座標が付与される"""
    result = postprocessor.process([_det(95, 35, 0.9, label="Cola", sku="A1")])

    observation = result.observations[0]
    assert isinstance(observation, Observation)
    assert (observation.planogram_x, observation.planogram_y) == (120, 0)
    assert (observation.x, observation.y) == (95, 35)
    assert observation.sku == "A1"
    assert observation.matched is False


def test_summary_counts_labels(postprocessor, sample_detections):
    """集計はNMS後の検出に対して行われる"""
    summary = postprocessor.process(sample_detections).summary

    assert summary.total_count == 2
    assert summary.counts_by_label == {"Cola": 1, "Chips": 1}
    assert summary.unique_sku_count == 2
