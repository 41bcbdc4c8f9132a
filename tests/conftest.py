"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np
import pytest

from shelfsnap.layout import planogram_layout
from shelfsnap.models import Observation, Planogram, RawDetection


def make_observation(
    label: str,
    planogram_x: float,
    planogram_y: float,
    sku: str | None = None,
    quantity: int = 1,
    confidence: float = 0.9,
) -> Observation:
    """スロット座標を指定して観測結果を生成する"""

    return Observation(
        x=planogram_x,
        y=planogram_y,
        width=60,
        height=80,
        confidence=confidence,
        label=label,
        sku=sku,
        quantity=quantity,
        planogram_x=planogram_x,
        planogram_y=planogram_y,
    )


@pytest.fixture
def empty_planogram() -> Planogram:
    """Return an empty 5x12 planogram with 60x80 slots."""

    return planogram_layout.initialize(5, 12, 60, 80, name="Test Shelf", store_id="store-1", shelf_id="aisle-3")


@pytest.fixture
def stocked_planogram(empty_planogram: Planogram) -> Planogram:
    """Return a planogram with three products placed on the first two levels."""

    planogram = planogram_layout.add_product(empty_planogram, {"sku": "A1", "name": "Cola"}, (0, 0))
    planogram = planogram_layout.add_product(planogram, {"sku": "B2", "name": "Chips"}, (60, 0))
    planogram = planogram_layout.add_product(planogram, {"sku": "C3", "name": "Water", "quantity": 2}, (120, 80))
    return planogram


@pytest.fixture
def sample_frame() -> np.ndarray:
    """Return a dummy shelf image (400x720 BGR)."""

    return np.zeros((400, 720, 3), dtype=np.uint8)


@pytest.fixture
def sample_detections() -> list[RawDetection]:
    """Return raw detections including a duplicate pair and a low-confidence one."""

    return [
        RawDetection(x=2, y=3, width=58, height=76, confidence=0.9, label="Cola", sku="A1"),
        RawDetection(x=0, y=0, width=60, height=80, confidence=0.95, label="Cola", sku="A1"),
        RawDetection(x=62, y=1, width=57, height=78, confidence=0.88, label="Chips", sku="B2"),
        RawDetection(x=300, y=160, width=60, height=80, confidence=0.4, label="Ghost"),
    ]
