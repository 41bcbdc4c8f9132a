"""Data models for the shelf compliance system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from shelfsnap.core.errors import ValidationError

DiscrepancyType = Literal["missing", "wrong_position", "quantity_mismatch", "unexpected"]
Severity = Literal["low", "medium", "high"]

DISCREPANCY_TYPES: tuple[str, ...] = ("missing", "wrong_position", "quantity_mismatch", "unexpected")
SEVERITIES: tuple[str, ...] = ("low", "medium", "high")


def utc_now_iso() -> str:
    """現在時刻をISO 8601形式（UTC）で返す"""
    return datetime.now(timezone.utc).isoformat()


def _require_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} は数値である必要があります: {value!r}")
    return value


@dataclass(frozen=True)
class Point:
    """2次元座標

    Attributes:
        x: X座標
        y: Y座標
    """

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Box:
    """軸平行バウンディングボックス

    Attributes:
        x: 左上X座標
        y: 左上Y座標
        width: 幅
        height: 高さ
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class RawDetection:
    """検出器が出力する生の検出結果

    同一商品に対して複数の検出が重複して含まれる場合がある。

    Attributes:
        x: 左上X座標
        y: 左上Y座標
        width: 幅
        height: 高さ
        confidence: 信頼度スコア (0.0-1.0)
        label: 商品ラベル（商品名）
        sku: SKU（検出器が識別できた場合のみ）
        quantity: 検出された数量
        shelf_index: 棚段インデックス（シェルフ認識型の検出器のみ）
        item_position: 検出器内での商品順序
        polygon: マスクポリゴン（マスクベースの検出のみ）
    """

    x: float
    y: float
    width: float
    height: float
    confidence: float
    label: str
    sku: str | None = None
    quantity: int = 1
    shelf_index: int | None = None
    item_position: int | None = None
    polygon: list[Point] | None = None

    def __post_init__(self):
        for name in ("x", "y", "width", "height", "confidence"):
            _require_number(getattr(self, name), name)
        if not 0.0 <= self.confidence <= 1.0:
            raise ValidationError(f"confidence は 0.0 から 1.0 の範囲である必要があります: {self.confidence}")
        if self.width < 0 or self.height < 0:
            raise ValidationError(f"width/height は非負である必要があります: ({self.width}, {self.height})")
        if self.quantity < 1:
            raise ValidationError(f"quantity は1以上である必要があります: {self.quantity}")

    @property
    def box(self) -> Box:
        return Box(self.x, self.y, self.width, self.height)

    @classmethod
    def from_polygon(cls, polygon: list[Point], confidence: float, label: str, **kwargs: Any) -> RawDetection:
        """マスクポリゴンから検出結果を生成する

        ボックスはポリゴンの外接矩形となる。

        Raises:
            ValidationError: 頂点数が3未満の場合
        """
        from shelfsnap.geometry.box_utils import bounding_box_of

        if len(polygon) < 3:
            raise ValidationError(f"polygon は少なくとも3つの頂点が必要です: {len(polygon)}")
        box = bounding_box_of(polygon)
        return cls(
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
            confidence=confidence,
            label=label,
            polygon=list(polygon),
            **kwargs,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawDetection:
        """解析サービスのレコードから生成する

        ``x``/``y``/``width``/``height`` の代わりに ``polygon`` のみを持つレコードも受け付ける。
        """
        if "label" not in data or "confidence" not in data:
            raise ValidationError(f"検出レコードには label と confidence が必要です: {data}")

        extra = {
            "sku": data.get("sku"),
            "quantity": data.get("quantity", 1),
            "shelf_index": data.get("shelf_index", data.get("shelfIndex")),
            "item_position": data.get("item_position", data.get("itemPosition")),
        }
        if all(k in data for k in ("x", "y", "width", "height")):
            polygon = data.get("polygon")
            return cls(
                x=data["x"],
                y=data["y"],
                width=data["width"],
                height=data["height"],
                confidence=data["confidence"],
                label=data["label"],
                polygon=[Point(p["x"], p["y"]) for p in polygon] if polygon else None,
                **extra,
            )
        if "polygon" in data:
            points = [Point(p["x"], p["y"]) for p in data["polygon"]]
            return cls.from_polygon(points, data["confidence"], data["label"], **extra)
        raise ValidationError(f"検出レコードには座標またはpolygonが必要です: {data}")


@dataclass
class Observation:
    """後処理済みの検出結果

    信頼度フィルタと重複除去を通過した検出に、スロットにスナップした
    プラノグラム座標と照合フラグを付与したもの。

    Attributes:
        x: 左上X座標
        y: 左上Y座標
        width: 幅
        height: 高さ
        confidence: 信頼度スコア
        label: 商品ラベル
        sku: SKU
        quantity: 検出数量
        planogram_x: スロットにスナップしたX座標
        planogram_y: スロットにスナップしたY座標
        matched: 照合済みフラグ（照合のたびに再計算される）
    """

    x: float
    y: float
    width: float
    height: float
    confidence: float
    label: str
    sku: str | None
    quantity: int
    planogram_x: float
    planogram_y: float
    matched: bool = False

    @classmethod
    def from_detection(cls, detection: RawDetection, planogram_x: float, planogram_y: float) -> Observation:
        return cls(
            x=detection.x,
            y=detection.y,
            width=detection.width,
            height=detection.height,
            confidence=detection.confidence,
            label=detection.label,
            sku=detection.sku,
            quantity=detection.quantity,
            planogram_x=planogram_x,
            planogram_y=planogram_y,
        )


@dataclass
class ShelfLevel:
    """棚段（プラノグラムの水平な1段）

    Attributes:
        id: 棚段ID（例: shelf-0）
        level: 段番号（0始まり）
        y: 段の上端Y座標
        height: 段の高さ
        slot_count: 段あたりのスロット数
    """

    id: str
    level: int
    y: float
    height: float
    slot_count: int

    def __post_init__(self):
        if self.level < 0:
            raise ValidationError(f"level は0以上である必要があります: {self.level}")
        if self.slot_count <= 0:
            raise ValidationError(f"slot_count は正の整数である必要があります: {self.slot_count}")


@dataclass
class Product:
    """プラノグラム上に配置された商品（フェイシング）

    Attributes:
        id: プラノグラム内で一意な商品ID
        sku: SKU
        name: 商品名
        x: スロット原点X座標
        y: スロット原点Y座標
        width: 幅（スロット幅）
        height: 高さ（スロット高さ）
        quantity: 期待数量（1以上）
        category: 商品カテゴリ
        matched: 照合済みフラグ（一時的な値のため等価比較の対象外）
    """

    id: str
    sku: str
    name: str
    x: float
    y: float
    width: float
    height: float
    quantity: int = 1
    category: str | None = None
    matched: bool = field(default=False, compare=False)

    def __post_init__(self):
        if not self.sku:
            raise ValidationError("商品には sku が必要です。")
        if not self.name:
            raise ValidationError("商品には name が必要です。")
        for name in ("x", "y", "width", "height"):
            _require_number(getattr(self, name), name)
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValidationError(f"quantity は1以上の整数である必要があります: {self.quantity!r}")


@dataclass
class PlanogramMetadata:
    """プラノグラムのメタデータ

    Attributes:
        grid_size: 編集グリッドのサイズ
        slot_width: スロット幅
        slot_height: スロット高さ
        created: 作成日時（ISO 8601）
        last_modified: 最終更新日時（ISO 8601）
    """

    grid_size: float
    slot_width: float
    slot_height: float
    created: str = field(default_factory=utc_now_iso)
    last_modified: str = field(default_factory=utc_now_iso)


@dataclass
class Planogram:
    """プラノグラム（期待される棚割り）の集約ルート

    不変条件: 2つの商品が同じスロットを占有することはない。

    Attributes:
        id: 永続化ID（未保存の場合None）
        name: プラノグラム名
        store_id: 店舗ID
        shelf_id: 棚ID
        width: 全体幅（slots_per_level × slot_width）
        height: 全体高さ（levels × slot_height）
        products: 配置済み商品
        shelves: 棚段
        metadata: メタデータ
        compliance_score: 直近の照合で算出したコンプライアンススコア（一時的）
        last_checked: 直近の照合日時（一時的）
        last_modified: 最終更新日時
    """

    id: str | None
    name: str
    store_id: str | None
    shelf_id: str | None
    width: float
    height: float
    products: list[Product] = field(default_factory=list)
    shelves: list[ShelfLevel] = field(default_factory=list)
    metadata: PlanogramMetadata = field(default_factory=lambda: PlanogramMetadata(20, 60, 80))
    compliance_score: float | None = field(default=None, compare=False)
    last_checked: str | None = field(default=None, compare=False)
    last_modified: str | None = None

    @property
    def slot_width(self) -> float:
        return self.metadata.slot_width

    @property
    def slot_height(self) -> float:
        return self.metadata.slot_height

    def find_product(self, product_id: str) -> Product | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def product_at(self, x: float, y: float) -> Product | None:
        """指定したスロット原点を占有している商品を返す"""
        for product in self.products:
            if product.x == x and product.y == y:
                return product
        return None


@dataclass
class ProductRef:
    """差異レコードが参照する商品情報

    予期しない商品の場合は観測値から合成されるため id を持たない。
    """

    sku: str | None
    name: str | None
    x: float
    y: float
    id: str | None = None
    quantity: int | None = None

    @classmethod
    def from_product(cls, product: Product) -> ProductRef:
        return cls(
            sku=product.sku,
            name=product.name,
            x=product.x,
            y=product.y,
            id=product.id,
            quantity=product.quantity,
        )

    @classmethod
    def from_observation(cls, observation: Observation) -> ProductRef:
        return cls(
            sku=observation.sku,
            name=observation.label,
            x=observation.planogram_x,
            y=observation.planogram_y,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"sku": self.sku, "name": self.name, "x": self.x, "y": self.y}
        if self.id is not None:
            data["id"] = self.id
        if self.quantity is not None:
            data["quantity"] = self.quantity
        return data


@dataclass
class Discrepancy:
    """期待状態と観測状態の差異

    照合のたびに再計算される派生データであり、永続化はしない。

    Attributes:
        type: 差異の種類（missing, wrong_position, quantity_mismatch, unexpected）
        product: 対象商品
        severity: 重要度（low, medium, high）
        detected: 検出数量（quantity_mismatch のみ）
        expected: 期待数量（quantity_mismatch のみ）
        detected_position: 検出位置（wrong_position のみ）
        expected_position: 期待位置（wrong_position のみ）
    """

    type: DiscrepancyType
    product: ProductRef
    severity: Severity
    detected: int | None = None
    expected: int | None = None
    detected_position: Point | None = None
    expected_position: Point | None = None

    def __post_init__(self):
        if self.type not in DISCREPANCY_TYPES:
            raise ValidationError(f"不明な差異種別: {self.type}")
        if self.severity not in SEVERITIES:
            raise ValidationError(f"不明な重要度: {self.severity}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "product": self.product.to_dict(),
            "severity": self.severity,
        }
        if self.type == "quantity_mismatch":
            data["detected"] = self.detected
            data["expected"] = self.expected
        elif self.type == "wrong_position":
            data["detectedPosition"] = self.detected_position.to_dict() if self.detected_position else None
            data["expectedPosition"] = self.expected_position.to_dict() if self.expected_position else None
        return data


@dataclass
class ReconciliationResult:
    """照合結果

    Attributes:
        discrepancies: 差異のリスト
        compliance_score: コンプライアンススコア（0.0-100.0）
        matched_product_ids: 期待位置で照合できた商品IDのリスト
        checked_at: 照合日時（ISO 8601）
    """

    discrepancies: list[Discrepancy]
    compliance_score: float
    matched_product_ids: list[str] = field(default_factory=list)
    checked_at: str = field(default_factory=utc_now_iso)

    def counts_by_type(self) -> dict[str, int]:
        """差異種別ごとの件数を返す（全種別をキーに含む）"""
        counts = {discrepancy_type: 0 for discrepancy_type in DISCREPANCY_TYPES}
        for discrepancy in self.discrepancies:
            counts[discrepancy.type] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "complianceScore": self.compliance_score,
            "checkedAt": self.checked_at,
            "matchedProductIds": list(self.matched_product_ids),
            "counts": self.counts_by_type(),
            "discrepancies": [d.to_dict() for d in self.discrepancies],
        }
