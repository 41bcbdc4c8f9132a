"""例外定義。

コア内部の例外はすべて同期的に送出され、呼び出し側で回復可能である。
"""

from __future__ import annotations


class ShelfSnapError(Exception):
    """shelfsnap の例外基底クラス"""


class ValidationError(ShelfSnapError, ValueError):
    """入力値が不正な場合の例外（必須項目の欠落、数量が不正など）"""


class SlotOccupiedError(ShelfSnapError):
    """追加・移動先のスロットが他の商品で占有されている場合の例外

    Attributes:
        x: スナップ後のスロット原点X座標
        y: スナップ後のスロット原点Y座標
        occupant_id: スロットを占有している商品ID
    """

    def __init__(self, x: float, y: float, occupant_id: str | None = None):
        self.x = x
        self.y = y
        self.occupant_id = occupant_id
        super().__init__(f"スロット ({x}, {y}) は既に商品 {occupant_id} で占有されています。")


class NotFoundError(ShelfSnapError, KeyError):
    """永続化層で対象のレコードが見つからない場合の例外"""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "not found"
