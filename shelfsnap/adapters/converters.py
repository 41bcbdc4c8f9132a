"""プラノグラムと永続化レコード間の薄い変換ヘルパー。"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from shelfsnap.models.data_models import utc_now_iso
from shelfsnap.utils.serialization import planogram_from_dict, planogram_to_dict

if TYPE_CHECKING:
    from shelfsnap.models.data_models import Planogram

# 永続化側で snake_case の列として保持する項目
_RECORD_COLUMNS = {
    "storeId": "store_id",
    "shelfId": "shelf_id",
    "complianceScore": "compliance_score",
    "lastModified": "last_modified",
    "lastChecked": "last_checked",
}


def to_persistence_record(planogram: Planogram, user_id: str | None = None) -> dict[str, Any]:
    """保存用のレコードを生成する。

    コンプライアンススコアが未算出の場合は0として保存し、last_modified は保存時刻で更新する。
    """
    record = planogram_to_dict(planogram)
    for camel, snake in _RECORD_COLUMNS.items():
        record[snake] = record.pop(camel)
    record["compliance_score"] = planogram.compliance_score or 0
    record["last_modified"] = utc_now_iso()
    record["user_id"] = user_id
    if record["id"] is None:
        del record["id"]
    return record


def from_persistence_record(record: dict[str, Any] | None) -> Planogram | None:
    """保存済みレコードからプラノグラムを復元する。レコードがない場合は None。"""
    if record is None:
        return None
    data = {k: v for k, v in record.items() if k != "user_id"}
    for camel, snake in _RECORD_COLUMNS.items():
        if snake in data:
            data[camel] = data.pop(snake)
    return planogram_from_dict(data)
