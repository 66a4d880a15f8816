"""
Conversión de un registro de la app de 業務日報 (kintone) a filas del flujo inverso.

Valores vacíos de kintone ("" o ausentes) se persisten como NULL. El 0
numérico se conserva.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sekou_sync.application.services.field_mapper import safe_number
from sekou_sync.domain.entities.sync_records import ReverseDetailRow, ReverseHeaderRow

INTERNAL_WORK_LABEL = "内作・その他"
INTERNAL_WORK_PROJECT_NO = "0" * 9


def _value(record: Dict[str, Any], code: str) -> Any:
    value = (record.get(code) or {}).get("value")
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def _text(record: Dict[str, Any], code: str) -> Optional[str]:
    value = _value(record, code)
    return None if value is None else str(value)


def _int(record: Dict[str, Any], code: str) -> Optional[int]:
    number = safe_number(_value(record, code))
    if number is None:
        return None
    return int(number)


def _float(record: Dict[str, Any], code: str) -> Optional[float]:
    number = safe_number(_value(record, code))
    return None if number is None else float(number)


def _datetime(record: Dict[str, Any], code: str) -> Optional[datetime]:
    """
    Campos DATE ("2024-05-01") y DATETIME ("2024-05-01T00:30:00Z") de kintone.

    Los DATETIME vienen en UTC y se guardan como UTC sin tzinfo.
    """
    value = _value(record, code)
    if value is None:
        return None
    text = str(value).strip()
    try:
        if "T" not in text:
            return datetime.combine(date.fromisoformat(text[:10]), datetime.min.time())
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def record_id(record: Dict[str, Any]) -> int:
    """$id del registro; es la clave durable de cabecera y detalle."""
    return int(record["$id"]["value"])


def normalize_project_no(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return INTERNAL_WORK_PROJECT_NO if value.strip() == INTERNAL_WORK_LABEL else value


def map_header_row(record: Dict[str, Any]) -> ReverseHeaderRow:
    return ReverseHeaderRow(
        npidx=record_id(record),
        koujibi=_datetime(record, "実施日"),
        member=_text(record, "社員CD"),
        shoninnsha=_text(record, "承認者CD"),
        shouninbi=_datetime(record, "承認日"),
        kessaisha=_text(record, "決裁者CD"),
        kessaibi=_datetime(record, "決裁日"),
    )


def map_detail_row(record: Dict[str, Any]) -> ReverseDetailRow:
    """
    Fila de detalle: una por registro, con ndidx = npidx = $id.

    finishtime toma 更新日時 (último cambio del registro).
    """
    rid = record_id(record)
    return ReverseDetailRow(
        ndidx=rid,
        npidx=rid,
        kikaku_no=normalize_project_no(_text(record, "企画No")),
        kikaku_seko_record_no=_int(record, "KIKAKU_SEKO_RECORD_NO"),
        keisu=_int(record, "係数"),
        naiyo=_int(record, "作業No"),
        quant=_float(record, "数値"),
        depth=_float(record, "深さ"),
        diam=_float(record, "径"),
        bubun=_int(record, "部分書換"),
        hsakusei=_int(record, "オプション"),
        biko=_text(record, "備考"),
        starttime=_datetime(record, "作成日時"),
        finishtime=_datetime(record, "更新日時"),
    )
