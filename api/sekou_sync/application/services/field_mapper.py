"""
Mapeo de una fila de origen al conjunto de campos de la app de obras en kintone.

Función pura y total: nunca lanza con entradas nulas o mal formadas, y
aplicarla dos veces a la misma fila produce el mismo resultado (los
reintentos vuelven a mapear la misma fila).

Clases de coerción:
- texto: None -> "", resto str()
- número: vacío / None / no numérico -> None (nunca 0 por defecto)
- fecha: no parseable -> None, resto YYYY-MM-DD (se descarta hora y zona)
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, Tuple, Union

from sekou_sync.domain.entities.sync_records import SourceProjectRecord, key_part

Number = Union[int, float]

_DATE_PREFIX_RE = re.compile(r"^\s*(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})")
_EMBEDDED_NUMBER_RE = re.compile(r"\d*\.?\d+")
# cota de magnitud de un NUMBER de kintone
_MAX_ADJUSTED_EXPONENT = 30


def safe_string(value: Any) -> str:
    return "" if value is None else str(value)


def key_string(value: Any) -> str:
    """Componente de clave (企画No / 工事回数) con la misma forma que KEY."""
    return "" if value is None else key_part(value)


def safe_number(value: Any) -> Optional[Number]:
    """Número kintone (int si es entero, float si no) o None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        dec = value
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            dec = Decimal(text)
        except InvalidOperation:
            return None
    if not dec.is_finite() or dec.adjusted() > _MAX_ADJUSTED_EXPONENT:
        return None
    return int(dec) if dec == dec.to_integral_value() else float(dec)


def safe_date(value: Any) -> Optional[str]:
    """Fecha calendario `YYYY-MM-DD` o None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    match = _DATE_PREFIX_RE.match(str(value))
    if not match:
        return None
    try:
        return date(*(int(part) for part in match.groups())).isoformat()
    except ValueError:
        return None


def extract_number(value: Any) -> Optional[Number]:
    """Primer número (entero o decimal) embebido en un texto libre, p.ej. 'φ165.2' -> 165.2."""
    if value is None:
        return None
    match = _EMBEDDED_NUMBER_RE.search(str(value))
    return safe_number(match.group(0)) if match else None


def split_coordinates(value: Any) -> Tuple[Optional[Number], Optional[Number]]:
    """
    Separa "latitud,longitud".

    Solo asigna si hay exactamente dos componentes numéricos; si no, (None, None).
    """
    if value is None:
        return None, None
    parts = str(value).split(",")
    if len(parts) != 2:
        return None, None
    latitude, longitude = safe_number(parts[0]), safe_number(parts[1])
    if latitude is None or longitude is None:
        return None, None
    return latitude, longitude


@dataclass(frozen=True)
class RemoteField:
    """
    Define el mapeo de un atributo de `SourceProjectRecord` a un campo kintone.

    - remote_code: código de campo en la app de kintone
    - source_attr: atributo del registro de origen
    - coerce: función de coerción null-safe
    """

    remote_code: str
    source_attr: str
    coerce: Callable[[Any], Any]


REMOTE_FIELDS: tuple[RemoteField, ...] = (
    RemoteField("企画No", "project_no", key_string),
    RemoteField("KIKAKU_SEKO_RECORD_NO", "round_no", key_string),
    RemoteField("設置場所", "location", safe_string),
    RemoteField("都道府県", "prefecture", safe_string),
    RemoteField("市区群", "city", safe_string),
    RemoteField("面数", "media_structure", safe_string),
    RemoteField("営業名", "sales_name", safe_string),
    RemoteField("企画区分", "category", safe_string),
    RemoteField("内容", "content", safe_string),
    RemoteField("サイズ", "size_label", safe_string),
    RemoteField("着工予定日", "start_planned_date", safe_date),
    RemoteField("工事予定日", "scheduled_date", safe_date),
    RemoteField("工事日", "work_date", safe_date),
    RemoteField("完了日", "completion_date", safe_date),
    RemoteField("板下", "board_bottom", safe_number),
    RemoteField("柱本数", "pillar_count", safe_number),
    RemoteField("柱サイズ", "pillar_diameter", extract_number),
    RemoteField("面積", "area", safe_number),
    RemoteField("畳数", "tatami", safe_number),
    RemoteField("GL", "ground_level", safe_number),
)

LATITUDE_FIELD = "緯度"
LONGITUDE_FIELD = "経度"

REMOTE_FIELD_CODES: tuple[str, ...] = tuple(f.remote_code for f in REMOTE_FIELDS) + (
    LATITUDE_FIELD,
    LONGITUDE_FIELD,
)


def map_to_remote_fields(record: SourceProjectRecord) -> Dict[str, Dict[str, Any]]:
    """
    Proyecta una fila de origen al formato de registro kintone {campo: {"value": v}}.

    KEY, メンバー y 人数 los agrega el ejecutor de upsert.
    """
    fields: Dict[str, Dict[str, Any]] = {
        f.remote_code: {"value": f.coerce(getattr(record, f.source_attr, None))}
        for f in REMOTE_FIELDS
    }
    latitude, longitude = split_coordinates(record.coordinates)
    fields[LATITUDE_FIELD] = {"value": latitude}
    fields[LONGITUDE_FIELD] = {"value": longitude}
    return fields
