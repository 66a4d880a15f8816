"""
Entidades del dominio de sincronizacion de obras (SQL Server <-> kintone).

Se mantienen libres de I/O para poder testearlas facilmente.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional


def build_composite_key(project_no: Any, round_no: Any) -> str:
    """
    Clave compuesta `{企画番号}_{工事回数}`.

    Es la unica identidad de reconciliacion entre la fila de origen y el
    registro de kintone (campo KEY).
    """
    return f"{key_part(project_no)}_{key_part(round_no)}"


def key_part(value: Any) -> str:
    """Componente normalizado de la clave compuesta."""
    # 1.0 (float/Decimal desde el driver) y 1 deben producir la misma clave
    if isinstance(value, (float, Decimal)):
        try:
            if value == int(value):
                return str(int(value))
        except (ValueError, ArithmeticError):
            pass
    return str(value).strip()


@dataclass(frozen=True)
class SourceProjectRecord:
    """
    Una fila (企画, 工事回数) de la base de origen.

    Los valores se guardan tal como llegan del driver: la coercion a tipos
    kintone la hace el mapeador de campos, que debe ser total.
    """

    project_no: Any
    round_no: Any
    category: Any = None
    media_name: Any = None
    content: Any = None
    media_type: Any = None
    sales_code: Any = None
    sales_name: Any = None
    prefecture_code: Any = None
    prefecture: Any = None
    city: Any = None
    location: Any = None
    coordinates: Any = None
    media_structure: Any = None
    size_label: Any = None
    area: Any = None
    tatami: Any = None
    board_bottom: Any = None
    ground_level: Any = None
    pillar_diameter: Any = None
    pillar_count: Any = None
    scheduled_date: Any = None
    start_planned_date: Any = None
    work_date: Any = None
    completion_date: Any = None
    instructions: Any = None

    @property
    def key(self) -> str:
        return build_composite_key(self.project_no, self.round_no)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SourceProjectRecord":
        """Construye el registro desde una fila con los alias de `queries.PROJECT_SELECT`."""
        known = cls.__dataclass_fields__.keys()
        return cls(**{name: row.get(name) for name in known})


@dataclass(frozen=True)
class RemoteRecordHandle:
    """Referencia a un registro existente en kintone."""

    record_id: str
    revision: Optional[str] = None


@dataclass(frozen=True)
class MemberRef:
    """Miembro de cuadrilla en formato de campo USER_SELECT de kintone."""

    code: str

    def to_field_value(self) -> dict[str, str]:
        return {"code": self.code}


@dataclass(frozen=True)
class RosterEntry:
    """Empleado de la app de maestro de empleados (従業員マスタ)."""

    employee_code: str
    user_id: str
    name: str = ""


class ScopeKind(str, Enum):
    TODAY = "today"
    SINGLE = "single"
    RANGE = "range"


@dataclass(frozen=True)
class SyncScope:
    """
    Ventana de extraccion de una pasada.

    - today: 工事予定日 == dia calendario local
    - single: (企画番号, 工事回数) exactos
    - range: ultima modificacion en [start, end)
    """

    kind: ScopeKind
    project_no: Optional[str] = None
    round_no: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def today(cls) -> "SyncScope":
        return cls(kind=ScopeKind.TODAY)

    @classmethod
    def single(cls, project_no: Any, round_no: Any) -> "SyncScope":
        return cls(kind=ScopeKind.SINGLE, project_no=str(project_no).strip(), round_no=str(round_no).strip())

    @classmethod
    def range(cls, start: datetime, end: datetime) -> "SyncScope":
        if end <= start:
            raise ValueError(f"Rango vacio o invertido: [{start}, {end})")
        return cls(kind=ScopeKind.RANGE, start=start, end=end)

    def describe(self) -> str:
        if self.kind is ScopeKind.SINGLE:
            return f"single({self.project_no}, {self.round_no})"
        if self.kind is ScopeKind.RANGE:
            return f"range([{self.start.isoformat()}, {self.end.isoformat()}))"
        return "today"


class UpsertStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class UpsertOutcome:
    """Resultado del upsert de un registro hacia kintone."""

    key: str
    status: UpsertStatus
    record_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def created(cls, key: str, record_id: Optional[str]) -> "UpsertOutcome":
        return cls(key=key, status=UpsertStatus.CREATED, record_id=record_id)

    @classmethod
    def updated(cls, key: str, record_id: str) -> "UpsertOutcome":
        return cls(key=key, status=UpsertStatus.UPDATED, record_id=record_id)

    @classmethod
    def failed(cls, key: str, reason: str) -> "UpsertOutcome":
        return cls(key=key, status=UpsertStatus.FAILED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is not UpsertStatus.FAILED


class PassStatus(str, Enum):
    SKIPPED = "skipped"
    COMPLETED = "completed"


@dataclass
class BatchReport:
    """Resumen de una pasada forward (SQL -> kintone)."""

    scope: str
    status: PassStatus = PassStatus.COMPLETED
    extracted: int = 0
    outcomes: List[UpsertOutcome] = field(default_factory=list)
    deferred_keys: List[str] = field(default_factory=list)

    @property
    def created(self) -> int:
        return sum(1 for o in self.outcomes if o.status is UpsertStatus.CREATED)

    @property
    def updated(self) -> int:
        return sum(1 for o in self.outcomes if o.status is UpsertStatus.UPDATED)

    @property
    def failed_keys(self) -> List[str]:
        return [o.key for o in self.outcomes if o.status is UpsertStatus.FAILED]

    def summary(self) -> str:
        return (
            f"extraidos={self.extracted}, creados={self.created}, actualizados={self.updated}, "
            f"fallidos={len(self.failed_keys)}, diferidos={len(self.deferred_keys)}"
        )


@dataclass(frozen=True)
class ReverseHeaderRow:
    """Fila de cabecera del flujo inverso (clave: npidx = $id de kintone)."""

    npidx: int
    koujibi: Optional[datetime]
    member: Optional[str]
    shoninnsha: Optional[str]
    shouninbi: Optional[datetime]
    kessaisha: Optional[str]
    kessaibi: Optional[datetime]


@dataclass(frozen=True)
class ReverseDetailRow:
    """Fila de detalle del flujo inverso (clave: ndidx; npidx referencia a la cabecera)."""

    ndidx: int
    npidx: int
    kikaku_no: Optional[str]
    kikaku_seko_record_no: Optional[int]
    keisu: Optional[int]
    naiyo: Optional[int]
    quant: Optional[float]
    depth: Optional[float]
    diam: Optional[float]
    bubun: Optional[int]
    hsakusei: Optional[int]
    biko: Optional[str]
    starttime: Optional[datetime]
    finishtime: Optional[datetime]


@dataclass
class ReverseSyncReport:
    """Resumen de una pasada inversa (kintone -> SQL)."""

    listed: int = 0
    headers_merged: int = 0
    details_merged: int = 0
    failed_ids: List[str] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"listados={self.listed}, cabeceras={self.headers_merged}, "
            f"detalles={self.details_merged}, fallidos={len(self.failed_ids)}"
        )

