"""
Cliente mínimo de kintone REST API (sin SDKs externos).

Requisitos cubiertos:
- requests
- paginación por cursor de $id (limit 500)
- rate-limit/backoff (429, 5xx) solo en lecturas
- escrituras (add/update) sin reintento: un fallo se reporta una sola vez
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

import requests

KINTONE_MAX_LIMIT = 500


@dataclass(frozen=True)
class KintoneCredentials:
    domain: str
    api_token: str

    @property
    def base_url(self) -> str:
        host = self.domain if "." in self.domain else f"{self.domain}.cybozu.com"
        return f"https://{host}"


class KintoneApiError(RuntimeError):
    """Error de integración con kintone (conserva status y cuerpo de la respuesta)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def quote_query_value(value: Any) -> str:
    """
    Serializa un valor como literal de cadena para la query de kintone.

    Escapa backslash y comillas dobles.
    """
    raw = "" if value is None else str(value)
    return '"' + raw.replace("\\", "\\\\").replace('"', '\\"') + '"'


class KintoneClient:
    """
    Cliente HTTP de kintone para una app autenticada con API token.

    Importante:
    - No hace cast de tipos de campos: eso lo decide el mapeo.
    - Los registros se devuelven en el formato nativo {campo: {"type", "value"}}.
    """

    def __init__(
        self,
        credentials: KintoneCredentials,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: int = 30,
        max_retries: int = 3,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
    ) -> None:
        self._creds = credentials
        self._base_url = credentials.base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._session = session or requests.Session()

    def get_records(
        self,
        *,
        app: str,
        query: str,
        fields: Optional[Sequence[str]] = None,
    ) -> list[dict[str, Any]]:
        """Una página de registros (la query incluye order by / limit)."""
        params: list[tuple[str, Any]] = [("app", app), ("query", query)]
        for i, f in enumerate(fields or []):
            params.append((f"fields[{i}]", f))

        payload = self._request_json("GET", "/k/v1/records.json", params=params, retry=True)
        return list(payload.get("records") or [])

    def iter_all_records(
        self,
        *,
        app: str,
        query: str = "",
        fields: Optional[Sequence[str]] = None,
        page_size: int = KINTONE_MAX_LIMIT,
    ) -> Iterable[dict[str, Any]]:
        """
        Itera todos los registros de la app, ordenados por $id asc.

        - Usa `$id > último` como cursor (evita el límite de offset de kintone)
        - Si se pide un subconjunto de campos, siempre incluye $id
        """
        page_size = max(1, min(page_size, KINTONE_MAX_LIMIT))
        if fields and "$id" not in fields:
            fields = [*fields, "$id"]

        last_id = 0
        while True:
            condition = f"$id > {last_id}"
            where = f"({query}) and {condition}" if query.strip() else condition
            page = self.get_records(
                app=app,
                query=f"{where} order by $id asc limit {page_size}",
                fields=fields,
            )
            for rec in page:
                yield rec

            if len(page) < page_size:
                break

            try:
                last_id = int(page[-1]["$id"]["value"])
            except (KeyError, TypeError, ValueError) as e:
                # Caso raro; preferimos fallar temprano y visible.
                raise KintoneApiError("kintone devolvió un registro sin '$id' válido") from e

    def add_record(self, *, app: str, record: Mapping[str, Any]) -> str:
        payload = self._request_json(
            "POST", "/k/v1/record.json", json={"app": app, "record": dict(record)}, retry=False
        )
        return str(payload.get("id"))

    def update_record(self, *, app: str, record_id: str, record: Mapping[str, Any]) -> Optional[str]:
        payload = self._request_json(
            "PUT",
            "/k/v1/record.json",
            json={"app": app, "id": record_id, "record": dict(record)},
            retry=False,
        )
        revision = payload.get("revision")
        return str(revision) if revision is not None else None

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: Optional[list[tuple[str, Any]]] = None,
        json: Optional[dict[str, Any]] = None,
        retry: bool,
    ) -> dict[str, Any]:
        """
        Request HTTP con backoff para 429/5xx.

        Estrategia:
        - Lecturas (retry=True): 429 respeta Retry-After; 5xx exponencial.
        - Escrituras (retry=False): error inmediato, el caller decide.
        - 4xx (no 429): error inmediato (config/auth/validación).
        """
        url = f"{self._base_url}{path}"
        headers = {"X-Cybozu-API-Token": self._creds.api_token}
        max_retries = self._max_retries if retry else 0

        for attempt in range(max_retries + 1):
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json,
                    headers=headers,
                    timeout=self._timeout_s,
                )
            except requests.RequestException as e:
                raise KintoneApiError(f"kintone no alcanzable ({method} {path}): {e}") from e

            if 200 <= resp.status_code < 300:
                return resp.json()

            # Errores recuperables
            if retry and (resp.status_code == 429 or 500 <= resp.status_code < 600):
                if attempt >= max_retries:
                    raise KintoneApiError(
                        f"kintone error {resp.status_code} tras {attempt} reintentos",
                        status_code=resp.status_code,
                        body=resp.text,
                    )

                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        sleep_s = float(retry_after)
                    except ValueError:
                        sleep_s = self._min_backoff_s
                else:
                    base = min(self._max_backoff_s, self._min_backoff_s * (2**attempt))
                    sleep_s = base + (0.15 * base)

                time.sleep(sleep_s)
                continue

            raise KintoneApiError(
                f"kintone {method} {path} falló {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )

        raise KintoneApiError(f"kintone {method} {path} sin respuesta")
