"""
Superficie manual protegida por passphrase: login, patch y recover.

La cookie `authenticated` lleva un token firmado y se borra despues de
cada /patch o /recover, de modo que cada operacion requiere un login.
"""
from __future__ import annotations

import asyncio
from html import escape
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Form, Query, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from loguru import logger

from sekou_sync.api.v1.dependencies.sync_deps import (
    ForwardSyncFactory,
    get_auth_service,
    get_forward_sync_factory,
)
from sekou_sync.domain.entities.sync_records import BatchReport, UpsertOutcome, UpsertStatus
from sekou_sync.infrastructure.security.passphrase_auth_service import AUTH_COOKIE_NAME, PassphraseAuthService
from sekou_sync.shared.exceptions.auth import LoginRequiredException
from sekou_sync.shared.exceptions.base import AppException


router = APIRouter(tags=["Console"])


_LOGIN_PAGE = """<!DOCTYPE html>
<html lang="ja">
<head><meta charset="utf-8"><title>Login</title></head>
<body>
  <h1>Login</h1>
  {error}
  <form method="post" action="/login">
    <input type="password" name="passphrase" placeholder="Passphrase" required>
    <button type="submit">Login</button>
  </form>
</body>
</html>
"""

_CONSOLE_PAGE = """<!DOCTYPE html>
<html lang="ja">
<head><meta charset="utf-8"><title>Sync console</title></head>
<body>
  <h1>Patch (1 registro)</h1>
  <form method="get" action="/patch">
    <input type="text" name="projectNo" placeholder="企画No" required>
    <input type="text" name="sekoRecordNo" placeholder="工事回数" required>
    <button type="submit">Patch</button>
  </form>
  <h1>Recover (periodo)</h1>
  <form method="get" action="/recover">
    <input type="date" name="fromDate" required>
    <input type="date" name="toDate" required>
    <button type="submit">Recover</button>
  </form>
</body>
</html>
"""


def require_login(
    token: Optional[str] = Cookie(default=None, alias=AUTH_COOKIE_NAME),
    auth: PassphraseAuthService = Depends(get_auth_service),
) -> None:
    """Dependencia: exige una cookie de autenticacion valida."""
    if not auth.is_valid_token(token):
        raise LoginRequiredException()


def _single_use(response: Response) -> Response:
    response.delete_cookie(AUTH_COOKIE_NAME)
    return response


def _render_login(error: str = "", status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    error_html = f'<p style="color:red">{escape(error)}</p>' if error else ""
    return HTMLResponse(_LOGIN_PAGE.format(error=error_html), status_code=status_code)


def _run_patch(factory: ForwardSyncFactory, project_no: str, round_no: str) -> UpsertOutcome:
    with factory() as use_cases:
        return use_cases.patch_record(project_no, round_no)


def _run_recover(factory: ForwardSyncFactory, from_date: str, to_date: str) -> BatchReport:
    with factory() as use_cases:
        return use_cases.recover_range(from_date, to_date)


@router.get("/login", response_class=HTMLResponse, summary="Formulario de login")
async def login_form() -> HTMLResponse:
    return _render_login()


@router.post("/login", summary="Validar passphrase")
async def login(
    passphrase: str = Form(default=""),
    auth: PassphraseAuthService = Depends(get_auth_service),
) -> Response:
    if not auth.verify(passphrase):
        logger.warning("Intento de login con passphrase incorrecta")
        return _render_login("La passphrase es incorrecta.", status.HTTP_401_UNAUTHORIZED)

    response = RedirectResponse("/console", status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(AUTH_COOKIE_NAME, auth.issue_token(), httponly=True, samesite="lax")
    return response


@router.get(
    "/console",
    response_class=HTMLResponse,
    dependencies=[Depends(require_login)],
    summary="Formularios de patch y recover",
)
async def console() -> HTMLResponse:
    return HTMLResponse(_CONSOLE_PAGE)


@router.get(
    "/patch",
    response_class=PlainTextResponse,
    dependencies=[Depends(require_login)],
    summary="Re-sincronizar un registro",
)
async def patch(
    project_no: Optional[str] = Query(default=None, alias="projectNo"),
    round_no: Optional[str] = Query(default=None, alias="sekoRecordNo"),
    factory: ForwardSyncFactory = Depends(get_forward_sync_factory),
) -> Response:
    """
    - 200 si el registro se creo o actualizo en kintone
    - 400 parametros invalidos, 404 sin fila elegible, 500 fallo del upsert
    """
    logger.info(f"Patch solicitado: projectNo={project_no}, sekoRecordNo={round_no}")
    try:
        outcome = await asyncio.to_thread(_run_patch, factory, project_no, round_no)
    except AppException as exc:
        return _single_use(PlainTextResponse(exc.message, status_code=exc.status_code))

    if outcome.status is UpsertStatus.FAILED:
        return _single_use(
            PlainTextResponse(
                f"Error al sincronizar {outcome.key}: {outcome.reason}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        )
    verb = "creado" if outcome.status is UpsertStatus.CREATED else "actualizado"
    return _single_use(PlainTextResponse(f"Registro {outcome.key} {verb} en kintone ($id={outcome.record_id})"))


@router.get(
    "/recover",
    response_class=PlainTextResponse,
    dependencies=[Depends(require_login)],
    summary="Re-sincronizar un periodo",
)
async def recover(
    from_date: Optional[str] = Query(default=None, alias="fromDate"),
    to_date: Optional[str] = Query(default=None, alias="toDate"),
    factory: ForwardSyncFactory = Depends(get_forward_sync_factory),
) -> Response:
    logger.info(f"Recover solicitado: fromDate={from_date}, toDate={to_date}")
    try:
        report = await asyncio.to_thread(_run_recover, factory, from_date, to_date)
    except AppException as exc:
        return _single_use(PlainTextResponse(exc.message, status_code=exc.status_code))

    synced = report.created + report.updated
    message = f"Recuperación {from_date} - {to_date}: {synced} registro(s) sincronizados ({report.summary()})"
    if report.failed_keys:
        message += f"\nRegistros con error: {', '.join(report.failed_keys)}"
    return _single_use(PlainTextResponse(message))
