"""
CLI: ejecuta una pasada de sincronización fuera del servidor HTTP.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) cuando no hay scheduler HTTP.
  - Comparte el lock de flujo con el servidor solo dentro del mismo proceso.

Ejecución:
  python scripts/run_sync.py today
  python scripts/run_sync.py single 123456789 2
  python scripts/run_sync.py range 2024-01-01 2024-01-07
  python scripts/run_sync.py reverse
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `sekou_sync/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env si existe (api/.env o raíz del repo).
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from sekou_sync.api.v1.dependencies.sync_deps import open_forward_sync, open_reverse_sync
from sekou_sync.core.events import configure_logging
from sekou_sync.domain.entities.sync_records import PassStatus, UpsertStatus
from sekou_sync.shared.exceptions.base import AppException


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sincronización SQL Server <-> kintone")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("today", help="Pasada del día (con compuerta de replicación).")

    single = sub.add_parser("single", help="Re-sincroniza un (企画No, 工事回数).")
    single.add_argument("project_no")
    single.add_argument("round_no")

    range_ = sub.add_parser("range", help="Re-sincroniza lo modificado entre dos fechas (inclusive).")
    range_.add_argument("from_date", help="YYYY-MM-DD")
    range_.add_argument("to_date", help="YYYY-MM-DD")

    sub.add_parser("reverse", help="Fusiona los registros de kintone en las tablas SQL.")
    return parser


def _run(args: argparse.Namespace) -> int:
    if args.command == "reverse":
        with open_reverse_sync() as reverse:
            report = reverse.run_pass()
        logger.info(f"Pasada inversa: {report.summary()}")
        return 1 if report.failed_ids else 0

    with open_forward_sync() as forward:
        if args.command == "single":
            outcome = forward.patch_record(args.project_no, args.round_no)
            logger.info(f"{outcome.key}: {outcome.status.value}")
            return 1 if outcome.status is UpsertStatus.FAILED else 0

        if args.command == "range":
            report = forward.recover_range(args.from_date, args.to_date)
        else:
            report = forward.run_today_pass()

    if report.status is PassStatus.SKIPPED:
        logger.info("Sin replicación reciente; nada que sincronizar")
        return 0
    logger.info(f"Pasada {report.scope}: {report.summary()}")
    return 1 if report.failed_keys else 0


def main() -> int:
    args = _build_parser().parse_args()
    configure_logging()
    try:
        return _run(args)
    except AppException as e:
        logger.error(f"{e.error_code}: {e.message}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
