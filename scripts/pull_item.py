"""
CLI: pull de un item de GatherContent hacia el record store.

Uso recomendado:
  - Ejecutar desde el job dispatcher (un proceso por item).
  - El dispatcher garantiza que no corren dos pulls del mismo item a la vez.

Variables de entorno requeridas:
  - GC_API_USER
  - GC_API_KEY
  - DATABASE_URL (salvo --memory)

Ejecución:
  python scripts/pull_item.py --mapping mapping.json --item 123
  python scripts/pull_item.py --mapping mapping.json --item 123 --force
  python scripts/pull_item.py --mapping mapping.json --item 123 --memory

Códigos de salida: 0 = sincronizado, 3 = omitido (sin cambios), 1 = error.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

# Cargar variables desde .env si existe (antes de importar la configuracion).
load_dotenv(_REPO_ROOT / ".env", override=False)

from gcsync.core import events
from gcsync.domain.entities.mapping import Mapping
from gcsync.domain.entities.results import ResultKind
from gcsync.infrastructure.factory import SyncConfigError, build_from_env

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_SKIPPED = 3


def _load_mapping(path: str) -> Mapping:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SystemExit(f"No se pudo leer el mapping {path}: {e}")
    if not isinstance(raw, dict):
        raise SystemExit(f"El mapping {path} debe ser un objeto JSON")
    return Mapping.from_dict(raw)


def main() -> int:
    parser = argparse.ArgumentParser(description="Pull de un item de GatherContent")
    parser.add_argument("--mapping", required=True, help="Ruta al JSON del mapping.")
    parser.add_argument("--item", required=True, help="ID del item de GatherContent.")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Actualiza el record aunque el item no tenga cambios mas nuevos.",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Usa el record store en memoria (dry run, no escribe en Postgres).",
    )
    args = parser.parse_args()

    events.startup()
    mapping = _load_mapping(args.mapping)

    try:
        pipeline = build_from_env(
            use_memory=args.memory,
            only_update_if_newer=False if args.force else None,
        )
    except SyncConfigError as e:
        logger.error(f"CONFIG: {e}")
        return EXIT_FAILED

    item_id = int(args.item) if args.item.isdigit() else args.item
    try:
        outcome = pipeline.use_case.maybe_pull_item(mapping, item_id)
        if outcome.kind == ResultKind.FATAL:
            pipeline.rollback()
            logger.error(f"Pull fallido: {json.dumps(outcome.error.to_dict(), default=str)}")
            return EXIT_FAILED

        pipeline.commit()
        if outcome.kind == ResultKind.SKIPPED:
            logger.info(f"Pull omitido: record {outcome.record_id} ya esta actualizado")
            return EXIT_SKIPPED

        logger.info(f"Pull OK: {json.dumps(outcome.result.summary(), default=str)}")
        return EXIT_OK
    finally:
        pipeline.close()
        events.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
