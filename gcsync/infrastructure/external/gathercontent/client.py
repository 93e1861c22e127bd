"""
Cliente mínimo del API de GatherContent (sin SDKs externos).

Requisitos cubiertos:
- requests
- autenticacion Basic (usuario + API key)
- envelope {"data": ...} de la version 0.5
- rate-limit/backoff (429, 5xx)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, List, Optional

import requests
from loguru import logger

from gcsync.domain.entities.item import Item, MediaFile

ACCEPT_HEADER = "application/vnd.gathercontent.v0.5+json"


@dataclass(frozen=True)
class GatherContentCredentials:
    user: str
    api_key: str


class GatherContentApiError(RuntimeError):
    """Error de integración con GatherContent."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GatherContentClient:
    """
    Cliente HTTP de GatherContent.

    Importante:
    - No cachea: cada pull lee el estado actual del item y de sus archivos.
    - Los errores no recuperables (4xx) fallan de inmediato.
    """

    def __init__(
        self,
        credentials: GatherContentCredentials,
        *,
        session: Optional[requests.Session] = None,
        base_url: str = "https://api.gathercontent.com",
        timeout_s: int = 30,
        max_retries: int = 6,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
        sleep=time.sleep,
    ) -> None:
        self._creds = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._session = session or requests.Session()
        self._sleep = sleep

    def get_item(self, item_id: Any) -> Item:
        """GET /items/{id}"""
        payload = self._request_json("GET", f"/items/{item_id}")
        data = _unwrap(payload)
        if not isinstance(data, dict) or data.get("id") is None:
            raise GatherContentApiError(f"GatherContent devolvió un item vacío para {item_id}")
        return Item.from_api(data)

    def get_item_files(self, item_id: Any) -> List[MediaFile]:
        """GET /items/{id}/files"""
        payload = self._request_json("GET", f"/items/{item_id}/files")
        data = _unwrap(payload)
        if data is None:
            return []
        if not isinstance(data, list):
            raise GatherContentApiError(f"Respuesta inesperada de archivos para el item {item_id}")
        return [MediaFile.from_api(f) for f in data if isinstance(f, dict)]

    def set_item_status(self, item_id: Any, status_id: str) -> None:
        """POST /items/{id}/choose_status"""
        self._request_json("POST", f"/items/{item_id}/choose_status", data={"status_id": status_id})
        logger.info(f"[gc-pull] Status del item {item_id} actualizado a {status_id}")

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        data: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Request HTTP con backoff para 429/5xx.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial con jitter simple.
        - 5xx: exponencial con jitter.
        - 4xx (no 429): error inmediato (config/auth mal).
        """
        url = f"{self._base_url}{path}"
        headers = {"Accept": ACCEPT_HEADER}

        for attempt in range(self._max_retries + 1):
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    data=data,
                    headers=headers,
                    auth=(self._creds.user, self._creds.api_key),
                    timeout=self._timeout_s,
                )
            except requests.RequestException as e:
                raise GatherContentApiError(f"GatherContent request falló: {e}") from e

            if 200 <= resp.status_code < 300:
                if not resp.content:
                    return None
                try:
                    return resp.json()
                except ValueError as e:
                    raise GatherContentApiError(
                        f"GatherContent devolvió JSON inválido ({resp.status_code})", resp.status_code
                    ) from e

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise GatherContentApiError(
                        f"GatherContent error {resp.status_code} tras {attempt} reintentos: {resp.text}",
                        resp.status_code,
                    )

                sleep_s = self._backoff_seconds(attempt, resp.headers.get("Retry-After"))
                logger.warning(
                    f"[gc-pull] GatherContent respondió {resp.status_code} en {method} {path}, "
                    f"reintento {attempt + 1}/{self._max_retries} en {sleep_s:.1f}s"
                )
                self._sleep(sleep_s)
                continue

            # Errores no recuperables
            raise GatherContentApiError(
                f"GatherContent request falló {resp.status_code}: {resp.text}",
                resp.status_code,
            )

    def _backoff_seconds(self, attempt: int, retry_after: Optional[str]) -> float:
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                return self._min_backoff_s
        # Exponencial simple + jitter proporcional
        base = min(self._max_backoff_s, self._min_backoff_s * (2**attempt))
        return base + (0.15 * base)


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload
