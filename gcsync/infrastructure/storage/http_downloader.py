"""
Descarga de archivos remotos a una ubicacion temporal (requests, streaming).
"""

from __future__ import annotations

import os
import tempfile
from typing import Optional

import requests
from loguru import logger

from gcsync.shared.exceptions.sync import DownloadError


class HttpDownloader:
    """
    Descarga por streaming a un NamedTemporaryFile.

    El archivo temporal queda a cargo del almacenamiento: se mueve a la
    biblioteca o se elimina si el sideload falla.
    """

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: int = 900,
        chunk_size: int = 64 * 1024,
        tmp_dir: Optional[str] = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout_s = timeout_s
        self._chunk_size = chunk_size
        self._tmp_dir = tmp_dir

    def download(self, url: str) -> str:
        if not url:
            raise DownloadError(url, "URL vacia")

        tmp = tempfile.NamedTemporaryFile(prefix="gcsync-", suffix=".tmp", dir=self._tmp_dir, delete=False)
        try:
            with tmp:
                with self._session.get(url, stream=True, timeout=self._timeout_s) as resp:
                    if resp.status_code != 200:
                        raise DownloadError(url, f"HTTP {resp.status_code}")
                    for chunk in resp.iter_content(chunk_size=self._chunk_size):
                        if chunk:
                            tmp.write(chunk)
        except DownloadError:
            _remove(tmp.name)
            raise
        except (requests.RequestException, OSError) as e:
            _remove(tmp.name)
            raise DownloadError(url, str(e)) from e

        logger.debug(f"[gc-pull] Descargado {url} -> {tmp.name}")
        return tmp.name


def _remove(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
