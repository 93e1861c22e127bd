"""
Resolucion de terminos de taxonomia para un elemento mapeado.
"""
from __future__ import annotations

from typing import Any, List

from loguru import logger

from gcsync.application.hooks import PullHooks
from gcsync.domain.entities.item import Element, Item
from gcsync.domain.repositories.record_store import IRecordStore
from gcsync.shared.constants.sync_constants import ElementType
from gcsync.shared.exceptions.base import AppException
from gcsync.shared.utils.text_utils import sanitize_text_field


def _is_term_id(term: Any) -> bool:
    return isinstance(term, int) and not isinstance(term, bool)


class TermResolver:
    """
    Convierte el valor de un elemento en una lista de terminos.

    En taxonomias jerarquicas los labels se resuelven a term_id, creando los
    terminos que falten. Los IDs enteros inexistentes se descartan; los labels
    numericos ("2024") se buscan primero como ID y luego por nombre.
    """

    def __init__(self, record_store: IRecordStore, hooks: PullHooks | None = None) -> None:
        self._store = record_store
        self._hooks = hooks or PullHooks()

    def resolve_terms(self, taxonomy: str, element: Element, value: Any, item: Item) -> List[Any]:
        """
        Args:
            taxonomy: Taxonomia destino
            element: Elemento de GatherContent
            value: Valor resuelto del elemento
            item: Item en proceso (contexto para el hook)

        Returns:
            List[Any]: term_ids (jerarquicas) o labels (no jerarquicas)
        """
        if element.type == ElementType.TEXT:
            terms: List[Any] = [t.strip() for t in sanitize_text_field(value).split(",")]
        elif value is None:
            terms = []
        elif isinstance(value, (list, tuple)):
            terms = list(value)
        else:
            terms = [value]

        if terms and self._store.is_taxonomy_hierarchical(taxonomy):
            terms = self._resolve_hierarchical(taxonomy, terms)

        return self._hooks.element_terms(terms, element, item)

    def _resolve_hierarchical(self, taxonomy: str, terms: List[Any]) -> List[Any]:
        resolved: List[Any] = []
        for term in terms:
            if term is None or term == "":
                continue

            if _is_term_id(term):
                term_id = self._store.find_term(term, taxonomy)
                if term_id is None:
                    # No se crean terminos a partir de IDs inexistentes
                    continue
                resolved.append(term_id)
                continue

            label = str(term).strip()
            if not label:
                continue
            term_id = self._store.find_term(int(label), taxonomy) if label.isdecimal() else None
            if term_id is None:
                term_id = self._store.find_term(label, taxonomy)
            if term_id is None:
                try:
                    term_id = self._store.insert_term(label, taxonomy)
                except AppException as e:
                    logger.warning(f"[gc-pull] No se pudo crear el termino '{term}' en {taxonomy}: {e.message}")
                    continue

            resolved.append(term_id)
        return resolved
