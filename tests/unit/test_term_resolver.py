"""
Tests unitarios para TermResolver.
"""
import pytest

from gcsync.application.hooks import PullHooks
from gcsync.application.services.term_resolver import TermResolver
from gcsync.domain.entities.item import ChoiceOption, Element, Item
from gcsync.shared.exceptions.sync import RecordStoreError


def _text(value):
    return Element(name="el1", type="text", value=value)


@pytest.fixture
def item():
    return Item(id=123, name="Item")


class TestTermResolver:
    """Resolucion de terminos por tipo de taxonomia."""

    def test_text_is_split_on_commas(self, record_store, item):
        """Verifica que un texto se separa por comas en taxonomias planas."""
        resolver = TermResolver(record_store)
        assert resolver.resolve_terms("post_tag", _text("A, B ,<b>C</b>"), "A, B ,<b>C</b>", item) == ["A", "B", "C"]

    def test_checkbox_labels_are_used_as_is(self, record_store, item):
        """Verifica que las listas (checkbox) se usan sin separar."""
        element = Element(
            name="el2",
            type="choice_checkbox",
            options=(ChoiceOption("o1", "Uno, dos", True), ChoiceOption("o2", "Tres", False)),
        )
        resolver = TermResolver(record_store)
        value = item.element_value(element)
        assert resolver.resolve_terms("post_tag", element, value, item) == ["Uno, dos"]

    def test_hierarchical_creates_missing_terms_once(self, record_store, item):
        """Verifica que en taxonomias jerarquicas se crean los terminos y la resolucion es idempotente."""
        resolver = TermResolver(record_store)

        first = resolver.resolve_terms("category", _text("Noticias, Deportes"), "Noticias, Deportes", item)
        second = resolver.resolve_terms("category", _text("Noticias, Deportes"), "Noticias, Deportes", item)

        assert first == second
        assert all(isinstance(t, int) for t in first)
        assert len(record_store.terms) == 2

    def test_missing_integer_ids_are_not_created(self, record_store, item):
        """Verifica que IDs enteros inexistentes se descartan sin crear terminos."""
        existing = record_store.insert_term("Existente", "category")
        resolver = TermResolver(record_store)

        terms = resolver.resolve_terms("category", Element(name="e", type="choice_radio"), [existing, 999], item)

        assert terms == [existing]
        assert len(record_store.terms) == 1

    def test_digit_string_resolves_existing_id(self, record_store, item):
        """Verifica que un ID existente recibido como string se resuelve a ese termino."""
        noticias = record_store.insert_term("Noticias", "category")
        resolver = TermResolver(record_store)

        terms = resolver.resolve_terms("category", Element(name="e", type="choice_radio"), [str(noticias)], item)

        assert terms == [noticias]
        assert len(record_store.terms) == 1

    def test_numeric_text_label_is_created(self, record_store, item):
        """Verifica que un label numerico que no es un ID existente se crea como termino."""
        noticias = record_store.insert_term("Noticias", "category")
        resolver = TermResolver(record_store)

        first = resolver.resolve_terms("category", _text("2024, Noticias"), "2024, Noticias", item)
        second = resolver.resolve_terms("category", _text("2024, Noticias"), "2024, Noticias", item)

        anio = record_store.find_term("2024", "category")
        assert anio is not None
        assert first == [anio, noticias]
        assert second == first
        assert len(record_store.terms) == 2

    def test_insert_failure_drops_term(self, record_store, item, monkeypatch):
        """Verifica que si un termino no se puede crear se descarta con warning."""
        def _fail(name, taxonomy):
            raise RecordStoreError("no", code="invalid_term")

        monkeypatch.setattr(record_store, "insert_term", _fail)
        resolver = TermResolver(record_store)

        assert resolver.resolve_terms("category", _text("Nuevo"), "Nuevo", item) == []

    def test_element_terms_hook(self, record_store, item):
        """Verifica que el hook element_terms filtra el resultado final."""
        hooks = PullHooks(element_terms=lambda terms, element, it: [t.lower() for t in terms])
        resolver = TermResolver(record_store, hooks)

        assert resolver.resolve_terms("post_tag", _text("A, B"), "A, B", item) == ["a", "b"]

    def test_none_value_gives_no_terms(self, record_store, item):
        resolver = TermResolver(record_store)
        assert resolver.resolve_terms("post_tag", Element(name="e", type="choice_radio"), None, item) == []
