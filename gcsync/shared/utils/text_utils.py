"""
Utilidades de texto para limpiar valores que llegan desde GatherContent.

Funciones puras (sin I/O) para poder testearlas facilmente.
"""
import html
import re
import unicodedata
from typing import Any, Dict, Iterable, Mapping

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"</?([a-zA-Z][a-zA-Z0-9:-]*)\b[^>]*>")
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)[^>]*?>.*?</\1>", re.DOTALL | re.IGNORECASE)
_LONE_LT_RE = re.compile(r"<(?![a-zA-Z/!])")
_WHITESPACE_RE = re.compile(r"[\r\n\t ]+")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")

# Campos numericos del record (ids de relaciones)
_INT_FIELDS = ("post_author", "post_parent", "menu_order")
_KEY_FIELDS = ("post_status", "post_type", "post_name", "post_mime_type", "comment_status", "ping_status")


def strip_tags(value: str, allowed: Iterable[str] = ()) -> str:
    """
    Elimina tags HTML excepto los permitidos.

    Args:
        value: Texto con markup
        allowed: Nombres de tags permitidos (sin < >)

    Returns:
        str: Texto sin los tags no permitidos
    """
    allowed_set = {t.lower() for t in allowed}
    text = _COMMENT_RE.sub("", str(value))

    def _keep_allowed(match: "re.Match[str]") -> str:
        return match.group(0) if match.group(1).lower() in allowed_set else ""

    return _TAG_RE.sub(_keep_allowed, text)


def strip_all_tags(value: str) -> str:
    """Elimina todo el markup, incluyendo el contenido de <script> y <style>."""
    return strip_tags(_SCRIPT_STYLE_RE.sub("", str(value))).strip()


def sanitize_text_field(value: Any) -> str:
    """
    Limpia un valor para usarlo como texto plano de una linea.

    - Elimina tags
    - Colapsa saltos de linea, tabs y espacios multiples
    - Elimina octetos URL-encoded (%xx)
    """
    if value is None:
        return ""
    text = str(value)
    if "<" in text:
        text = _LONE_LT_RE.sub("&lt;", text)
        text = strip_all_tags(text)
    text = _WHITESPACE_RE.sub(" ", text).strip()

    # Los octetos pueden quedar anidados tras una pasada (%2%41)
    while _OCTET_RE.search(text):
        text = _OCTET_RE.sub("", text)
    return text.strip()


def slugify(value: str) -> str:
    """Version simple de sanitize_title: minusculas, ascii y guiones."""
    normalized = unicodedata.normalize("NFKD", strip_all_tags(value))
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    ascii_text = re.sub(r"[^a-z0-9\s-]", "", ascii_text)
    return re.sub(r"[\s-]+", "-", ascii_text).strip("-")


def is_numeric(value: Any) -> bool:
    """True si el valor es un numero o un string numerico."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        float(value)
        return True
    except ValueError:
        return False


def strtr(text: str, replacements: Mapping[str, str]) -> str:
    """
    Reemplazo simultaneo de multiples claves (semantica de strtr de PHP).

    Las claves mas largas tienen prioridad y un texto ya reemplazado no se
    vuelve a evaluar. Las claves vacias se ignoran.
    """
    if not text or not replacements:
        return text
    keys = sorted((k for k in replacements if k), key=len, reverse=True)
    if not keys:
        return text
    pattern = re.compile("|".join(re.escape(k) for k in keys))
    return pattern.sub(lambda m: str(replacements[m.group(0)]), text)


def sanitize_record_field(field: str, value: Any) -> Any:
    """
    Sanitizacion generica de un campo nativo antes de guardarlo.

    La usan las implementaciones del record store.
    """
    if value is None:
        return value
    if field in _INT_FIELDS or field == "ID":
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0
    if field in _KEY_FIELDS:
        return re.sub(r"[^a-z0-9_\-/.+]", "", str(value).lower())
    if isinstance(value, str):
        return value.replace("\x00", "")
    return value


def join_list_value(value: Any, separator: str = ", ") -> Any:
    """Une listas/tuplas en un string; deja intactos los demas valores."""
    if isinstance(value, (list, tuple)):
        return separator.join(str(v) for v in value)
    return value


def html_attributes(attrs: Dict[str, Any]) -> str:
    """Serializa atributos HTML escapando sus valores."""
    parts = []
    for name, val in attrs.items():
        if val is None or val is False:
            continue
        parts.append(f'{name}="{html.escape(str(val), quote=True)}"')
    return " ".join(parts)
