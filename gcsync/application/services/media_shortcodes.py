"""
Shortcodes de media dentro del contenido de GatherContent.

Los editores pueden ubicar una imagen del campo de archivos escribiendo en
el texto un shortcode con la posicion del archivo (base 1):

    [media-1]
    [media-2 size=medium align=right linkto=file]
    [media-3 class="hero wide" alt="Portada"]

Atributos soportados: size, align, class, alt, linkto (file | attachment | none).
"""
from __future__ import annotations

import re
import shlex
from typing import Any, Dict, Optional

from gcsync.application.interfaces.media_storage import AssetStorage
from gcsync.shared.utils.text_utils import html_attributes


def _shortcode_re(position: int) -> "re.Pattern[str]":
    return re.compile(rf"\[media-{position}(?P<atts>\s[^\]]*)?\]")


def parse_shortcode_atts(raw: str) -> Dict[str, str]:
    """
    Parsea los atributos de un shortcode (key=value, key="value con espacios").

    Los tokens sin "=" se ignoran.
    """
    atts: Dict[str, str] = {}
    if not raw or not raw.strip():
        return atts
    try:
        tokens = shlex.split(raw)
    except ValueError:
        tokens = raw.split()
    for token in tokens:
        if "=" not in token:
            continue
        key, _, value = token.partition("=")
        key = key.strip().lower()
        if key:
            atts[key] = value.strip()
    return atts


def get_media_shortcode_attributes(content: str, position: int) -> Dict[str, Dict[str, str]]:
    """
    Busca los shortcodes de una posicion dentro del contenido.

    Returns:
        Dict[str, Dict[str, str]]: texto exacto del shortcode -> atributos
    """
    if not content or position <= 0:
        return {}
    found: Dict[str, Dict[str, str]] = {}
    for match in _shortcode_re(position).finditer(content):
        found[match.group(0)] = parse_shortcode_atts(match.group("atts") or "")
    return found


def get_requested_media(
    storage: AssetStorage,
    atts: Dict[str, str],
    media_id: Any,
    asset_id: int,
) -> Optional[str]:
    """
    Renderiza la imagen (o link) pedida por los atributos del shortcode.

    Retorna None si no hay atributos utilizables.
    """
    if not atts:
        return None

    size = atts.get("size") or "full"
    classes = [f"attachment-{size}", f"size-{size}", "gathercontent-image"]
    if atts.get("align"):
        classes.append(f"align{atts['align']}")
    if atts.get("class"):
        classes.extend(atts["class"].split())

    img_attrs: Dict[str, Any] = {"data-gcid": media_id, "class": " ".join(classes)}
    if atts.get("alt"):
        img_attrs["alt"] = atts["alt"]

    markup = storage.render_image(asset_id, size, img_attrs)
    if not markup:
        return None

    linkto = (atts.get("linkto") or "none").lower()
    if linkto in ("file", "attachment"):
        href = storage.asset_url(asset_id)
        if href:
            markup = f"<a {html_attributes({'href': href})}>{markup}</a>"
    return markup
