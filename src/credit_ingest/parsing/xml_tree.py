"""Convert raw XML bytes into a nested dict/list/str tree.

Shape conventions:

* The document becomes ``{root_tag: root_value}``.
* An element with neither attributes nor children becomes its trimmed text
  (``""`` when empty).
* Attributes and child elements are merged into one mapping per element.
* A child tag that occurs once maps to a bare value; repeated tags map to a
  list in document order. Callers cannot tell a one-element repetition from a
  singleton and must normalize with :func:`credit_ingest.extraction.tree.as_list`.
* Text of an element that also has attributes or children is kept under ``"_"``.
* Whitespace in text is trimmed and internal runs collapse to a single space.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)

TEXT_KEY = "_"


class TreeParseError(RuntimeError):
    """Raised when the uploaded document is not well-formed XML."""


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _normalize_text(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(value.split())


def _merge(target: Dict[str, Any], key: str, value: Any) -> None:
    if key not in target:
        target[key] = value
        return
    existing = target[key]
    if isinstance(existing, list):
        existing.append(value)
    else:
        target[key] = [existing, value]


def _convert(element: ET.Element) -> Any:
    children = list(element)
    text_parts = [element.text or ""]
    text_parts.extend(child.tail or "" for child in children)
    text = _normalize_text(" ".join(text_parts))

    if not children and not element.attrib:
        return text

    node: Dict[str, Any] = {}
    for name, value in element.attrib.items():
        _merge(node, _local_name(name), _normalize_text(value))
    for child in children:
        _merge(node, _local_name(child.tag), _convert(child))
    if text:
        node[TEXT_KEY] = text
    return node


def parse_xml(raw: bytes | str) -> Dict[str, Any]:
    """Parse ``raw`` into a tree.

    Raises:
        TreeParseError: The input is empty or not well-formed XML.
    """

    if raw is None or not raw.strip():
        raise TreeParseError("Failed to parse XML: document is empty")
    try:
        root = ET.fromstring(raw)
    except (ET.ParseError, ValueError) as exc:
        raise TreeParseError(f"Failed to parse XML: {exc}") from exc
    LOGGER.debug("Parsed XML document with root element %s", root.tag)
    return {_local_name(root.tag): _convert(root)}


__all__ = ["TEXT_KEY", "TreeParseError", "parse_xml"]
