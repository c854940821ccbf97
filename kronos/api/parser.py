# File: kronos/api/parser.py
"""kronos.api.parser: разбор XML-ответов NationStates API в типизированные записи.

Ответы API выглядят так::

    <WORLD><HAPPENINGS>
      <EVENT id="1"><TIMESTAMP>1600000000</TIMESTAMP><TEXT>...</TEXT></EVENT>
    </HAPPENINGS></WORLD>

Парсер работает в строгом режиме: незакрытый тег или отсутствующий элемент
приводит к :class:`~kronos.errors.ParseError`, а не к частичному результату.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from lxml import etree

from kronos.api.models import Happening
from kronos.errors import ParseError

__all__ = [
    "parse_happenings",
    "parse_regions_by_tag",
    "parse_num_nations",
    "parse_last_update",
    "parse_embassies",
]

_DEFAULT_EMBASSY = "open"


def _root(xml_content: str) -> etree._Element:
    if not xml_content.strip():
        raise ParseError("Empty response")
    parser = etree.XMLParser(recover=False, resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(xml_content.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"Malformed response: {exc}") from exc


def _require(root: etree._Element, tag: str) -> etree._Element:
    node = root if root.tag == tag else root.find(f".//{tag}")
    if node is None:
        raise ParseError(f"<{tag}> not found in response")
    return node


def _int(node: etree._Element, attr: Optional[str] = None) -> int:
    raw = node.get(attr, "0") if attr else node.text
    text = (raw or "").strip()
    try:
        return int(text)
    except ValueError as exc:
        where = f"<{node.tag} {attr}>" if attr else f"<{node.tag}>"
        raise ParseError(f"{where} is not an integer: {text!r}") from exc


def parse_happenings(xml_content: str) -> List[Happening]:
    """Return every ``<EVENT>`` in feed order (the API lists newest first)."""
    feed = _require(_root(xml_content), "HAPPENINGS")
    events: List[Happening] = []
    for event in feed.iter("EVENT"):
        events.append(
            Happening(
                event_id=_int(event, "id"),
                timestamp=_int(_require(event, "TIMESTAMP")),
                text=_require(event, "TEXT").text or "",
            )
        )
    return events


def parse_regions_by_tag(xml_content: str) -> List[str]:
    """Comma separated ``<REGIONS>`` list, without the ``['…']`` decoration."""
    raw = _require(_root(xml_content), "REGIONS").text or ""
    raw = raw.replace("\n", "").replace("['", "").replace("']", "")
    return [name.strip() for name in raw.split(",") if name.strip()]


def parse_num_nations(xml_content: str) -> int:
    return _int(_require(_root(xml_content), "NUMNATIONS"))


def parse_last_update(xml_content: str) -> int:
    return _int(_require(_root(xml_content), "LASTUPDATE"))


def parse_embassies(xml_content: str) -> Dict[str, str]:
    """Partner region -> embassy type; elements without ``type`` are open embassies."""
    node = _require(_root(xml_content), "EMBASSIES")
    embassies: Dict[str, str] = {}
    for embassy in node.iter("EMBASSY"):
        name = (embassy.text or "").strip()
        if name:
            embassies[name] = embassy.get("type", _DEFAULT_EMBASSY)
    return embassies
