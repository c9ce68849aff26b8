"""JSON and XML marshalling for the content engines.

JSON goes through the standard ``json`` encoder. By default ``<``, ``>``
and ``&`` are written as ``\\u003c``-style escapes so the output is safe to
inline in a ``<script>`` block; ``escape_html=False`` keeps them literal.

XML goes through ``xml.etree.ElementTree``. Accepted payloads:

- an ``Element`` (serialized as-is)
- an object with ``__xml__()`` returning an ``Element``
- a dataclass instance (root tag = class name, one child per field)
- a single-key mapping (root tag = the key)

Nested mappings and dataclasses become child elements, lists and tuples
repeat their parent's tag, scalars become element text.
"""

import copy
import dataclasses
import json as json_module
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Mapping
from typing import Any, BinaryIO

from wren.errors import EncodeError

# Always escaped: line/paragraph separators break JavaScript string literals.
_JS_ESCAPES = {"\u2028": "\\u2028", "\u2029": "\\u2029"}
_HTML_ESCAPES = str.maketrans({"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", **_JS_ESCAPES})
_SEPARATOR_ESCAPES = str.maketrans(_JS_ESCAPES)

_XML_NAME = re.compile(r"^[A-Za-z_][\w.\-]*$")


# -- JSON --


def _json_encoder(indent: bool) -> json_module.JSONEncoder:
    if indent:
        return json_module.JSONEncoder(ensure_ascii=False, indent=2)
    return json_module.JSONEncoder(ensure_ascii=False, separators=(",", ":"))


def _escape(text: str, escape_html: bool) -> str:
    return text.translate(_HTML_ESCAPES if escape_html else _SEPARATOR_ESCAPES)


def iter_json(value: Any, *, indent: bool = False, escape_html: bool = True) -> Iterator[str]:
    """Encode *value* incrementally, yielding chunks as they are produced.

    An unencodable value deep in the payload surfaces as ``EncodeError``
    only when the encoder reaches it, after earlier chunks were yielded.
    """
    chunks = _json_encoder(indent).iterencode(value)
    while True:
        try:
            chunk = next(chunks)
        except StopIteration:
            return
        except (TypeError, ValueError) as exc:
            raise EncodeError("json", str(exc)) from exc
        yield _escape(chunk, escape_html)


# -- XML --


def _check_tag(tag: Any) -> str:
    name = str(tag)
    if not _XML_NAME.match(name):
        raise EncodeError("xml", f"invalid element name {name!r}")
    return name


def _scalar(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _fill(elem: ET.Element, value: Any) -> None:
    if isinstance(value, ET.Element):
        elem.append(value)
    elif isinstance(value, Mapping):
        for key, child in value.items():
            _append(elem, key, child)
    elif _is_dataclass_instance(value):
        for field in dataclasses.fields(value):
            _append(elem, field.name, getattr(value, field.name))
    else:
        elem.text = _scalar(value)


def _append(parent: ET.Element, tag: Any, value: Any) -> None:
    if isinstance(value, (list, tuple)):
        for item in value:
            _append(parent, tag, item)
        return
    _fill(ET.SubElement(parent, _check_tag(tag)), value)


def to_element(value: Any) -> ET.Element:
    """Convert a payload into an ElementTree root element."""
    if isinstance(value, ET.Element):
        return copy.deepcopy(value)

    to_xml = getattr(value, "__xml__", None)
    if callable(to_xml):
        elem = to_xml()
        if not isinstance(elem, ET.Element):
            raise EncodeError("xml", f"{type(value).__name__}.__xml__() must return an Element")
        return elem

    if _is_dataclass_instance(value):
        root = ET.Element(_check_tag(type(value).__name__))
        _fill(root, value)
        return root

    if isinstance(value, Mapping) and len(value) == 1:
        ((tag, inner),) = value.items()
        if isinstance(inner, (list, tuple)):
            raise EncodeError("xml", f"root element {tag!r} cannot hold a list")
        root = ET.Element(_check_tag(tag))
        _fill(root, inner)
        return root

    msg = (
        f"cannot marshal {type(value).__name__} to XML. "
        f"Pass an Element, a dataclass, a single-key mapping, "
        f"or an object with __xml__()."
    )
    raise EncodeError("xml", msg)


def write_xml(value: Any, out: BinaryIO, *, indent: bool = False, encoding: str = "utf-8") -> None:
    """Serialize *value* into the binary stream *out* (no declaration).

    Characters the encoding cannot represent become character references.
    """
    root = to_element(value)
    if indent:
        ET.indent(root, space="  ")
    ET.ElementTree(root).write(out, encoding=encoding, xml_declaration=False)
