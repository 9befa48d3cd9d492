from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Union
from xml.parsers.expat import ExpatError

import xmltodict

from errors import MalformedXMLError

Scalar = Union[str, int, float, bool, None]
ParsedTree = Union[Scalar, List["ParsedTree"], Dict[str, "ParsedTree"]]


@dataclass(frozen=True)
class ParserConfig:
    """
    How XML is turned into a tree. Attributes get `attr_prefix`
    (<InvoicedQuantity unitCode="PCE"> -> "@_unitCode") and element text next
    to attributes lands under `text_key`.
    """
    attr_prefix: str = "@_"
    text_key: str = "#text"
    strip_whitespace: bool = True


DEFAULT_PARSER_CONFIG = ParserConfig()


def parse_xml(xml: Union[str, bytes], config: ParserConfig = DEFAULT_PARSER_CONFIG) -> Dict[str, Any]:
    """
    Parse XML into a nested dict with xmltodict. Values are left as strings;
    repeated sibling elements become lists.
    """
    try:
        return xmltodict.parse(
            xml,
            attr_prefix=config.attr_prefix,
            cdata_key=config.text_key,
            strip_whitespace=config.strip_whitespace,
        )
    except (ExpatError, ValueError) as e:
        raise MalformedXMLError(str(e)) from e


def _local_name(key: str, attr_prefix: str) -> str:
    if attr_prefix and key.startswith(attr_prefix):
        return attr_prefix + key[len(attr_prefix):].split(":")[-1]
    return key.split(":")[-1]


def strip_namespaces(tree: ParsedTree, attr_prefix: str = "@_") -> ParsedTree:
    """
    Drop namespace prefixes from every key: {"cbc:ID": "1"} -> {"ID": "1"}.
    Attribute keys keep their attribute prefix ("@_xmlns:cbc" -> "@_cbc").

    If two keys collapse to the same local name at one level (cbc:ID and
    cac:ID), the one seen last wins.
    """
    if isinstance(tree, dict):
        return {_local_name(k, attr_prefix): strip_namespaces(v, attr_prefix) for k, v in tree.items()}
    if isinstance(tree, list):
        return [strip_namespaces(v, attr_prefix) for v in tree]
    return tree
