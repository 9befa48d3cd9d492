from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, TypedDict, Union

from langgraph.graph import END, START, StateGraph

from errors import MalformedXMLError
from invoice_mapper import map_invoice_to_standard
from logging_config import get_logger, log_event
from xml_utils import DEFAULT_PARSER_CONFIG, ParserConfig, parse_xml, strip_namespaces

logger = get_logger("xml2json.pipeline")


# ---------- State ----------
class ConversionState(TypedDict, total=False):
    xml: Union[str, bytes]             # raw document
    parser_config: ParserConfig        # attribute prefix / text key
    strip: bool                        # run the namespace-stripping step
    tree: Dict[str, Any]               # parsed (and maybe stripped) document
    result: Dict[str, Any]             # {"ok": ..., ...} body
    status_code: int
    error: Optional[str]
    path: List[str]                    # execution trace


def step(state: ConversionState, node: str, **updates: Any) -> Dict[str, Any]:
    """State update for `node`, appending it to the execution path."""
    log_event(logger, logging.DEBUG, "node done", node=node)
    return {**updates, "path": [*state.get("path", []), node]}


# ---------- Nodes ----------
def node_parse_xml(state: ConversionState):
    config = state.get("parser_config", DEFAULT_PARSER_CONFIG)
    try:
        tree = parse_xml(state["xml"], config)
    except MalformedXMLError as e:
        log_event(logger, logging.WARNING, "xml parse failed", reason=e.message)
        return step(state, "parse_xml", error=e.message, status_code=400,
                    result={"ok": False, "error": e.message})
    return step(state, "parse_xml", tree=tree)


def node_strip_namespaces(state: ConversionState):
    config = state.get("parser_config", DEFAULT_PARSER_CONFIG)
    return step(state, "strip_namespaces", tree=strip_namespaces(state["tree"], config.attr_prefix))


def node_map_invoice(state: ConversionState):
    result = map_invoice_to_standard(state["tree"], state.get("parser_config", DEFAULT_PARSER_CONFIG))
    if not result["ok"]:
        log_event(logger, logging.INFO, "mapping failed", error=result["error"])
        return step(state, "map_invoice", result=result, error=result["error"], status_code=422)
    log_event(logger, logging.DEBUG, "invoice mapped",
              invoice_number=result["header"]["invoice_number"], items=len(result["items"]))
    return step(state, "map_invoice", result=result, status_code=200)


# ---------- Routers ----------
def route_after_parse(state: ConversionState) -> Literal["fail", "strip", "map"]:
    if state.get("error"):
        return "fail"
    return "strip" if state.get("strip", True) else "map"


# ---------- Graph wiring ----------
graph = StateGraph(ConversionState)
graph.add_node("parse_xml", node_parse_xml)
graph.add_node("strip_namespaces", node_strip_namespaces)
graph.add_node("map_invoice", node_map_invoice)

graph.add_edge(START, "parse_xml")
graph.add_conditional_edges("parse_xml", route_after_parse, {
    "fail": END,
    "strip": "strip_namespaces",
    "map": "map_invoice",
})
graph.add_edge("strip_namespaces", "map_invoice")
graph.add_edge("map_invoice", END)

app = graph.compile()


# ---------- Public helpers ----------
def run_conversion(
    xml: Union[str, bytes],
    strip: bool = True,
    config: ParserConfig = DEFAULT_PARSER_CONFIG,
) -> Dict[str, Any]:
    """
    Parse, optionally strip namespaces, and map one XML invoice.
    Returns {"status_code": 200|400|422, "body": {...}, "path": [...]}.
    """
    init: ConversionState = {"xml": xml, "parser_config": config, "strip": strip, "error": None, "path": []}
    final = app.invoke(init)
    return {
        "status_code": final.get("status_code", 200),
        "body": final.get("result", {}),
        "path": final.get("path", []),
    }


def explain_result(report: Dict[str, Any]) -> str:
    """One-line summary of a run_conversion report."""
    body = report.get("body") or {}
    if not body.get("ok"):
        return f"Conversion failed ({report.get('status_code')}): {body.get('error', 'unknown error')}"
    header = body.get("header", {})
    return (
        f"Invoice {header.get('invoice_number') or '?'} from {header.get('supplier') or 'unknown supplier'}: "
        f"{len(body.get('items', []))} line(s), total {header.get('total_with_vat')} {header.get('currency') or ''}".rstrip()
    )


if __name__ == "__main__":
    demo_xml = """<Invoice xmlns:cbc="urn:cbc" xmlns:cac="urn:cac">
      <cbc:ID>INV-1</cbc:ID>
      <cbc:IssueDate>2024-01-01</cbc:IssueDate>
      <cac:InvoiceLine>
        <cbc:InvoicedQuantity unitCode="PCE">2</cbc:InvoicedQuantity>
        <cac:Item><cbc:Name>Widget</cbc:Name></cac:Item>
        <cac:Price><cbc:PriceAmount currencyID="RON">10</cbc:PriceAmount></cac:Price>
      </cac:InvoiceLine>
    </Invoice>"""
    report = run_conversion(demo_xml)
    from pprint import pprint
    pprint(report["body"])
    print("PATH →", " -> ".join(report["path"]))
    print(explain_result(report))
