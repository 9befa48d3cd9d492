from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypedDict

from coercion import round4, to_number, to_vat_rate
from paths import first_of, resolve, text_or_none, unwrap_text
from xml_utils import DEFAULT_PARSER_CONFIG, ParserConfig

NO_INVOICE_ROOT = "No Invoice root found"


class InvoiceHeader(TypedDict):
    supplier: Optional[str]
    cui: Optional[str]
    invoice_number: Optional[str]
    invoice_date: Optional[str]
    currency: Optional[str]
    total_no_vat: Optional[float]
    total_with_vat: Optional[float]
    allowance_total: Optional[float]


class InvoiceItem(TypedDict):
    product_name: str
    unit: Optional[str]
    qty_invoiced: Optional[float]
    qty_received: None      # filled in downstream
    lot: None               # filled in downstream
    price_no_vat: Optional[float]
    value_no_vat: Optional[float]
    vat_rate: Optional[float]
    vat_value: Optional[float]


# ---------- Candidate paths ----------
def _paths(*paths: str) -> Tuple[str, ...]:
    """
    Expand UBL paths written with cac:/cbc: prefixes into the bare form
    (namespace-stripped tree) followed by the prefixed form (raw tree).
    Paths without prefixes are taken as-is. Order is precedence.
    """
    out: List[str] = []
    for path in paths:
        bare = ".".join(seg.split(":")[-1] for seg in path.split("."))
        for p in (bare, path):
            if p not in out:
                out.append(p)
    return tuple(out)


ROOT_KEYS = (
    "Invoice", "invoice",
    "ns:Invoice", "ns1:Invoice", "ns2:Invoice", "ns3:Invoice", "ns4:Invoice",
    "ubl:Invoice", "inv:Invoice",
)

SUPPLIER_NAME = _paths(
    "cac:AccountingSupplierParty.cac:Party.cac:PartyName.cbc:Name",
    "accountingSupplierParty.party.partyName.name",
    "cac:AccountingSupplierParty.cac:Party.cac:PartyLegalEntity.cbc:RegistrationName",
    "accountingSupplierParty.party.partyLegalEntity.registrationName",
    "Supplier.Name",
    "supplier.name",
)
SUPPLIER_TAX_ID = _paths(
    "cac:AccountingSupplierParty.cac:Party.cac:PartyTaxScheme.cbc:CompanyID",
    "accountingSupplierParty.party.partyTaxScheme.companyID",
    "Supplier.CUI",
    "supplier.cui",
    "cac:AccountingSupplierParty.cac:Party.cac:PartyLegalEntity.cbc:CompanyID",
)
INVOICE_NUMBER = _paths("cbc:ID", "id", "InvoiceNumber", "invoiceNumber")
INVOICE_DATE = _paths("cbc:IssueDate", "issueDate", "InvoiceDate", "invoiceDate")
CURRENCY = _paths("cbc:DocumentCurrencyCode", "documentCurrencyCode", "Currency", "currency")

TAX_EXCLUSIVE_TOTAL = _paths(
    "cac:LegalMonetaryTotal.cbc:TaxExclusiveAmount",
    "legalMonetaryTotal.taxExclusiveAmount",
    "totals.taxExclusive",
)
LINE_EXTENSION_TOTAL = _paths(
    "cac:LegalMonetaryTotal.cbc:LineExtensionAmount",
    "legalMonetaryTotal.lineExtensionAmount",
    "totals.lineExtensionAmount",
)
TAX_INCLUSIVE_TOTAL = _paths(
    "cac:LegalMonetaryTotal.cbc:TaxInclusiveAmount",
    "legalMonetaryTotal.taxInclusiveAmount",
    "totals.taxInclusive",
)
ALLOWANCE_TOTAL = _paths(
    "cac:LegalMonetaryTotal.cbc:AllowanceTotalAmount",
    "legalMonetaryTotal.allowanceTotalAmount",
    "totals.allowanceTotal",
)

LINE_COLLECTION = _paths("cac:InvoiceLine", "invoiceLine", "Lines", "lines", "Items", "items")
GENERIC_LINE_COLLECTIONS = ("Lines", "lines", "Items", "items")
LINE_WRAPPED_KEYS = ("Line", "line", "Item", "item")

ITEM_NAME = _paths(
    "cac:Item.cbc:Name", "item.name",
    "cac:Item.cbc:Description", "item.description",
    "cbc:Description", "description",
    "Name", "name",
)
QUANTITY = _paths("cbc:InvoicedQuantity", "invoicedQuantity", "Quantity", "quantity")
UNIT_PRICE = _paths("cac:Price.cbc:PriceAmount", "price.priceAmount", "UnitPrice", "unitPrice")
LINE_VALUE = _paths("cbc:LineExtensionAmount", "lineExtensionAmount")
VAT_PERCENT = _paths(
    "cac:Item.cac:ClassifiedTaxCategory.cbc:Percent",
    "item.classifiedTaxCategory.percent",
    "cac:TaxTotal.cac:TaxSubtotal.cac:TaxCategory.cbc:Percent",
    "taxTotal.taxSubtotal.taxCategory.percent",
    "VAT",
    "vat",
)
VAT_AMOUNT = _paths(
    "cac:TaxTotal.cac:TaxSubtotal.cbc:TaxAmount",
    "taxTotal.taxSubtotal.taxAmount",
    "cac:TaxTotal.cbc:TaxAmount",
    "taxTotal.taxAmount",
)


def _unit_paths(attr_prefix: str) -> Tuple[str, ...]:
    return _paths(
        f"cbc:InvoicedQuantity.{attr_prefix}unitCode",
        f"invoicedQuantity.{attr_prefix}unitCode",
        f"cac:Price.cbc:BaseQuantity.{attr_prefix}unitCode",
        "Unit",
        "unit",
    )


# ---------- Field helpers ----------
def _text(node: Any, candidates: Iterable[str], config: ParserConfig) -> Optional[str]:
    """First candidate with actual text; attribute-only elements fall through."""
    for path in candidates:
        text = text_or_none(resolve(node, path, first_of_sequence=True), config.text_key)
        if text is not None:
            return text
    return None


def _number(
    node: Any,
    candidates: Iterable[str],
    config: ParserConfig,
    coerce: Callable[[Any], Optional[float]] = to_number,
) -> Optional[float]:
    """First candidate that coerces to a number; non-numeric hits fall through."""
    for path in candidates:
        raw = resolve(node, path, first_of_sequence=True)
        n = coerce(unwrap_text(raw, config.text_key))
        if n is not None:
            return n
    return None


# ---------- Root detection ----------
def _has_invoice_content(node: Dict[str, Any]) -> bool:
    for candidates in (SUPPLIER_NAME, SUPPLIER_TAX_ID, INVOICE_NUMBER, INVOICE_DATE, CURRENCY, LINE_COLLECTION):
        if first_of(node, candidates) is not None:
            return True
    return False


def find_invoice_root(tree: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    UBL <Invoice>, generic <invoice>, a namespaced variant, or the tree itself
    when it already carries invoice fields. None if nothing fits.
    """
    for key in ROOT_KEYS:
        candidate = tree.get(key)
        if isinstance(candidate, dict):
            return candidate
    for key, candidate in tree.items():
        if key.split(":")[-1] == "Invoice" and isinstance(candidate, dict):
            return candidate
    return tree if _has_invoice_content(tree) else None


# ---------- Header / lines ----------
def _extract_header(root: Dict[str, Any], config: ParserConfig) -> InvoiceHeader:
    total_no_vat = _number(root, TAX_EXCLUSIVE_TOTAL, config)
    if total_no_vat is None:
        total_no_vat = _number(root, LINE_EXTENSION_TOTAL, config)

    return {
        "supplier": _text(root, SUPPLIER_NAME, config),
        "cui": _text(root, SUPPLIER_TAX_ID, config),
        "invoice_number": _text(root, INVOICE_NUMBER, config),
        "invoice_date": _text(root, INVOICE_DATE, config),
        "currency": _text(root, CURRENCY, config),
        "total_no_vat": total_no_vat,
        "total_with_vat": _number(root, TAX_INCLUSIVE_TOTAL, config),
        "allowance_total": _number(root, ALLOWANCE_TOTAL, config),
    }


def _raw_lines(root: Dict[str, Any]) -> List[Tuple[int, Any]]:
    """Line elements with their 1-based position in the source collection."""
    path = next((p for p in LINE_COLLECTION if resolve(root, p) is not None), None)
    raw = resolve(root, path) if path else None
    # generic <Lines><Line>..</Line><Line>..</Line></Lines>
    if path in GENERIC_LINE_COLLECTIONS and isinstance(raw, dict) and len(raw) == 1:
        (key, inner), = raw.items()
        if key in LINE_WRAPPED_KEYS:
            raw = inner
    if raw is None:
        return []
    if not isinstance(raw, list):
        raw = [raw]
    return [(pos, ln) for pos, ln in enumerate(raw, start=1) if ln is not None]


def _extract_item(ln: Any, position: int, config: ParserConfig) -> InvoiceItem:
    qty = _number(ln, QUANTITY, config)
    price = _number(ln, UNIT_PRICE, config)

    value = _number(ln, LINE_VALUE, config)
    if value is None and qty is not None and price is not None:
        value = round4(qty * price)

    vat_rate = _number(ln, VAT_PERCENT, config, coerce=to_vat_rate)

    # explicit tax amount wins over rate * base
    vat_value = _number(ln, VAT_AMOUNT, config)
    if vat_value is None and value is not None and vat_rate is not None:
        vat_value = round4(value * vat_rate)

    return {
        "product_name": _text(ln, ITEM_NAME, config) or f"Item {position}",
        "unit": _text(ln, _unit_paths(config.attr_prefix), config),
        "qty_invoiced": qty,
        "qty_received": None,
        "lot": None,
        "price_no_vat": price,
        "value_no_vat": value,
        "vat_rate": vat_rate,
        "vat_value": vat_value,
    }


def map_invoice_to_standard(tree: Dict[str, Any], config: ParserConfig = DEFAULT_PARSER_CONFIG) -> Dict[str, Any]:
    """
    Map a parsed invoice (UBL with or without namespace prefixes, or a loose
    generic schema) into {"ok": True, "header": {...}, "items": [...]}.

    Missing fields come back as None; the only failure is a tree with no
    recognizable invoice root: {"ok": False, "error": "No Invoice root found"}.
    """
    if not isinstance(tree, dict):
        raise TypeError(f"expected a parsed XML mapping, got {type(tree).__name__}")

    root = find_invoice_root(tree)
    if root is None:
        return {"ok": False, "error": NO_INVOICE_ROOT}

    header = _extract_header(root, config)
    items = [_extract_item(ln, pos, config) for pos, ln in _raw_lines(root)]
    return {"ok": True, "header": header, "items": items}
