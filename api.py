# api.py
# pip install fastapi uvicorn xmltodict python-multipart httpx

import logging
import time
from typing import Any, Dict, List, Optional, Union

import httpx
from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field

from errors import (
    EmptyPayloadError,
    PayloadTooLargeError,
    RemoteFetchError,
    UnsupportedMediaTypeError,
    Xml2JsonError,
)
from invoice_graph import run_conversion
from logging_config import get_logger, log_event
from settings import get_settings

logger = get_logger("xml2json.api")

app = FastAPI(title="XML to JSON Invoice API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# replaced in tests with httpx.MockTransport
_transport: Optional[httpx.BaseTransport] = None


@app.middleware("http")
async def _logging_middleware(request: Request, call_next):
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        duration = (time.perf_counter() - start) * 1000.0
        log_event(logger, logging.ERROR, "request failed",
                  method=request.method, path=request.url.path, error=type(e).__name__, dur_ms=duration)
        raise
    duration = (time.perf_counter() - start) * 1000.0
    log_event(logger, logging.INFO, "request",
              method=request.method, path=request.url.path, status=response.status_code, dur_ms=duration)
    return response


@app.exception_handler(Xml2JsonError)
async def _service_error_handler(_request: Request, exc: Xml2JsonError):
    log_event(logger, logging.WARNING, "request rejected", status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})


# ---------- Models ----------
class InvoiceHeaderModel(BaseModel):
    supplier: Optional[str] = None
    cui: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    currency: Optional[str] = None
    total_no_vat: Optional[float] = None
    total_with_vat: Optional[float] = None
    allowance_total: Optional[float] = None


class InvoiceItemModel(BaseModel):
    product_name: str
    unit: Optional[str] = None
    qty_invoiced: Optional[float] = None
    qty_received: Optional[float] = Field(default=None, description="Filled in downstream")
    lot: Optional[str] = Field(default=None, description="Filled in downstream")
    price_no_vat: Optional[float] = None
    value_no_vat: Optional[float] = None
    vat_rate: Optional[float] = Field(default=None, description="Fraction, e.g. 0.19")
    vat_value: Optional[float] = None


class ConversionResponse(BaseModel):
    ok: bool = True
    header: InvoiceHeaderModel
    items: List[InvoiceItemModel] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str


class FetchRequest(BaseModel):
    url: str = Field(..., description="http(s) URL of the XML document")


_ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    415: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# ---------- Helpers ----------
def _check_size(payload: bytes) -> bytes:
    if not payload:
        raise EmptyPayloadError()
    limit = get_settings().xml_max_size
    if len(payload) > limit:
        raise PayloadTooLargeError(len(payload), limit)
    return payload


def _check_content_type(content_type: str) -> None:
    """Raw bodies must be text/*, application/xml or an application/*+xml type."""
    media = content_type.split(";", 1)[0].strip().lower()
    if media.startswith("text/") or media == "application/xml":
        return
    if media.startswith("application/") and media.endswith("+xml"):
        return
    raise UnsupportedMediaTypeError(content_type)


def _convert(xml: bytes, strip: Optional[bool]):
    if strip is None:
        strip = get_settings().strip_namespaces
    try:
        report = run_conversion(xml, strip=strip)
    except Exception:
        logger.exception("unexpected failure while mapping invoice")
        return JSONResponse(status_code=500, content={"ok": False, "error": "Internal mapping error"})
    if report["status_code"] != 200:
        return JSONResponse(status_code=report["status_code"], content=report["body"])
    return report["body"]


def _fetch_remote_xml(url: str) -> bytes:
    """Stream the remote document, stopping as soon as it passes XML_MAX_SIZE."""
    if not url.lower().startswith(("http://", "https://")):
        raise RemoteFetchError(url, "only http and https URLs are supported")
    settings = get_settings()
    limit = settings.xml_max_size
    chunks: List[bytes] = []
    received = 0
    try:
        with httpx.Client(timeout=settings.fetch_timeout, follow_redirects=True, transport=_transport) as client:
            with client.stream("GET", url) as resp:
                resp.raise_for_status()
                declared = resp.headers.get("Content-Length", "")
                if declared.isdigit() and int(declared) > limit:
                    raise PayloadTooLargeError(int(declared), limit)
                for chunk in resp.iter_bytes():
                    received += len(chunk)
                    if received > limit:
                        raise PayloadTooLargeError(received, limit)
                    chunks.append(chunk)
    except httpx.HTTPError as e:
        raise RemoteFetchError(url, str(e) or type(e).__name__) from e
    return b"".join(chunks)


# ---------- Routes ----------
@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse("/docs")


@app.get("/api/health")
def health():
    return {"ok": True}


@app.post("/api/xml2json", response_model=ConversionResponse, responses=_ERROR_RESPONSES)
async def xml2json(request: Request, strip_namespaces: Optional[bool] = None):
    """XML sent as the raw request body."""
    _check_content_type(request.headers.get("content-type", ""))
    payload = _check_size(await request.body())
    return _convert(payload, strip_namespaces)


@app.post("/api/xml2json_file", response_model=ConversionResponse, responses=_ERROR_RESPONSES)
async def xml2json_file(file: Optional[UploadFile] = File(None), strip_namespaces: Optional[bool] = None):
    """XML uploaded as multipart form-data, field name `file`."""
    if file is None:
        raise EmptyPayloadError("No file uploaded")
    payload = _check_size(await file.read())
    return _convert(payload, strip_namespaces)


@app.post("/api/xml2json_url", response_model=ConversionResponse, responses=_ERROR_RESPONSES)
def xml2json_url(req: FetchRequest, strip_namespaces: Optional[bool] = None):
    """Fetch the XML from a URL, then convert it."""
    payload = _check_size(_fetch_remote_xml(req.url))
    return _convert(payload, strip_namespaces)


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run("api:app", host=settings.host, port=settings.port, reload=True)
