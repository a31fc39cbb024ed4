"""Report generation routes returning downloadable PDF, Excel or CSV files."""
import io
import logging
import unicodedata
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from bnbmargins.api.dependencies import get_owner_id, get_report_generator
from bnbmargins.api.rate_limit import REPORT_RATE, limiter
from bnbmargins.reporting.generator import (
    QUICK_REPORTS,
    GeneratedReport,
    ReportDataError,
    ReportGenerator,
)
from bnbmargins.reporting.models import ReportDescriptor

router = APIRouter()
logger = logging.getLogger(__name__)


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the UTF-8 original (RFC 6266)."""
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = "".join(char if char.isprintable() and char not in "\"\\" else "_" for char in fallback)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _download(report: GeneratedReport) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(report.content),
        media_type=report.media_type,
        headers={
            "Content-Disposition": _content_disposition(report.filename),
            "X-Report-Sample-Data": str(report.context.used_sample_data).lower(),
        },
    )


@router.get("/quick")
def list_quick_reports() -> dict:
    """Available quick-report presets."""
    return {
        kind: {
            "title": preset["title"],
            "type": preset["type"].value,
            "format": preset["format"].value,
        }
        for kind, preset in QUICK_REPORTS.items()
    }


@router.post("/generate")
@limiter.limit(REPORT_RATE)
def generate_report(
    request: Request,
    descriptor: ReportDescriptor,
    generator: ReportGenerator = Depends(get_report_generator),
    owner_id: str = Depends(get_owner_id),
) -> StreamingResponse:
    """Generate a report for the described period, properties and format."""
    try:
        report = generator.generate(descriptor, owner_id)
    except ReportDataError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return _download(report)


@router.post("/quick/{kind}")
@limiter.limit(REPORT_RATE)
def generate_quick_report(
    request: Request,
    kind: str,
    generator: ReportGenerator = Depends(get_report_generator),
    owner_id: str = Depends(get_owner_id),
) -> StreamingResponse:
    """Generate one of the named quick-report presets for the current period."""
    if kind not in QUICK_REPORTS:
        raise HTTPException(status_code=404, detail=f"Unknown quick report type: {kind}")
    try:
        report = generator.generate_quick(kind, owner_id)
    except ReportDataError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return _download(report)
