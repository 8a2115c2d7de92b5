import logging
from datetime import date, datetime
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse, Response, StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from config import get_settings
from csrf import CSRF_HEADER, generate_csrf_token, validate_csrf_token
from database import get_db
from models import Owner
from receipt_analysis import ReceiptAnalyzer
from schemas import (
    AnalyzeIn,
    ReceiptAnalysis,
    ReceiptIn,
    ReceiptOut,
    ReceiptUpdate,
    ReportFilter,
    RestoreIn,
    SummaryOut,
)
from services import (
    BackupService,
    ReceiptService,
    ReportService,
    document_filename,
    spreadsheet_filename,
)
from uploads import UploadNotFound, UploadStore

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

app = FastAPI(title="TaxEaze")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# query parameter spellings used by older clients
_FILTER_ALIASES = {"startDate": "start_date", "endDate": "end_date", "userId": "owner"}


def filter_from_request(request: Request) -> ReportFilter:
    params: dict[str, str] = {}
    for key, value in request.query_params.items():
        if value == "":
            continue
        params[_FILTER_ALIASES.get(key, key)] = value
    try:
        return ReportFilter.model_validate(params)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def require_csrf(request: Request) -> None:
    if not validate_csrf_token(request.headers.get(CSRF_HEADER, "")):
        raise HTTPException(status_code=400, detail="Invalid CSRF token")


async def _json_body(request: Request) -> dict:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Expected a JSON object")
    return payload


def report_service(db: Session, report_filter: ReportFilter) -> ReportService:
    return ReportService(db, report_filter.owner, brand=get_settings().report_brand)


def _download(content: bytes, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
        },
    )


@app.get("/api/csrf-token")
def csrf_token():
    return {"csrf_token": generate_csrf_token()}


@app.get("/api/receipts", response_model=list[ReceiptOut])
def list_receipts(
    report_filter: ReportFilter = Depends(filter_from_request),
    db: Session = Depends(get_db),
):
    return ReceiptService(db).list(report_filter)


@app.post("/api/receipts", response_model=ReceiptOut, status_code=201)
async def create_receipt(
    request: Request,
    _: None = Depends(require_csrf),
    db: Session = Depends(get_db),
):
    payload = await _json_body(request)
    try:
        data = ReceiptIn.model_validate(payload)
        receipt = ReceiptService(db).create(data)
    except (ValidationError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logging.info(
        f"receipt_created: id={receipt.id} owner={receipt.owner.value} "
        f"amount_cents={receipt.amount_cents}"
    )
    return receipt


@app.get("/api/receipts/summary", response_model=SummaryOut)
def receipts_summary(
    report_filter: ReportFilter = Depends(filter_from_request),
    db: Session = Depends(get_db),
):
    return report_service(db, report_filter).get_summary(report_filter)


@app.get("/api/receipts/export")
def export_spreadsheet(
    report_filter: ReportFilter = Depends(filter_from_request),
    db: Session = Depends(get_db),
):
    start_time = datetime.now()
    try:
        content = report_service(db, report_filter).export_spreadsheet(report_filter)
    except Exception as exc:
        logging.exception("Error generating spreadsheet export")
        raise HTTPException(status_code=500, detail="Failed to export receipts") from exc
    duration = (datetime.now() - start_time).total_seconds()
    logging.info(
        f"report_generated: kind=xlsx size_bytes={len(content)} duration={duration:.2f}s"
    )
    return _download(content, XLSX_MEDIA_TYPE, spreadsheet_filename(report_filter))


@app.get("/api/receipts/export-pdf")
def export_document(
    report_filter: ReportFilter = Depends(filter_from_request),
    db: Session = Depends(get_db),
):
    start_time = datetime.now()
    try:
        content = report_service(db, report_filter).export_document(report_filter)
    except Exception as exc:
        logging.exception("Error generating PDF report")
        raise HTTPException(status_code=500, detail="Failed to generate PDF") from exc
    duration = (datetime.now() - start_time).total_seconds()
    logging.info(
        f"report_generated: kind=pdf size_bytes={len(content)} duration={duration:.2f}s"
    )
    return _download(content, "application/pdf", document_filename(report_filter))


@app.post("/api/receipts/analyze", response_model=ReceiptAnalysis)
async def analyze_receipt(
    request: Request,
    _: None = Depends(require_csrf),
):
    payload = await _json_body(request)
    try:
        data = AnalyzeIn.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid input") from exc
    try:
        image_path = UploadStore().path_for_url(data.image_url)
    except UploadNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    try:
        return ReceiptAnalyzer().analyze(image_path)
    except RuntimeError as exc:
        logging.exception("Error analyzing receipt")
        raise HTTPException(status_code=502, detail="Failed to analyze receipt") from exc


@app.get("/api/receipts/{receipt_id}", response_model=ReceiptOut)
def get_receipt(receipt_id: int, db: Session = Depends(get_db)):
    try:
        return ReceiptService(db).get(receipt_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.put("/api/receipts/{receipt_id}", response_model=ReceiptOut)
async def update_receipt(
    receipt_id: int,
    request: Request,
    _: None = Depends(require_csrf),
    db: Session = Depends(get_db),
):
    payload = await _json_body(request)
    service = ReceiptService(db)
    try:
        service.get(receipt_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    try:
        return service.update(receipt_id, ReceiptUpdate.model_validate(payload))
    except (ValidationError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/api/receipts/{receipt_id}", status_code=204)
def delete_receipt(
    receipt_id: int,
    _: None = Depends(require_csrf),
    db: Session = Depends(get_db),
):
    try:
        ReceiptService(db).delete(receipt_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.post("/api/upload")
async def upload_image(
    file: UploadFile = File(...),
    _: None = Depends(require_csrf),
):
    content = await file.read()
    try:
        url = UploadStore().save(file.filename or "", file.content_type, content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"url": url, "filename": url.rsplit("/", 1)[-1]}


@app.get("/uploads/{name}")
def serve_upload(name: str):
    try:
        return FileResponse(UploadStore().path_for(name))
    except UploadNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/backup")
def download_backup(owner: Optional[Owner] = None, db: Session = Depends(get_db)):
    backup = BackupService(db).backup(owner)
    filename = f"receipts-backup-{date.today().isoformat()}.json"
    return JSONResponse(
        backup, headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@app.post("/api/restore")
async def restore_backup(
    request: Request,
    _: None = Depends(require_csrf),
    db: Session = Depends(get_db),
):
    payload = await _json_body(request)
    try:
        data = RestoreIn.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid backup file format") from exc
    imported, skipped = BackupService(db).restore(data.receipts, data.owner)
    logging.info(f"backup_restored: imported={imported} skipped={skipped}")
    return {"imported": imported, "skipped": skipped}
