"""
FastAPI routes for ledger upload and statement download.
Thin transport layer: marshals bytes in and out of StatementService.
"""
import asyncio
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import FileResponse, HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from core.config import get_settings
from core.exceptions import DataNotFoundError, IngestionError, RenderError, StorageError
from core.exporters import XLSX_MEDIA_TYPE
from core.logger import setup_logger
from services.staging import StagingStore
from services.statement_service import StatementService

logger = setup_logger(__name__)
settings = get_settings()

VERSION = "1.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="Cash Flow Statement Generator",
    description="Convert ledger and balance sheet exports into statements of cash flows",
    version=VERSION
)

# Setup templates
templates_dir = Path(__file__).parent.parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))

statement_service = StatementService()
staging_store = StagingStore()


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Render upload form."""
    return templates.TemplateResponse(request, "index.html", {"title": settings.app_name})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "cash_flow_statement",
        "version": VERSION
    }


@app.get("/favicon.ico")
async def favicon():
    """Return empty response for favicon to avoid 404 errors."""
    return Response(status_code=204)


def validate_file_extension(filename: str) -> None:
    """
    Validate file has correct extension.

    Raises:
        HTTPException: If file extension is invalid
    """
    if not filename or not filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type: {filename}. Only .csv is supported."
        )


def content_disposition(filename: str) -> str:
    """
    Build an attachment header that survives any upload name.

    Non-ASCII names go in an RFC 5987 filename* parameter, with an ASCII
    fallback for clients that ignore it.
    """
    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    fallback = filename.encode("ascii", "ignore").decode("ascii").replace('"', "")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


async def run_pipeline(content: bytes, output_format: str):
    """Run the synchronous pipeline off the event loop and map its errors to HTTP."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, statement_service.convert, content, output_format)
    except IngestionError as e:
        logger.warning(f"Failed to parse CSV: {e.message}")
        raise HTTPException(status_code=400, detail=f"Failed to parse CSV: {e.message}")
    except RenderError as e:
        logger.error(f"Failed to create statement: {e.message}")
        raise HTTPException(status_code=500, detail=f"Failed to create Excel file: {e.message}")


@app.post("/upload")
async def upload_file(csvfile: UploadFile = File(...)):
    """
    Convert an uploaded CSV and stage the workbook for download.

    Returns:
        Staged filename and conversion statistics
    """
    logger.info(f"Received file: {csvfile.filename}")
    validate_file_extension(csvfile.filename)

    content = await csvfile.read()
    result = await run_pipeline(content, "xlsx")

    loop = asyncio.get_running_loop()
    try:
        path = await loop.run_in_executor(None, staging_store.stage, result["content"])
    except StorageError as e:
        raise HTTPException(status_code=500, detail=e.message)

    staging_store.schedule_cleanup(path)

    return {
        "message": "File processed successfully",
        "filename": path.name,
        "original": csvfile.filename,
        "stats": result["stats"],
    }


@app.post("/convert")
async def convert_file(
    csvfile: UploadFile = File(...),
    format: str = Query(default="xlsx", pattern="^(xlsx|csv)$")
):
    """
    Convert an uploaded CSV and return the statement directly.

    Args:
        csvfile: Ledger or balance sheet CSV export
        format: "xlsx" (default) or "csv"
    """
    logger.info(f"Received file for direct conversion: {csvfile.filename} ({format})")
    validate_file_extension(csvfile.filename)

    content = await csvfile.read()
    result = await run_pipeline(content, format)

    stem = Path(csvfile.filename).stem or "ledger"
    media_type = "text/csv" if format == "csv" else XLSX_MEDIA_TYPE
    return Response(
        content=result["content"],
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(f"{stem}_cash_flow.{format}")}
    )


@app.get("/download/{filename}")
async def download_file(filename: str):
    """
    Download a staged statement.

    Args:
        filename: Name returned by /upload
    """
    try:
        file_path = staging_store.resolve(filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(
        path=str(file_path),
        filename=filename,
        media_type=XLSX_MEDIA_TYPE
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
