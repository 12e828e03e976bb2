import logging
import secrets
from typing import Any, Optional

import uvicorn
from fastapi import (
    APIRouter,
    Body,
    Depends,
    FastAPI,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import (
    HTMLResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
    StreamingResponse,
)
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from passlib.context import CryptContext
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

import pages
from codes import code128_svg, qr_png
from config import DEFAULT_ADMIN_PASSWORD, Settings
from csv_io import export_csv, import_csv
from directory import Attendee, AttendeeDirectory, Role, parse_attendee
from errors import (
    AttendeeNotFound,
    LayoutSaveError,
    RasterizeError,
    StorageError,
    ValidationError,
)
from layout import LayoutStore
from logging_setup import setup_logging
from renderer import badge_html, render

logger = logging.getLogger(__name__)

security = HTTPBasic()
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
router = APIRouter()

SAMPLE_ATTENDEE = Attendee(
    id=0,
    name="Sample Name",
    email="sample@example.com",
    company="Sample Co",
    mobile="9999999999",
    designation="Guest",
    role=Role.DELEGATE,
    barcode="SAMPLE123",
)


# -------------------
# --- DEPENDENCIES ---
# -------------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_directory(request: Request) -> AttendeeDirectory:
    return request.app.state.directory


def get_layouts(request: Request) -> LayoutStore:
    return request.app.state.layouts


def verify_credentials(
    request: Request, credentials: HTTPBasicCredentials = Depends(security)
) -> str:
    """Verify provided HTTP Basic credentials against the configured admin account."""
    settings = get_settings(request)
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.admin_username.encode("utf-8")
    )
    password_ok = pwd_context.verify(credentials.password, request.app.state.admin_hash)
    if not (user_ok and password_ok):
        logger.warning("Rejected admin login for %r", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": 'Basic realm="Admin Area"'},
        )
    return credentials.username


# -------------------
# --- REGISTRATION ---
# -------------------
@router.get("/", response_class=HTMLResponse, tags=["Registration"])
async def homepage():
    """Registration form."""
    return HTMLResponse(pages.home_page())


@router.post("/register", tags=["Registration"])
def register(
    name: str = Form(""),
    email: str = Form(""),
    company: str = Form(""),
    mobile: str = Form(""),
    designation: str = Form(""),
    role: str = Form(""),
    directory: AttendeeDirectory = Depends(get_directory),
):
    """Create an attendee with the next free id and send the browser to the badge."""
    try:
        data = parse_attendee(
            name=name,
            email=email,
            company=company,
            mobile=mobile,
            designation=designation,
            role=role,
        )
    except ValidationError as e:
        logger.info("Registration rejected: %s", e)
        return HTMLResponse(
            pages.message_page("Registration failed", "Name & Email required.", "/", "Try again"),
            status_code=400,
        )
    attendee = directory.register(data)
    return RedirectResponse(f"/print?id={attendee.id}", status_code=status.HTTP_303_SEE_OTHER)


# -------------------
# --- PRINTING ---
# -------------------
@router.get("/print", response_class=HTMLResponse, tags=["Printing"])
def print_badge(
    id: int,
    directory: AttendeeDirectory = Depends(get_directory),
    layouts: LayoutStore = Depends(get_layouts),
):
    """Badge print view; serving it marks the attendee as printed."""
    layout = layouts.load()
    try:
        directory.mark_printed(id)
        attendee = directory.get(id)
    except AttendeeNotFound:
        return HTMLResponse(
            pages.message_page("Not found", "Attendee not found."), status_code=404
        )
    badge = badge_html(layout, render(layout, attendee))
    return HTMLResponse(pages.print_page(attendee, badge))


@router.get("/barcode-img", tags=["Printing"])
def barcode_img(data: str = "", w: float = 90, h: float = 45, s: float = 1.0):
    """Code128 image for a barcode token."""
    try:
        svg = code128_svg(data, w, h, s)
    except RasterizeError:
        return PlainTextResponse("Barcode error", status_code=500)
    return Response(svg, media_type="image/svg+xml")


@router.get("/qr-img", tags=["Printing"])
def qr_img(data: str = "", size: int = 70):
    """QR image for a barcode token."""
    try:
        png = qr_png(data, size)
    except RasterizeError:
        return PlainTextResponse("QR error", status_code=500)
    return Response(png, media_type="image/png")


# -------------------
# --- SCANNING ---
# -------------------
def _check_in(directory: AttendeeDirectory, barcode: str, again: str) -> HTMLResponse:
    try:
        attendee = directory.check_in(barcode)
    except AttendeeNotFound:
        logger.info("Scan did not match any attendee")
        return HTMLResponse(
            pages.message_page("Not found", "No attendee has this barcode.", again, "Scan again"),
            status_code=404,
        )
    return HTMLResponse(pages.verified_page(attendee, again))


@router.get("/scan", response_class=HTMLResponse, tags=["Scanning"])
async def scan():
    """Page for USB (keyboard wedge) barcode scanners."""
    return HTMLResponse(pages.scan_page())


@router.post("/verify", response_class=HTMLResponse, tags=["Scanning"])
def verify(
    barcode: str = Form(""), directory: AttendeeDirectory = Depends(get_directory)
):
    """Check in the attendee whose barcode was typed or scanned."""
    return _check_in(directory, barcode, "/scan")


@router.get("/camera-scan", response_class=HTMLResponse, tags=["Scanning"])
async def camera_scan():
    """Camera scanning page; detected codes are sent to /verify-camera."""
    return HTMLResponse(pages.camera_scan_page())


@router.get("/verify-camera", response_class=HTMLResponse, tags=["Scanning"])
def verify_camera(barcode: str = "", directory: AttendeeDirectory = Depends(get_directory)):
    """Check in the attendee whose barcode the camera detected."""
    return _check_in(directory, barcode, "/camera-scan")


# -------------------
# --- ADMIN ENDPOINTS ---
# -------------------
@router.get("/admin", response_class=HTMLResponse, tags=["Admin"])
def admin_page(
    search: str = "",
    role: str = "",
    imported: Optional[int] = None,
    skipped: Optional[int] = None,
    user: str = Depends(verify_credentials),
    directory: AttendeeDirectory = Depends(get_directory),
):
    """Attendee listing with search, role filter, inline edit, delete and print."""
    attendees = directory.list(search=search, role=role)
    notice = None
    if imported is not None:
        notice = f"Imported {imported} attendees"
        if skipped:
            notice += f", skipped {skipped} rows without name or email"
        notice += "."
    return HTMLResponse(pages.admin_page(user, attendees, search.strip(), role, notice))


@router.post("/update", tags=["Admin"])
def update_attendee(
    id: int = Form(...),
    name: str = Form(""),
    email: str = Form(""),
    company: str = Form(""),
    mobile: str = Form(""),
    designation: str = Form(""),
    role: str = Form(""),
    user: str = Depends(verify_credentials),
    directory: AttendeeDirectory = Depends(get_directory),
):
    """Edit an attendee's details; id, barcode and status are kept."""
    try:
        data = parse_attendee(
            name=name,
            email=email,
            company=company,
            mobile=mobile,
            designation=designation,
            role=role,
        )
        directory.update(id, data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except AttendeeNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/delete", tags=["Admin"])
def delete_attendee(
    id: int = Form(...),
    user: str = Depends(verify_credentials),
    directory: AttendeeDirectory = Depends(get_directory),
):
    """Delete an attendee. Its id becomes free again, its barcode never does."""
    try:
        directory.delete(id)
    except AttendeeNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    logger.info("Attendee %d deleted by %s", id, user)
    return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/upload-csv", tags=["Admin"])
async def upload_csv(
    csvfile: UploadFile = File(...),
    user: str = Depends(verify_credentials),
    directory: AttendeeDirectory = Depends(get_directory),
):
    """Pre-register attendees from a CSV with name,email,company,mobile,designation,role."""
    content = await csvfile.read()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded") from e

    result = await run_in_threadpool(import_csv, text, directory)
    return RedirectResponse(
        f"/admin?imported={len(result.imported)}&skipped={len(result.skipped_rows)}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/export-csv", tags=["Admin"])
def export_attendees(
    user: str = Depends(verify_credentials),
    directory: AttendeeDirectory = Depends(get_directory),
):
    """Export all attendees, including printed/checked-in status, as a CSV file."""
    output = export_csv(directory.list())
    return StreamingResponse(
        output,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=attendees_export.csv"},
    )


# -------------------
# --- PRINT DESIGNER ---
# -------------------
class PreviewIn(BaseModel):
    """Layout being edited in the designer, and which attendee to preview it with."""

    layout: dict
    id: Optional[int] = None


def _preview_attendee(directory: AttendeeDirectory, attendee_id: Optional[int]) -> Attendee:
    if not attendee_id:
        return SAMPLE_ATTENDEE
    try:
        return directory.get(attendee_id)
    except AttendeeNotFound:
        return SAMPLE_ATTENDEE


@router.get("/print-designer", response_class=HTMLResponse, tags=["Designer"])
def print_designer(
    id: Optional[int] = None,
    user: str = Depends(verify_credentials),
    directory: AttendeeDirectory = Depends(get_directory),
    layouts: LayoutStore = Depends(get_layouts),
):
    """Layout editor with a live preview rendered by the same code as the print view."""
    layout = layouts.load()
    attendee = _preview_attendee(directory, id)
    badge = badge_html(layout, render(layout, attendee))
    return HTMLResponse(pages.designer_page(layout, attendee, id, badge))


@router.post("/api/preview", response_class=HTMLResponse, tags=["Designer"])
def preview(
    payload: PreviewIn,
    user: str = Depends(verify_credentials),
    directory: AttendeeDirectory = Depends(get_directory),
):
    """Badge markup for an unsaved layout."""
    attendee = _preview_attendee(directory, payload.id)
    return HTMLResponse(badge_html(payload.layout, render(payload.layout, attendee)))


@router.get("/api/layout", tags=["Designer"])
def get_layout(
    user: str = Depends(verify_credentials), layouts: LayoutStore = Depends(get_layouts)
):
    """Current layout document."""
    return layouts.load()


@router.post("/save-layout", response_class=PlainTextResponse, tags=["Designer"])
def save_layout(
    doc: Any = Body(...),
    user: str = Depends(verify_credentials),
    layouts: LayoutStore = Depends(get_layouts),
):
    """Replace the layout document wholesale."""
    try:
        layouts.save(doc)
    except LayoutSaveError as e:
        logger.error("Layout save error: %s", e)
        return PlainTextResponse("ERR", status_code=500)
    return PlainTextResponse("OK")


# -------------------
# --- HEALTH ---
# -------------------
@router.get("/api/health", tags=["Health"])
def health_check(directory: AttendeeDirectory = Depends(get_directory)):
    """Health check endpoint"""
    try:
        count = len(directory.all_ids())
    except StorageError as e:
        logger.error("Health check failed: %s", e)
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "database": "connected", "attendees": count}


# -------------------
# --- APP ---
# -------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one immutable ``Settings`` instance."""
    settings = settings or Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    directory = AttendeeDirectory(settings.db_path, settings.db_lock_path, settings.lock_timeout)
    directory.init_db()

    if settings.admin_password == DEFAULT_ADMIN_PASSWORD:
        logger.warning("Using the default admin password; set ADMIN_PASSWORD to change it")

    app = FastAPI(
        title="Event Badging",
        version="1.0.0",
        summary="Register attendees, print badges and check them in",
        description="Registration with gap-filling numeric ids, Code128/QR badges with a "
        "runtime-editable layout, USB and camera check-in, and an admin panel.",
        openapi_tags=[
            {"name": "Registration", "description": "Attendee self-registration"},
            {"name": "Printing", "description": "Badge print view and barcode images"},
            {"name": "Scanning", "description": "Check-in by barcode"},
            {"name": "Admin", "description": "Admin panel endpoints"},
            {"name": "Designer", "description": "Badge layout designer"},
            {"name": "Health", "description": "Service health"},
        ],
    )
    app.state.settings = settings
    app.state.directory = directory
    app.state.layouts = LayoutStore(settings.resolved_layout_path, settings.lock_timeout)
    app.state.admin_hash = pwd_context.hash(settings.admin_password)

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
        return HTMLResponse(
            pages.message_page("Storage error", "The operation could not be completed."),
            status_code=500,
        )

    app.include_router(router)
    logger.info("Event Badging ready, data directory %s", settings.data_dir.resolve())
    return app


if __name__ == "__main__":
    settings = Settings()
    setup_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
