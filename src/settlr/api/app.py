"""FastAPI application for the Settlr escrow dashboard.

Usage (from project root, after installing the package):

    uvicorn settlr.api.app:app --reload

Pages under ``/`` are rendered with Jinja2; JSON endpoints live under
``/api``. Everything except the login pages requires a ``session`` cookie.
"""

import logging
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import HTTPException
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..auth.middleware import SESSION_COOKIE, SessionGateMiddleware
from ..exceptions import (
    AuthError,
    DocumentGenerationError,
    DocumentNotFoundError,
    EscrowNotFoundError,
    InvalidStatusError,
    ParticipantNotFoundError,
)
from ..generators.prompts import CHAT_PROMPT, DEAL_ANALYSIS_PROMPT, format_user_prompt
from ..interfaces.identity import AuthenticatedUser
from ..models.document import DealFile, EscrowData
from ..models.enums import DocumentType
from ..models.escrow import DEFAULT_CURRENCY, EscrowContract
from ..parsers.base import UPLOAD_FORMATS
from ..parsers.exceptions import ParseError
from .dependencies import Services, current_user, get_services, optional_user


logger = logging.getLogger(__name__)

GENERATION_FAILED = "Failed to generate document"

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


app = FastAPI(title="Settlr API", version="0.1.0")
app.add_middleware(SessionGateMiddleware)


# ---------------------------------------------------------------------------
# Error responses
# ---------------------------------------------------------------------------

def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(EscrowNotFoundError)
@app.exception_handler(ParticipantNotFoundError)
@app.exception_handler(DocumentNotFoundError)
async def not_found_handler(request: Request, exc) -> JSONResponse:
    return _error(404, exc.message)


@app.exception_handler(InvalidStatusError)
async def invalid_status_handler(request: Request, exc: InvalidStatusError) -> JSONResponse:
    return _error(400, exc.message)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return _error(401, exc.message, code=exc.code)


@app.exception_handler(DocumentGenerationError)
async def generation_error_handler(request: Request, exc: DocumentGenerationError) -> JSONResponse:
    logger.error(f"Error generating document: {exc.message} {exc.details}")
    return _error(500, GENERATION_FAILED)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_participant(escrow: EscrowContract, user: AuthenticatedUser) -> None:
    if escrow.has_participant(user.email) or escrow.created_by == user.uid:
        return
    if any(p.user_id == user.uid for p in escrow.participants):
        return
    raise HTTPException(status_code=403, detail="You are not a participant in this escrow")


def _load_escrow(services: Services, escrow_id: str, user: AuthenticatedUser) -> EscrowContract:
    escrow = services.escrow_manager.get_escrow(escrow_id)
    _require_participant(escrow, user)
    return escrow


def _parse_document_type(value: Any) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unsupported document type: {value}")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {value}")


def _set_session_cookie(response: Response, services: Services, cookie: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        cookie,
        max_age=int(timedelta(days=services.settings.session_max_age_days).total_seconds()),
        httponly=True,
        secure=services.settings.secure_cookies,
        samesite="lax",
        path="/",
    )


def _start_session(services: Services, user: AuthenticatedUser) -> JSONResponse:
    cookie = services.identity_provider.create_session_cookie(
        user.id_token, timedelta(days=services.settings.session_max_age_days)
    )
    profile = services.user_store.create_profile(user.uid, user.email, user.display_name)
    services.audit_logger.log_user_signed_in(user.uid, user.email)

    response = JSONResponse(status_code=200, content={"user": profile.to_dict()})
    _set_session_cookie(response, services, cookie)
    return response


def _credentials(payload: Dict[str, Any]) -> tuple[str, str]:
    email = (payload or {}).get("email")
    password = (payload or {}).get("password")
    if not email or not password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    return email, password


# ---------------------------------------------------------------------------
# Document generation
# ---------------------------------------------------------------------------

@app.post("/api/generate-documents")
def generate_documents(
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Generate one document for a deal and store it under the deal id.

    The response carries the stored document; ``id`` is omitted when the
    document could not be saved.
    """
    doc_type, data, deal_id = payload.get("type"), payload.get("data"), payload.get("dealId")
    if not doc_type or not data or not deal_id:
        return _error(400, "Missing required fields: type, data, or dealId")

    deal_id = str(deal_id)
    if services.escrow_store.exists(deal_id):
        _load_escrow(services, deal_id, user)

    document_type = _parse_document_type(doc_type)
    try:
        escrow_data = EscrowData.from_dict(data)
    except ValueError as exc:
        return _error(400, str(exc))

    document = services.generator.generate_and_store(
        document_type, escrow_data, deal_id, user_id=user.uid
    )
    return JSONResponse(status_code=200, content=document.to_dict())


@app.post("/api/escrow")
def generate_escrow_document(
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Generate a document without storing it."""
    doc_type, data = payload.get("type"), payload.get("data")
    if not doc_type or not data:
        return _error(400, "Type and data are required")

    document_type = _parse_document_type(doc_type)
    try:
        escrow_data = EscrowData.from_dict(data)
    except ValueError as exc:
        return _error(400, str(exc))

    content = services.generator.generate(document_type, escrow_data)
    return JSONResponse(status_code=200, content={"document": content})


@app.post("/api/chat")
def chat(
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    prompt = (payload.get("prompt") or "").strip()
    if not prompt:
        return _error(400, "Prompt is required")
    response = services.llm_client.complete(CHAT_PROMPT, prompt)
    return JSONResponse(status_code=200, content={"response": response})


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

@app.post("/api/auth/login")
def login(
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
) -> JSONResponse:
    email, password = _credentials(payload)
    user = services.identity_provider.sign_in(email, password)
    return _start_session(services, user)


@app.post("/api/auth/signup")
def signup(
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
) -> JSONResponse:
    email, password = _credentials(payload)
    user = services.identity_provider.sign_up(email, password)
    return _start_session(services, user)


@app.post("/api/auth/logout")
def logout(
    request: Request,
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Revoke the user's sessions and clear the session cookie."""
    user = optional_user(request, services)
    if user is not None:
        services.identity_provider.revoke(user.uid)
        logger.info(f"Logout successful: {user.email}")

    response = JSONResponse(status_code=200, content={"success": True})
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response


@app.get("/api/auth/me")
def me(
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    profile = services.user_store.get_profile(user.uid)
    if profile is None:
        profile = services.user_store.create_profile(user.uid, user.email, user.display_name)
    return JSONResponse(status_code=200, content={"user": profile.to_dict()})


# ---------------------------------------------------------------------------
# Escrows
# ---------------------------------------------------------------------------

@app.get("/api/escrows")
def list_escrows(
    search: Optional[str] = None,
    status: Optional[str] = None,
    sort_by: str = "created_at",
    descending: bool = True,
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    try:
        escrows = services.escrow_manager.get_user_escrows(
            user.email, search=search, status=status, sort_by=sort_by, descending=descending
        )
    except ValueError as exc:
        return _error(400, str(exc))
    return JSONResponse(status_code=200, content={"escrows": [e.to_dict() for e in escrows]})


@app.post("/api/escrows")
def create_escrow(
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Create an escrow from the dashboard form."""
    participants = payload.get("participants") or []
    if not isinstance(participants, list):
        return _error(400, "Participants must be a list")
    try:
        amount = float(payload.get("amount") or 0)
    except (TypeError, ValueError):
        return _error(400, f"Invalid amount: {payload.get('amount')!r}")

    try:
        escrow = services.escrow_manager.create_escrow(
            title=payload.get("title") or "",
            amount=amount,
            participants=participants,
            currency=payload.get("currency") or DEFAULT_CURRENCY,
            terms=payload.get("terms") or [],
            release_conditions=payload.get("release_conditions")
            or payload.get("releaseConditions")
            or [],
            expires_at=_parse_datetime(payload.get("expires_at") or payload.get("expiresAt")),
            created_by=user.uid,
        )
    except ValueError as exc:
        return _error(400, str(exc))
    return JSONResponse(status_code=201, content=escrow.to_dict())


@app.get("/api/escrows/{escrow_id}")
def get_escrow(
    escrow_id: str,
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    escrow = _load_escrow(services, escrow_id, user)
    return JSONResponse(status_code=200, content=escrow.to_dict())


@app.patch("/api/escrows/{escrow_id}")
def update_escrow(
    escrow_id: str,
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    _load_escrow(services, escrow_id, user)
    updates = dict(payload)
    if "expires_at" in updates:
        updates["expires_at"] = _parse_datetime(updates["expires_at"])
    try:
        escrow = services.escrow_manager.update_escrow(escrow_id, updates, user_id=user.uid)
    except ValueError as exc:
        return _error(400, str(exc))
    return JSONResponse(status_code=200, content=escrow.to_dict())


@app.post("/api/escrows/{escrow_id}/status")
def update_status(
    escrow_id: str,
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    _load_escrow(services, escrow_id, user)
    if not payload.get("status"):
        return _error(400, "Status is required")
    escrow = services.escrow_manager.update_escrow_status(
        escrow_id, payload["status"], user_id=user.uid
    )
    return JSONResponse(status_code=200, content=escrow.to_dict())


@app.put("/api/escrows/{escrow_id}/participants/{participant_id}/key-points")
def update_key_points(
    escrow_id: str,
    participant_id: str,
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    _load_escrow(services, escrow_id, user)
    key_points = payload.get("key_points", payload.get("keyPoints"))
    if not isinstance(key_points, list):
        return _error(400, "key_points must be a list")
    escrow = services.escrow_manager.update_participant_key_points(
        escrow_id, participant_id, key_points
    )
    return JSONResponse(status_code=200, content=escrow.to_dict())


@app.post("/api/escrows/{escrow_id}/sign")
def sign_escrow(
    escrow_id: str,
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Record the current user's signature; no on-chain deployment happens."""
    _load_escrow(services, escrow_id, user)
    try:
        escrow = services.escrow_manager.sign_escrow(
            escrow_id, user.uid, payload.get("signature") or "", email=user.email
        )
    except ValueError as exc:
        return _error(400, str(exc))
    return JSONResponse(status_code=200, content=escrow.to_dict())


# ---------------------------------------------------------------------------
# Generated documents
# ---------------------------------------------------------------------------

@app.get("/api/escrows/{escrow_id}/documents")
def list_documents(
    escrow_id: str,
    type: Optional[str] = None,
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    _load_escrow(services, escrow_id, user)
    document_type = _parse_document_type(type) if type else None
    documents = services.document_store.list_for_deal(escrow_id, document_type)
    return JSONResponse(
        status_code=200, content={"documents": [d.to_dict() for d in documents]}
    )


@app.post("/api/escrows/{escrow_id}/documents/generate")
def generate_all_documents(
    escrow_id: str,
    fill_missing: bool = True,
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Run the full document pipeline for a deal."""
    _load_escrow(services, escrow_id, user)
    result = services.pipeline.process(escrow_id, fill_missing=fill_missing, user_id=user.uid)
    if not result.documents:
        return _error(500, GENERATION_FAILED, errors=result.errors)
    return JSONResponse(status_code=200, content=result.to_dict())


@app.get("/api/escrows/{escrow_id}/documents/{document_id}/download")
def download_document(
    escrow_id: str,
    document_id: str,
    format: str = "docx",
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> FileResponse:
    """Download a generated document as .docx or plain text."""
    if format not in {"docx", "txt"}:
        raise HTTPException(status_code=400, detail="format must be 'docx' or 'txt'")

    _load_escrow(services, escrow_id, user)
    document = services.document_store.get(document_id)
    if document.deal_id != escrow_id:
        raise HTTPException(status_code=404, detail="Document not found for this escrow")

    if format == "docx":
        path = Path(services.exporter.export_docx(document))
        media_type = DOCX_MEDIA_TYPE
    else:
        path = Path(services.exporter.export_text(document))
        media_type = "text/plain"

    return FileResponse(path=path, filename=path.name, media_type=media_type)


# ---------------------------------------------------------------------------
# Deal files
# ---------------------------------------------------------------------------

@app.post("/api/escrows/{escrow_id}/files")
def upload_deal_file(
    escrow_id: str,
    file: UploadFile = File(..., description="Deal file (.txt/.pdf/.doc/.docx/.md)"),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Store an uploaded deal file and extract its text where possible."""
    _load_escrow(services, escrow_id, user)

    filename = Path(file.filename or "").name
    suffix = Path(filename).suffix.lower()
    if suffix not in UPLOAD_FORMATS:
        return _error(400, f"Unsupported file type '{suffix}'. Allowed: {', '.join(UPLOAD_FORMATS)}")

    content = file.file.read()
    limit = services.settings.max_upload_bytes
    if len(content) > limit:
        return _error(413, f"File exceeds the {services.settings.max_upload_mb} MB limit")

    file_id = str(uuid.uuid4())
    target_dir = Path(services.settings.upload_dir) / escrow_id
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{file_id}{suffix}"
    target.write_bytes(content)

    extracted = ""
    try:
        extracted = services.parser.parse(str(target)).text
    except ParseError as exc:
        logger.warning(f"Could not extract text from {filename}: {exc}")

    try:
        stored = services.deal_file_store.save(DealFile(
            id=file_id,
            deal_id=escrow_id,
            filename=filename,
            file_type=suffix.lstrip("."),
            size=len(content),
            storage_path=str(target),
            uploaded_by=user.uid,
            extracted_text=extracted,
        ))
    except Exception:
        target.unlink(missing_ok=True)
        raise
    services.audit_logger.log_file_uploaded(
        escrow_id, stored.id, filename, stored.size, user_id=user.uid
    )
    return JSONResponse(status_code=201, content=stored.to_dict())


@app.get("/api/escrows/{escrow_id}/files")
def list_deal_files(
    escrow_id: str,
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    _load_escrow(services, escrow_id, user)
    files = services.deal_file_store.list_for_deal(escrow_id)
    return JSONResponse(status_code=200, content={"files": [f.to_dict() for f in files]})


@app.delete("/api/escrows/{escrow_id}/files/{file_id}")
def delete_deal_file(
    escrow_id: str,
    file_id: str,
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    _load_escrow(services, escrow_id, user)
    if not any(f.id == file_id for f in services.deal_file_store.list_for_deal(escrow_id)):
        raise HTTPException(status_code=404, detail="File not found for this escrow")

    removed = services.deal_file_store.delete(file_id)
    Path(removed.storage_path).unlink(missing_ok=True)
    return JSONResponse(status_code=200, content=removed.to_dict())


@app.post("/api/escrows/{escrow_id}/analyze")
def analyze_deal(
    escrow_id: str,
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Answer a prompt about the deal using the text of its uploaded files."""
    _load_escrow(services, escrow_id, user)
    prompt = (payload.get("prompt") or "").strip()
    if not prompt:
        return _error(400, "Prompt is required")

    data = services.escrow_manager.get_deal_data(escrow_id)
    sections = [format_user_prompt(data)]
    for deal_file in services.deal_file_store.list_for_deal(escrow_id):
        if deal_file.extracted_text:
            sections.append(f"--- {deal_file.filename} ---\n{deal_file.extracted_text}")
    sections.append(f"Request: {prompt}")

    response = services.llm_client.complete(DEAL_ANALYSIS_PROMPT, "\n\n".join(sections))
    return JSONResponse(status_code=200, content={"response": response})


@app.get("/api/escrows/{escrow_id}/missing-info")
def missing_info(
    escrow_id: str,
    analyze: bool = False,
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    """Required deal fields that are empty, with model suggestions on request."""
    _load_escrow(services, escrow_id, user)
    data = services.escrow_manager.get_deal_data(escrow_id)
    missing = services.validator.find_missing_fields(data)
    suggestions: Dict[str, Any] = {}
    if analyze and missing:
        analysis = services.validator.analyze(data)
        missing = missing + [m for m in analysis.missing_fields if m not in missing]
        suggestions = analysis.suggestions
    return JSONResponse(
        status_code=200, content={"missingFields": missing, "suggestions": suggestions}
    )


@app.get("/api/escrows/{escrow_id}/audit")
def export_audit_log(
    escrow_id: str,
    format: str = "json",
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> Response:
    _load_escrow(services, escrow_id, user)
    try:
        content = services.audit_logger.export_log(escrow_id, format=format)
    except ValueError as exc:
        return _error(400, str(exc))
    media_type = "application/json" if format == "json" else "text/csv"
    return Response(content=content, media_type=media_type)


@app.get("/api/dashboard/stats")
def dashboard_stats(
    services: Services = Depends(get_services),
    user: AuthenticatedUser = Depends(current_user),
) -> JSONResponse:
    stats = services.escrow_manager.get_dashboard_stats(user.email)
    return JSONResponse(status_code=200, content=stats.to_dict())


@app.get("/health")
def health(services: Services = Depends(get_services)) -> JSONResponse:
    database_ok = services.db_manager.health_check()
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={"status": "ok" if database_ok else "degraded", "database": database_ok},
    )


# ---------------------------------------------------------------------------
# HTML pages
# ---------------------------------------------------------------------------

@app.get("/", response_class=HTMLResponse)
def home_page(request: Request, services: Services = Depends(get_services)) -> HTMLResponse:
    user = optional_user(request, services)
    return HTMLResponse(services.views.render_home(user.email if user else None))


@app.get("/login", response_class=HTMLResponse)
def login_page(
    request: Request,
    services: Services = Depends(get_services),
) -> HTMLResponse:
    return HTMLResponse(services.views.render_login(from_path=request.query_params.get("from")))


@app.get("/signup", response_class=HTMLResponse)
def signup_page(services: Services = Depends(get_services)) -> HTMLResponse:
    return HTMLResponse(services.views.render_login(mode="signup"))


@app.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(
    request: Request,
    search: str = "",
    status: str = "",
    services: Services = Depends(get_services),
):
    user = optional_user(request, services)
    if user is None:
        return RedirectResponse(url="/login?from=/dashboard", status_code=307)

    try:
        escrows = services.escrow_manager.get_user_escrows(
            user.email, search=search or None, status=status or None
        )
    except InvalidStatusError:
        escrows = services.escrow_manager.get_user_escrows(user.email, search=search or None)
        status = ""

    return HTMLResponse(services.views.render_dashboard(
        user_email=user.email,
        stats=services.escrow_manager.get_dashboard_stats(user.email),
        escrows=escrows,
        search=search,
        status=status,
    ))


@app.get("/escrow/{escrow_id}", response_class=HTMLResponse)
def escrow_page(
    escrow_id: str,
    request: Request,
    services: Services = Depends(get_services),
):
    user = optional_user(request, services)
    if user is None:
        return RedirectResponse(url=f"/login?from=/escrow/{escrow_id}", status_code=307)

    escrow = _load_escrow(services, escrow_id, user)
    documents = {}
    for document_type in DocumentType:
        latest = services.document_store.latest_for_deal(escrow_id, document_type)
        if latest is not None:
            documents[document_type.value] = latest

    return HTMLResponse(services.views.render_escrow_detail(
        escrow=escrow,
        user_email=user.email,
        documents=documents,
        files=services.deal_file_store.list_for_deal(escrow_id),
        missing_fields=services.validator.find_missing_fields(EscrowData.from_escrow(escrow)),
    ))
