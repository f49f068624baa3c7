"""Certificate endpoints: upload, detail, signed file URLs and downloads."""

import mimetypes

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from credhub.config.app_config import load_app_config
from credhub.core.auth import ROLE_FACULTY
from credhub.core.certificate_schema import (
    CERTIFICATE_CATEGORIES,
    CertificateValidationError,
    UploadedFile,
    validate_certificate_form,
)
from credhub.core.certificates import (
    get_certificate,
    get_certificate_file_url,
    upload_certificate,
)
from credhub.core.storage import (
    InvalidSignedUrlError,
    StorageError,
    get_storage,
    verify_signed_token,
)
from credhub.db.certificates_repository import CertificateRecord
from credhub.db.users_repository import UserRecord
from credhub.utils.validators import CertificateNotFoundError
from credhub.web.deps import get_current_user, require_student
from credhub.web.schemas import (
    CategoryListResponse,
    CategoryResponse,
    CertificateResponse,
    FileUrlResponse,
    UploadResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["certificates"])


def _get_visible_certificate(certificate_id: str, user: UserRecord) -> CertificateRecord:
    """Faculty see every certificate, students only their own."""
    try:
        certificate = get_certificate(certificate_id)
    except CertificateNotFoundError:
        certificate = None

    if certificate is None or (
        user.role != ROLE_FACULTY and certificate.student_id != user.id
    ):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Certificate '{certificate_id}' not found",
        )
    return certificate


@router.get("/api/certificates/categories", response_model=CategoryListResponse)
async def list_categories() -> CategoryListResponse:
    """Certificate categories for the upload form."""
    return CategoryListResponse(
        categories=[
            CategoryResponse(value=value, label=label)
            for value, label in CERTIFICATE_CATEGORIES
        ]
    )


@router.post(
    "/api/certificates",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_certificate(
    title: str = Form(""),
    category: str = Form(""),
    issuer: str = Form(""),
    issue_date: str = Form(""),
    description: str | None = Form(None),
    file: UploadFile | None = File(None),
    user: UserRecord = Depends(require_student),
) -> UploadResponse:
    """Upload a certificate file for review."""
    uploaded = None
    if file is not None:
        uploaded = UploadedFile(
            filename=file.filename or "",
            content_type=file.content_type or "",
            content=await file.read(),
        )

    try:
        form = validate_certificate_form(
            title=title,
            category=category,
            issuer=issuer,
            issue_date=issue_date,
            file=uploaded,
            description=description,
        )
    except CertificateValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Invalid certificate form", "errors": e.errors},
        )

    result = upload_certificate(user.id, form, user)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)

    return UploadResponse(certificate_id=result.certificate_id)


@router.get("/api/certificates/{certificate_id}", response_model=CertificateResponse)
async def certificate_detail(
    certificate_id: str,
    user: UserRecord = Depends(get_current_user),
) -> CertificateResponse:
    """Get one certificate."""
    return CertificateResponse.model_validate(_get_visible_certificate(certificate_id, user))


@router.get("/api/certificates/{certificate_id}/file-url", response_model=FileUrlResponse)
async def certificate_file_url(
    certificate_id: str,
    user: UserRecord = Depends(get_current_user),
) -> FileUrlResponse:
    """Get a signed preview/download URL for the certificate file."""
    certificate = _get_visible_certificate(certificate_id, user)
    expires_in = load_app_config().storage.signed_url_ttl_seconds

    url = get_certificate_file_url(certificate.file_path, expires_in)
    if url is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unable to load certificate preview",
        )
    return FileUrlResponse(url=url, expires_in=expires_in)


@router.get("/api/files/{file_path:path}")
async def download_file(file_path: str, token: str = Query(...)) -> Response:
    """Serve a stored file for a valid signed URL."""
    try:
        verify_signed_token(file_path, token)
    except InvalidSignedUrlError as e:
        logger.info("files.signed_url_rejected", path=file_path, error=str(e))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired URL")
    except StorageError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid path")

    try:
        content = get_storage().open(file_path)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    media_type = mimetypes.guess_type(file_path)[0] or "application/octet-stream"
    cache_control = load_app_config().storage.cache_control
    return Response(
        content=content,
        media_type=media_type,
        headers={"Cache-Control": f"max-age={cache_control}"},
    )
