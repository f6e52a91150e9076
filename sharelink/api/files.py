from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import RedirectResponse

from sharelink.api.deps import get_current_user, get_file_manager, get_mailer, get_optional_user
from sharelink.core.timeutils import utcnow
from sharelink.models.user import User
from sharelink.network.email_service import EmailService
from sharelink.schemas.common import StandardResponse
from sharelink.schemas.file import (
    ConfirmUploadOut,
    ConfirmUploadRequest,
    FileDetailsOut,
    FileListOut,
    FileSummaryOut,
    FileUpdate,
    UploadSlotOut,
    UploadSlotRequest,
)
from sharelink.services.files import FileManager, FilePatch

router = APIRouter()

# ============================================================================
# Upload protocol: slot -> direct PUT to storage -> confirm
# ============================================================================

@router.post("/getUploadUrl", response_model=StandardResponse[UploadSlotOut])
def get_upload_url(
    payload: UploadSlotRequest,
    files: FileManager = Depends(get_file_manager),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Reserve a file record and return a pre-signed PUT URL.

    The client uploads the bytes directly to storage with the same
    Content-Type it declared here.
    """
    file, upload_url = files.request_upload_slot(
        payload.file_name,
        payload.file_type,
        payload.file_size,
        user_id=current_user.id if current_user else None,
    )
    return StandardResponse(
        success=True,
        message="Upload URL generated",
        data=UploadSlotOut(upload_url=upload_url, file_id=file.id, expires_at=file.expires_at),
    )


@router.post("/confirmUpload/{file_id}", response_model=StandardResponse[ConfirmUploadOut])
def confirm_upload(
    file_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[ConfirmUploadRequest] = None,
    files: FileManager = Depends(get_file_manager),
    mailer: EmailService = Depends(get_mailer),
    current_user: Optional[User] = Depends(get_optional_user),
):
    email = payload.email if payload else None
    file = files.confirm_upload(
        file_id,
        email=email,
        user_id=current_user.id if current_user else None,
    )

    if email:
        background_tasks.add_task(
            mailer.send_file_shared, file.email, file.original_name, file.download_url, file.expires_at
        )

    return StandardResponse(
        success=True,
        message="Upload confirmed",
        data=ConfirmUploadOut(file_id=file.id, download_url=file.download_url, expires_at=file.expires_at),
    )

# ============================================================================
# Reads
# ============================================================================

@router.get("/my-uploads", response_model=StandardResponse[FileListOut])
def my_uploads(
    files: FileManager = Depends(get_file_manager),
    current_user: User = Depends(get_current_user),
):
    records = files.list_by_user(current_user.id)
    now = utcnow()
    return StandardResponse(
        success=True,
        message="Files retrieved",
        data=FileListOut(
            total=len(records),
            files=[FileSummaryOut.from_record(f, now) for f in records],
        ),
    )


@router.get("/download/{file_id}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
def download_file(
    file_id: str,
    files: FileManager = Depends(get_file_manager),
):
    file = files.get_file_details(file_id)
    return RedirectResponse(file.download_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/{file_id}", response_model=StandardResponse[FileDetailsOut])
def get_file_details(
    file_id: str,
    files: FileManager = Depends(get_file_manager),
):
    file = files.get_file_details(file_id)
    return StandardResponse(success=True, message="File details", data=FileDetailsOut.from_record(file))


@router.patch("/{file_id}", response_model=StandardResponse[FileDetailsOut])
def update_file(
    file_id: str,
    payload: FileUpdate,
    files: FileManager = Depends(get_file_manager),
):
    file = files.apply_upgrade(file_id, FilePatch.from_model(payload))
    return StandardResponse(success=True, message="File updated", data=FileDetailsOut.from_record(file))
