import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sharelink.api.deps import get_current_admin_user, get_storage
from sharelink.db.session import get_db
from sharelink.models.user import User
from sharelink.network.storage import S3Storage
from sharelink.schemas.common import CamelModel, StandardResponse
from sharelink.services.files import FileManager

logger = logging.getLogger(__name__)

router = APIRouter()


class ClearFilesOut(CamelModel):
    objects_deleted: int
    errors: int
    records_deleted: int


@router.post("/clear-files", response_model=StandardResponse[ClearFilesOut])
def clear_files(
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
    admin: User = Depends(get_current_admin_user),
):
    """
    Empty the storage bucket, then drop the file records.

    Records are only dropped when at least one object was deleted.
    """
    objects_deleted, errors = storage.clear_bucket()
    records_deleted = 0
    if objects_deleted > 0:
        records_deleted = FileManager(db, storage).delete_all()

    logger.warning(
        "Admin %s cleared files: objects=%d errors=%d records=%d",
        admin.id, objects_deleted, errors, records_deleted,
    )
    return StandardResponse(
        success=True,
        message="Files cleared",
        data=ClearFilesOut(objects_deleted=objects_deleted, errors=errors, records_deleted=records_deleted),
    )
