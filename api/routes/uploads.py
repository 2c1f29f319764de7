from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
import logging

from config.settings import settings
from core.exceptions import UploadError
from modules.users.models import User
from api.middleware.auth import get_current_user
from utils.object_store import LocalObjectStore, get_object_store, build_storage_key, is_image_upload

logger = logging.getLogger(__name__)

router = APIRouter()

def _too_large(limit: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"File exceeds the {limit / (1024 * 1024):g}MB limit"
    )

@router.post("/uploads", status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    store: LocalObjectStore = Depends(get_object_store)
):
    """Store one item photo under the caller's namespace and return its public URL"""
    if not is_image_upload(file.filename, file.content_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be an image (JPEG, PNG or WebP)"
        )

    limit = settings.MAX_UPLOAD_BYTES
    if file.size is not None and file.size > limit:
        raise _too_large(limit)

    # Never hold more than limit + 1 bytes in memory
    content = await file.read(limit + 1)
    if not content:
        raise HTTPException(status_code=400, detail="File is empty")
    if len(content) > limit:
        raise _too_large(limit)

    key = build_storage_key(current_user.id, file.filename, file.content_type)
    try:
        store.upload(key, content)
    except UploadError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {"key": key, "url": store.get_public_url(key)}
