"""Serves stored attachments at their public URLs."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from gigchat.services.storage.base import StorageError
from gigchat.services.storage.local import LocalObjectStore

router = APIRouter()


@router.get("/{key:path}")
async def get_media(key: str):
    try:
        file_path = LocalObjectStore().resolve(key)
    except StorageError as e:
        raise HTTPException(status_code=403, detail=str(e))

    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(file_path)
