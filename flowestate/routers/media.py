"""
Public file serving for stored objects.
"""

from fastapi import APIRouter, Depends, Path
from fastapi.responses import FileResponse

from flowestate.services.storage import StorageService, MEDIA_ROUTE
from flowestate.utils.dependencies import get_storage_service

router = APIRouter(prefix=MEDIA_ROUTE, tags=["Media"])


@router.get("/{bucket}/{key:path}", summary="Serve stored file", response_class=FileResponse)
async def serve_file(
    bucket: str = Path(..., description="Storage bucket"),
    key: str = Path(..., description="Object key"),
    storage: StorageService = Depends(get_storage_service)
) -> FileResponse:
    return FileResponse(storage.open_path(bucket, key))
