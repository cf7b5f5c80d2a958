from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from weighin.auth import get_current_user
from weighin.models import UserRecord
from weighin.services.photos import PhotoStorage, content_type_for, get_photos

router = APIRouter(tags=["uploads"])

# Names are random per upload, so content behind a path never changes.
# Photos need a session, so shared caches must not keep them.
CACHE_CONTROL = "private, max-age=31536000, immutable"


@router.get("/uploads/{file_path:path}")
async def get_upload(
    file_path: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    photos: Annotated[PhotoStorage, Depends(get_photos)],
):
    """Serve a stored photo to a logged-in member."""
    path = photos.resolve(file_path)
    if path is None or not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return FileResponse(
        path,
        media_type=content_type_for(path.name),
        headers={"Cache-Control": CACHE_CONTROL},
    )
