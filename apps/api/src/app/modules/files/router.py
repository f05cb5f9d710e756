"""
Files Router

Endpoints:
- GET /files/{user_id}/{filename} - Serve an upload to its owner or an admin
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from app.core.auth import CurrentUser, get_current_user
from app.modules.files.storage import cache_headers, resolve_path

router = APIRouter()


def file_response(relative_path: str) -> FileResponse:
    """FileResponse with caching headers, or 404 for missing and escaping paths."""
    path = resolve_path(relative_path)
    if path is None or not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "FILE_NOT_FOUND", "message": "File not found"},
        )
    return FileResponse(path, headers=cache_headers(path))


@router.get("/{user_id}/{filename}")
async def get_file(
    user_id: str,
    filename: str,
    user: CurrentUser = Depends(get_current_user),
) -> FileResponse:
    if not user.is_admin and str(user.id) != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "ACCESS_DENIED", "message": "Access denied"},
        )

    return file_response(f"{user_id}/{filename}")
