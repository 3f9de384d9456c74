from __future__ import annotations

from fastapi import APIRouter, Depends, File, Request, UploadFile

from prekclip.routers.deps import current_user_id, get_media_storage, get_social_service
from prekclip.services.errors import BadRequestError, StoreError

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search")
def search(request: Request, q: str = ""):
    return get_social_service(request).search_users(q)


@router.post("/avatar")
def avatar(request: Request, file: UploadFile | None = File(None), user_id: str = Depends(current_user_id)):
    if file is None:
        raise BadRequestError("No file selected")
    media = get_media_storage(request)
    reference = media.save_avatar(media.read_upload(file.file))
    try:
        url = get_social_service(request).set_avatar(user_id, reference)
    except StoreError:
        media.discard(reference)
        raise
    return {"url": url}


@router.get("/{user_id}")
def profile(user_id: str, request: Request):
    result = get_social_service(request).get_profile(user_id)
    return {"user": result.user, "posts": result.posts}
