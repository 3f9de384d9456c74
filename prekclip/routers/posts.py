from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from prekclip.routers.deps import current_user_id, get_media_storage, get_social_service
from prekclip.services.errors import StoreError

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("/create")
def create_post(
    request: Request,
    file: UploadFile | None = File(None),
    caption: str = Form(""),
    kind: str = Form("", alias="type"),
    user_id: str = Depends(current_user_id),
):
    social = get_social_service(request)
    if file is None:
        # No upload means no media reference; the service reports it.
        return social.create_post(user_id, kind or "image", None, caption).to_dict()
    media = get_media_storage(request)
    resolved = media.resolve_kind(kind, file.content_type)
    reference = media.save_post_media(media.read_upload(file.file), file.filename or "", file.content_type, resolved)
    try:
        post = social.create_post(user_id, resolved, reference, caption)
    except StoreError:
        media.discard(reference)
        raise
    return post.to_dict()


@router.get("/feed")
def feed(request: Request):
    return get_social_service(request).list_feed()
