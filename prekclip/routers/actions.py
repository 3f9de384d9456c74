from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from prekclip.routers.deps import current_user_id, get_social_service
from prekclip.schemas import CommentRequest, FollowRequest, LikeRequest

router = APIRouter(prefix="/action", tags=["actions"])


@router.post("/like")
def like(payload: LikeRequest, request: Request, user_id: str = Depends(current_user_id)):
    result = get_social_service(request).toggle_like(payload.postId, user_id)
    return {"likesCount": result.likes_count, "isLiked": result.is_liked}


@router.post("/comment")
def comment(payload: CommentRequest, request: Request, user_id: str = Depends(current_user_id)):
    return get_social_service(request).add_comment(payload.postId, user_id, payload.text).to_dict()


@router.post("/follow")
def follow(payload: FollowRequest, request: Request, user_id: str = Depends(current_user_id)):
    result = get_social_service(request).toggle_follow(user_id, payload.targetId)
    return {"isFollowing": result.is_following, "followersCount": result.followers_count}
