"""Request bodies accepted by the JSON routes.

Fields default to empty strings so that missing values reach the services,
which reject them with the same errors as malformed ones.
"""

from pydantic import BaseModel


class Credentials(BaseModel):
    username: str = ""
    password: str = ""


class LikeRequest(BaseModel):
    postId: str = ""


class CommentRequest(BaseModel):
    postId: str = ""
    text: str = ""


class FollowRequest(BaseModel):
    targetId: str = ""
