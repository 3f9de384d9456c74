"""
Posts, feed, likes, comments, follows, search and profiles.

Each public method is one State Store cycle. Comments copy the commenter's
username/avatar/verified flag when written; the feed looks the post author
up when read.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from prekclip.domain.entities import POST_KINDS, Comment, Database, Post, new_id, now_ms
from prekclip.repositories.store import StateStore
from prekclip.services.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"


@dataclass
class LikeResult:
    likes_count: int
    is_liked: bool


@dataclass
class FollowResult:
    is_following: bool
    followers_count: int


@dataclass
class ProfileResult:
    user: dict
    posts: list[dict]


def _toggle(members: list[str], member: str) -> bool:
    """Flip membership of ``member``; return True when it is now present."""
    if member in members:
        members.remove(member)
        return False
    members.append(member)
    return True


class SocialService:
    def __init__(self, store: StateStore) -> None:
        self.store = store

    # -------------------------------------- posts --------------------------------------
    def create_post(self, author_id: str, kind: str, media_reference: str | None, caption: str = "") -> Post:
        if not media_reference:
            raise BadRequestError("No file selected")
        if kind not in POST_KINDS:
            raise BadRequestError(f"Post type must be one of {', '.join(POST_KINDS)}")
        with self.store.transaction() as db:
            if not db.find_user(author_id):
                raise BadRequestError("Unknown author")
            post = Post(
                id=new_id("post"),
                author_id=author_id,
                kind=kind,
                media_reference=media_reference,
                caption=caption or "",
                created_at=now_ms(),
            )
            db.posts.insert(0, post)
        logger.info("User %s created %s post %s", author_id, kind, post.id)
        return post

    def list_feed(self) -> list[dict]:
        with self.store.snapshot() as db:
            return [self._feed_item(db, post) for post in db.posts]

    @staticmethod
    def _feed_item(db: Database, post: Post) -> dict:
        author = db.find_user(post.author_id)
        item = post.to_dict()
        item["authorName"] = author.username if author else UNKNOWN_AUTHOR
        item["authorAvatar"] = author.avatar if author else None
        item["authorVerified"] = author.is_verified if author else False
        return item

    # -------------------------------------- actions --------------------------------------
    def toggle_like(self, post_id: str, user_id: str) -> LikeResult:
        with self.store.transaction() as db:
            post = db.find_post(post_id)
            if not post:
                raise NotFoundError("Post not found")
            liked = _toggle(post.likes, user_id)
            return LikeResult(likes_count=len(post.likes), is_liked=liked)

    def add_comment(self, post_id: str, user_id: str, text: str) -> Comment:
        body = (text or "").strip()
        with self.store.transaction() as db:
            post = db.find_post(post_id)
            user = db.find_user(user_id)
            if not post or not user:
                raise BadRequestError("Could not add comment")
            if not body:
                raise BadRequestError("Comment text is required")
            comment = Comment(
                id=new_id("cmt"),
                username=user.username,
                avatar=user.avatar,
                is_verified=user.is_verified,
                text=body,
                created_at=now_ms(),
            )
            post.comments.append(comment)
            return comment

    def toggle_follow(self, current_id: str, target_id: str) -> FollowResult:
        if current_id == target_id:
            raise BadRequestError("You cannot follow yourself")
        with self.store.transaction() as db:
            me = db.find_user(current_id)
            target = db.find_user(target_id)
            if not me or not target:
                raise NotFoundError("User not found")
            following = _toggle(me.following, target.id)
            # Both sides of the edge move together.
            if following:
                if me.id not in target.followers:
                    target.followers.append(me.id)
            elif me.id in target.followers:
                target.followers.remove(me.id)
            result = FollowResult(is_following=following, followers_count=len(target.followers))
        logger.info("User %s %s %s", current_id, "followed" if following else "unfollowed", target_id)
        return result

    # -------------------------------------- users --------------------------------------
    def search_users(self, query: str) -> list[dict]:
        needle = (query or "").lower()
        with self.store.snapshot() as db:
            return [u.search_dict() for u in db.users if needle in u.username.lower()]

    def get_profile(self, user_id: str) -> ProfileResult:
        with self.store.snapshot() as db:
            user = db.find_user(user_id)
            if not user:
                raise NotFoundError("User not found")
            posts = [p.to_dict() for p in db.posts if p.author_id == user.id]
            return ProfileResult(user=user.public_dict(), posts=posts)

    def set_avatar(self, user_id: str, media_reference: str | None) -> str:
        with self.store.transaction() as db:
            user = db.find_user(user_id)
            if not user or not media_reference:
                raise BadRequestError("Could not update avatar")
            user.avatar = media_reference
            return media_reference
