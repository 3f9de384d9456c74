"""Document persistence backed by SQLAlchemy."""
from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from prekclip.db import models
from prekclip.db.create_tables import create_all
from prekclip.db.models import CommentRow, FollowRow, LikeRow, PostRow, SessionRow, UserRow
from prekclip.db.session import get_session, session_scope
from prekclip.domain.entities import Comment, Database, Post, SessionRecord, User

logger = logging.getLogger(__name__)


class SQLDocumentStorage:
    """Maps the document onto normalised tables.

    ``load`` reads every table; ``save`` replaces every row inside a single
    transaction, so a failed save leaves the previous state intact.
    """

    def initialize(self) -> None:
        create_all()

    # -------------------------- read --------------------------
    def load(self) -> Database:
        with get_session() as session:
            user_rows = session.execute(select(UserRow).order_by(UserRow.position)).scalars().all()
            follow_rows = session.execute(select(FollowRow).order_by(FollowRow.position)).scalars().all()
            post_rows = session.execute(select(PostRow).order_by(PostRow.position)).scalars().all()
            like_rows = session.execute(select(LikeRow).order_by(LikeRow.position)).scalars().all()
            comment_rows = session.execute(select(CommentRow).order_by(CommentRow.position)).scalars().all()
            session_rows = session.execute(select(SessionRow)).scalars().all()

            users = [
                User(
                    id=row.id,
                    username=row.username,
                    password=row.password_hash or "",
                    avatar=row.avatar,
                    is_verified=bool(row.is_verified),
                    created_at=int(row.created_at or 0),
                )
                for row in user_rows
            ]
            by_id = {u.id: u for u in users}
            for edge in follow_rows:
                follower = by_id.get(edge.follower_id)
                followee = by_id.get(edge.followee_id)
                if follower and followee:
                    follower.following.append(followee.id)
                    followee.followers.append(follower.id)

            posts = [
                Post(
                    id=row.id,
                    author_id=row.author_id,
                    kind=row.kind,
                    media_reference=row.media_reference,
                    caption=row.caption or "",
                    created_at=int(row.created_at or 0),
                )
                for row in post_rows
            ]
            posts_by_id = {p.id: p for p in posts}
            for like in like_rows:
                post = posts_by_id.get(like.post_id)
                if post:
                    post.likes.append(like.user_id)
            for row in comment_rows:
                post = posts_by_id.get(row.post_id)
                if post:
                    post.comments.append(
                        Comment(
                            id=row.id,
                            username=row.username,
                            avatar=row.avatar,
                            is_verified=bool(row.is_verified),
                            text=row.text or "",
                            created_at=int(row.created_at or 0),
                        )
                    )

            sessions = {row.token: SessionRecord(user_id=row.user_id, expires_at=int(row.expires_at)) for row in session_rows}
            return Database(users=users, posts=posts, sessions=sessions)

    # -------------------------- write --------------------------
    def save(self, db: Database) -> None:
        try:
            with session_scope() as session:
                for table in reversed(_TABLES):
                    session.execute(delete(table))
                for group in self._row_groups(db):
                    session.add_all(group)
                    session.flush()
        except SQLAlchemyError:
            logger.exception("Failed to persist document to the SQL backend")
            raise

    def _row_groups(self, db: Database) -> list[list]:
        """Rows grouped so that every group only references rows of earlier groups."""
        users: list = []
        children: list = []
        grandchildren: list = []
        known = {u.id for u in db.users}
        edges: dict[tuple[str, str], None] = {}
        for position, user in enumerate(db.users):
            users.append(
                UserRow(
                    id=user.id,
                    username=user.username,
                    password_hash=user.password,
                    avatar=user.avatar,
                    is_verified=user.is_verified,
                    created_at=user.created_at,
                    position=position,
                )
            )
            for target in user.following:
                edges[(user.id, target)] = None
            for source in user.followers:
                edges[(source, user.id)] = None
        for position, (follower, followee) in enumerate(edges):
            if follower in known and followee in known and follower != followee:
                children.append(FollowRow(follower_id=follower, followee_id=followee, position=position))

        for position, post in enumerate(db.posts):
            children.append(
                PostRow(
                    id=post.id,
                    author_id=post.author_id,
                    kind=post.kind,
                    media_reference=post.media_reference,
                    caption=post.caption,
                    created_at=post.created_at,
                    position=position,
                )
            )
            for idx, user_id in enumerate(post.likes):
                grandchildren.append(LikeRow(post_id=post.id, user_id=user_id, position=idx))
            for idx, comment in enumerate(post.comments):
                grandchildren.append(
                    CommentRow(
                        id=comment.id,
                        post_id=post.id,
                        username=comment.username,
                        avatar=comment.avatar,
                        is_verified=comment.is_verified,
                        text=comment.text,
                        created_at=comment.created_at,
                        position=idx,
                    )
                )

        for token, record in db.sessions.items():
            users.append(SessionRow(token=token, user_id=record.user_id, expires_at=record.expires_at))
        return [users, children, grandchildren]


# Parents before children; deletes run in reverse.
_TABLES = (models.UserRow, models.SessionRow, models.FollowRow, models.PostRow, models.LikeRow, models.CommentRow)
