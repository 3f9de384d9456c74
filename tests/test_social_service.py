from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the prekclip package importable during local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prekclip.core import config as core_config  # noqa: E402
from prekclip.repositories.json_storage import JsonDocumentStorage  # noqa: E402
from prekclip.repositories.store import StateStore  # noqa: E402
from prekclip.services.auth_service import AuthService  # noqa: E402
from prekclip.services.errors import BadRequestError, ConflictError, NotFoundError  # noqa: E402
from prekclip.services.social_service import SocialService  # noqa: E402


@pytest.fixture()
def env(tmp_path, monkeypatch):
    """Store backed by a temporary database.json plus both services."""
    monkeypatch.setenv("DATA_FILE", str(tmp_path / "database.json"))
    monkeypatch.setenv("UPLOADS_DIR", str(tmp_path / "uploads"))
    core_config.get_settings.cache_clear()
    store = StateStore(JsonDocumentStorage(tmp_path / "database.json"))
    auth = AuthService(store, core_config.get_settings())
    yield store, auth, SocialService(store)
    core_config.get_settings.cache_clear()


def _user(store, user_id):
    with store.snapshot() as db:
        return db.find_user(user_id)


def _post(store, post_id):
    with store.snapshot() as db:
        return db.find_post(post_id)


def test_register_is_case_insensitively_unique(env):
    store, auth, _ = env
    auth.register("alice", "pw1")

    with pytest.raises(ConflictError):
        auth.register("Alice", "pw2")

    with store.snapshot() as db:
        assert [u.username for u in db.users] == ["alice"]


def test_feed_joins_current_author_fields(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user
    post = social.create_post(alice.id, "image", "/uploads/a.jpg", "hello")

    item = next(p for p in social.list_feed() if p["id"] == post.id)
    assert item["authorName"] == "alice"
    assert item["authorVerified"] is False
    assert item["authorAvatar"] is None
    assert item["type"] == "image"
    assert item["src"] == "/uploads/a.jpg"


def test_feed_is_most_recent_first(env):
    _, auth, social = env
    alice = auth.register("alice", "pw1").user
    first = social.create_post(alice.id, "image", "/uploads/1.jpg")
    second = social.create_post(alice.id, "video", "/uploads/2.mp4")

    assert [p["id"] for p in social.list_feed()] == [second.id, first.id]


def test_feed_renders_missing_author_as_unknown(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user
    social.create_post(alice.id, "image", "/uploads/a.jpg")
    with store.transaction() as db:
        db.users.clear()

    item = social.list_feed()[0]
    assert item["authorName"] == "Unknown"
    assert item["authorAvatar"] is None
    assert item["authorVerified"] is False


def test_create_post_requires_media_and_valid_kind(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user

    with pytest.raises(BadRequestError):
        social.create_post(alice.id, "image", None)
    with pytest.raises(BadRequestError):
        social.create_post(alice.id, "gif", "/uploads/a.gif")
    with pytest.raises(BadRequestError):
        social.create_post("user_missing", "image", "/uploads/a.jpg")

    assert social.list_feed() == []


def test_like_toggles_membership(env):
    _, auth, social = env
    alice = auth.register("alice", "pw1").user
    post = social.create_post(alice.id, "image", "/uploads/a.jpg")

    first = social.toggle_like(post.id, alice.id)
    assert (first.likes_count, first.is_liked) == (1, True)

    second = social.toggle_like(post.id, alice.id)
    assert (second.likes_count, second.is_liked) == (0, False)


def test_like_round_trip_keeps_existing_likes(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user
    bob = auth.register("bob", "pw2").user
    carol = auth.register("carol", "pw3").user
    post = social.create_post(alice.id, "image", "/uploads/a.jpg")
    social.toggle_like(post.id, bob.id)
    social.toggle_like(post.id, carol.id)
    before = _post(store, post.id).likes

    assert social.toggle_like(post.id, alice.id).likes_count == 3
    undone = social.toggle_like(post.id, alice.id)

    assert (undone.likes_count, undone.is_liked) == (2, False)
    assert _post(store, post.id).likes == before == [bob.id, carol.id]


def test_follow_round_trip_keeps_existing_edges(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user
    bob = auth.register("bob", "pw2").user
    carol = auth.register("carol", "pw3").user
    social.toggle_follow(carol.id, bob.id)
    social.toggle_follow(alice.id, carol.id)

    assert social.toggle_follow(alice.id, bob.id).followers_count == 2
    undone = social.toggle_follow(alice.id, bob.id)

    assert (undone.is_following, undone.followers_count) == (False, 1)
    assert _user(store, bob.id).followers == [carol.id]
    assert _user(store, alice.id).following == [carol.id]
    assert _user(store, carol.id).followers == [alice.id]



def test_like_unknown_post_is_not_found(env):
    _, auth, social = env
    alice = auth.register("alice", "pw1").user
    with pytest.raises(NotFoundError):
        social.toggle_like("post_missing", alice.id)


def test_follow_updates_both_sides_and_reverses(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user
    bob = auth.register("bob", "pw2").user

    result = social.toggle_follow(alice.id, bob.id)
    assert result.is_following is True
    assert result.followers_count == 1
    assert alice.id in _user(store, bob.id).followers
    assert bob.id in _user(store, alice.id).following

    result = social.toggle_follow(alice.id, bob.id)
    assert result.is_following is False
    assert result.followers_count == 0
    assert alice.id not in _user(store, bob.id).followers
    assert bob.id not in _user(store, alice.id).following


def test_self_follow_is_rejected_even_for_unknown_ids(env):
    _, auth, social = env
    alice = auth.register("alice", "pw1").user

    with pytest.raises(BadRequestError):
        social.toggle_follow(alice.id, alice.id)
    with pytest.raises(BadRequestError):
        social.toggle_follow("user_ghost", "user_ghost")


def test_follow_unknown_target_is_not_found(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user

    with pytest.raises(NotFoundError):
        social.toggle_follow(alice.id, "user_missing")
    assert _user(store, alice.id).following == []


def test_comment_snapshot_survives_avatar_change(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user
    post = social.create_post(alice.id, "image", "/uploads/a.jpg")
    social.set_avatar(alice.id, "/uploads/old.jpg")

    comment = social.add_comment(post.id, alice.id, "first!")
    assert comment.avatar == "/uploads/old.jpg"

    social.set_avatar(alice.id, "/uploads/new.jpg")
    item = social.list_feed()[0]
    assert item["authorAvatar"] == "/uploads/new.jpg"
    assert item["comments"][0]["avatar"] == "/uploads/old.jpg"
    assert item["comments"][0]["username"] == "alice"
    assert item["comments"][0]["text"] == "first!"


def test_comments_keep_insertion_order(env):
    store, auth, social = env
    alice = auth.register("alice", "pw1").user
    post = social.create_post(alice.id, "image", "/uploads/a.jpg")
    for text in ("one", "two", "three"):
        social.add_comment(post.id, alice.id, text)

    assert [c.text for c in _post(store, post.id).comments] == ["one", "two", "three"]


def test_comment_requires_known_post_and_user(env):
    _, auth, social = env
    alice = auth.register("alice", "pw1").user
    post = social.create_post(alice.id, "image", "/uploads/a.jpg")

    with pytest.raises(BadRequestError):
        social.add_comment("post_missing", alice.id, "hi")
    with pytest.raises(BadRequestError):
        social.add_comment(post.id, "user_missing", "hi")
    with pytest.raises(BadRequestError):
        social.add_comment(post.id, alice.id, "   ")


def test_search_is_case_insensitive_and_redacted(env):
    _, auth, social = env
    auth.register("alice", "pw1")
    auth.register("bob", "pw2")

    results = social.search_users("ALI")
    assert [r["username"] for r in results] == ["alice"]
    assert set(results[0]) == {"id", "username", "avatar", "isVerified"}


def test_profile_strips_password_and_lists_own_posts(env):
    _, auth, social = env
    alice = auth.register("alice", "pw1").user
    bob = auth.register("bob", "pw2").user
    mine = social.create_post(alice.id, "image", "/uploads/a.jpg")
    social.create_post(bob.id, "image", "/uploads/b.jpg")

    profile = social.get_profile(alice.id)
    assert "password" not in profile.user
    assert profile.user["username"] == "alice"
    assert [p["id"] for p in profile.posts] == [mine.id]


def test_profile_for_unknown_id_is_not_found(env):
    _, _, social = env
    with pytest.raises(NotFoundError):
        social.get_profile("user_nobody")


def test_set_avatar_requires_existing_user(env):
    _, _, social = env
    with pytest.raises(BadRequestError):
        social.set_avatar("user_nobody", "/uploads/a.jpg")


def test_failed_operation_leaves_document_untouched(env, tmp_path):
    _, auth, social = env
    alice = auth.register("alice", "pw1").user
    social.create_post(alice.id, "image", "/uploads/a.jpg")
    before = (tmp_path / "database.json").read_bytes()

    with pytest.raises(ConflictError):
        auth.register("ALICE", "other")
    with pytest.raises(NotFoundError):
        social.toggle_follow(alice.id, "user_missing")

    assert (tmp_path / "database.json").read_bytes() == before
