"""
FeedHub Backend — Posts API Tests
==================================

What we test:
    ✅ Creators publish text, URL and uploaded-media posts; consumers get 403
    ✅ Feed visibility and search through the API
    ✅ Like toggling end to end
    ✅ Comment add/delete permissions (author, post owner, third party)
    ✅ Caption edit and post delete are owner-only
    ✅ Malformed ids are 404
"""

import logging

import pytest


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def _create_text_post(client, token, caption="Hello feed"):
    response = await client.post(
        "/posts", json={"type": "text", "caption": caption}, headers=bearer(token)
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreatePost:

    @pytest.mark.asyncio
    async def test_creator_creates_text_post(self, client, signup):
        token, user = await signup("Alice")

        post = await _create_text_post(client, token)

        assert post["type"] == "text"
        assert post["caption"] == "Hello feed"
        assert post["userId"] == user["id"]
        assert post["userName"] == "Alice"
        assert post["userAvatar"] == user["profileImage"]
        assert post["likes"] == 0
        assert post["likedBy"] == []
        assert post["comments"] == []
        assert "createdAt" in post

    @pytest.mark.asyncio
    async def test_consumer_is_forbidden(self, client, signup):
        token, _ = await signup("Carol", user_type="consumer")

        response = await client.post(
            "/posts", json={"type": "text", "caption": "hi"}, headers=bearer(token)
        )

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "forbidden"
        assert body["message"] == "only creators can create posts"
        assert body["request_id"] == response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_rejected_request_is_access_logged_with_user(self, client, signup, caplog):
        token, user = await signup("Carol", user_type="consumer")

        with caplog.at_level(logging.WARNING, logger="feedhub.access"):
            response = await client.post(
                "/posts", json={"type": "text", "caption": "hi"}, headers=bearer(token)
            )

        assert response.status_code == 403
        lines = [r.getMessage() for r in caplog.records if r.name == "feedhub.access"]
        assert len(lines) == 1
        assert "POST /posts 403" in lines[0]
        assert f"user={user['id']}" in lines[0]

    @pytest.mark.asyncio
    async def test_media_url_post(self, client, signup):
        token, _ = await signup("Alice")

        response = await client.post(
            "/posts",
            json={"type": "video", "caption": "clip", "mediaUrl": "https://cdn.example.com/v.mp4"},
            headers=bearer(token),
        )

        assert response.status_code == 201
        assert response.json()["media"] == "https://cdn.example.com/v.mp4"

    @pytest.mark.asyncio
    async def test_uploaded_media_is_served_back(self, client, signup, sample_image_bytes):
        token, _ = await signup("Alice")

        response = await client.post(
            "/posts",
            data={"type": "image", "caption": "pic"},
            files={"media": ("pic.jpg", sample_image_bytes, "image/jpeg")},
            headers=bearer(token),
        )
        assert response.status_code == 201, response.text
        media_url = response.json()["media"]
        assert media_url.startswith("/media/images/")

        served = await client.get(media_url)
        assert served.status_code == 200
        assert served.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_missing_media(self, client, signup):
        token, _ = await signup("Alice")

        response = await client.post("/posts", json={"type": "image"}, headers=bearer(token))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["field"] == "media"
        assert response.json()["message"] == "media file or URL required"

    @pytest.mark.asyncio
    async def test_unknown_media_object_is_404(self, client):
        response = await client.get("/media/images/does-not-exist.jpg")

        assert response.status_code == 404


class TestFeed:

    @pytest.mark.asyncio
    async def test_visibility_and_search(self, client, signup):
        alice, _ = await signup("Alice")
        bob, _ = await signup("Bob")
        carol, _ = await signup("Carol", user_type="consumer")
        await _create_text_post(client, alice, "Sunset at the beach")
        await _create_text_post(client, bob, "Morning coffee")

        own = await client.get("/posts", headers=bearer(alice))
        assert [p["caption"] for p in own.json()["posts"]] == ["Sunset at the beach"]

        everyone = await client.get("/posts", headers=bearer(carol))
        assert len(everyone.json()["posts"]) == 2

        searched = await client.get("/posts", params={"search": "sunset"}, headers=bearer(carol))
        assert [p["userName"] for p in searched.json()["posts"]] == ["Alice"]


class TestLikes:

    @pytest.mark.asyncio
    async def test_like_then_unlike(self, client, signup):
        alice, _ = await signup("Alice")
        carol, carol_user = await signup("Carol", user_type="consumer")
        post = await _create_text_post(client, alice, "hello")
        assert post["likes"] == 0

        liked = await client.post(f"/posts/{post['id']}/like", headers=bearer(carol))
        assert liked.status_code == 200
        assert liked.json() == {"likes": 1, "likedBy": [carol_user["id"]]}

        unliked = await client.post(f"/posts/{post['id']}/like", headers=bearer(carol))
        assert unliked.json() == {"likes": 0, "likedBy": []}

    @pytest.mark.asyncio
    async def test_like_unknown_post(self, client, signup):
        carol, _ = await signup("Carol", user_type="consumer")

        response = await client.post("/posts/not-a-uuid/like", headers=bearer(carol))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestComments:

    @pytest.mark.asyncio
    async def test_comment_permissions(self, client, signup):
        alice, _ = await signup("Alice")
        carol, carol_user = await signup("Carol", user_type="consumer")
        dave, _ = await signup("Dave", user_type="consumer")
        post = await _create_text_post(client, alice)

        created = await client.post(
            f"/posts/{post['id']}/comment", json={"text": "great"}, headers=bearer(carol)
        )
        assert created.status_code == 201
        comment = created.json()
        assert comment["userId"] == carol_user["id"]
        assert comment["text"] == "great"

        path = f"/posts/{post['id']}/comment/{comment['id']}"
        forbidden = await client.delete(path, headers=bearer(dave))
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "forbidden"

        # Post owner may remove someone else's comment
        removed = await client.delete(path, headers=bearer(alice))
        assert removed.status_code == 200
        assert removed.json()["message"] == "comment deleted"

        gone = await client.delete(path, headers=bearer(carol))
        assert gone.status_code == 404
        assert gone.json()["error"] == "not_found"
        assert gone.json()["message"] == "comment not found"

    @pytest.mark.asyncio
    async def test_author_deletes_own_comment(self, client, signup):
        alice, _ = await signup("Alice")
        carol, _ = await signup("Carol", user_type="consumer")
        post = await _create_text_post(client, alice)
        comment = (
            await client.post(f"/posts/{post['id']}/comment", json={"text": "hm"}, headers=bearer(carol))
        ).json()

        response = await client.delete(
            f"/posts/{post['id']}/comment/{comment['id']}", headers=bearer(carol)
        )

        assert response.status_code == 200
        feed = await client.get("/posts", headers=bearer(alice))
        assert feed.json()["posts"][0]["comments"] == []

    @pytest.mark.asyncio
    async def test_empty_comment_rejected(self, client, signup):
        alice, _ = await signup("Alice")
        post = await _create_text_post(client, alice)

        response = await client.post(
            f"/posts/{post['id']}/comment", json={"text": "   "}, headers=bearer(alice)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "comment text required"
        assert response.json()["error"] == "validation_error"


class TestEditAndDelete:

    @pytest.mark.asyncio
    async def test_owner_edits_caption(self, client, signup):
        alice, _ = await signup("Alice")
        post = await _create_text_post(client, alice)

        response = await client.put(
            f"/posts/{post['id']}", json={"caption": "edited"}, headers=bearer(alice)
        )

        assert response.status_code == 200
        assert response.json()["post"]["caption"] == "edited"

    @pytest.mark.asyncio
    async def test_other_creator_cannot_edit_or_delete(self, client, signup):
        alice, _ = await signup("Alice")
        bob, _ = await signup("Bob")
        post = await _create_text_post(client, alice)

        edit = await client.put(f"/posts/{post['id']}", json={"caption": "x"}, headers=bearer(bob))
        delete = await client.delete(f"/posts/{post['id']}", headers=bearer(bob))

        assert edit.status_code == 403
        assert delete.status_code == 403
        assert edit.json()["error"] == delete.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_owner_deletes_post(self, client, signup):
        alice, _ = await signup("Alice")
        post = await _create_text_post(client, alice)

        response = await client.delete(f"/posts/{post['id']}", headers=bearer(alice))

        assert response.status_code == 200
        assert response.json()["message"] == "post deleted"
        feed = await client.get("/posts", headers=bearer(alice))
        assert feed.json()["posts"] == []

    @pytest.mark.asyncio
    async def test_malformed_id_is_404(self, client, signup):
        alice, _ = await signup("Alice")

        response = await client.delete("/posts/123", headers=bearer(alice))

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "post not found"
        assert body["request_id"] == response.headers["x-request-id"]
