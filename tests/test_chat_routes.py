"""Route tests for /chat endpoints against the in-memory repository."""

import pytest

ZALGO = "h" + chr(0x0308) * 3 + "e" + chr(0x0338) * 3


@pytest.fixture
def alice(users, current_user):
    current_user.login(users["Alice"])
    return users["Alice"]


def create(client, *usernames):
    return client.post("/chat/conversations", json={"target_usernames": list(usernames)})


class TestCreateConversation:
    def test_created_then_deduplicated(self, client, alice):
        first = create(client, "Bob", "Carol")
        second = create(client, "carol", "BOB")

        assert first.status_code == 201
        assert first.json()["is_new"] is True
        assert second.status_code == 200
        assert second.json() == {
            "conversation_id": first.json()["conversation_id"],
            "is_new": False,
        }

    def test_unknown_users_listed(self, client, alice):
        response = create(client, "Bob", "ghost")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"
        assert response.json()["detail"]["not_found"] == ["ghost"]

    @pytest.mark.parametrize("usernames", [[], ["Alice"], ["  "]])
    def test_invalid_member_sets(self, client, alice, usernames):
        response = create(client, *usernames)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_request"

    def test_malformed_body_is_invalid_request(self, client, alice):
        response = client.post("/chat/conversations", json={"target_usernames": "Bob"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_request"

    def test_caller_without_profile(self, client, users, current_user, repository):
        current_user.id = "no-such-profile"

        response = create(client, "Bob")

        assert response.status_code == 404
        assert repository.list_user_conversations(users["Bob"].id) == []

    def test_requires_authentication(self, client, users):
        response = create(client, "Bob")

        assert response.status_code == 401


class TestGetConversation:
    def test_members_and_history(self, client, alice, current_user, users):
        conversation_id = create(client, "Carol", "Bob").json()["conversation_id"]
        client.post("/chat/messages", json={"conversation_id": conversation_id, "content": "hi"})
        current_user.login(users["Bob"])
        client.post("/chat/messages", json={"conversation_id": conversation_id, "content": "yo"})

        response = client.get(f"/chat/conversations/{conversation_id}")

        assert response.status_code == 200
        body = response.json()
        assert [m["username"] for m in body["members"]] == ["Alice", "Bob", "Carol"]
        assert [(m["author_username"], m["content"]) for m in body["messages"]] == [
            ("Alice", "hi"),
            ("Bob", "yo"),
        ]

    def test_non_member_forbidden(self, client, alice, current_user, users):
        conversation_id = create(client, "Bob").json()["conversation_id"]
        current_user.login(users["Carol"])

        assert client.get(f"/chat/conversations/{conversation_id}").status_code == 403

    def test_missing_not_found(self, client, alice):
        assert client.get("/chat/conversations/nope").status_code == 404


class TestAddMember:
    def test_add_then_conflict(self, client, alice):
        conversation_id = create(client, "Bob").json()["conversation_id"]
        url = f"/chat/conversations/{conversation_id}/members"

        assert client.post(url, json={"username": "carol"}).status_code == 200
        assert client.post(url, json={"username": "Carol"}).status_code == 409

    def test_username_is_trimmed(self, client, alice, repository, users):
        conversation_id = create(client, "Bob").json()["conversation_id"]

        response = client.post(
            f"/chat/conversations/{conversation_id}/members", json={"username": " carol "}
        )

        assert response.status_code == 200
        assert repository.get_conversation(conversation_id).has_member(users["Carol"].id)

    def test_blank_username_invalid(self, client, alice):
        conversation_id = create(client, "Bob").json()["conversation_id"]

        response = client.post(
            f"/chat/conversations/{conversation_id}/members", json={"username": "   "}
        )

        assert response.status_code == 400

    def test_unknown_username(self, client, alice):
        conversation_id = create(client, "Bob").json()["conversation_id"]

        response = client.post(
            f"/chat/conversations/{conversation_id}/members", json={"username": "ghost"}
        )

        assert response.status_code == 404

    def test_outsider_cannot_add(self, client, alice, current_user, users):
        conversation_id = create(client, "Bob").json()["conversation_id"]
        current_user.login(users["Carol"])

        response = client.post(
            f"/chat/conversations/{conversation_id}/members", json={"username": "Dave"}
        )

        assert response.status_code == 403


class TestLeave:
    def test_leave_then_delete(self, client, alice, current_user, users):
        conversation_id = create(client, "Bob").json()["conversation_id"]
        url = f"/chat/conversations/{conversation_id}/leave"

        assert client.post(url).json() == {"deleted": False}
        current_user.login(users["Bob"])
        assert client.post(url).json() == {"deleted": True}
        assert client.get(f"/chat/conversations/{conversation_id}").status_code == 404

    def test_global_forbidden(self, client, alice):
        response = client.post("/chat/conversations/global/leave")

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "forbidden"


class TestSendMessage:
    def test_profanity_censored_in_echo(self, client, alice):
        conversation_id = create(client, "Bob").json()["conversation_id"]

        response = client.post(
            "/chat/messages",
            json={"conversation_id": conversation_id, "content": "this is bullsh1t"},
        )

        assert response.status_code == 201
        sent = response.json()["sent_message"]
        assert sent["content"] == "this is ********"
        assert sent["author_username"] == "Alice"

    @pytest.mark.parametrize("content", ["", "   ", ZALGO])
    def test_rejected_content_not_stored(self, client, alice, content):
        conversation_id = create(client, "Bob").json()["conversation_id"]

        response = client.post(
            "/chat/messages", json={"conversation_id": conversation_id, "content": content}
        )

        assert response.status_code == 400
        history = client.get(f"/chat/conversations/{conversation_id}").json()["messages"]
        assert history == []

    def test_non_member_forbidden(self, client, alice, current_user, users):
        conversation_id = create(client, "Bob").json()["conversation_id"]
        current_user.login(users["Dave"])

        response = client.post(
            "/chat/messages", json={"conversation_id": conversation_id, "content": "hey"}
        )

        assert response.status_code == 403


class TestPolling:
    def test_updates_flow(self, client, alice, current_user, users, clock):
        conversation_id = create(client, "Bob").json()["conversation_id"]
        t0 = clock.now.isoformat()
        clock.advance(seconds=5)
        sent = client.post(
            "/chat/messages", json={"conversation_id": conversation_id, "content": "ping"}
        ).json()["sent_message"]

        current_user.login(users["Bob"])
        assert client.get("/chat/conversations/updates", params={"since": t0}).json() == {
            "has_updates": True
        }
        assert client.get(
            "/chat/conversations/updates", params={"since": sent["created_at"]}
        ).json() == {"has_updates": False}

        new = client.get(
            f"/chat/conversations/{conversation_id}/messages/new", params={"since": t0}
        ).json()["messages"]
        assert [m["id"] for m in new] == [sent["id"]]

        later = client.get(
            f"/chat/conversations/{conversation_id}/messages/new",
            params={"since": sent["created_at"]},
        ).json()["messages"]
        assert later == []

    @pytest.mark.parametrize("params", [{}, {"since": "not-a-date"}])
    def test_since_required(self, client, alice, params):
        conversation_id = create(client, "Bob").json()["conversation_id"]

        updates = client.get("/chat/conversations/updates", params=params)
        new = client.get(f"/chat/conversations/{conversation_id}/messages/new", params=params)

        assert updates.status_code == 400
        assert new.status_code == 400

    def test_new_messages_requires_membership(self, client, alice, current_user, users):
        conversation_id = create(client, "Bob").json()["conversation_id"]
        current_user.login(users["Carol"])

        response = client.get(
            f"/chat/conversations/{conversation_id}/messages/new",
            params={"since": "2025-01-01T00:00:00Z"},
        )

        assert response.status_code == 403


class TestRequestId:
    def test_generated_when_absent(self, client):
        assert client.get("/").headers["X-Request-ID"]

    def test_caller_id_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
