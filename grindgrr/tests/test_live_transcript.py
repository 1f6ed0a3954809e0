from __future__ import annotations

from typing import cast
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from grindgrr.core.change_feed import change_feed

PASSWORD = "Aa!123456"


def _signup_login(client: TestClient, display_name: str) -> str:
    email = f"{display_name.lower()}_{uuid4().hex[:8]}@example.com"
    response = client.post(
        "/api/v1/auth/signup",
        json={"email": email, "password": PASSWORD, "display_name": display_name},
    )
    assert response.status_code == 200, response.text
    return cast(str, response.json()["access_token"])


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _create_dog(client: TestClient, token: str, name: str) -> int:
    response = client.post(
        "/api/v1/dogs",
        headers=_auth_headers(token),
        json={"name": name},
    )
    assert response.status_code == 200, response.text
    return int(response.json()["id"])


def _matched_conversation(client: TestClient) -> tuple[str, str, int]:
    token_a = _signup_login(client, "Alice")
    token_b = _signup_login(client, "Bob")
    dog_a = _create_dog(client, token_a, "Biscuit")
    dog_b = _create_dog(client, token_b, "Pepper")

    for token, swiper, swiped in [(token_a, dog_a, dog_b), (token_b, dog_b, dog_a)]:
        response = client.post(
            "/api/v1/swipes",
            headers=_auth_headers(token),
            json={"swiper_dog_id": swiper, "swiped_dog_id": swiped, "decision": "like"},
        )
        assert response.status_code == 200, response.text
    match_id = response.json()["outcome"]["match"]["id"]

    response = client.post(
        f"/api/v1/matches/{match_id}/conversation",
        headers=_auth_headers(token_a),
    )
    assert response.status_code == 200, response.text
    return token_a, token_b, int(response.json()["id"])


def _send(client: TestClient, token: str, conversation_id: int, content: str) -> int:
    response = client.post(
        "/api/v1/messages",
        headers=_auth_headers(token),
        json={"conversation_id": conversation_id, "content": content},
    )
    assert response.status_code == 200, response.text
    return int(response.json()["id"])


def test_live_socket_merges_history_and_new_messages(client: TestClient) -> None:
    token_a, token_b, conversation_id = _matched_conversation(client)
    first_id = _send(client, token_a, conversation_id, "Hi from Biscuit")

    url = f"/api/v1/conversations/{conversation_id}/live?token={token_b}"
    with client.websocket_connect(url) as websocket:
        initial = websocket.receive_json()
        assert [entry["id"] for entry in initial] == [first_id]
        assert initial[0]["sender_display_name"] == "Alice"

        second_id = _send(client, token_b, conversation_id, "Hello from Pepper")
        update = websocket.receive_json()

        assert [entry["id"] for entry in update] == [first_id, second_id]
        assert [entry["content"] for entry in update] == [
            "Hi from Biscuit",
            "Hello from Pepper",
        ]
        assert update[-1]["sender_display_name"] == "Bob"
        assert update[-1]["resolved"] is True


def test_live_socket_rejects_outsiders(client: TestClient) -> None:
    _, _, conversation_id = _matched_conversation(client)
    outsider = _signup_login(client, "Mallory")

    url = f"/api/v1/conversations/{conversation_id}/live?token={outsider}"
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(url) as websocket:
            websocket.receive_json()


def test_live_socket_rejects_bad_token(client: TestClient) -> None:
    _, _, conversation_id = _matched_conversation(client)

    url = f"/api/v1/conversations/{conversation_id}/live?token=not-a-token"
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(url) as websocket:
            websocket.receive_json()


def test_leaving_the_live_socket_releases_the_subscription(client: TestClient) -> None:
    token_a, token_b, conversation_id = _matched_conversation(client)
    before = change_feed.subscriber_count

    url = f"/api/v1/conversations/{conversation_id}/live?token={token_b}"
    with client.websocket_connect(url) as websocket:
        assert websocket.receive_json() == []
        assert change_feed.subscriber_count == before + 1

    assert change_feed.subscriber_count == before
    # Messages sent after the viewer left are not delivered anywhere
    _send(client, token_a, conversation_id, "Anyone there?")
    assert change_feed.subscriber_count == before
