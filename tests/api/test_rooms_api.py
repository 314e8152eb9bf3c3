import pytest


async def create_room(api_client, name="Team", owner="Alice", is_private=False, password=None):
    payload = {"name": name, "ownerName": owner, "isPrivate": is_private}
    if password is not None:
        payload["password"] = password
    return await api_client.post("/api/rooms/create", json=payload)


@pytest.mark.asyncio
async def test_list_rooms_seeds_lobby(api_client):
    response = await api_client.get("/api/rooms")
    assert response.status_code == 200
    rooms = response.json()["rooms"]
    assert [room["name"] for room in rooms] == ["Lobby"]
    assert rooms[0]["inviteCode"] == "LOBBY000"
    assert rooms[0]["ownerName"] == "system"
    assert rooms[0]["memberCount"] == 0
    assert rooms[0]["isPrivate"] is False


@pytest.mark.asyncio
async def test_create_room_response_shape(api_client):
    response = await create_room(api_client)
    assert response.status_code == 201
    body = response.json()
    assert body["ok"] is True
    assert body["roomName"] == "Team"
    assert body["ownerName"] == "Alice"
    assert body["isOwner"] is True
    assert len(body["inviteCode"]) == 8
    assert len(body["memberToken"]) == 32

    listed = (await api_client.get("/api/rooms")).json()["rooms"]
    team = next(room for room in listed if room["name"] == "Team")
    assert team["id"] == body["roomId"]
    assert team["memberCount"] == 1
    assert set(team) == {"id", "name", "isPrivate", "inviteCode", "ownerName", "lastActiveAt", "memberCount"}


@pytest.mark.asyncio
async def test_create_room_errors(api_client):
    missing = await api_client.post("/api/rooms/create", json={"name": "Team"})
    assert missing.status_code == 400
    assert missing.json()["error"] == "missing_fields"

    too_long = await create_room(api_client, name="x" * 61)
    assert too_long.status_code == 400

    short_password = await create_room(api_client, is_private=True, password="abc")
    assert short_password.status_code == 400
    assert short_password.json()["error"] == "password_too_short"

    assert (await create_room(api_client)).status_code == 201
    taken = await create_room(api_client, owner="Bob")
    assert taken.status_code == 409
    assert taken.json()["error"] == "room_name_taken"


@pytest.mark.asyncio
async def test_malformed_body_is_bad_request(api_client):
    response = await api_client.post(
        "/api/rooms/create",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"


@pytest.mark.asyncio
async def test_join_by_name_invite_code_and_id(api_client):
    created = (await create_room(api_client)).json()

    for identifier in ["Team", created["inviteCode"].lower(), str(created["roomId"])]:
        response = await api_client.post("/api/rooms/join", json={"identifier": identifier, "memberName": "Bob"})
        assert response.status_code == 200, identifier
        body = response.json()
        assert body["roomId"] == created["roomId"]
        assert body["memberName"] == "Bob"
        assert body["isOwner"] is False
        assert body["isPrivate"] is False

    missing = await api_client.post("/api/rooms/join", json={"identifier": "Nope", "memberName": "Bob"})
    assert missing.status_code == 404
    assert missing.json()["error"] == "room_not_found"


@pytest.mark.asyncio
async def test_rejoin_invalidates_previous_token(api_client):
    created = (await create_room(api_client)).json()
    join = {"identifier": "Team", "memberName": "Bob"}
    first = (await api_client.post("/api/rooms/join", json=join)).json()["memberToken"]
    second = (await api_client.post("/api/rooms/join", json=join)).json()["memberToken"]
    assert first != second

    post = {"roomId": created["roomId"], "name": "Bob", "message": "hi"}
    stale = await api_client.post("/api/messages", json={**post, "memberToken": first})
    assert stale.status_code == 401
    fresh = await api_client.post("/api/messages", json={**post, "memberToken": second})
    assert fresh.status_code == 201


@pytest.mark.asyncio
async def test_private_room_scenario(api_client):
    assert (await create_room(api_client, name="Secret", is_private=True, password="abcd")).status_code == 201

    wrong = await api_client.post(
        "/api/rooms/join", json={"identifier": "Secret", "memberName": "Bob", "password": "wrong"}
    )
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "invalid_room_password"

    empty = await api_client.post("/api/rooms/join", json={"identifier": "Secret", "memberName": "Bob"})
    assert empty.status_code == 401

    joined = await api_client.post(
        "/api/rooms/join", json={"identifier": "Secret", "memberName": "Bob", "password": "abcd"}
    )
    assert joined.status_code == 200
    body = joined.json()
    assert body["isPrivate"] is True
    assert body["memberToken"]

    posted = await api_client.post(
        "/api/messages",
        json={"roomId": body["roomId"], "name": "Bob", "message": "psst", "memberToken": body["memberToken"]},
    )
    assert posted.status_code == 201


@pytest.mark.asyncio
async def test_rotate_invite_scenario(api_client):
    created = (await create_room(api_client)).json()
    room_id = created["roomId"]
    old_code = created["inviteCode"]

    rotated = await api_client.post(
        f"/api/rooms/{room_id}/regenerate-invite",
        json={"memberName": "Alice", "memberToken": created["memberToken"]},
    )
    assert rotated.status_code == 200
    new_code = rotated.json()["inviteCode"]
    assert new_code != old_code

    by_old = await api_client.post("/api/rooms/join", json={"identifier": old_code, "memberName": "Bob"})
    assert by_old.status_code == 404
    by_new = await api_client.post("/api/rooms/join", json={"identifier": new_code, "memberName": "Bob"})
    assert by_new.status_code == 200
    assert by_new.json()["roomId"] == room_id
    by_name = await api_client.post("/api/rooms/join", json={"identifier": "Team", "memberName": "Carol"})
    assert by_name.status_code == 200
    assert by_name.json()["inviteCode"] == new_code


@pytest.mark.asyncio
async def test_owner_actions_distinguish_forbidden_and_unauthorized(api_client):
    created = (await create_room(api_client)).json()
    room_id = created["roomId"]
    bob = (await api_client.post("/api/rooms/join", json={"identifier": "Team", "memberName": "Bob"})).json()

    for path, extra in [("regenerate-invite", {}), ("regenerate-password", {"newPassword": "newpass"})]:
        forbidden = await api_client.post(
            f"/api/rooms/{room_id}/{path}",
            json={"memberName": "Bob", "memberToken": bob["memberToken"], **extra},
        )
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "not_room_owner"

        no_token = await api_client.post(f"/api/rooms/{room_id}/{path}", json={"memberName": "Bob", **extra})
        assert no_token.status_code == 403

        unauthorized = await api_client.post(
            f"/api/rooms/{room_id}/{path}",
            json={"memberName": "Alice", "memberToken": "forged", **extra},
        )
        assert unauthorized.status_code == 401
        assert unauthorized.json()["error"] == "invalid_member_token"

        not_found = await api_client.post(
            f"/api/rooms/{room_id + 50}/{path}",
            json={"memberName": "Alice", "memberToken": created["memberToken"], **extra},
        )
        assert not_found.status_code == 404


@pytest.mark.asyncio
async def test_rotate_password_locks_room(api_client):
    created = (await create_room(api_client)).json()
    room_id = created["roomId"]
    owner = {"memberName": "Alice", "memberToken": created["memberToken"]}

    short = await api_client.post(f"/api/rooms/{room_id}/regenerate-password", json={**owner, "newPassword": "abc"})
    assert short.status_code == 400

    ok = await api_client.post(f"/api/rooms/{room_id}/regenerate-password", json={**owner, "newPassword": "s3cret"})
    assert ok.status_code == 200
    assert ok.json() == {"ok": True}

    rooms = (await api_client.get("/api/rooms")).json()["rooms"]
    assert next(room for room in rooms if room["id"] == room_id)["isPrivate"] is True

    denied = await api_client.post("/api/rooms/join", json={"identifier": "Team", "memberName": "Bob"})
    assert denied.status_code == 401
    allowed = await api_client.post(
        "/api/rooms/join", json={"identifier": "Team", "memberName": "Bob", "password": "s3cret"}
    )
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_stale_rooms_disappear_after_a_week(api_client, clock):
    created = (await create_room(api_client, name="Idle")).json()
    clock.advance(days=7, seconds=1)

    rooms = (await api_client.get("/api/rooms")).json()["rooms"]
    assert [room["name"] for room in rooms] == ["Lobby"]

    join = await api_client.post("/api/rooms/join", json={"identifier": created["inviteCode"], "memberName": "Bob"})
    assert join.status_code == 404
    messages = await api_client.get("/api/messages", params={"roomId": created["roomId"]})
    assert messages.json()["messages"] == []


@pytest.mark.asyncio
async def test_cors_preflight(api_client):
    response = await api_client.options(
        "/api/rooms/create",
        headers={
            "origin": "http://example.com",
            "access-control-request-method": "POST",
            "access-control-request-headers": "content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", "http://example.com")


@pytest.mark.asyncio
async def test_health(api_client):
    response = await api_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_join_with_superscript_digit_is_not_found(api_client):
    await create_room(api_client)
    response = await api_client.post("/api/rooms/join", json={"identifier": "²", "memberName": "Bob"})
    assert response.status_code == 404
    assert response.json()["error"] == "room_not_found"
