from tests.conftest import ALICE, BOB, CAROL, headers


def create_room(client, user=ALICE):
    response = client.post("/api/rooms", headers=headers(user))
    assert response.status_code == 201
    return response.json()


def started(client):
    room = create_room(client)
    response = client.post(f"/api/rooms/{room['code']}/join", headers=headers(BOB))
    assert response.status_code == 200
    return response.json()["room"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_user_header_is_required(client):
    assert client.post("/api/rooms").status_code == 422


def test_create_and_get_room(client):
    room = create_room(client)

    assert room["status"] == "waiting"
    assert room["player1_id"] == ALICE
    assert room["current_turn"] == "player1"
    assert room["version"] == 0

    response = client.get(f"/api/rooms/{room['code'].lower()}", headers=headers(CAROL))
    assert response.status_code == 200
    assert response.json()["id"] == room["id"]


def test_unknown_room_is_404(client):
    response = client.get("/api/rooms/NOPE42", headers=headers(ALICE))

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "ROOM_NOT_FOUND"


def test_join_then_spectate(client):
    room = started(client)
    assert room["status"] == "in-progress"
    assert room["player2_id"] == BOB

    response = client.post(f"/api/rooms/{room['code']}/join", headers=headers(CAROL))
    body = response.json()
    assert body["outcome"] == "spectator"
    assert body["is_spectator"] is True
    assert body["room"]["spectators"] == [CAROL]

    response = client.post(f"/api/rooms/{room['code']}/spectate", headers=headers(ALICE))
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "ALREADY_A_PLAYER"


def test_move_flow_and_errors(client):
    room = started(client)
    move_url = f"/api/game/{room['id']}/move"

    response = client.post(move_url, json={"position": 4, "version": 0}, headers=headers(ALICE))
    assert response.status_code == 200
    assert response.json()["board"] == "----X----"
    assert response.json()["version"] == 1

    stale = client.post(move_url, json={"position": 0, "version": 0}, headers=headers(BOB))
    assert stale.status_code == 409
    assert stale.json()["detail"] == {
        "code": "VERSION_CONFLICT",
        "message": stale.json()["detail"]["message"],
        "retryable": True,
    }

    wrong_turn = client.post(move_url, json={"position": 0}, headers=headers(ALICE))
    assert wrong_turn.status_code == 400
    assert wrong_turn.json()["detail"]["code"] == "NOT_YOUR_TURN"

    occupied = client.post(move_url, json={"position": 4}, headers=headers(BOB))
    assert occupied.json()["detail"]["code"] == "INVALID_MOVE"

    stranger = client.post(move_url, json={"position": 0}, headers=headers(CAROL))
    assert stranger.status_code == 403
    assert stranger.json()["detail"]["code"] == "NOT_A_PLAYER"

    out_of_range = client.post(move_url, json={"position": 9}, headers=headers(BOB))
    assert out_of_range.status_code == 422


def test_move_before_start(client):
    room = create_room(client)
    response = client.post(f"/api/game/{room['id']}/move", json={"position": 0}, headers=headers(ALICE))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "GAME_NOT_STARTED"


def test_state_status_and_replay(client):
    room = started(client)
    client.post(f"/api/game/{room['id']}/move", json={"position": 4}, headers=headers(ALICE))

    state = client.get(f"/api/game/{room['id']}/state", headers=headers(BOB)).json()
    assert state["role"] == "player2"
    assert state["last_move"] == {"position": 4, "symbol": "X", "move_order": 1}

    status = client.get(f"/api/game/{room['id']}/status", headers=headers(BOB)).json()
    assert status["is_my_turn"] is True
    assert status["current_turn"] == "player2"
    assert status["version"] == 1

    replay = client.get(f"/api/replay/{room['id']}", headers=headers(CAROL)).json()
    assert replay["total_moves"] == 1
    assert replay["moves"][0]["board_after_move"] == "----X----"


def test_leave_variants(client):
    room = started(client)

    forfeit = client.post(f"/api/rooms/{room['code']}/leave", headers=headers(BOB)).json()
    assert forfeit["outcome"] == "forfeit"
    assert forfeit["room"]["winner_id"] == ALICE
    assert forfeit["room"]["status"] == "finished"

    after_finish = client.post(f"/api/game/{room['id']}/move", json={"position": 0}, headers=headers(ALICE))
    assert after_finish.json()["detail"]["code"] == "GAME_FINISHED"

    deleted = client.post(f"/api/rooms/{room['code']}/leave", headers=headers(ALICE)).json()
    assert deleted["outcome"] == "room_deleted"
    assert deleted["room"] is None
    assert client.get(f"/api/rooms/{room['code']}", headers=headers(ALICE)).status_code == 404


def test_bot_game_flow(client):
    created = client.post("/api/bot/create", json={"go_first": False}, headers=headers(ALICE))
    assert created.status_code == 201
    game = created.json()
    assert game["board"] == "----X----"
    assert game["player_symbol"] == "O"
    assert game["bot_symbol"] == "X"

    response = client.post(f"/api/bot/{game['id']}/move", json={"position": 0, "version": 0}, headers=headers(ALICE))
    body = response.json()
    assert response.status_code == 200
    assert body["bot_move"] is not None
    assert [m["player"] for m in body["game"]["moves"]] == ["bot", "player", "bot"]

    forbidden = client.get(f"/api/bot/{game['id']}", headers=headers(BOB))
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"]["code"] == "NOT_YOUR_GAME"

    missing = client.get("/api/bot/missing", headers=headers(ALICE))
    assert missing.status_code == 404

    history = client.get("/api/bot/user/games", headers=headers(ALICE)).json()
    assert history["pagination"]["total"] == 1
    assert history["games"][0]["move_count"] == 3
    assert history["stats"]["total"] == 0


def test_room_history(client):
    room = started(client)
    for user, cell in [(ALICE, 0), (BOB, 3), (ALICE, 1), (BOB, 4), (ALICE, 2)]:
        client.post(f"/api/game/{room['id']}/move", json={"position": cell}, headers=headers(user))

    response = client.get("/api/replay/user/history", params={"limit": 5}, headers=headers(BOB))
    body = response.json()

    assert response.status_code == 200
    assert body["pagination"] == {"total": 1, "limit": 5, "offset": 0, "has_more": False}
    assert body["games"][0]["result"] == "loss"
    assert body["games"][0]["move_count"] == 5
    assert body["stats"] == {"total": 1, "wins": 0, "losses": 1, "draws": 0}
