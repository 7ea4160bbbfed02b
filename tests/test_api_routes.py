"""Tests for the player state, device and user data endpoints."""

import json

from conftest import USER_ID, currently_playing_payload

from cassette.models.player_state import DeviceDescriptor


def test_store_appends_slot_and_pauses(logged_in_client, player, store):
    response = logged_in_client.post("/api/playerStates")
    assert response.status_code == 201
    body = response.json()
    assert body["slot"] == 0
    assert body["state"]["item_uri"] == "spotify:track:t1"
    assert body["state"]["artist_names"] == "Author One, Reader Two"
    assert player.call_names()[-1] == "pause"
    assert len(store.load(USER_ID)) == 1


def test_list_returns_stored_slots(logged_in_client):
    logged_in_client.post("/api/playerStates")
    response = logged_in_client.get("/api/playerStates")
    assert response.status_code == 200
    states = response.json()
    assert len(states) == 1
    assert set(states[0]) == {
        "context_uri",
        "item_uri",
        "title",
        "album_name",
        "artwork_url",
        "artist_names",
        "position_ms",
        "duration_ms",
    }


def test_put_overwrites_existing_slot(logged_in_client, player):
    logged_in_client.post("/api/playerStates")
    player.playing = currently_playing_payload(position_ms=1_000, item_uri="spotify:track:t2")
    response = logged_in_client.put("/api/playerStates/0")
    assert response.status_code == 200
    states = logged_in_client.get("/api/playerStates").json()
    assert [s["item_uri"] for s in states] == ["spotify:track:t2"]


def test_put_out_of_range_slot_is_400_without_provider_call(logged_in_client, player):
    player.calls.clear()
    response = logged_in_client.put("/api/playerStates/3")
    assert response.status_code == 400
    assert player.calls == []


def test_malformed_slot_is_400(logged_in_client, player):
    player.calls.clear()
    for slot in ("abc", "-1", "1.5"):
        response = logged_in_client.post(f"/api/playerStates/{slot}/restore")
        assert response.status_code == 400, slot
    assert player.calls == []


def test_store_with_nothing_playing_is_500(logged_in_client, player):
    player.playing = None
    response = logged_in_client.post("/api/playerStates")
    assert response.status_code == 500
    assert "player state" in response.json()["error"]


def test_delete_slot_compacts(logged_in_client, player):
    for uri in ("spotify:track:a", "spotify:track:b", "spotify:track:c"):
        player.playing = currently_playing_payload(item_uri=uri)
        logged_in_client.post("/api/playerStates")
    response = logged_in_client.delete("/api/playerStates/1")
    assert response.status_code == 200
    assert [s["item_uri"] for s in response.json()] == ["spotify:track:a", "spotify:track:c"]


def test_delete_missing_slot_is_400(logged_in_client):
    response = logged_in_client.delete("/api/playerStates/0")
    assert response.status_code == 400


def test_restore_uses_active_device(logged_in_client, player):
    logged_in_client.post("/api/playerStates")
    player.device_list = [
        DeviceDescriptor(id="A", name="Phone", is_active=False),
        DeviceDescriptor(id="B", name="Speaker", is_active=True),
    ]
    response = logged_in_client.post("/api/playerStates/0/restore")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "device_id": "B", "position_ms": 35_000}
    assert player.calls[-1] == ("play", "spotify:album:ctx1", "spotify:track:t1", 35_000, "B")


def test_restore_with_device_query(logged_in_client, player):
    logged_in_client.post("/api/playerStates")
    player.calls.clear()
    response = logged_in_client.post("/api/playerStates/0/restore", params={"deviceID": "explicit"})
    assert response.status_code == 200
    assert "devices" not in player.call_names()
    assert player.calls[-1][-1] == "explicit"


def test_restore_out_of_range(logged_in_client, player):
    player.calls.clear()
    response = logged_in_client.post("/api/playerStates/0/restore")
    assert response.status_code == 400
    assert player.calls == []


def test_restore_without_devices_is_500(logged_in_client, player):
    logged_in_client.post("/api/playerStates")
    player.device_list = []
    response = logged_in_client.post("/api/playerStates/0/restore")
    assert response.status_code == 500
    assert "device" in response.json()["error"]


def test_active_devices(logged_in_client, player):
    player.device_list = [
        DeviceDescriptor(id="A", name="Phone", is_active=False),
        DeviceDescriptor(id="B", name="Speaker", is_active=True),
    ]
    response = logged_in_client.get("/api/activeDevices")
    assert response.status_code == 200
    assert response.json() == [
        {"id": "A", "name": "Phone", "active": False},
        {"id": "B", "name": "Speaker", "active": True},
    ]


def test_export_without_data_is_not_found_shape(logged_in_client):
    """No stored record: 400 with the 'no data' message, not a 500."""
    response = logged_in_client.get("/api/you")
    assert response.status_code == 400
    assert "no data" in response.json()["error"].lower()


def test_export_returns_raw_document(logged_in_client):
    logged_in_client.post("/api/playerStates")
    response = logged_in_client.get("/api/you")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert "attachment" in response.headers["content-disposition"]
    document = json.loads(response.content)
    assert document["user_id"] == USER_ID
    assert len(document["states"]) == 1


def test_delete_user_data(logged_in_client):
    logged_in_client.post("/api/playerStates")
    assert logged_in_client.delete("/api/you").json() == {"ok": True}
    assert logged_in_client.get("/api/playerStates").json() == []
    assert logged_in_client.delete("/api/you").status_code == 400
