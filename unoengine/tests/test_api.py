"""
Tests for the REST API.

Tests:
- Lobby endpoints and header authentication
- Action endpoints and response shapes
- Error responses carry engine codes and HTTP statuses
"""

import pytest
from fastapi.testclient import TestClient

from ..api import create_app
from ..engine_core.cards import Card, SKIP, WILD
from .conftest import blue, build_game, build_player, green, red, seed_store


def as_player(player_id):
    return {"X-Player-Id": player_id}


@pytest.fixture
def client(service, settings):
    """API client over the fixed-clock service."""
    return TestClient(create_app(service, settings))


@pytest.fixture
def started(client):
    """A two-player game started through the API."""
    client.post("/api/v1/games", json={"displayName": "Alice"}, headers=as_player("alice"))
    client.post("/api/v1/games/game-1/join", headers=as_player("bob"))
    response = client.post("/api/v1/games/game-1/start", headers=as_player("alice"))
    assert response.status_code == 200
    return response.json()


class TestSystem:
    """Tests for health and request plumbing."""

    def test_health(self, client):
        """The health endpoint reports the service name."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "unoengine"

    def test_missing_player_header(self, client):
        """Every player endpoint needs the X-Player-Id header."""
        response = client.post("/api/v1/games", json={})
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"
        assert response.json()["api_version"] == "v1"

    def test_unknown_game(self, client):
        """Unknown game ids are 404 with the id in details."""
        response = client.get("/api/v1/games/nope")
        assert response.status_code == 404
        assert response.json()["code"] == "GAME_NOT_FOUND"
        assert response.json()["details"] == {"game_id": "nope"}


class TestLobbyEndpoints:
    """Tests for create, join, start and hand endpoints."""

    def test_create_game(self, client):
        """Creating a game returns 201 with the host seated."""
        response = client.post(
            "/api/v1/games",
            json={"displayName": "Alice", "config": {"maxPlayers": 3, "houseRules": ["stacking"]}},
            headers=as_player("alice"),
        )
        assert response.status_code == 201
        body = response.json()
        assert body["gameId"] == "game-1"
        assert body["state"]["status"] == "waiting"
        assert body["config"]["houseRules"] == ["stacking"]
        assert body["players"][0]["displayName"] == "Alice"

    def test_invalid_config(self, client):
        """Out-of-range config is a 400."""
        response = client.post(
            "/api/v1/games", json={"config": {"maxPlayers": 11}}, headers=as_player("alice")
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_REQUEST"

    def test_start_game(self, started):
        """Dealing leaves 108 - 14 - 1 cards in the draw pile."""
        assert started["state"]["status"] == "in-progress"
        assert started["state"]["currentTurnPlayerId"] == "alice"
        assert started["state"]["drawPileCount"] == 93
        assert started["state"]["discardCount"] == 1
        assert [p["cardCount"] for p in started["players"]] == [7, 7]
        assert "deckSeed" not in started["state"]

    def test_only_seated_players_start(self, client):
        """Only seated players may start the game."""
        client.post("/api/v1/games", json={}, headers=as_player("alice"))
        client.post("/api/v1/games/game-1/join", headers=as_player("bob"))
        response = client.post("/api/v1/games/game-1/start", headers=as_player("mallory"))
        assert response.status_code == 403
        assert response.json()["code"] == "PERMISSION_DENIED"

    def test_start_alone(self, client):
        """Starting with one player is a 412."""
        client.post("/api/v1/games", json={}, headers=as_player("alice"))
        response = client.post("/api/v1/games/game-1/start", headers=as_player("alice"))
        assert response.status_code == 412
        assert response.json()["code"] == "MIN_PLAYERS_NOT_MET"

    def test_own_hand(self, client, started):
        """Players can read their own hand."""
        response = client.get("/api/v1/games/game-1/hand/alice", headers=as_player("alice"))
        assert response.status_code == 200
        assert response.json()["playerId"] == "alice"
        assert len(response.json()["cards"]) == 7

    def test_other_hand_is_private(self, client, started):
        """Reading another player's hand is a 403."""
        response = client.get("/api/v1/games/game-1/hand/bob", headers=as_player("alice"))
        assert response.status_code == 403


class TestActionEndpoints:
    """Tests for play, draw, pass and UNO endpoints."""

    def test_play(self, client, store):
        """A legal play advances the turn and emits card_played."""
        seed_store(store, build_game(), {"p1": [red(3), blue(5)], "p2": [green(1)]})
        response = client.post(
            "/api/v1/games/game-1/play", json={"cardIndex": 0}, headers=as_player("p1")
        )

        assert response.status_code == 200
        body = response.json()
        assert body["action"] == "play"
        assert body["nextPlayerId"] == "p2"
        assert body["turnPhase"] == "turn-complete"
        assert body["events"][0]["type"] == "card_played"
        assert body["events"][0]["payload"]["card"] == {"kind": "number", "value": 3, "color": "red"}

    def test_play_wild_with_color(self, client, store):
        """A wild play sets the chosen color."""
        seed_store(store, build_game(), {"p1": [Card.wild(WILD), blue(5)], "p2": [green(1)]})
        response = client.post(
            "/api/v1/games/game-1/play",
            json={"cardIndex": 0, "chosenColor": "blue"},
            headers=as_player("p1"),
        )
        assert response.status_code == 200
        game = client.get("/api/v1/games/game-1").json()
        assert game["state"]["currentColor"] == "blue"

    def test_winning_play(self, client, store):
        """Emptying the hand completes the game with final scores."""
        hands = {"p1": [red(3)], "p2": [red(5), red(SKIP), Card.wild(WILD)]}
        seed_store(store, build_game(), hands)
        response = client.post(
            "/api/v1/games/game-1/play", json={"cardIndex": 0}, headers=as_player("p1")
        )

        body = response.json()
        assert body["winnerId"] == "p1"
        assert body["finalScores"]["winnerScore"] == 75
        game = client.get("/api/v1/games/game-1").json()
        assert game["state"]["status"] == "completed"
        assert game["finalScores"]["playerScores"][0]["playerId"] == "p1"

    @pytest.mark.parametrize("payload,status,code", [
        ({"cardIndex": 9}, 400, "INVALID_CARD_INDEX"),
        ({"cardIndex": 1}, 400, "CARD_NOT_PLAYABLE"),
        ({"cardIndex": -1}, 400, "INVALID_REQUEST"),
        ({"cardIndex": 0, "chosenColor": "purple"}, 400, "INVALID_REQUEST"),
    ])
    def test_play_errors(self, client, store, payload, status, code):
        """Bad plays map to their engine codes."""
        seed_store(store, build_game(), {"p1": [red(3), blue(7)], "p2": [green(1)]})
        response = client.post("/api/v1/games/game-1/play", json=payload, headers=as_player("p1"))
        assert response.status_code == status
        assert response.json()["code"] == code

    def test_not_your_turn(self, client, store):
        """Acting out of turn is a 412."""
        seed_store(store, build_game(), {"p1": [red(3)], "p2": [red(1)]})
        response = client.post(
            "/api/v1/games/game-1/play", json={"cardIndex": 0}, headers=as_player("p2")
        )
        assert response.status_code == 412
        assert response.json()["code"] == "NOT_YOUR_TURN"

    def test_draw_without_body(self, client, started):
        """Draw defaults to one card."""
        response = client.post("/api/v1/games/game-1/draw", headers=as_player("alice"))
        assert response.status_code == 200
        body = response.json()
        assert body["action"] == "draw"
        assert len(body["drawnCards"]) == 1

        game = client.get("/api/v1/games/game-1").json()
        assert game["state"]["drawPileCount"] == 92

    def test_invalid_draw_count(self, client, started):
        """A zero draw count is rejected."""
        response = client.post(
            "/api/v1/games/game-1/draw", json={"count": 0}, headers=as_player("alice")
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DRAW_COUNT"

    def test_pass(self, client, started):
        """Passing hands the turn to the next player."""
        response = client.post("/api/v1/games/game-1/pass", headers=as_player("alice"))
        assert response.status_code == 200
        assert response.json()["nextPlayerId"] == "bob"

    def test_catch_uno(self, client, store):
        """Calling UNO catches an opponent who forgot."""
        players = {"p2": build_player("p2", card_count=1, must_call_uno=True)}
        seed_store(store, build_game(), {"p1": [red(1), red(2)], "p2": [blue(4)]}, players)
        response = client.post("/api/v1/games/game-1/uno", headers=as_player("p1"))

        assert response.status_code == 200
        assert response.json()["caughtPlayerId"] == "p2"
