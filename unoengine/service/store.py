"""
Game Store - In-memory document store with serialized transactions.

Collections (all plain JSON-like dicts):
- games[gameId]                     game document
- players[gameId][userId]           public game player document
- hands[gameId][userId]             private hand document {"hand": [...]}
- user_stats[userId]                lifetime statistics document
- events[gameId]                    append-only event log

TRANSACTIONS:
- One transaction at a time (asyncio.Lock)
- Reads return typed snapshots and see the transaction's own writes
- Writes are buffered on copies of the touched documents
- Commit happens only when the block exits without an exception,
  so a failed action leaves the store untouched

Dotted-path updates ("state.discardPile", "gameStats.cardsDrawn") are
applied on the buffered copy. Values may be Cards, Enums or lists of
them; they are converted to their document form on write.
"""

from __future__ import annotations
from contextlib import asynccontextmanager
from copy import deepcopy
from enum import Enum
from typing import Any, AsyncIterator, Iterable, Mapping
import asyncio
import logging

from ..engine_core.cards import Card
from ..engine_core.effects import GameEvent
from ..engine_core.errors import ErrorCode, UnoError
from ..engine_core.state import Game, GamePlayer, PlayerHand, UserStats

logger = logging.getLogger(__name__)

Document = dict[str, Any]


def to_document_value(value: Any) -> Any:
    """Convert engine values to their stored form."""
    if isinstance(value, Card):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [to_document_value(item) for item in value]
    if isinstance(value, dict):
        return {key: to_document_value(item) for key, item in value.items()}
    return value


def set_path(document: Document, path: str, value: Any):
    """Set a dotted path, creating intermediate maps as needed."""
    *parents, leaf = path.split(".")
    target = document
    for key in parents:
        target = target.setdefault(key, {})
    target[leaf] = to_document_value(value)


class GameStore:
    """
    The persistence collaborator used by the game service.

    Usage:
        store = GameStore()
        async with store.transaction() as tx:
            game = await tx.get_game(game_id)
            tx.update_game(game_id, {"state.mustDraw": 0})
    """

    def __init__(self):
        self.games: dict[str, Document] = {}
        self.players: dict[str, dict[str, Document]] = {}
        self.hands: dict[str, dict[str, Document]] = {}
        self.user_stats: dict[str, Document] = {}
        self.events: dict[str, list[Document]] = {}
        self.commits = 0
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        async with self._lock:
            tx = Transaction(self)
            yield tx
            tx.commit()

    def event_log(self, game_id: str) -> list[Document]:
        return list(self.events.get(game_id, []))


class Transaction:
    """Buffered view over a GameStore. Created by GameStore.transaction()."""

    def __init__(self, store: GameStore):
        self._store = store
        self._games: dict[str, Document] = {}
        self._players: dict[tuple[str, str], Document] = {}
        self._hands: dict[tuple[str, str], Document] = {}
        self._user_stats: dict[str, Document] = {}
        self._events: dict[str, list[Document]] = {}
        self._committed = False

    # Reads

    def _game_doc(self, game_id: str) -> Document:
        if game_id not in self._games:
            stored = self._store.games.get(game_id)
            if stored is None:
                raise UnoError.game_state(
                    ErrorCode.GAME_NOT_FOUND, "Game not found", game_id=game_id
                )
            self._games[game_id] = deepcopy(stored)
        return self._games[game_id]

    def _player_doc(self, game_id: str, player_id: str) -> Document:
        key = (game_id, player_id)
        if key not in self._players:
            stored = self._store.players.get(game_id, {}).get(player_id)
            if stored is None:
                raise UnoError.game_state(
                    ErrorCode.PLAYER_NOT_FOUND,
                    "Player not found",
                    game_id=game_id,
                    player_id=player_id,
                )
            self._players[key] = deepcopy(stored)
        return self._players[key]

    def _hand_doc(self, game_id: str, player_id: str) -> Document:
        key = (game_id, player_id)
        if key not in self._hands:
            stored = self._store.hands.get(game_id, {}).get(player_id, {"hand": []})
            self._hands[key] = deepcopy(stored)
        return self._hands[key]

    async def get_game(self, game_id: str) -> Game:
        return Game.from_document(game_id, self._game_doc(game_id))

    async def get_game_player(self, game_id: str, player_id: str) -> GamePlayer:
        return GamePlayer.from_document(self._player_doc(game_id, player_id))

    async def get_game_players(self, game_id: str) -> dict[str, GamePlayer]:
        """All seated players, in seat order."""
        seats = self._game_doc(game_id).get("players", [])
        return {pid: await self.get_game_player(game_id, pid) for pid in seats}

    async def get_player_hand(self, game_id: str, player_id: str) -> PlayerHand:
        return PlayerHand.from_document(player_id, self._hand_doc(game_id, player_id))

    async def get_player_hands(
        self, game_id: str, player_ids: Iterable[str]
    ) -> dict[str, PlayerHand]:
        return {pid: await self.get_player_hand(game_id, pid) for pid in player_ids}

    async def get_user_stats(self, user_id: str) -> UserStats:
        if user_id in self._user_stats:
            return UserStats.from_document(self._user_stats[user_id])
        return UserStats.from_document(self._store.user_stats.get(user_id))

    # Writes

    def create_game(self, game_id: str, document: Document):
        if game_id in self._store.games or game_id in self._games:
            raise UnoError.internal("Game already exists", game_id=game_id)
        self._games[game_id] = to_document_value(document)

    def update_game(self, game_id: str, updates: Mapping[str, Any]):
        document = self._game_doc(game_id)
        for path, value in updates.items():
            set_path(document, path, value)

    def set_game_player(self, game_id: str, player: GamePlayer):
        self._players[(game_id, player.player_id)] = player.to_document()

    def update_game_player(self, game_id: str, player_id: str, updates: Mapping[str, Any]):
        document = self._player_doc(game_id, player_id)
        for path, value in updates.items():
            set_path(document, path, value)

    def set_player_hand(self, game_id: str, player_id: str, cards: Iterable[Card]):
        self._hands[(game_id, player_id)] = {"hand": to_document_value(list(cards))}

    def set_user_stats(self, user_id: str, stats: UserStats):
        self._user_stats[user_id] = stats.to_document()

    def add_events(self, game_id: str, events: Iterable[GameEvent]):
        self._events.setdefault(game_id, []).extend(
            {"type": event.type, "payload": to_document_value(event.payload)}
            for event in events
        )

    def commit(self):
        if self._committed:
            raise UnoError.internal("Transaction already committed")
        store = self._store
        store.games.update(self._games)
        for (game_id, player_id), document in self._players.items():
            store.players.setdefault(game_id, {})[player_id] = document
        for (game_id, player_id), document in self._hands.items():
            store.hands.setdefault(game_id, {})[player_id] = document
        store.user_stats.update(self._user_stats)
        for game_id, events in self._events.items():
            store.events.setdefault(game_id, []).extend(events)
        store.commits += 1
        self._committed = True
        logger.debug(
            "Committed transaction: %d games, %d players, %d hands",
            len(self._games), len(self._players), len(self._hands),
        )
