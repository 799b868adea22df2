from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from arena.api.models import Game, GameSummary, Player, PlayerRef, Unit, UnitType
from arena.entity_store import EntityStore, StoreTransaction, new_id
from arena.errors import ConflictError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

# Every player gets one of each, in this order.
ROSTER_MAX_HEALTH: dict[UnitType, int] = {
    UnitType.soldier: 100,
    UnitType.archer: 80,
    UnitType.wizard: 60,
    UnitType.knight: 120,
    UnitType.zombie: 90,
}

RECENT_GAMES_WINDOW = timedelta(hours=24)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _now() -> datetime:
    return datetime.now(tz=UTC)


def require_identifier(value: str, *, what: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER_RE.match(value):
        raise InvalidInputError(f"Malformed {what}: {value!r}")
    return value


def require_text(value: str, *, what: str, max_length: int = 64) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidInputError(f"{what} must not be empty")
    if len(text) > max_length:
        raise InvalidInputError(f"{what} must be at most {max_length} characters")
    return text


def build_roster(*, game_id: str, player_id: str, created_at: datetime) -> list[Unit]:
    return [
        Unit(
            id=new_id(),
            type=unit_type,
            game_id=game_id,
            player_id=player_id,
            health=max_health,
            max_health=max_health,
            level=1,
            experience=0,
            created_at=created_at,
        )
        for unit_type, max_health in ROSTER_MAX_HEALTH.items()
    ]


@dataclass(frozen=True, slots=True)
class JoinResult:
    player: Player
    units: list[Unit]


class GameSessions:
    """Game creation, joining and roster queries."""

    def __init__(self, store: EntityStore, *, clock: Callable[[], datetime] = _now):
        self._store = store
        self._clock = clock

    def create_game(self, name: str) -> Game:
        game = Game(id=new_id(), name=require_text(name, what="Game name"), created_at=self._clock())
        self._store.add_game(game)
        logger.info("created game %s (%s)", game.id, game.name)
        return game

    def join_game(self, game_id: str, username: str) -> JoinResult:
        """Add a player and its starting units to a game.

        The username check and the writes share one transaction on the game's
        roster, so two concurrent joins with the same name cannot both land.
        """

        require_identifier(game_id, what="game id")
        username = require_text(username, what="Username")

        def _join(tx: StoreTransaction) -> JoinResult:
            if tx.get_game(game_id) is None:
                raise NotFoundError("Game does not exist")
            if username in tx.roster(game_id):
                raise ConflictError("Player with that username already joined the game")

            player = Player(id=new_id(), username=username, game_id=game_id)
            units = build_roster(game_id=game_id, player_id=player.id, created_at=self._clock())
            tx.put_player(player)
            for unit in units:
                tx.put_unit(unit)
            return JoinResult(player=player, units=units)

        result = self._store.run_transaction(_join, name="join_game")
        logger.info("player %s (%s) joined game %s", result.player.id, username, game_id)
        return result

    def list_recent_games(self, *, window: timedelta = RECENT_GAMES_WINDOW) -> list[GameSummary]:
        since = self._clock() - window
        games = self._store.games_created_since(since)
        games.sort(key=lambda g: g.created_at, reverse=True)

        out: list[GameSummary] = []
        for game in games:
            # One roster lookup per game keeps this correct however many games are recent.
            players = self._store.players_in_game(game.id)
            out.append(
                GameSummary(
                    id=game.id,
                    name=game.name,
                    created_at=game.created_at,
                    players=[PlayerRef(id=p.id, username=p.username) for p in players],
                )
            )
        return out

    def require_player_in_game(self, game_id: str, player_id: str) -> Player:
        player = self._store.get_player(player_id)
        if player is None:
            raise NotFoundError("Player does not exist")
        if player.game_id != game_id:
            raise ConflictError("Player is not part of this game")
        return player

    def list_units(self, game_id: str, player_id: str | None = None) -> list[Unit]:
        require_identifier(game_id, what="game id")

        if player_id is not None:
            require_identifier(player_id, what="player id")
            player = self.require_player_in_game(game_id, player_id)
            return self._store.units_of_player(player.id)

        if self._store.get_game(game_id) is None:
            raise NotFoundError("Game does not exist")

        units: list[Unit] = []
        for player in self._store.players_in_game(game_id):
            units.extend(self._store.units_of_player(player.id))
        return units
