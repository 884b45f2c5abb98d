import logging
from typing import List

from sudoku_arena.errors import InvalidRequest, Unauthorized
from sudoku_arena.models import FINISHED, GRID_SIZE, LOBBY, PLAYING, TERRITORY, Player, Room
from . import broadcast
from .puzzle import DIFFICULTIES
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


def open_room(registry: RoomRegistry, transport_id: str, username, mode) -> List:
    """Create a lobby. The creator still has to join it like everybody else.

    A creator holds at most one unjoined room: opening another one, or
    disconnecting, drops the earlier room if nobody joined it.
    """
    room = registry.create_room(username, mode, creator_id=transport_id)
    return [broadcast.to_transport(transport_id, 'room_created', room.code)]


def _require_host(room: Room, player) -> None:
    if player is None or player.logical_id != room.host_id:
        raise Unauthorized()


def start_game(registry: RoomRegistry, room_code, transport_id: str) -> List:
    room = registry.get(room_code)
    if room is None or room.status != LOBBY:
        return []
    _require_host(room, registry.player_in(room, transport_id))

    room.puzzle = registry.new_puzzle(room.difficulty)
    for player in room.players:
        player.score = 0
        player.progress = 0
    room.claims = [None] * GRID_SIZE
    room.winner_id = None
    room.started_at = registry.clock()
    room.status = PLAYING
    logger.info(
        f"[game-start] room={room.code} mode={room.mode} difficulty={room.difficulty} "
        f"players={len(room.players)} empty={room.puzzle.empty_count}"
    )
    return [broadcast.to_room(room, 'game_started', broadcast.game_started_payload(room, room.started_at))]


def change_difficulty(registry: RoomRegistry, room_code, transport_id: str, difficulty) -> List:
    room = registry.get(room_code)
    if room is None or room.status != LOBBY:
        return []
    _require_host(room, registry.player_in(room, transport_id))
    if difficulty not in DIFFICULTIES:
        raise InvalidRequest(f'Unknown difficulty: {difficulty}')
    room.difficulty = difficulty
    return [broadcast.lobby_update(room)]


def finish_room(room: Room, winner: Player) -> None:
    room.status = FINISHED
    room.winner_id = winner.logical_id
    logger.info(f"[game-over] room={room.code} winner={winner.username!r} score={winner.score}")


def remove_player(registry: RoomRegistry, room: Room, player: Player) -> List:
    """Drop `player` for good. Destroys the room once nobody is left."""
    room.players.remove(player)
    registry.unbind(player.transport_id)
    player.transport_id = None
    player.connected = False
    logger.info(f"[player-removed] room={room.code} player={player.username!r} status={room.status}")

    if not room.players:
        registry.destroy_room(room.code)
        return []

    if room.host_id == player.logical_id:
        room.host_id = room.players[0].logical_id
        logger.info(f"[host-transfer] room={room.code} host={room.players[0].username!r}")

    if room.status == LOBBY:
        return [broadcast.lobby_update(room)]

    room.departed[player.logical_id] = player
    actions = [broadcast.to_room(room, 'player_left_game', broadcast.player_left_payload(player, temporary=False))]
    if room.mode == TERRITORY and room.status == PLAYING:
        actions.append(broadcast.to_room(room, 'territory_update', broadcast.score_refresh_payload(room)))
    return actions


def leave_room(registry: RoomRegistry, room_code, transport_id: str) -> List:
    room = registry.get(room_code)
    if room is None:
        return []
    player = registry.player_in(room, transport_id)
    if player is None:
        return []
    actions = [
        broadcast.unsubscribe(transport_id, room),
        broadcast.to_transport(transport_id, 'left_room', {'roomCode': room.code}),
    ]
    return actions + remove_player(registry, room, player)


def release_player(registry: RoomRegistry, room: Room, player: Player) -> List:
    """Detach `player` from its transport.

    Mid-match the player keeps their slot (score, claims, progress) and can
    come back by joining again with the same username. Anywhere else this
    counts as leaving.
    """
    if room.status != PLAYING:
        return remove_player(registry, room, player)

    registry.unbind(player.transport_id)
    player.transport_id = None
    player.connected = False
    logger.info(f"[player-disconnected] room={room.code} player={player.username!r}")
    return [broadcast.to_room(room, 'player_left_game', broadcast.player_left_payload(player, temporary=True))]


def disconnect(registry: RoomRegistry, transport_id: str) -> List:
    registry.drop_unjoined(transport_id)
    bound = registry.binding(transport_id)
    if bound is None:
        return []
    room = registry.get(bound[0])
    player = room.get_player(bound[1]) if room else None
    if player is None:
        registry.unbind(transport_id)
        return []
    return release_player(registry, room, player)
