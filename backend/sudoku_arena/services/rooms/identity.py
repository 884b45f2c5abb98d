import logging
from dataclasses import dataclass
from typing import List, Optional

from sudoku_arena.errors import InvalidRequest, MatchAlreadyStarted
from sudoku_arena.models import FINISHED, LOBBY, PLAYING, Player, Room
from . import broadcast, lifecycle
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    room: Room
    player: Player
    reconnected: bool
    previous_transport_id: Optional[str] = None


def _clean_username(username) -> str:
    name = str(username).strip() if username is not None else ''
    if not name:
        raise InvalidRequest('Username is required.')
    return name


def resolve_player(registry: RoomRegistry, room_code, transport_id: str, username,
                   replacing: Optional[Player] = None) -> Resolution:
    """Match an incoming (transport, username) pair against the room roster.

    A known username is a reconnection: the existing player is rebound to the
    new transport and keeps everything else. An unknown username is a new
    player, which is only allowed while the room is still in the lobby.
    `replacing` is a player of the same room that is about to be released;
    it does not count towards the new player's color.
    """
    room = registry.require(room_code)
    name = _clean_username(username)

    player = room.find_player(name)
    if player is not None:
        previous = player.transport_id if player.transport_id != transport_id else None
        registry.unbind(previous)
        player.transport_id = transport_id
        player.connected = True
        registry.bind(transport_id, room, player)
        logger.info(f"[reconnect] room={room.code} player={name!r} status={room.status}")
        return Resolution(room, player, reconnected=True, previous_transport_id=previous)

    if room.status != LOBBY:
        raise MatchAlreadyStarted()

    player = Player(username=name, color=room.next_color(replacing), transport_id=transport_id)
    room.players.append(player)
    if room.host_id is None:
        room.host_id = player.logical_id
    registry.bind(transport_id, room, player)
    logger.info(f"[join] room={room.code} player={name!r} color={player.color} players={len(room.players)}")
    return Resolution(room, player, reconnected=False)


def join_room(registry: RoomRegistry, room_code, transport_id: str, username) -> List:
    room = registry.require(room_code)
    name = _clean_username(username)
    if room.find_player(name) is None and room.status != LOBBY:
        raise MatchAlreadyStarted()

    # A transport acts for one player at a time; remember what it acted for until now
    detached = None
    bound = registry.binding(transport_id)
    if bound is not None:
        old_room = registry.get(bound[0])
        old_player = old_room.get_player(bound[1]) if old_room else None
        if old_player is not None and (old_room is not room or old_player.username != name):
            old_player.transport_id = None
            detached = (old_room, old_player)

    replacing = detached[1] if detached is not None and detached[0] is room else None
    resolution = resolve_player(registry, room.code, transport_id, name, replacing=replacing)
    player = resolution.player

    actions = []
    if detached is not None:
        old_room, old_player = detached
        if old_room is not room:
            actions.append(broadcast.unsubscribe(transport_id, old_room))
        actions.extend(lifecycle.release_player(registry, old_room, old_player))
    if resolution.previous_transport_id is not None:
        actions.append(broadcast.unsubscribe(resolution.previous_transport_id, room))
    actions.append(broadcast.subscribe(transport_id, room))
    actions.append(broadcast.to_transport(
        transport_id, 'joined_success', broadcast.joined_payload(room, player, resolution.reconnected)
    ))

    if room.status == PLAYING:
        actions.extend(broadcast.resync(room, player, registry.clock()))
    elif room.status == FINISHED:
        final = broadcast.final_result(room, player)
        if final is not None:
            actions.append(final)
    else:
        actions.append(broadcast.lobby_update(room))
    return actions
