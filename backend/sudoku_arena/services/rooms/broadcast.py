"""Outgoing notifications for room state changes.

Room services never talk to Socket.IO directly. They return an ordered list
of actions: `Outbound` messages addressed either to a room channel or to a
single transport, and `Subscription` changes adding or removing a transport
from a room channel. The socket layer replays that list as-is.
"""
from dataclasses import dataclass
from typing import Any, List, Optional

from sudoku_arena.models import TERRITORY, Player, Room


@dataclass(frozen=True)
class Outbound:
    event: str
    payload: Any
    to: str


@dataclass(frozen=True)
class Subscription:
    transport_id: str
    channel: str
    joined: bool = True


def room_channel(code: str) -> str:
    return f"room:{code}"


def to_room(room: Room, event: str, payload) -> Outbound:
    return Outbound(event, payload, room_channel(room.code))


def to_transport(transport_id: str, event: str, payload) -> Outbound:
    return Outbound(event, payload, transport_id)


def subscribe(transport_id: str, room: Room) -> Subscription:
    return Subscription(transport_id, room_channel(room.code), joined=True)


def unsubscribe(transport_id: str, room: Room) -> Subscription:
    return Subscription(transport_id, room_channel(room.code), joined=False)


# ---- Payloads ----

def roster(room: Room) -> List[dict]:
    return [p.to_dict(room.host_id) for p in room.players]


def score_table(room: Room) -> List[dict]:
    return [{'id': p.logical_id, 'score': p.score} for p in room.players]


def progress_table(room: Room) -> List[dict]:
    # Sorted for display only; the roster keeps join order
    table = [
        {'id': p.logical_id, 'username': p.username, 'progress': p.progress, 'color': p.color}
        for p in room.players
    ]
    return sorted(table, key=lambda entry: entry['progress'], reverse=True)


def lobby_payload(room: Room) -> dict:
    return {
        'players': roster(room),
        'mode': room.mode,
        'difficulty': room.difficulty,
        'hostId': room.host_id,
    }


def joined_payload(room: Room, player: Player, reconnected: bool) -> dict:
    return {
        'roomCode': room.code,
        'playerId': player.logical_id,
        'mode': room.mode,
        'color': player.color,
        'reconnected': reconnected,
    }


def game_started_payload(room: Room, now: float, resync: bool = False) -> dict:
    return {
        'initial': list(room.puzzle.initial),
        'players': roster(room),
        'totalEmpty': room.puzzle.empty_count,
        'mode': room.mode,
        'elapsed': room.elapsed(now),
        'resync': resync,
    }


def claim_payload(room: Room, index: int) -> dict:
    owner_id = room.claims[index]
    owner = room.lookup(owner_id)
    return {
        'index': index,
        'value': room.puzzle.solution[index],
        'ownerId': owner_id,
        'color': owner.color if owner else None,
        'scores': score_table(room),
    }


def score_refresh_payload(room: Room) -> dict:
    return {'index': -1, 'value': None, 'ownerId': None, 'color': None, 'scores': score_table(room)}


def penalty_payload(room: Room, player: Player, index: int) -> dict:
    return {'targetId': player.logical_id, 'index': index, 'scores': score_table(room)}


def player_left_payload(player: Player, temporary: bool) -> dict:
    return {'id': player.logical_id, 'username': player.username, 'temporary': temporary}


def game_over_payload(room: Room) -> dict:
    winner = room.lookup(room.winner_id)
    payload = {
        'winner': winner.username if winner else None,
        'winnerId': room.winner_id,
        'scores': score_table(room),
    }
    if room.mode == TERRITORY and room.puzzle is not None:
        payload['fullGrid'] = list(room.puzzle.solution)
    return payload


# ---- Composite notifications ----

def lobby_update(room: Room) -> Outbound:
    return to_room(room, 'update_lobby', lobby_payload(room))


def resync(room: Room, player: Player, now: float) -> List[Outbound]:
    """Unicast the match state a reconnecting player missed.

    Read-only: building the resync never mutates the room, so repeating it
    yields the same claims and scores.
    """
    target = player.transport_id
    actions = [to_transport(target, 'game_started', game_started_payload(room, now, resync=True))]
    if room.mode == TERRITORY:
        for index, owner_id in enumerate(room.claims):
            if owner_id is not None:
                actions.append(to_transport(target, 'territory_update', claim_payload(room, index)))
        actions.append(to_transport(target, 'territory_update', score_refresh_payload(room)))
    else:
        actions.append(to_transport(target, 'progress_update', progress_table(room)))
    return actions


def final_result(room: Room, player: Player) -> Optional[Outbound]:
    if room.winner_id is None:
        return None
    return to_transport(player.transport_id, 'game_over', game_over_payload(room))
