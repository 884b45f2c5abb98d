import logging
import math
from typing import List, Optional

from sudoku_arena.models import GRID_SIZE, PLAYING, SPEEDRUN, TERRITORY
from . import broadcast
from .lifecycle import finish_room
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def submit_move(registry: RoomRegistry, room_code, transport_id: str, index, value) -> List:
    """Judge one answer.

    Territory mode: a correct answer claims the cell only if nobody owns it
    yet. Messages are handled one at a time, so when two players answer the
    same cell the first one processed wins and the second one finds the cell
    taken. Wrong answers cost points. Speedrun answers are not tracked here;
    players report their own progress through `update_progress`.
    """
    room = registry.get(room_code)
    if room is None or room.status != PLAYING or room.puzzle is None:
        return []
    player = registry.player_in(room, transport_id)
    if player is None:
        return []
    index = _as_int(index)
    value = _as_int(value)
    if index is None or not 0 <= index < GRID_SIZE or room.puzzle.is_given(index):
        return []
    if value is None:
        # unreadable answers are dropped, not scored as wrong
        return []

    if room.mode != TERRITORY:
        return []

    if value != room.puzzle.solution[index]:
        player.score -= registry.wrong_move_penalty
        logger.info(f"[penalty] room={room.code} player={player.username!r} index={index} score={player.score}")
        return [broadcast.to_room(room, 'territory_penalty', broadcast.penalty_payload(room, player, index))]

    if room.claims[index] is not None:
        logger.info(f"[claim-rejected] room={room.code} player={player.username!r} index={index}")
        return []

    room.claims[index] = player.logical_id
    player.score += registry.claim_points
    actions = [broadcast.to_room(room, 'territory_update', broadcast.claim_payload(room, index))]

    if room.claimed_count() >= room.puzzle.empty_count:
        # max() keeps the first of equal scores, i.e. the earliest to join
        winner = max(room.players, key=lambda p: p.score)
        finish_room(room, winner)
        actions.append(broadcast.to_room(room, 'game_over', broadcast.game_over_payload(room)))
    return actions


def update_progress(registry: RoomRegistry, room_code, transport_id: str, progress) -> List:
    room = registry.get(room_code)
    if room is None or room.mode != SPEEDRUN or room.status != PLAYING:
        return []
    player = registry.player_in(room, transport_id)
    if player is None:
        return []
    if isinstance(progress, bool):
        return []
    try:
        percent = float(progress)
    except (TypeError, ValueError):
        return []
    if math.isnan(percent):
        return []

    player.progress = min(100.0, max(0.0, percent))
    actions = [broadcast.to_room(room, 'progress_update', broadcast.progress_table(room))]
    if player.progress >= 100:
        finish_room(room, player)
        actions.append(broadcast.to_room(room, 'game_over', broadcast.game_over_payload(room)))
    return actions
