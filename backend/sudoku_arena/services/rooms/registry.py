import logging
import random
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from sudoku_arena.errors import InvalidRequest, RoomNotFound
from sudoku_arena.models import LOBBY, MODES, Player, Puzzle, Room, generate_room_code, normalize_room_code
from .puzzle import DIFFICULTIES, generate_puzzle

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Process-wide table of live rooms and of the transports bound to them.

    A transport (Socket.IO sid) is bound to at most one player of one room.
    Players are keyed by their logical id, so a reconnect only touches the
    binding table, never claim ownership or host designation.

    Every mutation must happen while holding `lock`.
    """

    def __init__(
        self,
        puzzle_source: Callable[[str], Puzzle] = generate_puzzle,
        code_length: int = 4,
        default_difficulty: str = 'medium',
        claim_points: int = 10,
        wrong_move_penalty: int = 5,
        clock: Callable[[], float] = time.time,
        rng=None,
    ):
        if default_difficulty not in DIFFICULTIES:
            raise ValueError(f'Unknown difficulty: {default_difficulty!r}')
        self.puzzle_source = puzzle_source
        self.code_length = code_length
        self.default_difficulty = default_difficulty
        self.claim_points = claim_points
        self.wrong_move_penalty = wrong_move_penalty
        self.clock = clock
        self.lock = threading.RLock()
        self._rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._bindings: Dict[str, Tuple[str, str]] = {}  # transport id -> (room code, logical id)
        self._created: Dict[str, str] = {}  # creator transport id -> last room code it opened

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code) -> bool:
        return normalize_room_code(code) in self._rooms

    def create_room(self, username, mode, creator_id: Optional[str] = None) -> Room:
        if mode not in MODES:
            raise InvalidRequest(f'Unknown game mode: {mode}')
        if creator_id is not None:
            self.drop_unjoined(creator_id)
        code = generate_room_code(self._rooms, length=self.code_length, rng=self._rng)
        room = Room(code=code, mode=mode, difficulty=self.default_difficulty)
        self._rooms[code] = room
        if creator_id is not None:
            self._created[creator_id] = code
        logger.info(f"[room-created] room={code} mode={mode} creator={username!r}")
        return room

    def get(self, code) -> Optional[Room]:
        return self._rooms.get(normalize_room_code(code))

    def require(self, code) -> Room:
        room = self.get(code)
        if room is None:
            raise RoomNotFound()
        return room

    def destroy_room(self, code) -> None:
        room = self._rooms.pop(normalize_room_code(code), None)
        if room is None:
            return
        for transport_id in [t for t, (c, _) in self._bindings.items() if c == room.code]:
            del self._bindings[transport_id]
        logger.info(f"[room-destroyed] room={room.code}")

    def drop_unjoined(self, creator_id: str) -> None:
        """Destroy the last room `creator_id` opened if nobody ever joined it."""
        code = self._created.pop(creator_id, None)
        room = self._rooms.get(code) if code else None
        if room is not None and room.status == LOBBY and not room.players:
            self.destroy_room(code)

    def new_puzzle(self, difficulty: str) -> Puzzle:
        return self.puzzle_source(difficulty)

    # ---- Transport bindings ----

    def bind(self, transport_id: str, room: Room, player: Player) -> None:
        self._bindings[transport_id] = (room.code, player.logical_id)

    def unbind(self, transport_id: Optional[str]) -> None:
        if transport_id is not None:
            self._bindings.pop(transport_id, None)

    def binding(self, transport_id: str) -> Optional[Tuple[str, str]]:
        return self._bindings.get(transport_id)

    def player_in(self, room: Room, transport_id: str) -> Optional[Player]:
        """Return the player of `room` currently bound to `transport_id`."""
        bound = self._bindings.get(transport_id)
        if not bound or bound[0] != room.code:
            return None
        return room.get_player(bound[1])
