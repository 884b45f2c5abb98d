import random
import string
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# Room lifecycle
LOBBY = 'lobby'
PLAYING = 'playing'
FINISHED = 'finished'

# Game modes
SPEEDRUN = 'speedrun'
TERRITORY = 'territory'
MODES = (SPEEDRUN, TERRITORY)

GRID_SIZE = 81

# Territory colors, handed out by join order
PALETTE = (
    '#86efac',
    '#fca5a5',
    '#93c5fd',
    '#fde047',
    '#d8b4fe',
    '#fdba74',
)


def generate_room_code(existing, length=4, rng=random):
    """Generate a short room code not present in `existing`."""
    while True:
        code = ''.join(rng.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in existing:
            return code


def normalize_room_code(code) -> str:
    if code is None:
        return ''
    return str(code).strip().upper()


@dataclass(frozen=True)
class Puzzle:
    """One round's board: the erased grid handed to players and its solution."""

    initial: Tuple[int, ...]
    solution: Tuple[int, ...]

    @property
    def empty_count(self) -> int:
        return sum(1 for value in self.initial if value == 0)

    def is_given(self, index: int) -> bool:
        return self.initial[index] != 0


@dataclass
class Player:
    username: str
    color: str
    transport_id: Optional[str] = None
    logical_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    score: int = 0
    progress: float = 0
    connected: bool = True

    def to_dict(self, host_id: Optional[str] = None):
        return {
            'id': self.logical_id,
            'username': self.username,
            'color': self.color,
            'score': self.score,
            'progress': self.progress,
            'connected': self.connected,
            'isHost': self.logical_id == host_id,
        }


@dataclass
class Room:
    code: str
    mode: str
    difficulty: str
    host_id: Optional[str] = None
    status: str = LOBBY
    players: List[Player] = field(default_factory=list)
    puzzle: Optional[Puzzle] = None
    # Owner logical id per cell; only used in territory mode
    claims: List[Optional[str]] = field(default_factory=lambda: [None] * GRID_SIZE)
    started_at: Optional[float] = None
    winner_id: Optional[str] = None
    # Players who left mid-match, kept so their claims can still be rendered
    departed: Dict[str, Player] = field(default_factory=dict)

    def find_player(self, username: str) -> Optional[Player]:
        for player in self.players:
            if player.username == username:
                return player
        return None

    def get_player(self, logical_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.logical_id == logical_id:
                return player
        return None

    def lookup(self, logical_id: Optional[str]) -> Optional[Player]:
        return self.get_player(logical_id) or self.departed.get(logical_id)

    @property
    def host(self) -> Optional[Player]:
        return self.get_player(self.host_id)

    def next_color(self, replacing: Optional[Player] = None) -> str:
        size = len([p for p in self.players if p is not replacing])
        return PALETTE[size % len(PALETTE)]

    def claimed_count(self) -> int:
        return sum(1 for owner in self.claims if owner is not None)

    def elapsed(self, now: float) -> int:
        if self.started_at is None:
            return 0
        return max(0, int(now - self.started_at))

    def to_dict(self):
        """Lobby-level summary. Never includes the solution."""
        return {
            'code': self.code,
            'status': self.status,
            'mode': self.mode,
            'difficulty': self.difficulty,
            'hostId': self.host_id,
            'players': [p.to_dict(self.host_id) for p in self.players],
        }
