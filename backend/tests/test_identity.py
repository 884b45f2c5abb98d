import pytest

from sudoku_arena.errors import InvalidRequest, MatchAlreadyStarted, RoomNotFound
from sudoku_arena.models import PALETTE
from sudoku_arena.services.rooms import arbitration, identity, lifecycle
from sudoku_arena.services.rooms.broadcast import Outbound, Subscription, room_channel


def _emitted(actions, event=None):
    out = [a for a in actions if isinstance(a, Outbound)]
    if event is not None:
        out = [a for a in out if a.event == event]
    return out


def test_resolve_unknown_room(registry):
    with pytest.raises(RoomNotFound):
        identity.resolve_player(registry, 'NOPE', 'sid-1', 'alice')


def test_blank_username_is_rejected(registry):
    room = registry.create_room('alice', 'speedrun')
    with pytest.raises(InvalidRequest):
        identity.resolve_player(registry, room.code, 'sid-1', '   ')


def test_first_player_becomes_host_and_colors_follow_join_order(registry):
    room = registry.create_room('alice', 'territory')
    names = ['p%d' % i for i in range(len(PALETTE) + 1)]
    for i, name in enumerate(names):
        resolution = identity.resolve_player(registry, room.code, f'sid-{i}', name)
        assert resolution.reconnected is False
    assert room.host_id == room.players[0].logical_id
    assert [p.color for p in room.players] == list(PALETTE) + [PALETTE[0]]


def test_same_username_is_a_reconnection(registry):
    room = registry.create_room('alice', 'territory')
    first = identity.resolve_player(registry, room.code, 'sid-1', 'alice').player
    first.score = 30

    again = identity.resolve_player(registry, room.code.lower(), 'sid-2', 'alice')
    assert again.reconnected is True
    assert again.player is first
    assert again.previous_transport_id == 'sid-1'
    assert first.transport_id == 'sid-2'
    assert first.score == 30
    assert len(room.players) == 1
    assert registry.binding('sid-1') is None
    assert registry.player_in(room, 'sid-2') is first


def test_new_username_cannot_join_a_started_match(registry):
    room = registry.create_room('alice', 'speedrun')
    identity.resolve_player(registry, room.code, 'sid-1', 'alice')
    lifecycle.start_game(registry, room.code, 'sid-1')
    with pytest.raises(MatchAlreadyStarted):
        identity.resolve_player(registry, room.code, 'sid-2', 'mallory')
    with pytest.raises(MatchAlreadyStarted):
        identity.join_room(registry, room.code, 'sid-2', 'mallory')


def test_join_in_lobby_confirms_and_updates_roster(registry):
    room = registry.create_room('alice', 'speedrun')
    actions = identity.join_room(registry, room.code, 'sid-1', 'alice')

    assert actions[0] == Subscription('sid-1', room_channel(room.code), joined=True)
    joined = _emitted(actions, 'joined_success')[0]
    assert joined.to == 'sid-1'
    assert joined.payload['roomCode'] == room.code
    assert joined.payload['playerId'] == room.players[0].logical_id
    assert joined.payload['color'] == PALETTE[0]
    assert joined.payload['reconnected'] is False

    lobby = _emitted(actions, 'update_lobby')[0]
    assert lobby.to == room_channel(room.code)
    assert lobby.payload['hostId'] == room.players[0].logical_id
    assert lobby.payload['mode'] == 'speedrun'
    assert [p['username'] for p in lobby.payload['players']] == ['alice']


def test_reconnect_mid_match_gets_a_private_resync(registry, puzzle, clock):
    room = registry.create_room('alice', 'territory')
    identity.join_room(registry, room.code, 'sid-a', 'alice')
    identity.join_room(registry, room.code, 'sid-b', 'bob')
    lifecycle.start_game(registry, room.code, 'sid-a')
    arbitration.submit_move(registry, room.code, 'sid-a', 0, puzzle.solution[0])
    lifecycle.disconnect(registry, 'sid-a')

    clock.now += 42
    actions = identity.join_room(registry, room.code, 'sid-a2', 'alice')

    assert not _emitted(actions, 'update_lobby')
    assert all(a.to == 'sid-a2' for a in _emitted(actions))
    started = _emitted(actions, 'game_started')[0]
    assert started.payload['resync'] is True
    assert started.payload['elapsed'] == 42
    assert started.payload['totalEmpty'] == puzzle.empty_count
    assert started.payload['initial'] == list(puzzle.initial)

    claims = [a.payload for a in _emitted(actions, 'territory_update') if a.payload['index'] >= 0]
    assert [c['index'] for c in claims] == [0]
    assert claims[0]['ownerId'] == room.players[0].logical_id
    refresh = _emitted(actions, 'territory_update')[-1].payload
    assert refresh['index'] == -1
    assert {'id': room.players[0].logical_id, 'score': 10} in refresh['scores']
    assert room.players[0].connected is True


def test_duplicate_session_moves_the_binding(registry):
    room = registry.create_room('alice', 'speedrun')
    identity.join_room(registry, room.code, 'sid-1', 'alice')
    actions = identity.join_room(registry, room.code, 'sid-2', 'alice')

    assert Subscription('sid-1', room_channel(room.code), joined=False) in actions
    assert Subscription('sid-2', room_channel(room.code), joined=True) in actions
    # The stale transport no longer acts for the player
    assert lifecycle.leave_room(registry, room.code, 'sid-1') == []
    assert len(room.players) == 1


def test_joining_another_room_leaves_the_first(registry):
    first = registry.create_room('alice', 'speedrun')
    second = registry.create_room('bob', 'speedrun')
    identity.join_room(registry, first.code, 'sid-1', 'alice')
    identity.join_room(registry, first.code, 'sid-2', 'carol')

    actions = identity.join_room(registry, second.code, 'sid-1', 'alice')
    assert Subscription('sid-1', room_channel(first.code), joined=False) in actions
    assert [p.username for p in first.players] == ['carol']
    assert first.host_id == first.players[0].logical_id
    assert [p.username for p in second.players] == ['alice']
    assert registry.binding('sid-1') == (second.code, second.players[0].logical_id)


def test_renaming_in_the_lobby_replaces_the_player(registry):
    room = registry.create_room('alice', 'speedrun')
    identity.join_room(registry, room.code, 'sid-1', 'alice')
    identity.join_room(registry, room.code, 'sid-1', 'alicia')

    assert room.code in registry
    assert [p.username for p in room.players] == ['alicia']
    assert room.host_id == room.players[0].logical_id


def test_renaming_alone_keeps_the_first_color(registry):
    room = registry.create_room('alice', 'speedrun')
    identity.join_room(registry, room.code, 'sid-1', 'alice')
    identity.join_room(registry, room.code, 'sid-1', 'alicia')

    assert [p.color for p in room.players] == [PALETTE[0]]


def test_renaming_counts_only_the_others_for_color(registry):
    room = registry.create_room('alice', 'speedrun')
    identity.join_room(registry, room.code, 'sid-1', 'alice')
    identity.join_room(registry, room.code, 'sid-2', 'bob')
    identity.join_room(registry, room.code, 'sid-2', 'robert')

    assert [p.username for p in room.players] == ['alice', 'robert']
    assert room.players[1].color == PALETTE[1]
