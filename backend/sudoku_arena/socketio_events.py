from functools import partial

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from sudoku_arena import socketio
from sudoku_arena.errors import ArenaError, Unauthorized
from sudoku_arena.services.rooms import arbitration, identity, lifecycle
from sudoku_arena.services.rooms.broadcast import Subscription
from sudoku_arena.services.rooms.registry import RoomRegistry

NAMESPACE = '/ws'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _fields(data) -> dict:
    return data if isinstance(data, dict) else {}


def _room_code(data):
    # start_game and leave_room send the bare code, everything else an object
    if isinstance(data, dict):
        return data.get('roomCode')
    return data


def _dispatch(actions) -> None:
    for action in actions:
        if isinstance(action, Subscription):
            if action.joined:
                join_room(action.channel, sid=action.transport_id, namespace=NAMESPACE)
            else:
                leave_room(action.channel, sid=action.transport_id, namespace=NAMESPACE)
            continue
        socketio.emit(action.event, action.payload, to=action.to, namespace=NAMESPACE)


def _run(registry: RoomRegistry, operation, *args) -> None:
    """Apply one client message to the room state, then deliver its notifications.

    Everything happens under the registry lock so messages are processed one
    at a time, in full, even when the server dispatches them on several threads.
    """
    with registry.lock:
        try:
            actions = operation(registry, *args)
        except Unauthorized:
            current_app.logger.info(f"[ignored] op={operation.__name__} sid={_get_sid()} reason=not-host")
            return
        except ArenaError as exc:
            current_app.logger.info(f"[rejected] op={operation.__name__} sid={_get_sid()} reason={exc.message!r}")
            emit('error', exc.message)
            return
        _dispatch(actions)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(registry: RoomRegistry, *args):
    _run(registry, lifecycle.disconnect, _get_sid())


def handle_create_room(registry: RoomRegistry, data=None):
    data = _fields(data)
    _run(registry, lifecycle.open_room, _get_sid(), data.get('username'), data.get('mode'))


def handle_join_room(registry: RoomRegistry, data=None):
    data = _fields(data)
    _run(registry, identity.join_room, data.get('roomCode'), _get_sid(), data.get('username'))


def handle_change_difficulty(registry: RoomRegistry, data=None):
    data = _fields(data)
    _run(registry, lifecycle.change_difficulty, data.get('roomCode'), _get_sid(), data.get('difficulty'))


def handle_start_game(registry: RoomRegistry, data=None):
    _run(registry, lifecycle.start_game, _room_code(data), _get_sid())


def handle_submit_move(registry: RoomRegistry, data=None):
    data = _fields(data)
    _run(registry, arbitration.submit_move, data.get('roomCode'), _get_sid(), data.get('index'), data.get('value'))


def handle_update_progress(registry: RoomRegistry, data=None):
    data = _fields(data)
    _run(registry, arbitration.update_progress, data.get('roomCode'), _get_sid(), data.get('progress'))


def handle_leave_room(registry: RoomRegistry, data=None):
    _run(registry, lifecycle.leave_room, _room_code(data), _get_sid())


def register_socketio_handlers(registry: RoomRegistry) -> None:
    """Register Socket.IO event handlers on namespace '/ws'.

    Every handler receives the application's room registry explicitly.
    """
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', partial(handle_disconnect, registry), namespace=NAMESPACE)
    socketio.on_event('create_room', partial(handle_create_room, registry), namespace=NAMESPACE)
    socketio.on_event('join_room', partial(handle_join_room, registry), namespace=NAMESPACE)
    socketio.on_event('change_difficulty', partial(handle_change_difficulty, registry), namespace=NAMESPACE)
    socketio.on_event('start_game', partial(handle_start_game, registry), namespace=NAMESPACE)
    socketio.on_event('submit_move', partial(handle_submit_move, registry), namespace=NAMESPACE)
    socketio.on_event('update_progress', partial(handle_update_progress, registry), namespace=NAMESPACE)
    socketio.on_event('leave_room', partial(handle_leave_room, registry), namespace=NAMESPACE)
