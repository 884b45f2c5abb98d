from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Sudoku Arena server!'})

@main.route('/api/rooms/<string:room_code>', methods=['GET'])
def get_room(room_code):
    """
    Returns the lobby view of a live room, so a client can check a code
    before joining. The solution is never included.
    """
    registry = current_app.extensions['room_registry']
    with registry.lock:
        room = registry.get(room_code)
        if room is None:
            return jsonify({'error': 'Room not found'}), 404
        return jsonify(room.to_dict())
