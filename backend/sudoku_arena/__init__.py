import random

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS', [])
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per application; handlers and routes get it explicitly
    from sudoku_arena.services.rooms.registry import RoomRegistry
    registry = RoomRegistry(
        code_length=flask_app.config.get('ROOM_CODE_LENGTH', 4),
        default_difficulty=flask_app.config.get('DEFAULT_DIFFICULTY', 'medium'),
        claim_points=flask_app.config.get('CLAIM_POINTS', 10),
        wrong_move_penalty=flask_app.config.get('WRONG_MOVE_PENALTY', 5),
    )
    flask_app.extensions['room_registry'] = registry

    # Import and register blueprints here
    from sudoku_arena.routes import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers
    from sudoku_arena.socketio_events import register_socketio_handlers
    register_socketio_handlers(registry)

    from sudoku_arena.services.rooms.puzzle import DIFFICULTIES, format_grid, generate_puzzle

    @click.command('generate-puzzle')
    @click.option('--difficulty', type=click.Choice(DIFFICULTIES), default=None,
                  help='Defaults to DEFAULT_DIFFICULTY.')
    @click.option('--seed', type=int, default=None, help='Seed for a reproducible board.')
    def generate_puzzle_command(difficulty, seed):
        """Prints a freshly generated puzzle and its solution."""
        difficulty = difficulty or flask_app.config.get('DEFAULT_DIFFICULTY', 'medium')
        puzzle = generate_puzzle(difficulty, rng=random.Random(seed))
        click.echo(f'Puzzle ({difficulty}, {puzzle.empty_count} empty cells):')
        click.echo(format_grid(puzzle.initial))
        click.echo('')
        click.echo('Solution:')
        click.echo(format_grid(puzzle.solution))

    flask_app.cli.add_command(generate_puzzle_command)

    return flask_app
