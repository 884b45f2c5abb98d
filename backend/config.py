import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed for HTTP and Socket.IO
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ALLOWED_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000',
        ).split(',')
        if origin.strip()
    ]
    # Room codes: length of the generated code
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '4'))
    # Difficulty a new room starts with (easy, medium, hard)
    DEFAULT_DIFFICULTY = os.environ.get('DEFAULT_DIFFICULTY', 'medium')
    # Territory scoring
    CLAIM_POINTS = int(os.environ.get('CLAIM_POINTS', '10'))
    WRONG_MOVE_PENALTY = int(os.environ.get('WRONG_MOVE_PENALTY', '5'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
