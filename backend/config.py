import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed to open a socket
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
    ).split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Room codes
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # Minimum connected players to start a round
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    # Used when create_game omits maxPlayers
    DEFAULT_MAX_PLAYERS = int(os.environ.get('DEFAULT_MAX_PLAYERS', '3'))
    # Wager defaults (per player)
    DEFAULT_WAGER_AMOUNT = float(os.environ.get('DEFAULT_WAGER_AMOUNT', '1'))
    MIN_WAGER_AMOUNT = float(os.environ.get('MIN_WAGER_AMOUNT', '0.01'))
