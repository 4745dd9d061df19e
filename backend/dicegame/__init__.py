from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, registry=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app; every room lives here until the process exits
    from dicegame.services.games.registry import SessionRegistry
    if registry is None:
        registry = SessionRegistry.from_config(flask_app.config)
    flask_app.extensions['dice_registry'] = registry

    from dicegame.main import main
    flask_app.register_blueprint(main)

    from dicegame.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from dicegame.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'))

    @click.command('rooms')
    def rooms_command():
        """Lists live rooms with their phase and players."""
        for code in registry.codes():
            state = registry.snapshot(code)
            names = ', '.join(
                p['name'] + (' (left)' if p['disconnected'] else '') for p in state['players']
            )
            click.echo(f"{code}  {state['phase']:<8}  rounds={len(state['roundHistory'])}  {names}")
        click.echo(f"{len(registry)} room(s)")

    flask_app.cli.add_command(rooms_command)

    return flask_app
