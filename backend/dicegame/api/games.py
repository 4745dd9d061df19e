from flask import Blueprint, current_app, jsonify

games = Blueprint('games', __name__)


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    """Returns the same snapshot the room receives over Socket.IO."""
    state = current_app.extensions['dice_registry'].snapshot(game_code)
    if state is None:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(state)


@games.route('/<string:game_code>/history', methods=['GET'])
def get_round_history(game_code):
    state = current_app.extensions['dice_registry'].snapshot(game_code)
    if state is None:
        return jsonify({'error': 'Game not found'}), 404
    wins = {p['name']: p['wins'] for p in state['players']}
    return jsonify({'game_code': state['id'], 'rounds': state['roundHistory'], 'wins': wins})
