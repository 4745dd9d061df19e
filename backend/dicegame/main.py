from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the 1-4-24 dice server!'})


@main.route('/healthz')
def healthz():
    registry = current_app.extensions['dice_registry']
    return jsonify({'status': 'ok', 'rooms': len(registry)})
