import queue

from flask import Blueprint, jsonify

from vastproxy_app.log import msg_queue

main_bp = Blueprint('main_api', __name__)


@main_bp.route('/api/health')
def health():
    return jsonify({'status': 'ok'})


@main_bp.route('/api/logs')
def get_logs():
    """Get pending log messages."""
    messages = []
    while not msg_queue.empty():
        try:
            messages.append(msg_queue.get_nowait())
        except queue.Empty:
            break
    return jsonify({'logs': messages})
