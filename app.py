import os
import threading
from typing import Optional

from flask import Flask, jsonify, request

from tilegame import (
    GAME_OVER_ACTIONS,
    NOTIFICATION_MESSAGES,
    GameSession,
    Notification,
    board_to_list,
)

app = Flask(__name__)

# ------------------------------ configuration ------------------------------
GAME_SEED = os.environ.get("GAME_SEED")


def parse_seed(value: Optional[str]) -> Optional[int]:
    """Integer seed from the environment; anything else plays unseeded."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        app.logger.warning("Ignoring non-integer GAME_SEED=%r", value)
        return None


def _make_session(seed_value: Optional[str] = GAME_SEED) -> GameSession:
    return GameSession(seed=parse_seed(seed_value))


game = _make_session()  # one session per process
# the threaded dev server must not run two session operations at once
game_lock = threading.Lock()


def _notification_payload(notification: Notification) -> dict:
    payload = {"kind": notification.value, "message": NOTIFICATION_MESSAGES[notification]}
    if notification is Notification.GAME_OVER:
        payload["actions"] = list(GAME_OVER_ACTIONS)
    return payload


@app.route('/board', methods=['GET'])
def board():
    with game_lock:
        current, game_over = game.board, game.is_over
    return jsonify(board=board_to_list(current), game_over=game_over)


@app.route('/init', methods=['GET'])
@app.route('/reset', methods=['POST'])
def init_game():
    # Start a fresh board and drop the undo snapshot
    with game_lock:
        fresh = game.reset()
    app.logger.info("New game started")
    return jsonify(board=board_to_list(fresh), game_over=False)


@app.route('/move', methods=['POST'])
def move():
    data = request.get_json(silent=True) or {}
    if 'action' not in data:
        return jsonify(error="Missing 'action' in request body."), 400
    try:
        with game_lock:
            result = game.step(data['action'])
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    notifications = [_notification_payload(n) for n in result.notifications]
    if Notification.GAME_OVER in result.notifications:
        app.logger.info("Game over")
    if Notification.WIN in result.notifications:
        app.logger.info("Winning tile reached")

    return jsonify(
        board=board_to_list(result.board),
        changed=result.changed,
        game_over=result.game_over,
        won=result.won,
        notifications=notifications,
    )


@app.route('/undo', methods=['POST'])
def undo():
    with game_lock:
        result = game.undo()
        game_over = game.is_over
    if result.ok:
        app.logger.info("Undid last move")
    return jsonify(
        board=board_to_list(result.board),
        ok=result.ok,
        message=result.message,
        game_over=game_over,
    )


if __name__ == '__main__':
    app.run(debug=True)
