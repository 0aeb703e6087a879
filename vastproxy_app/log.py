import os
import sys
import time
import queue
import logging
from logging.handlers import RotatingFileHandler

from flask import g

# Thread-safe message queue for the admin UI log panel
msg_queue: queue.Queue = queue.Queue(maxsize=1000)

# Configure logging
logger = logging.getLogger("vastproxy")
logger.setLevel(logging.INFO)

# Determine log file path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(BASE_DIR, 'instance')
os.makedirs(LOG_DIR, exist_ok=True)
LOG_FILE = os.path.join(LOG_DIR, 'vastproxy.log')

# File Handler
file_handler = RotatingFileHandler(LOG_FILE, maxBytes=10*1024*1024, backupCount=5, encoding='utf-8')
file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

# Stream Handler (stdout)
stream_handler = logging.StreamHandler(sys.stdout)
stream_handler.setFormatter(logging.Formatter('%(message)s'))  # Keep stdout clean

# Core packages log through logging.getLogger(__name__); give them the same sinks
for _name in ("vastproxy", "type_mapping"):
    _logger = logging.getLogger(_name)
    _logger.setLevel(logging.INFO)
    if not any(h is file_handler for h in _logger.handlers):
        _logger.addHandler(file_handler)
        _logger.addHandler(stream_handler)


def _request_prefix() -> str:
    """Return request id prefix if available."""
    try:
        if getattr(g, "request_id", None):
            return f"[{g.request_id}] "
    except RuntimeError:
        # Outside request context
        pass
    return ""


def log(msg: str) -> None:
    """Log a message to console, file, and message queue."""
    prefix = _request_prefix()
    full = f"{prefix}{msg}"

    logger.info(full)

    timestamp = time.strftime("[%H:%M:%S]")
    try:
        msg_queue.put_nowait(f"{timestamp} {full}")
    except queue.Full:
        # Nobody is draining the panel; drop the oldest line
        try:
            msg_queue.get_nowait()
        except queue.Empty:
            pass
        try:
            msg_queue.put_nowait(f"{timestamp} {full}")
        except queue.Full:
            # Another writer refilled it; the line is still in the log file
            pass
