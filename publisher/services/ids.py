"""Upload id generation."""
import threading
import time

_lock = threading.Lock()
_last_id = 0


def generate_upload_id() -> str:
    """
    Generate an upload id: current epoch time in milliseconds.

    Ids are strictly increasing within the process, so two calls in the
    same millisecond still return different values.
    """
    global _last_id
    with _lock:
        candidate = int(round(time.time() * 1000))
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
    return str(candidate)
