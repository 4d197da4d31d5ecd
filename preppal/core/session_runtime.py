from threading import Lock


class SessionRuntimeRegistry:
    """In-memory per-session flags shared by every request in this process.

    ``initialized`` records sessions whose opening question has already been
    requested successfully; ``processing`` holds sessions with a coaching call
    in flight and doubles as a non-blocking per-session mutex.
    """

    def __init__(self):
        self._lock = Lock()
        self._initialized: set[str] = set()
        self._processing: set[str] = set()

    def is_initialized(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._initialized

    def mark_initialized(self, session_id: str):
        with self._lock:
            self._initialized.add(session_id)

    def is_processing(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._processing

    def try_begin(self, session_id: str) -> bool:
        with self._lock:
            if session_id in self._processing:
                return False
            self._processing.add(session_id)
            return True

    def finish(self, session_id: str):
        with self._lock:
            self._processing.discard(session_id)

    def clear(self):
        with self._lock:
            self._initialized.clear()
            self._processing.clear()


session_runtime = SessionRuntimeRegistry()
