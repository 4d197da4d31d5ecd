class PrepPalError(Exception):
    """Base class for every error raised by the coaching core."""


class DuplicateUserError(PrepPalError):
    def __init__(self, email: str):
        super().__init__("User already exists")
        self.email = email


class InvalidCredentialsError(PrepPalError):
    def __init__(self):
        super().__init__("Invalid email or password.")


class RemoteGenerationError(PrepPalError):
    """The generation backend failed. Never leaves the coaching service."""


class PersistenceWriteError(PrepPalError):
    """A key-value write failed. Logged and dropped by the collection layer."""


class SessionNotFoundError(PrepPalError):
    def __init__(self, session_id: str):
        super().__init__("Session not found")
        self.session_id = session_id


class InvalidPreferencesError(PrepPalError):
    """Session preferences outside the fixed setup options."""


class SessionCompletedError(PrepPalError):
    def __init__(self, session_id: str):
        super().__init__("Session already completed")
        self.session_id = session_id


class SessionBusyError(PrepPalError):
    def __init__(self, session_id: str):
        super().__init__("Session is still processing the previous answer")
        self.session_id = session_id


class EmptyAnswerError(PrepPalError):
    def __init__(self):
        super().__init__("Answer must not be empty")


class EndNotConfirmedError(PrepPalError):
    def __init__(self):
        super().__init__("Ending a session requires confirmation")
