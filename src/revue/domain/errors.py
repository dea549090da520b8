"""Exception hierarchy for Revue."""


class RevueError(Exception):
    """Base class for all Revue errors."""


class SessionClosedError(RevueError):
    """Raised when a finished study session receives another answer."""

    def __init__(self, session_id: str):
        super().__init__(f"Study session {session_id} is already finished")
        self.session_id = session_id
