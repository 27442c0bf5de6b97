"""
Oncolife Exceptions
"""


class OncolifeError(Exception):
    """Base error for the triage engine."""
    pass


class SessionNotFoundError(OncolifeError):
    """No active session exists for the conversation id."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"No active session for conversation {conversation_id}")


class SessionStoreError(OncolifeError):
    """Session backend could not be read or written."""
    pass


class PersistenceError(OncolifeError):
    """The persistence backend rejected a write."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")
