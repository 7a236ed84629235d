"""
Errors raised by the interrogation session manager.
"""


class InterrogationError(Exception):
    """Base error for interrogation sessions."""


class SessionNotFound(InterrogationError):
    """Raised when a session id is not in the stored session list."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class QuestionNotFound(InterrogationError):
    """Raised when a response targets a question the session does not have."""

    def __init__(self, session_id: str, question_id: str):
        self.session_id = session_id
        self.question_id = question_id
        super().__init__(f"Question not found: {question_id}")
