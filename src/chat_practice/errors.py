"""Domain errors raised by the chat services."""


class ChatServiceError(Exception):
    """Base class for errors raised by the chat services."""


class NotFoundError(ChatServiceError):
    """A requested record does not exist for the caller."""


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ProblemNotFoundError(NotFoundError):
    def __init__(self, problem_id: str, user_id: str):
        super().__init__(f"Problem not found: {problem_id}")
        self.problem_id = problem_id
        self.user_id = user_id


class UpstreamServiceError(ChatServiceError):
    """The AI server call failed or returned an unusable payload."""


class DuplicateRecordError(ChatServiceError):
    """A record with the same id already exists in the collection."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection} record already exists: {record_id}")
        self.collection = collection
        self.record_id = record_id
