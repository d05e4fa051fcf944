"""
Chat Room Exceptions

Custom exception classes for error handling
"""


class ChatRoomError(Exception):
    """Base chat room exception"""

    def __init__(self, message: str, error_code: str = "CHAT000", details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# Connection errors
class ConnectionClosedError(ChatRoomError):
    """The underlying transport can no longer send or receive"""

    def __init__(self, message: str = "Connection closed", details: dict = None):
        super().__init__(message, "CONN001", details)


# Login errors
class LoginError(ChatRoomError):
    """Login rejected"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "LOGIN001", details)


class NameTakenError(LoginError):
    """Display name already registered"""

    def __init__(self, name: str, details: dict = None):
        super().__init__(f"username {name!r} is already taken", details)
        self.error_code = "LOGIN002"
        self.name = name


class InvalidNameError(LoginError):
    """Display name failed validation"""

    def __init__(self, name: str, reason: str = "invalid username", details: dict = None):
        super().__init__(f"{reason}: {name!r}", details)
        self.error_code = "LOGIN003"
        self.name = name
        self.reason = reason


# Hub errors
class HubClosedError(ChatRoomError):
    """The hub no longer accepts operations"""

    def __init__(self, message: str = "Hub is closed", details: dict = None):
        super().__init__(message, "HUB001", details)


# Protocol errors
class ProtocolError(ChatRoomError):
    """Unexpected payload on the wire"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "PROTO001", details)
