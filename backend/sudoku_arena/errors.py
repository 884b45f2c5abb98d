class ArenaError(Exception):
    """Base class for failures reported back to a client as an `error` event."""

    message = 'Something went wrong.'

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)


class RoomNotFound(ArenaError):
    message = 'This room does not exist.'


class MatchAlreadyStarted(ArenaError):
    message = 'The game has already started.'


class InvalidRequest(ArenaError):
    message = 'Invalid request.'


class Unauthorized(ArenaError):
    """Host-only action attempted by another player. Never surfaced to clients."""

    message = 'Only the host may do that.'
