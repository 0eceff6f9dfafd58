BODY_EXCERPT_SIZE = 256


class PollSwarmError(Exception):
    pass


class AuthError(PollSwarmError):
    pass


class ConnectError(PollSwarmError):
    pass


class RequestStatusError(ConnectError):
    def __init__(
        self,
        status: int,
        status_message: str,
        body: bytes,
    ) -> None:
        self.status = status
        self.status_message = status_message
        self.body = body[:BODY_EXCERPT_SIZE]

        super().__init__(
            f"Err. - got status {status} {status_message}: {self.body.decode(errors='replace')}"
        )


class StreamReadError(PollSwarmError):
    pass


class DecodeError(PollSwarmError):
    pass


class InvalidTransitionError(PollSwarmError):
    pass
