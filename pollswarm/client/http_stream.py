from typing import AsyncIterator, Dict

from pollswarm.errors import StreamReadError

from .http_connection import HTTPConnection

MAX_LINE_SIZE = 16 * 2**20


class HTTPStream:
    """
    An open response whose body is consumed lazily as a sequence of
    newline-delimited chunks. The connection stays open until the server
    ends the body or `close()` is called.
    """

    def __init__(
        self,
        connection: HTTPConnection,
        status: int,
        headers: Dict[bytes, bytes],
    ) -> None:
        self._connection = connection
        self.status = status
        self.headers = headers

    @property
    def closed(self):
        return self._connection.connected is False

    async def lines(self) -> AsyncIterator[bytes]:
        buffer = bytearray()

        async for data in self._connection.iter_body(self.headers):
            buffer.extend(data)

            while (index := buffer.find(b"\n")) >= 0:
                line = bytes(buffer[:index]).rstrip(b"\r")
                del buffer[: index + 1]
                yield line

            if len(buffer) > MAX_LINE_SIZE:
                raise StreamReadError(
                    f"Err. - line exceeds maximum size of {MAX_LINE_SIZE} bytes"
                )

        if buffer:
            yield bytes(buffer).rstrip(b"\r")

    async def close(self):
        await self._connection.close()
