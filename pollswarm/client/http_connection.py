from __future__ import annotations

import asyncio
import ssl
from http.cookies import CookieError, SimpleCookie
from typing import AsyncIterator, Dict, List, Optional, Tuple

from aiodns.error import DNSError

from pollswarm.errors import ConnectError, StreamReadError

from .models import URL

NEW_LINE = "\r\n"
READ_SIZE = 2**16


class HTTPConnection:
    __slots__ = (
        "url",
        "ssl",
        "reader",
        "writer",
        "connected",
    )

    def __init__(
        self,
        url: URL,
        ssl: Optional[ssl.SSLContext] = None,
    ) -> None:
        self.url = url
        self.ssl = ssl
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.connected = False

    async def make_connection(
        self,
        timeout: int | float | None = None,
    ) -> None:
        try:
            addresses = await asyncio.wait_for(
                self.url.lookup(),
                timeout=timeout,
            )

        except (asyncio.TimeoutError, OSError, DNSError) as err:
            raise ConnectError(
                f"Err. - could not resolve {self.url.hostname}: {err}"
            ) from err

        connection_error: Exception | None = None

        for address, family in addresses:
            try:
                self.reader, self.writer = await asyncio.wait_for(
                    asyncio.open_connection(
                        address,
                        self.url.port,
                        ssl=self.ssl if self.url.is_ssl else None,
                        server_hostname=self.url.hostname if self.url.is_ssl else None,
                        family=family,
                    ),
                    timeout=timeout,
                )

                self.connected = True
                return

            except (asyncio.TimeoutError, OSError) as err:
                connection_error = err

        raise ConnectError(
            f"Err. - could not connect to {self.url.full}: {connection_error}"
        ) from connection_error

    def write_request(
        self,
        method: str,
        path: str,
        headers: Dict[str, str] | None = None,
        cookies: List[Tuple[str, str]] | None = None,
        data: bytes | None = None,
    ):
        header_items = (
            f"{method} {path} HTTP/1.1{NEW_LINE}HOST: {self.url.host_header}{NEW_LINE}"
            f"User-Agent: pollswarm/client{NEW_LINE}"
        )

        if headers:
            for key, value in headers.items():
                header_items += f"{key}: {value}{NEW_LINE}"

        if cookies:
            encoded = "; ".join(
                [f"{cookie_name}={cookie_value}" for cookie_name, cookie_value in cookies]
            )
            header_items += f"cookie: {encoded}{NEW_LINE}"

        size = len(data) if data else 0
        header_items += f"Content-Length: {size}{NEW_LINE}"

        self.writer.write(f"{header_items}{NEW_LINE}".encode())

        if data:
            self.writer.write(data)

    async def read_head(self) -> Tuple[int, str, Dict[bytes, bytes], Dict[str, str]]:
        try:
            response_code = await self.reader.readline()
            status_string: List[bytes] = response_code.split(maxsplit=2)
            status = int(status_string[1])
            status_message = (
                status_string[2].strip().decode(errors="replace")
                if len(status_string) > 2
                else ""
            )

            headers: Dict[bytes, bytes] = {}
            cookies: Dict[str, str] = {}

            while True:
                line = await self.reader.readline()
                if line in (b"\r\n", b"\n", b""):
                    break

                key, _, value = line.partition(b":")
                key = key.strip().lower()
                value = value.strip()

                if key == b"set-cookie":
                    cookies.update(parse_cookie(value))

                headers[key] = value

        except (IndexError, ValueError, OSError) as err:
            raise ConnectError(f"Err. - malformed response head: {err}") from err

        return status, status_message, headers, cookies

    async def iter_body(self, headers: Dict[bytes, bytes]) -> AsyncIterator[bytes]:
        content_length = headers.get(b"content-length")
        transfer_encoding = headers.get(b"transfer-encoding", b"").lower()

        try:
            if b"chunked" in transfer_encoding:
                while True:
                    size_line = await self.reader.readline()
                    if not size_line:
                        raise StreamReadError(
                            "Err. - connection closed before final chunk"
                        )

                    chunk_size = int(size_line.split(b";")[0].strip(), 16)

                    if chunk_size == 0:
                        while await self.reader.readline() not in (
                            b"\r\n",
                            b"\n",
                            b"",
                        ):
                            continue

                        return

                    chunk = await self.reader.readexactly(chunk_size + 2)
                    yield chunk[:-2]

            elif content_length is not None:
                remaining = int(content_length)

                while remaining > 0:
                    data = await self.reader.read(min(remaining, READ_SIZE))
                    if not data:
                        raise StreamReadError(
                            f"Err. - connection closed with {remaining} bytes of body unread"
                        )

                    remaining -= len(data)
                    yield data

            else:
                while data := await self.reader.read(READ_SIZE):
                    yield data

        except (asyncio.IncompleteReadError, ValueError, OSError) as err:
            raise StreamReadError(f"Err. - failed reading body: {err}") from err

    async def read_body(self, headers: Dict[bytes, bytes]) -> bytes:
        body = bytearray()
        async for data in self.iter_body(headers):
            body.extend(data)

        return bytes(body)

    async def close(self):
        self.connected = False

        if self.writer is None or self.writer.is_closing():
            return

        self.writer.close()

        try:
            await self.writer.wait_closed()

        except OSError:
            # The peer already reset the connection.
            pass


def parse_cookie(value: bytes) -> Dict[str, str]:
    cookie = SimpleCookie()

    try:
        cookie.load(value.decode(errors="replace"))

    except CookieError:
        return {}

    return {name: morsel.value for name, morsel in cookie.items()}
