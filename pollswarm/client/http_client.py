import asyncio
import ssl
from typing import Dict, List, Tuple
from urllib.parse import urljoin

import aiodns

from pollswarm.errors import ConnectError, RequestStatusError

from .http_connection import HTTPConnection
from .http_stream import HTTPStream
from .models import URL, HTTPResponse


def create_ssl_context():
    ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE

    return ctx


class HTTPClient:
    def __init__(
        self,
        address: str,
        force_ipv4: bool = False,
        connect_timeout: int | float | None = None,
    ) -> None:
        self.address = address
        self.force_ipv4 = force_ipv4
        self.connect_timeout = connect_timeout
        self._client_ssl_context = create_ssl_context()
        self._resolver: aiodns.DNSResolver | None = None
        self._urls: Dict[str, URL] = {}

    def _to_url(self, path: str):
        if (url := self._urls.get(path)) is None:
            if self._resolver is None:
                self._resolver = aiodns.DNSResolver()

            url = URL(
                urljoin(self.address, path),
                force_ipv4=self.force_ipv4,
                resolver=self._resolver,
            )

            self._urls[path] = url

        return url

    async def close(self):
        self._urls.clear()

        if self._resolver is not None:
            resolver = self._resolver
            self._resolver = None
            await resolver.close()

    def _to_request_path(self, url: URL):
        path = url.parsed.path or "/"
        if url.parsed.query:
            path += f"?{url.parsed.query}"

        return path

    async def _open(
        self,
        method: str,
        path: str,
        headers: Dict[str, str] | None = None,
        cookies: List[Tuple[str, str]] | None = None,
        data: bytes | None = None,
    ):
        url = self._to_url(path)
        connection = HTTPConnection(
            url,
            ssl=self._client_ssl_context,
        )

        try:
            await connection.make_connection(timeout=self.connect_timeout)

            connection.write_request(
                method,
                self._to_request_path(url),
                headers=headers,
                cookies=cookies,
                data=data,
            )

            await asyncio.wait_for(
                connection.writer.drain(),
                timeout=self.connect_timeout,
            )

            status, status_message, response_headers, response_cookies = (
                await asyncio.wait_for(
                    connection.read_head(),
                    timeout=self.connect_timeout,
                )
            )

        except asyncio.TimeoutError as err:
            await connection.close()
            raise ConnectError(
                f"Err. - {method} {url.full} timed out after {self.connect_timeout}s"
            ) from err

        except OSError as err:
            await connection.close()
            raise ConnectError(
                f"Err. - {method} {url.full} failed: {err}"
            ) from err

        except BaseException:
            await connection.close()
            raise

        return (
            connection,
            status,
            status_message,
            response_headers,
            response_cookies,
        )

    async def request(
        self,
        method: str,
        path: str,
        headers: Dict[str, str] | None = None,
        cookies: List[Tuple[str, str]] | None = None,
        data: bytes | None = None,
    ) -> HTTPResponse:
        (
            connection,
            status,
            status_message,
            response_headers,
            response_cookies,
        ) = await self._open(
            method,
            path,
            headers=headers,
            cookies=cookies,
            data=data,
        )

        try:
            content = await asyncio.wait_for(
                connection.read_body(response_headers),
                timeout=self.connect_timeout,
            )

        except asyncio.TimeoutError as err:
            raise ConnectError(
                f"Err. - reading response of {method} {path} timed out"
            ) from err

        finally:
            await connection.close()

        return HTTPResponse(
            status=status,
            status_message=status_message,
            headers=response_headers,
            cookies=response_cookies,
            content=content,
        )

    async def stream(
        self,
        method: str,
        path: str,
        headers: Dict[str, str] | None = None,
        cookies: List[Tuple[str, str]] | None = None,
        data: bytes | None = None,
    ) -> HTTPStream:
        (
            connection,
            status,
            status_message,
            response_headers,
            _,
        ) = await self._open(
            method,
            path,
            headers=headers,
            cookies=cookies,
            data=data,
        )

        if status < 200 or status > 299:
            try:
                body = await asyncio.wait_for(
                    connection.read_body(response_headers),
                    timeout=self.connect_timeout,
                )

            except Exception:
                body = b"[can not read body]"

            finally:
                await connection.close()

            raise RequestStatusError(status, status_message, body)

        return HTTPStream(
            connection,
            status,
            response_headers,
        )
