"""
Shared fixtures and fakes for the pollswarm test suite.

Unit tests drive workers and the swarm through `FakeStreamClient`, whose
per-worker `StreamPlan`s script connect failures, chunks, and read errors.
End to end tests run against `FakeAutoupdateServer`, an in-process HTTP/1.1
server exposing the login and autoupdate endpoints.
"""

import asyncio
import base64
import tempfile
from dataclasses import dataclass, field
from typing import Dict, Generator, List

import orjson
import pytest

from pollswarm.client import Credential
from pollswarm.errors import AuthError, ConnectError
from pollswarm.logging.config.logging_config import (
    _global_log_level,
    _global_log_output_type,
)
from pollswarm.logging.config.stream_type import StreamType
from pollswarm.logging.models import LogLevel


def make_token(user_id: int = 1) -> str:
    payload = base64.urlsafe_b64encode(
        orjson.dumps({"userId": user_id, "sessionId": "abc"})
    ).decode().rstrip("=")

    return f"eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.{payload}.signature"


@dataclass
class StreamPlan:
    chunks: List[bytes] = field(default_factory=list)
    connect_failures: int = 0
    error: Exception | None = None
    block: bool = False
    hang_connect: bool = False


class FakeStream:
    def __init__(self, plan: StreamPlan) -> None:
        self._plan = plan
        self.closed = False
        self.reading = asyncio.Event()

    async def lines(self):
        for chunk in self._plan.chunks:
            await asyncio.sleep(0)
            yield chunk

        if self._plan.error is not None:
            raise self._plan.error

        if self._plan.block:
            self.reading.set()
            await asyncio.Event().wait()

    async def close(self):
        self.closed = True


class FakeStreamClient:
    """
    Hands each worker task the next unused plan on its first connect
    attempt and keeps serving that plan to the same task afterwards.
    """

    def __init__(self, plans: List[StreamPlan]) -> None:
        self._plans = list(plans)
        self._assigned: Dict[asyncio.Task, StreamPlan] = {}
        self.attempts: Dict[int, int] = {}
        self.streams: List[FakeStream] = []
        self.calls = 0

    async def open_stream(self, path: str, body: bytes | str):
        task = asyncio.current_task()

        if task not in self._assigned:
            self._assigned[task] = self._plans.pop(0)

        plan = self._assigned[task]
        self.calls += 1

        plan_id = id(plan)
        self.attempts[plan_id] = self.attempts.get(plan_id, 0) + 1

        if plan.hang_connect:
            await asyncio.Event().wait()

        if self.attempts[plan_id] <= plan.connect_failures:
            raise ConnectError(
                f"Err. - connection refused (attempt {self.attempts[plan_id]})"
            )

        stream = FakeStream(plan)
        self.streams.append(stream)

        return stream


class FakeSession:
    def __init__(
        self,
        credential: Credential | None = None,
        error: AuthError | None = None,
    ) -> None:
        self._credential = credential
        self._error = error
        self.logins = 0

    async def login(self) -> Credential:
        self.logins += 1

        if self._error is not None:
            raise self._error

        return self._credential


class FakeAutoupdateServer:
    """
    Minimal autoupdate service. Login answers with an `authentication`
    header and a `refreshId` cookie; the autoupdate path streams the
    configured chunks with chunked transfer encoding and then ends the
    body, or drops the connection mid-body when `truncate` is set.
    """

    def __init__(
        self,
        chunks: List[bytes] | None = None,
        username: str = "admin",
        password: str = "admin",
        stream_status: int = 200,
        truncate: bool = False,
    ) -> None:
        self.chunks = chunks if chunks is not None else [b"x\n", b"y\n"]
        self.username = username
        self.password = password
        self.stream_status = stream_status
        self.truncate = truncate
        self.token = make_token(user_id=7)
        self.requests: List[Dict[str, object]] = []
        self.port: int | None = None
        self._server: asyncio.Server | None = None

    @property
    def address(self):
        return f"http://127.0.0.1:{self.port}"

    async def start(self):
        self._server = await asyncio.start_server(
            self._handle,
            host="127.0.0.1",
            port=0,
        )

        self.port = self._server.sockets[0].getsockname()[1]

    async def close(self):
        self._server.close()
        await self._server.wait_closed()

    async def _handle(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ):
        try:
            request_line = await reader.readline()
            method, target, _ = request_line.decode().split(" ", 2)

            headers: Dict[str, str] = {}
            while (line := await reader.readline()) not in (b"\r\n", b""):
                key, _, value = line.decode().partition(":")
                headers[key.strip().lower()] = value.strip()

            body = await reader.readexactly(int(headers.get("content-length", 0)))

            self.requests.append({
                "method": method,
                "target": target,
                "headers": headers,
                "body": body,
            })

            if target.startswith("/system/auth/login"):
                await self._login(writer, body)

            else:
                await self._autoupdate(writer, headers)

        except (ConnectionError, asyncio.IncompleteReadError):
            pass

        finally:
            writer.close()

    async def _login(self, writer: asyncio.StreamWriter, body: bytes):
        credentials = orjson.loads(body)

        if (
            credentials.get("username") != self.username
            or credentials.get("password") != self.password
        ):
            message = b"username or password is incorrect"
            writer.write(
                b"HTTP/1.1 403 Forbidden\r\n"
                + f"Content-Length: {len(message)}\r\n\r\n".encode()
                + message
            )

            await writer.drain()
            return

        writer.write(
            b"HTTP/1.1 200 OK\r\n"
            + f"authentication: {self.token}\r\n".encode()
            + b"Set-Cookie: refreshId=bearer%20abc; Path=/system/auth; HttpOnly\r\n"
            + b"Content-Length: 0\r\n\r\n"
        )

        await writer.drain()

    async def _autoupdate(
        self,
        writer: asyncio.StreamWriter,
        headers: Dict[str, str],
    ):
        if (
            headers.get("authentication") != self.token
            or "refreshId=bearer%20abc" not in headers.get("cookie", "")
        ):
            message = b"not logged in"
            writer.write(
                b"HTTP/1.1 401 Unauthorized\r\n"
                + f"Content-Length: {len(message)}\r\n\r\n".encode()
                + message
            )

            await writer.drain()
            return

        if self.stream_status != 200:
            message = b"autoupdate unavailable"
            writer.write(
                f"HTTP/1.1 {self.stream_status} Service Unavailable\r\n".encode()
                + f"Content-Length: {len(message)}\r\n\r\n".encode()
                + message
            )

            await writer.drain()
            return

        writer.write(
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: application/octet-stream\r\n"
            b"Transfer-Encoding: chunked\r\n\r\n"
        )

        for chunk in self.chunks:
            writer.write(f"{len(chunk):x}\r\n".encode() + chunk + b"\r\n")
            await writer.drain()
            await asyncio.sleep(0.01)

        if self.truncate is False:
            writer.write(b"0\r\n\r\n")
            await writer.drain()


@pytest.fixture(autouse=True)
def quiet_logging():
    _global_log_level.set(LogLevel.ERROR)
    yield
    _global_log_level.set(LogLevel.INFO)
    _global_log_output_type.set(StreamType.STDERR)


@pytest.fixture
def temp_log_directory() -> Generator[str, None, None]:
    with tempfile.TemporaryDirectory() as temp_directory:
        yield temp_directory


@pytest.fixture
def credential() -> Credential:
    return Credential(
        token=make_token(user_id=1),
        cookie_name="refreshId",
        cookie_value="bearer%20abc",
        user_id=1,
    )


@pytest.fixture
async def autoupdate_server():
    server = FakeAutoupdateServer()
    await server.start()
    yield server
    await server.close()
