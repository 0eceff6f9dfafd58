from urllib.parse import urlencode, urlparse

from .credential import Credential
from .http_client import HTTPClient
from .http_stream import HTTPStream


def build_subscribe_path(path: str, compress: bool = False):
    if compress is False:
        return path

    separator = "&" if urlparse(path).query else "?"
    return f"{path}{separator}{urlencode({'compress': 1})}"


class SwarmClient:
    """
    Opens authenticated streaming requests. Every request carries the one
    shared credential; the credential is never modified.
    """

    def __init__(
        self,
        client: HTTPClient,
        credential: Credential,
    ) -> None:
        self._client = client
        self.credential = credential

    async def open_stream(
        self,
        path: str,
        body: bytes | str,
    ) -> HTTPStream:
        if isinstance(body, str):
            body = body.encode()

        return await self._client.stream(
            "GET",
            path,
            headers={
                **self.credential.headers(),
                "Content-Type": "application/json",
            },
            cookies=self.credential.cookies(),
            data=body,
        )
