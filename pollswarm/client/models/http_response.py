from typing import Dict

from pydantic import BaseModel


class HTTPResponse(BaseModel):
    status: int
    status_message: str | None = None
    headers: Dict[bytes, bytes] = {}
    cookies: Dict[str, str] = {}
    content: bytes = b""

    @property
    def ok(self):
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        if value := self.headers.get(name.lower().encode()):
            return value.decode()
