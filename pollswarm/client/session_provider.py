import base64
import binascii

import orjson

from pollswarm.errors import AuthError, PollSwarmError
from pollswarm.logging import Logger
from pollswarm.logging.pollswarm_logging_models import SessionFatal, SessionInfo

from .credential import Credential
from .http_client import HTTPClient

SESSION_COOKIE = "refreshId"
AUTH_HEADER = "authentication"


def decode_user_id(token: str) -> int:
    """
    Returns the user id from the payload of a JWT token.

    The token is not validated. The user id is only used for display.
    """
    parts = token.split(".")
    if len(parts) < 2:
        raise AuthError(f"Err. - auth token {token!r} is not a JWT token")

    encoded = parts[1]

    try:
        payload = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))
        data = orjson.loads(payload)

    except (binascii.Error, ValueError) as err:
        raise AuthError(f"Err. - decoding jwt token {encoded!r}: {err}") from err

    user_id = data.get("userId") if isinstance(data, dict) else None
    if not isinstance(user_id, int):
        raise AuthError(f"Err. - jwt token {encoded!r} has no userId")

    return user_id


class SessionProvider:
    def __init__(
        self,
        client: HTTPClient,
        username: str,
        password: str,
        login_path: str = "/system/auth/login",
    ) -> None:
        self._client = client
        self._username = username
        self._password = password
        self._login_path = login_path
        self._logger = Logger()

    async def login(self) -> Credential:
        async with self._logger.context(
            name="session",
        ) as ctx:
            try:
                credential = await self._login()

            except AuthError as err:
                await ctx.log(
                    SessionFatal(
                        message=f"Login as {self._username} failed - {err}",
                        address=self._client.address,
                        username=self._username,
                    )
                )

                raise

            await ctx.log(
                SessionInfo(
                    message=f"Logged in as {self._username} with user id {credential.user_id}",
                    address=self._client.address,
                    username=self._username,
                )
            )

            return credential

    async def _login(self) -> Credential:
        payload = orjson.dumps({
            "username": self._username,
            "password": self._password,
        })

        try:
            response = await self._client.request(
                "POST",
                self._login_path,
                headers={
                    "Content-Type": "application/json",
                    "Connection": "close",
                },
                data=payload,
            )

        except PollSwarmError as err:
            raise AuthError(f"Err. - sending login request: {err}") from err

        if response.ok is False:
            raise AuthError(
                f"Err. - got status {response.status} {response.status_message}: {response.content[:256].decode(errors='replace')}"
            )

        token = response.header(AUTH_HEADER)
        if not token:
            raise AuthError(f"Err. - login response has no {AUTH_HEADER} header")

        cookie_value = response.cookies.get(SESSION_COOKIE)
        if cookie_value is None:
            raise AuthError(f"Err. - login response has no {SESSION_COOKIE} cookie")

        return Credential(
            token=token,
            cookie_name=SESSION_COOKIE,
            cookie_value=cookie_value,
            user_id=decode_user_id(token),
        )
