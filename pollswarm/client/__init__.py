from .credential import Credential as Credential
from .http_client import HTTPClient as HTTPClient
from .http_connection import HTTPConnection as HTTPConnection
from .http_stream import HTTPStream as HTTPStream
from .models import (
    URL as URL,
    HTTPResponse as HTTPResponse,
)
from .session_provider import (
    SessionProvider as SessionProvider,
    decode_user_id as decode_user_id,
)
from .swarm_client import (
    SwarmClient as SwarmClient,
    build_subscribe_path as build_subscribe_path,
)
