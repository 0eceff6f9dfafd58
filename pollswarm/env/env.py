from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictBool, StrictFloat, StrictInt, StrictStr

from pollswarm.logging.config import LogOutput

PrimaryType = Union[str, int, float, bytes, bool]

ChunkFormat = Literal["raw", "json", "base64"]

DEFAULT_AUTOUPDATE_BODY = (
    '[{"collection":"organization","ids":[1],"fields":{"committee_ids":'
    '{"type":"relation-list","collection":"committee","fields":{"name":null}}}}]'
)


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    POLLSWARM_ADDRESS: StrictStr = "https://localhost:8000"
    POLLSWARM_USERNAME: StrictStr = "admin"
    POLLSWARM_PASSWORD: StrictStr = "admin"
    POLLSWARM_FORCE_IPV4: StrictBool = False
    POLLSWARM_LOGIN_PATH: StrictStr = "/system/auth/login"
    POLLSWARM_AUTOUPDATE_PATH: StrictStr = "/system/autoupdate"
    POLLSWARM_COMPRESS: StrictBool = True
    POLLSWARM_AUTOUPDATE_BODY: StrictStr = DEFAULT_AUTOUPDATE_BODY
    POLLSWARM_CONNECTIONS: StrictInt = 10
    POLLSWARM_CONNECT_RETRIES: StrictInt = 100
    POLLSWARM_RETRY_INTERVAL: StrictStr | StrictInt | StrictFloat = "1s"
    POLLSWARM_CONNECT_TIMEOUT: StrictStr | StrictInt | StrictFloat = "10s"
    POLLSWARM_CHUNK_FORMAT: ChunkFormat = "raw"
    POLLSWARM_LOG_LEVEL: StrictStr = "info"
    POLLSWARM_LOG_OUTPUT: LogOutput = "stderr"
    POLLSWARM_LOGS_PATH: StrictStr | None = None

    @classmethod
    def types_map(self) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "POLLSWARM_ADDRESS": str,
            "POLLSWARM_USERNAME": str,
            "POLLSWARM_PASSWORD": str,
            "POLLSWARM_FORCE_IPV4": parse_bool,
            "POLLSWARM_LOGIN_PATH": str,
            "POLLSWARM_AUTOUPDATE_PATH": str,
            "POLLSWARM_COMPRESS": parse_bool,
            "POLLSWARM_AUTOUPDATE_BODY": str,
            "POLLSWARM_CONNECTIONS": int,
            "POLLSWARM_CONNECT_RETRIES": int,
            "POLLSWARM_RETRY_INTERVAL": str,
            "POLLSWARM_CONNECT_TIMEOUT": str,
            "POLLSWARM_CHUNK_FORMAT": str,
            "POLLSWARM_LOG_LEVEL": str,
            "POLLSWARM_LOG_OUTPUT": str,
            "POLLSWARM_LOGS_PATH": str,
        }
