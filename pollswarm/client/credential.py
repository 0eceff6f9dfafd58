from typing import Dict, List, Tuple

import msgspec


class Credential(msgspec.Struct, frozen=True, kw_only=True):
    token: str
    cookie_name: str
    cookie_value: str
    user_id: int

    def headers(self) -> Dict[str, str]:
        return {
            "authentication": self.token,
        }

    def cookies(self) -> List[Tuple[str, str]]:
        return [
            (self.cookie_name, self.cookie_value),
        ]
