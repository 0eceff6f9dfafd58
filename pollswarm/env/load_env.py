import os
from typing import Dict, TypeVar, Union

from dotenv import dotenv_values
from pydantic import BaseModel

from .env import Env

T = TypeVar("T", bound=BaseModel)

PrimaryType = Union[str, int, bool, float, bytes]


def load_env(
    default: type[Env],
    env_file: str | None = None,
    override: T | None = None,
) -> T:
    """
    Builds the config from, in increasing precedence, the model defaults,
    a dotenv file, the process environment and any explicitly set fields
    of `override`.
    """
    envars = default.types_map()

    if env_file is None:
        env_file = ".env"

    values: Dict[str, PrimaryType] = {}

    if os.path.exists(env_file):
        for envar_name, envar_value in dotenv_values(dotenv_path=env_file).items():
            if envar_name in envars and envar_value:
                values[envar_name] = envars[envar_name](envar_value)

    for envar_name, envar_type in envars.items():
        if envar_value := os.getenv(envar_name):
            values[envar_name] = envar_type(envar_value)

    model = default
    if override is not None:
        values.update(override.model_dump(exclude_unset=True, exclude_none=True))
        model = type(override)

    return model(**values)
