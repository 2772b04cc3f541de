import os
from typing import Dict, TypeVar, Union

from dotenv import dotenv_values
from pydantic import BaseModel

from .env import Env

T = TypeVar("T", bound=BaseModel)

PrimaryType = Union[str, int, bool, float, bytes]


def load_env(default: type[Env] = Env, env_file: str | None = None, override: T | None = None) -> T:
    """
    Builds settings from the process environment, then ``env_file``
    (``.env`` by default), then ``override``. Later sources win.

    Only names that were actually found are passed to the model, so
    ``model_fields_set`` tells explicit settings apart from defaults.
    """
    types_map = default.types_map()

    sources: list[Dict[str, str | None]] = [dict(os.environ)]

    env_file = ".env" if env_file is None else env_file
    if env_file and os.path.exists(env_file):
        sources.append(dotenv_values(dotenv_path=env_file))

    values: Dict[str, PrimaryType] = {}
    for source in sources:
        for envar_name, convert in types_map.items():
            envar_value = source.get(envar_name)
            if envar_value:
                values[envar_name] = convert(envar_value)

    if override is None:
        return default(**values)

    values.update(override.model_dump(exclude_unset=True))

    return type(override)(**values)
