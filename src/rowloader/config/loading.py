"""Defaults that shape how cells and headers are split while loading."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_MULTI_VALUE_DELIMITER = "|"
DEFAULT_FIND_BY_DELIMITER = ":"


@dataclass(frozen=True, slots=True)
class LoadingConfig:
    multi_value_delimiter: str = DEFAULT_MULTI_VALUE_DELIMITER
    find_by_delimiter: str = DEFAULT_FIND_BY_DELIMITER

    def __post_init__(self) -> None:
        if self.multi_value_delimiter == self.find_by_delimiter:
            raise ConfigurationError(
                "Multi-value and find-by delimiters must differ "
                f"(both are {self.find_by_delimiter!r})"
            )


def get_loading_config() -> LoadingConfig:
    return LoadingConfig(
        multi_value_delimiter=optional_env_var(
            "ROWLOADER_MULTI_VALUE_DELIMITER", DEFAULT_MULTI_VALUE_DELIMITER
        ),
        find_by_delimiter=optional_env_var(
            "ROWLOADER_FIND_BY_DELIMITER", DEFAULT_FIND_BY_DELIMITER
        ),
    )
