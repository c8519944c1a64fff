"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, path: str, base_url: str) -> None: ...

    def config_plaintext_token_warning(self, base_url: str) -> None: ...
