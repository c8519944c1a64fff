"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, path: str, base_url: str) -> None:
        self._log.info("config.loaded", path=path, base_url=base_url)

    def config_plaintext_token_warning(self, base_url: str) -> None:
        self._log.warning(
            "config.plaintext_token_warning",
            base_url=base_url,
            message="API token will be sent over plain HTTP",
        )
