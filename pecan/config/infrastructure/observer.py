"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, path: str, default_model: str, model_count: int) -> None:
        self._log.info(
            "config.loaded",
            path=path,
            default_model=default_model,
            model_count=model_count,
        )

    def config_created(self, path: str) -> None:
        self._log.info("config.created", path=path)

    def config_approval_disabled_warning(self) -> None:
        self._log.warning(
            "config.approval_disabled",
            message="tools.require_approval is false; tool calls run unattended",
        )
