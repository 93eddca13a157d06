"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(
        self, path: str, default_model: str, model_count: int
    ) -> None: ...

    def config_created(self, path: str) -> None: ...

    def config_approval_disabled_warning(self) -> None: ...
