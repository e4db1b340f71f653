"""Runtime configuration — env-driven via pydantic-settings.

Reads ``BUILDSYNC_*`` environment variables and an optional ``.env`` file.
The four host-facing keys mirror the adapter's settings page: account name,
account token, project-name filter and the load-test-results flag.
"""

from __future__ import annotations

from collections.abc import Callable

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

APPVEYOR_WEB_URL = "https://ci.appveyor.com"


class BuildsyncConfig(BaseSettings):
    """Adapter configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BUILDSYNC_ACCOUNT_NAME=my-team
        export BUILDSYNC_ACCOUNT_TOKEN=v2.abc...
        export BUILDSYNC_PROJECT_NAME="api|web"
        export BUILDSYNC_LOAD_TESTS_RESULTS=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDSYNC_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Host-facing settings
    account_name: str = ""
    account_token: SecretStr = SecretStr("")
    project_name: str = ""  # pipe-delimited; empty means every project
    load_tests_results: bool = False

    # Provider endpoint
    base_url: str = APPVEYOR_WEB_URL
    records_number: int = 25
    http_timeout_seconds: float = 120.0

    # Poll loop
    poll_interval_seconds: float = 5.0

    # Observability
    log_level: str = "INFO"

    @property
    def token(self) -> str | None:
        """The bearer token, or ``None`` when blank."""
        value = self.account_token.get_secret_value().strip()
        return value or None

    @property
    def is_configured(self) -> bool:
        """Whether there is enough configuration to query the provider."""
        return bool(self.account_name.strip() or self.project_name.strip())

    def project_names(
        self, replace_variables: Callable[[str], str] | None = None
    ) -> list[str] | None:
        """Parse the project filter; ``None`` means "use all projects".

        ``replace_variables`` is the host's template expansion, applied to
        the raw setting before it is split on ``|``.
        """
        raw = self.project_name
        if not raw.strip():
            return None
        if replace_variables is not None:
            raw = replace_variables(raw)
        return [name for name in raw.split("|") if name]


# Module-level singleton; import as `from buildsync.config import config`
config = BuildsyncConfig()
