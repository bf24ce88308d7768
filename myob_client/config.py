from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from urllib.parse import urlparse

from myob_client.models import CompanyFileSelection

DEFAULT_API_URL = "https://api.myob.com/accountright/"


class ConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class AppSettings:
    api_key: str
    api_secret: str
    access_token: str
    refresh_token: str
    redirect_uri: str
    scope: str
    api_url: str
    server_url: str
    company_file_name: str
    company_file_id: str
    company_file_token: str
    company_file_username: str
    company_file_password: str
    timeout_seconds: int
    log_level: str

    @property
    def is_direct(self) -> bool:
        return bool(self.server_url)

    @staticmethod
    def from_env() -> "AppSettings":
        _load_dotenv_if_present()

        api_url = os.getenv("MYOB_API_URL", DEFAULT_API_URL).strip() or DEFAULT_API_URL
        server_url = os.getenv("MYOB_SERVER_URL", "").strip()

        settings = AppSettings(
            api_key=os.getenv("MYOB_API_KEY", "").strip(),
            api_secret=os.getenv("MYOB_API_SECRET", "").strip(),
            access_token=os.getenv("MYOB_ACCESS_TOKEN", "").strip(),
            refresh_token=os.getenv("MYOB_REFRESH_TOKEN", "").strip(),
            redirect_uri=os.getenv("MYOB_REDIRECT_URI", "http://localhost").strip(),
            scope=os.getenv("MYOB_SCOPE", "CompanyFile").strip(),
            api_url=api_url,
            server_url=server_url,
            company_file_name=os.getenv("MYOB_COMPANY_FILE_NAME", "").strip(),
            company_file_id=os.getenv("MYOB_COMPANY_FILE_ID", "").strip(),
            company_file_token=os.getenv("MYOB_COMPANY_FILE_TOKEN", "").strip(),
            company_file_username=os.getenv("MYOB_COMPANY_FILE_USERNAME", "").strip(),
            company_file_password=os.getenv("MYOB_COMPANY_FILE_PASSWORD", ""),
            timeout_seconds=_parse_int("MYOB_TIMEOUT_SECONDS", "30"),
            log_level=os.getenv("MYOB_LOG_LEVEL", "WARNING").strip().upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if not self.is_direct:
            missing = []
            if not self.api_key:
                missing.append("MYOB_API_KEY")
            if not self.api_secret:
                missing.append("MYOB_API_SECRET")
            if missing:
                raise ConfigurationError(
                    "Missing required settings for cloud mode: " + ", ".join(missing)
                )

        url_fields = {"MYOB_API_URL": self.api_url}
        if self.server_url:
            url_fields["MYOB_SERVER_URL"] = self.server_url
        invalid_urls = [
            name for name, value in url_fields.items() if urlparse(value).scheme not in ("http", "https")
        ]
        if invalid_urls:
            raise ConfigurationError(
                "URLs must start with http:// or https://: " + ", ".join(invalid_urls)
            )

        if self.timeout_seconds <= 0:
            raise ConfigurationError("MYOB_TIMEOUT_SECONDS must be greater than 0")

    def company_file_selection(self) -> CompanyFileSelection | None:
        if not self.company_file_name and not self.company_file_id:
            return None
        return CompanyFileSelection(
            name=self.company_file_name or None,
            id=self.company_file_id or None,
            token=self.company_file_token or None,
            username=self.company_file_username or None,
            password=self.company_file_password or None,
        )


def _parse_int(name: str, default: str) -> int:
    raw_value = os.getenv(name, default).strip()
    try:
        return int(raw_value)
    except ValueError as error:
        raise ConfigurationError(f"{name} must be an integer, got {raw_value!r}") from error


def _load_dotenv_if_present(file_name: str = ".env") -> None:
    """Load ``MYOB_ENV_FILE`` when set, otherwise ``./.env``; set variables win."""
    explicit = os.getenv("MYOB_ENV_FILE", "").strip()
    path = Path(explicit).expanduser() if explicit else Path.cwd() / file_name
    if not path.is_file():
        return

    try:
        with path.open("r", encoding="utf-8") as env_file:
            for raw_line in env_file:
                line = raw_line.strip()
                if line.startswith("export "):
                    line = line[len("export "):].lstrip()
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")

                if key and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        return
