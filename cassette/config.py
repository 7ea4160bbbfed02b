"""Configuration: env, Spotify credentials, cookies, storage paths."""
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from dotenv import load_dotenv

from cassette.exceptions import ConfigError

# Base paths (project root = parent of cassette package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SPOTIFY_CLIENT_ID etc. are set
load_dotenv(BASE_DIR / ".env")

DEFAULT_DATA_DIR = BASE_DIR / "data"
DEFAULT_WEB_DIR = BASE_DIR / "web" / "dist"

CALLBACK_PATH = "/spotify-oauth-callback"
SPOTIFY_SCOPES = "user-read-currently-playing user-read-playback-state user-modify-playback-state"

SESSION_COOKIE_NAME = "cassette_session"
CONSENT_COOKIE_NAME = "cassette_consent"
CSRF_HEADER_NAME = "cassette_csrf_token"

SESSION_MAX_AGE = 60 * 60 * 24 * 30  # 30 days


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    app_url: str = ""
    dev_mode: bool = False
    data_dir: Path = DEFAULT_DATA_DIR
    web_dir: Path = DEFAULT_WEB_DIR
    session_cookie_name: str = SESSION_COOKIE_NAME
    consent_cookie_name: str = CONSENT_COOKIE_NAME
    csrf_header_name: str = CSRF_HEADER_NAME
    session_max_age: int = SESSION_MAX_AGE
    secure_cookies: bool = True
    scopes: str = SPOTIFY_SCOPES

    @classmethod
    def from_env(cls) -> "Settings":
        dev_mode = os.getenv("ENV", "") == "DEV"
        host = os.getenv("CASSETTE_NETWORK_INTERFACE", "0.0.0.0")
        # PORT is how Heroku/Dokku tell the app where to listen
        port = int(os.getenv("CASSETTE_PORT", os.getenv("PORT", "8080")))
        return cls(
            spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID", ""),
            spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET", ""),
            api_host=host,
            api_port=port,
            app_url=os.getenv("CASSETTE_APP_URL", f"http://{host}:{port}/"),
            dev_mode=dev_mode,
            data_dir=Path(os.getenv("CASSETTE_DATA_DIR", str(DEFAULT_DATA_DIR))),
            web_dir=Path(os.getenv("CASSETTE_WEB_DIR", str(DEFAULT_WEB_DIR))),
            session_max_age=int(os.getenv("CASSETTE_SESSION_MAX_AGE", str(SESSION_MAX_AGE))),
            secure_cookies=not dev_mode and not _env_flag("CASSETTE_INSECURE_COOKIES"),
        )

    @property
    def callback_path(self) -> str:
        return CALLBACK_PATH

    @property
    def redirect_uri(self) -> str:
        """Absolute URL Spotify sends the user back to after login."""
        parts = urlsplit(self.app_url)
        return urlunsplit((parts.scheme, parts.netloc, CALLBACK_PATH, "", ""))

    @property
    def player_states_dir(self) -> Path:
        return self.data_dir / "player_states"

    def validate(self) -> None:
        """Raise ConfigError if the app cannot possibly talk to Spotify."""
        if not self.spotify_client_id or not self.spotify_client_secret:
            raise ConfigError(
                "Please make sure 'SPOTIFY_CLIENT_ID' and 'SPOTIFY_CLIENT_SECRET' are set."
            )
        parts = urlsplit(self.app_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigError(f"'CASSETTE_APP_URL' is not set to a valid value: {self.app_url!r}")


def ensure_data_dir(settings: Settings) -> None:
    settings.player_states_dir.mkdir(parents=True, exist_ok=True)
