import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_TRANSPORT_FACTORY = "services.transport.local:LocalTransport"
DEFAULT_TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60


def _dir_from_env(name: str, default: Path) -> Path:
    """Resolve a directory setting, creating it if needed.

    Raises:
        RuntimeError: If the path points to a file or cannot be created.
    """
    raw = os.getenv(name)
    path = Path(raw).expanduser() if raw and raw.strip() else default

    if path.exists() and not path.is_dir():
        raise RuntimeError(f"{name}={str(path)!r} points to a file, not a directory. Please set {name} to a directory path.")

    try:
        path.mkdir(parents=True, exist_ok=True)
    except Exception as exc:
        raise RuntimeError(f"Failed to create or access directory {path} for {name}") from exc
    return path


@dataclass
class Settings:
    """Service configuration read from environment variables.

    - AUTH_DIR: transport credential directory, wiped on session reset.
    - DATA_DIR: holds `commands.json`.
    - ADMIN_USER / ADMIN_PASS: dashboard login.
    - TOKEN_TTL_SECONDS: bearer token lifetime.
    - PAIRING_NUMBER: optional phone number (digits only) for pairing codes.
    - RECONNECT_DELAY: seconds before reconnecting after a recoverable closure.
    - TRANSPORT_FACTORY: `module:attribute` building the messaging transport.
    """

    auth_dir: Path
    data_dir: Path
    admin_user: str = "admin"
    admin_pass: str = "admin123"
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS
    pairing_number: str = ""
    reconnect_delay: float = 1.2
    transport_factory: str = DEFAULT_TRANSPORT_FACTORY
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        cwd = Path.cwd()
        pairing_number = os.getenv("PAIRING_NUMBER", "").strip()
        if pairing_number and not pairing_number.isdigit():
            raise RuntimeError("PAIRING_NUMBER must contain digits only.")
        try:
            token_ttl = int(os.getenv("TOKEN_TTL_SECONDS", str(DEFAULT_TOKEN_TTL_SECONDS)))
            reconnect_delay = float(os.getenv("RECONNECT_DELAY", "1.2"))
        except ValueError as exc:
            raise RuntimeError("TOKEN_TTL_SECONDS and RECONNECT_DELAY must be numeric.") from exc

        return cls(
            auth_dir=_dir_from_env("AUTH_DIR", cwd / "auth"),
            data_dir=_dir_from_env("DATA_DIR", cwd / "data"),
            admin_user=os.getenv("ADMIN_USER", "admin"),
            admin_pass=os.getenv("ADMIN_PASS", "admin123"),
            token_ttl_seconds=token_ttl,
            pairing_number=pairing_number,
            reconnect_delay=reconnect_delay,
            transport_factory=os.getenv("TRANSPORT_FACTORY", DEFAULT_TRANSPORT_FACTORY),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
