import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_MAX_TOTAL = 200
DEFAULT_MAX_PER_CONFIG = 50
DEFAULT_HTTP_TIMEOUT_S = 30


def supabase_credentials() -> tuple[str, str]:
    url = (os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()

    # Fail fast if required env vars are missing
    _missing = []
    if not url:
        _missing.append("SUPABASE_URL")
    if not key:
        _missing.append("SUPABASE_SERVICE_ROLE_KEY")
    if _missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(_missing)}. "
            "Copy .env.example to .env and fill in your Supabase credentials."
        )
    return url, key


def cron_secret() -> str | None:
    return (os.getenv("CRON_SECRET") or "").strip() or None


def env_int(name: str, default: int) -> int:
    """Non-negative int from env; anything unparsable falls back to default."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


def http_timeout_s() -> int:
    return env_int("SCRAPE_HTTP_TIMEOUT_S", DEFAULT_HTTP_TIMEOUT_S) or DEFAULT_HTTP_TIMEOUT_S
