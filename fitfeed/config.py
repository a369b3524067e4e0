import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "y", "on")


@dataclass
class Settings:
    supabase_url: str | None
    supabase_anon_key: str | None
    service_version: str
    auto_refresh_token: bool

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


def get_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
        service_version=os.getenv("SERVICE_VERSION", "0.1.0"),
        auto_refresh_token=_str_to_bool(os.getenv("SUPABASE_AUTO_REFRESH_TOKEN"), default=True),
    )
