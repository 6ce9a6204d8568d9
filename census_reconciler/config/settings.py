from typing import Any, Literal

from pydantic import Extra, Field
from pydantic.class_validators import root_validator
from pydantic.env_settings import BaseSettings, EnvSettingsSource, InitSettingsSource

LogLevelType = Literal["ERROR", "WARNING", "INFO", "DEBUG", "CRITICAL"]
RegionType = Literal["us", "eu"]

REGION_BASE_URLS: dict[str, str] = {
    "us": "https://app.getcensus.com/api/v1",
    "eu": "https://app-eu.getcensus.com/api/v1",
}


class CensusSettings(BaseSettings):
    personal_access_token: str = Field(default="", sensitive=True)
    region: RegionType = "us"
    # Derived from the region when not set explicitly
    base_url: str = ""
    client_timeout: float = 30.0
    log_level: LogLevelType = "INFO"

    class Config:
        extra = Extra.ignore
        env_prefix = "CENSUS__"
        env_file = ".env"
        env_file_encoding = "utf-8"

        @classmethod
        def customise_sources(  # type: ignore
            cls,
            init_settings: InitSettingsSource,
            env_settings: EnvSettingsSource,
            *_,
            **__,
        ):
            return init_settings, env_settings

    @root_validator()
    def resolve_base_url(cls, values: dict[str, Any]) -> dict[str, Any]:
        if not values.get("base_url") and values.get("region"):
            values["base_url"] = REGION_BASE_URLS[values["region"]]
        if values.get("base_url"):
            values["base_url"] = values["base_url"].rstrip("/")
        return values

    def get_sensitive_fields_data(self) -> set[str]:
        return {
            str(getattr(self, field_name))
            for field_name, field in self.__fields__.items()
            if field.field_info.extra.get("sensitive", False)
            and getattr(self, field_name)
        }
