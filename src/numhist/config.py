import json
from collections.abc import Sequence
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "HistogramSettings",
    "LoggingSettings",
    "Settings",
    "print_config",
    "reload_settings",
    "settings",
]


class LoggingSettings(BaseModel):
    """
    Logging settings for the application
    """

    disabled: bool = False
    clear_loggers: bool = True
    console_log_level: str = "WARNING"
    console_format: str = (
        "{time:YYYY-MM-DD HH:mm:ss.SSS} | {name}:{function} | {level} - {message}"
    )
    log_file: Optional[str] = None
    log_file_level: Optional[str] = None


class HistogramSettings(BaseModel):
    """
    Sizing and comparison defaults applied to newly created histograms
    """

    max_diagnostics: int = Field(
        default=16,
        gt=0,
        description="Capacity of every per-bin and NaN diagnostic reservoir.",
    )
    sample_values_per_bin: int = Field(
        default=16,
        gt=0,
        description=(
            "Sample value reservoir capacity per bin for histograms created "
            "from an explicit bin layout."
        ),
    )
    max_sample_values_from_samples: int = Field(
        default=1000,
        gt=0,
        description=(
            "Sample value reservoir capacity for histograms built directly "
            "from raw samples."
        ),
    )
    default_alpha: float = Field(
        default=0.05,
        gt=0.0,
        lt=1.0,
        description="p-values below this threshold are reported as significant.",
    )


class Settings(BaseSettings):
    """
    All the settings are powered by pydantic_settings and could be
    populated from the .env file.

    The format to populate the settings is next

    ```sh
    export NUMHIST__LOGGING__DISABLED=true
    export NUMHIST__HISTOGRAM__MAX_DIAGNOSTICS=32
    export NUMHIST__RANDOM_SEED=42
    ```
    """

    model_config = SettingsConfigDict(
        env_prefix="NUMHIST__",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
        env_file=".env",
    )

    # general settings
    logging: LoggingSettings = LoggingSettings()

    # histogram settings
    histogram: HistogramSettings = HistogramSettings()
    random_seed: Optional[int] = None

    def generate_env_file(self) -> str:
        """
        Generate the .env file from the current settings
        """
        return Settings._recursive_generate_env(
            self,
            self.model_config["env_prefix"],  # type: ignore  # noqa: PGH003
            self.model_config["env_nested_delimiter"],  # type: ignore  # noqa: PGH003
        )

    @staticmethod
    def _recursive_generate_env(model: BaseModel, prefix: str, delimiter: str) -> str:
        env_file = ""
        add_models = []
        for key, value in model:
            if isinstance(value, BaseModel):
                # nested settings are written after the current level
                add_models.append((key, value))
                continue

            tag = f"{prefix}{key.upper()}"
            if isinstance(value, Sequence) and not isinstance(value, str):
                value_str = ",".join(f'"{item}"' for item in value)
                env_file += f"{tag}=[{value_str}]\n"
            elif isinstance(value, dict):
                env_file += f"{tag}={json.dumps(value)}\n"
            elif value is None:
                env_file += f"{tag}=\n"
            else:
                env_file += f'{tag}="{value}"\n'

        for key, value in add_models:
            env_file += Settings._recursive_generate_env(
                value, f"{prefix}{key.upper()}{delimiter}", delimiter
            )
        return env_file


settings = Settings()


def reload_settings():
    """
    Reload the settings from the environment variables
    """
    new_settings = Settings()
    settings.__dict__.update(new_settings.__dict__)


def print_config():
    """
    Print the current configuration settings
    """
    print(f"Settings: \n{settings.generate_env_file()}")  # noqa: T201
