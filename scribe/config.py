"""Configuration handling for scribe."""

import os
import shlex
import tomllib
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_DEVICE = "front:CARD=BRIO"
DEFAULT_DURATION_S = 3600
DEFAULT_VOLUME = 2.0


def get_default_config_path() -> Path:
    """Get the default config file path following XDG spec."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        base_dir = Path(xdg_config)
    else:
        base_dir = Path.home() / ".config"

    return base_dir / "scribe" / "config.toml"


def get_default_log_path() -> Path:
    """Get the default log file path following XDG spec."""
    xdg_state = os.environ.get("XDG_STATE_HOME")
    if xdg_state:
        base_dir = Path(xdg_state)
    else:
        base_dir = Path.home() / ".local" / "state"

    log_dir = base_dir / "scribe"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / "scribe.log"


class CaptureConfig(BaseModel):
    """Recording program configuration."""

    program: str = Field(default="ffmpeg", description="Recording executable.")
    input_format: str = Field(
        default="alsa", description="ffmpeg input format for the capture device."
    )


class WhisperConfig(BaseModel):
    """Whisper command line configuration."""

    program: str = Field(default="whisper", description="Transcription executable.")
    model: str = Field(default="turbo", description="Whisper model identifier.")
    device: str = Field(
        default="cuda", description="Device for inference (cpu, cuda)."
    )
    language: str = Field(default="en", description="Spoken language hint.")

    @field_validator("model")
    @classmethod
    def check_model_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Whisper model identifier cannot be empty")
        return v


class ClipboardConfig(BaseModel):
    """Clipboard command configuration."""

    command: str = Field(
        default="cb copy", description="Command that reads text on stdin."
    )

    @field_validator("command")
    @classmethod
    def check_command_not_empty(cls, v: str) -> str:
        if not shlex.split(v):
            raise ValueError("Clipboard command cannot be empty")
        return v

    @property
    def argv(self) -> List[str]:
        return shlex.split(self.command)


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    file: Optional[Path] = Field(
        default=None, description="Optional custom log file path."
    )

    @field_validator("level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in allowed_levels:
            raise ValueError(f"Invalid log level. Choose from {allowed_levels}")
        return upper_v

    @property
    def computed_file(self) -> Path:
        return self.file or get_default_log_path()


class AppConfig(BaseModel):
    """Root configuration.

    The recording settings live at the top level of the file so that a
    plain ``device = ...`` / ``duration = ...`` / ``volume = ...`` config works.
    """

    device: str = Field(default=DEFAULT_DEVICE, description="Audio input device.")
    duration: int = Field(
        default=DEFAULT_DURATION_S,
        gt=0,
        description="Maximum recording duration in whole seconds.",
    )
    volume: float = Field(
        default=DEFAULT_VOLUME, gt=0, description="Input volume multiplier."
    )
    output_dir: Path = Field(
        default=Path("."), description="Directory the recording is written to."
    )
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    whisper: WhisperConfig = Field(default_factory=WhisperConfig)
    clipboard: ClipboardConfig = Field(default_factory=ClipboardConfig)
    log: LogConfig = Field(default_factory=LogConfig)

    @field_validator("device")
    @classmethod
    def check_device_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Audio device cannot be empty")
        return v


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration.

    If path is not provided, looks for config in the standard location.
    If no config file is found, returns default configuration.

    Args:
        path: Optional path to config file. A leading ``~`` is expanded.

    Returns:
        Validated AppConfig instance.

    Raises:
        ValueError: If config file exists but has invalid format/content.
        OSError: If config file exists but can't be read.
    """
    if path is None:
        path = get_default_config_path()
    path = Path(path).expanduser()

    if not path.exists():
        return AppConfig()  # Use defaults

    try:
        with open(path, "rb") as f:
            config_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Error decoding TOML file: {path}\n{e}") from e
    except OSError as e:
        raise OSError(f"Error reading file: {path}\n{e}") from e

    try:
        return AppConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e


def merge_overrides(
    config: AppConfig,
    device: Optional[str] = None,
    duration: Optional[int] = None,
    volume: Optional[float] = None,
    output_dir: Optional[Path] = None,
) -> AppConfig:
    """Apply command line overrides on top of a loaded configuration.

    Only values that were actually given (not ``None``) replace the file
    values. The original config is left untouched.

    Raises:
        ValueError: If an override fails validation.
    """
    overrides = {
        "device": device,
        "duration": duration,
        "volume": volume,
        "output_dir": output_dir,
    }
    data = config.model_dump()
    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return AppConfig(**data)
    except Exception as e:
        raise ValueError(f"Invalid command line option: {e}") from e
