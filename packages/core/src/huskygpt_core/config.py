import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from huskygpt_core.exceptions import ConfigError
from huskygpt_core.models import HuskyGPTMode

DEFAULT_CONFIG: dict = {
    "mode": "review",
    "openai_options": {},  # merged over DEFAULT_COMPLETION_PARAMS
    "review_typing": "true",  # "false" disables the typing animation
    "max_chars_per_file": 20000,
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "test_file_dir": "__tests__",
    "test_file_extension": ".test",
    "base_url": None,
}

DEFAULT_MODELS: dict[HuskyGPTMode, str] = {
    HuskyGPTMode.TEST: "gpt-3.5-turbo-instruct",
    HuskyGPTMode.REVIEW: "gpt-4o-mini",
}

DEFAULT_COMPLETION_PARAMS: dict = {
    "temperature": 0.1,
    "max_tokens": 2048,
    "top_p": 1,
    "stop": None,
    "frequency_penalty": 0,
    "presence_penalty": 0,
}

_SAMPLING_KEYS = ("model", "temperature", "max_tokens", "top_p", "stop", "frequency_penalty", "presence_penalty")


@dataclass(frozen=True)
class HuskyGPTOptions:
    """Resolved, read-only options for one process.

    Built once by build_options() and handed to ReviewRunner, so nothing
    below the CLI reads the config file or the environment directly.
    """

    api_key: str
    mode: HuskyGPTMode
    completion_params: dict = field(default_factory=dict)
    review_typing: str = "true"
    debug: bool = False
    base_url: Optional[str] = None

    @property
    def typing_enabled(self) -> bool:
        return str(self.review_typing).lower() != "false"


def load_config(config_path: str = ".huskygpt.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .huskygpt.yml in the current directory
      3. CLI argument overrides
      4. Credentials from environment variables
    """
    config = {
        **DEFAULT_CONFIG,
        "exclude": list(DEFAULT_CONFIG["exclude"]),
        "openai_options": dict(DEFAULT_CONFIG["openai_options"]),
        "openai_key": None,
    }

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Environment wins over the file for credentials
    config["openai_key"] = os.environ.get("OPENAI_API_KEY") or config.get("openai_key")
    if os.environ.get("OPENAI_BASE_URL"):
        config["base_url"] = os.environ["OPENAI_BASE_URL"]
    config["debug"] = bool(os.environ.get("DEBUG")) or is_enabled(config.get("debug", False))

    return config


def is_enabled(value) -> bool:
    """Read a YAML or string flag; "false", "0", "no" and empty values are off."""
    return str(value).strip().lower() not in ("false", "0", "no", "off", "", "none")


def resolve_mode(value) -> HuskyGPTMode:
    try:
        return HuskyGPTMode(str(getattr(value, "value", value)).lower())
    except ValueError:
        choices = ", ".join(m.value for m in HuskyGPTMode)
        raise ConfigError(f"Unknown mode: {value!r}. Choose one of: {choices}.") from None


def completion_params(overrides: Optional[dict], mode: HuskyGPTMode) -> dict:
    """Merge user overrides over the default sampling parameters for ``mode``."""
    params = {"model": DEFAULT_MODELS[mode], **DEFAULT_COMPLETION_PARAMS}
    if overrides:
        params.update(overrides)
    return params


def chat_completion_params(params: dict) -> dict:
    """Derive the chat-completion request record from completion parameters.

    Only the shared sampling fields are carried over; ``messages`` starts
    empty and is filled per prompt by the chat client.
    """
    chat = {key: params.get(key) for key in _SAMPLING_KEYS}
    chat["messages"] = []
    return chat


def build_options(config: dict, mode=None) -> HuskyGPTOptions:
    """Build the process-wide options from a loaded config dict."""
    resolved_mode = resolve_mode(mode if mode is not None else config.get("mode", DEFAULT_CONFIG["mode"]))

    api_key = (config.get("openai_key") or "").strip()
    if not api_key:
        raise ConfigError("No OpenAI API key configured. Set the OPENAI_API_KEY environment variable.")

    overrides = config.get("openai_options") or {}
    if not isinstance(overrides, dict):
        raise ConfigError("openai_options must be a mapping of completion parameters.")

    return HuskyGPTOptions(
        api_key=api_key,
        mode=resolved_mode,
        completion_params=completion_params(overrides, resolved_mode),
        review_typing=str(config.get("review_typing", "true")),
        debug=is_enabled(config.get("debug", False)),
        base_url=config.get("base_url"),
    )
