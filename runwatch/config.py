import os
import tempfile
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_DAYS_BACK = 7
DEFAULT_TIME_WINDOW = 60
DEFAULT_CONTEXT_SEARCH_MINUTES = 10
ARTIFACT_DIR_NAME = "workflow-run-scan"
KEYINGS = ("run", "repository")


class ConfigError(ValueError):
    pass


def default_output_dir(environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    base = environ.get("RUNNER_TEMP") or tempfile.gettempdir()
    return os.path.join(base, ARTIFACT_DIR_NAME)


# --------------------------------------------------
# Input Validation Boundary
# --------------------------------------------------

def _parse_int(name: str, raw, default: int, minimum: int) -> int:
    if raw is None:
        return default
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return default
        try:
            value = int(text, 10)
        except ValueError:
            raise ConfigError(f"Invalid {name} value: {raw}") from None

    if value < minimum:
        raise ConfigError(f"Invalid {name} value: {raw}")
    return value


def parse_positive_int(name: str, raw, default: int) -> int:
    return _parse_int(name, raw, default, minimum=1)


def parse_non_negative_int(name: str, raw, default: int) -> int:
    return _parse_int(name, raw, default, minimum=0)


def _parse_bool(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw or "").strip().lower() in ("1", "true", "yes", "on")


def _input(environ: Mapping[str, str], name: str) -> Optional[str]:
    """
    Action inputs arrive as INPUT_<NAME>, hyphens kept; accept underscores too.
    """
    key = f"INPUT_{name.upper()}"
    value = environ.get(key)
    if value is None:
        value = environ.get(key.replace("-", "_"))
    return value


# --------------------------------------------------
# Scan Configuration
# --------------------------------------------------

@dataclass
class ScanConfig:
    org: str = ""
    token: str = field(default="", repr=False)
    days_back: int = DEFAULT_DAYS_BACK
    time_window: int = DEFAULT_TIME_WINDOW
    context_search_minutes: int = DEFAULT_CONTEXT_SEARCH_MINUTES
    additional_phrase: str = ""
    output_dir: str = field(default_factory=default_output_dir)
    enterprise: bool = False
    keying: str = "run"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScanConfig":
        environ = os.environ if environ is None else environ

        token = _input(environ, "token") or environ.get("GITHUB_TOKEN") or ""

        return cls(
            org=(_input(environ, "org") or "").strip(),
            token=token.strip(),
            days_back=parse_positive_int(
                "days-back", _input(environ, "days-back"), DEFAULT_DAYS_BACK
            ),
            time_window=parse_positive_int(
                "time-window", _input(environ, "time-window"), DEFAULT_TIME_WINDOW
            ),
            context_search_minutes=parse_non_negative_int(
                "context-search-minutes",
                _input(environ, "context-search-minutes"),
                DEFAULT_CONTEXT_SEARCH_MINUTES,
            ),
            additional_phrase=(_input(environ, "additional-phrase") or "").strip(),
            output_dir=(_input(environ, "output-dir") or "").strip() or default_output_dir(environ),
            enterprise=_parse_bool(_input(environ, "enterprise")),
            keying=(_input(environ, "keying") or "run").strip() or "run",
        )

    def validate(self, require_credentials: bool = True) -> "ScanConfig":
        if require_credentials:
            if not self.org:
                raise ConfigError("Input required and not supplied: org")
            if not self.token:
                raise ConfigError("Input required and not supplied: token")

        parse_positive_int("days-back", self.days_back, DEFAULT_DAYS_BACK)
        parse_positive_int("time-window", self.time_window, DEFAULT_TIME_WINDOW)
        parse_non_negative_int(
            "context-search-minutes",
            self.context_search_minutes,
            DEFAULT_CONTEXT_SEARCH_MINUTES,
        )

        if self.keying not in KEYINGS:
            raise ConfigError(f"Invalid keying value: {self.keying}")

        return self
