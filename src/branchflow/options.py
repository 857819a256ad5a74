"""Install option resolution.

Merges command-line flags, ``BF_*`` environment defaults and interactive
answers into a single immutable :class:`InstallOptions`. Per field the
order is: explicit flag > environment > prompt > hard-coded default.

Menus are forgiving: blank input picks option 1 and invalid
input prints a warning and also picks option 1 instead of asking again.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, Protocol, TypeVar
from urllib.parse import urlparse

from branchflow.catalog import (
    DEFAULT_DIMENSIONS,
    DEFAULT_PROVIDER,
    PROVIDER_LABELS,
    VALID_PROVIDERS,
    Provider,
    default_model,
    find_entry,
    lookup_dimensions,
    models_for,
)

logger = logging.getLogger(__name__)

InstallMode = Literal["team", "personal"]

VALID_INSTALL_MODES: frozenset[str] = frozenset({"team", "personal"})

DEFAULT_INSTALL_MODE: InstallMode = "team"
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_LLAMACPP_URL = "http://localhost:8080"

CONTEXT7_SIGNUP_URL = "https://context7.com"
UIPRO_MANUAL_COMMAND = "npm install -g uipro-cli && uipro init --ai claude"

_TRUTHY = frozenset({"1", "true", "yes"})
_FALSY = frozenset({"0", "false", "no"})
_YES = re.compile(r"^[Yy]$")

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class InvalidOption(ValueError):
    """Raised when a recognized flag or environment variable has a malformed value."""

    def __init__(self, source: str, value: str, reason: str) -> None:
        self.source = source
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for {source}: {value!r} ({reason})")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlagValues:
    """What the command line explicitly set. ``None`` means "not given"."""

    provider: str | None = None
    model: str | None = None
    ollama_url: str | None = None
    llamacpp_url: str | None = None
    context7_key: str | None = None
    install_mode: str | None = None
    skip_ollama: bool = False
    skip_context7: bool = False
    uipro: bool = False
    skip_uipro: bool = False
    non_interactive: bool = False


@dataclass(frozen=True)
class InstallOptions:
    """Fully resolved installer configuration."""

    install_mode: InstallMode = DEFAULT_INSTALL_MODE
    embedding_provider: Provider = DEFAULT_PROVIDER
    embedding_model: str = "nomic-embed-text"
    embedding_dimensions: int = DEFAULT_DIMENSIONS
    ollama_url: str = DEFAULT_OLLAMA_URL
    llamacpp_url: str = DEFAULT_LLAMACPP_URL
    context7_api_key: str = ""
    install_uipro: bool = False
    skip_embedding_check: bool = False
    skip_context7: bool = False
    non_interactive: bool = False

    def __post_init__(self) -> None:
        if self.install_mode not in VALID_INSTALL_MODES:
            raise InvalidOption("install mode", self.install_mode, "expected team or personal")
        if self.embedding_provider not in VALID_PROVIDERS:
            raise InvalidOption("provider", self.embedding_provider, "expected ollama or llamacpp")
        if self.embedding_dimensions <= 0:
            raise InvalidOption("dimensions", str(self.embedding_dimensions), "must be a positive integer")

    @property
    def service_url(self) -> str:
        """URL of the selected embedding backend."""
        if self.embedding_provider == "llamacpp":
            return self.llamacpp_url
        return self.ollama_url

    @property
    def context7_configured(self) -> bool:
        return bool(self.context7_api_key)

    @property
    def model_download_url(self) -> str:
        """Where to fetch the model file, when the catalog knows."""
        entry = find_entry(self.embedding_provider, self.embedding_model)
        return entry.download_url if entry else ""


# ---------------------------------------------------------------------------
# Prompting
# ---------------------------------------------------------------------------


class Prompter(Protocol):
    """Source of interactive answers."""

    def ask(self, text: str, default: str = "") -> str: ...

    def notify(self, message: str) -> None: ...


def _choose(prompter: Prompter, title: str, choices: list[tuple[T, str]], *, default_label: str) -> T:
    """Show a numbered menu and return the chosen value.

    Blank answers select the first entry. Anything that is not a listed
    number also selects the first entry, with a warning.
    """
    prompter.notify("")
    prompter.notify(title)
    prompter.notify("")
    for i, (_, label) in enumerate(choices, start=1):
        prompter.notify(f"  {i}) {label}")
    prompter.notify("")
    answer = prompter.ask(f"Enter choice [1-{len(choices)}] (default: 1)").strip()
    if not answer:
        return choices[0][0]
    if answer.isdigit() and 1 <= int(answer) <= len(choices):
        return choices[int(answer) - 1][0]
    prompter.notify(f"Invalid choice, using default: {default_label}")
    logger.warning("Invalid menu answer %r for %r; using default", answer, title)
    return choices[0][0]


def _prompt_install_mode(prompter: Prompter) -> InstallMode:
    choices: list[tuple[InstallMode, str]] = [
        ("team", "Team      - Commit to repo (share with team members)"),
        ("personal", "Personal  - Add to .gitignore (your personal workflow)"),
    ]
    return _choose(prompter, "How do you want to install Branch Flow?", choices, default_label="team")


def _prompt_provider(prompter: Prompter) -> Provider:
    choices: list[tuple[Provider, str]] = [
        ("ollama", "Ollama    - Easy setup, runs as service (recommended)"),
        ("llamacpp", "llama.cpp - Lightweight, run server manually"),
    ]
    return _choose(prompter, "Select Embedding Provider:", choices, default_label="ollama")


def _prompt_dimensions(prompter: Prompter) -> int:
    raw = prompter.ask(f"Enter embedding dimensions (default: {DEFAULT_DIMENSIONS})").strip()
    if not raw:
        return DEFAULT_DIMENSIONS
    try:
        dims = int(raw)
    except ValueError:
        dims = 0
    if dims <= 0:
        prompter.notify(f"Invalid dimensions, using default: {DEFAULT_DIMENSIONS}")
        return DEFAULT_DIMENSIONS
    return dims


def _prompt_model(prompter: Prompter, provider: Provider) -> tuple[str, int | None]:
    """Return ``(model, custom_dimensions)``; dimensions are None for catalog models."""
    entries = models_for(provider)
    choices: list[tuple[str | None, str]] = [
        (e.model_id, f"{e.name:<23}{e.dimensions} dims - {e.description}") for e in entries
    ]
    custom_label = "Custom GGUF model" if provider == "llamacpp" else "Custom model name"
    choices.append((None, custom_label))
    title = f"Select {PROVIDER_LABELS[provider]} Embedding Model:"
    if provider == "llamacpp":
        title = f"Select {PROVIDER_LABELS[provider]} Embedding Model (GGUF format):"
    model = _choose(prompter, title, choices, default_label=entries[0].name)
    if model is not None:
        return model, None

    name_prompt = "Enter GGUF model filename" if provider == "llamacpp" else "Enter custom model name"
    custom = prompter.ask(name_prompt).strip()
    if not custom:
        return default_model(provider), None
    return custom, _prompt_dimensions(prompter)


def _prompt_context7(prompter: Prompter) -> str:
    prompter.notify("")
    prompter.notify("Context7 MCP Configuration (for documentation lookup):")
    prompter.notify(f"Get your API key at: {CONTEXT7_SIGNUP_URL}")
    if not _YES.match(prompter.ask("Do you want to configure Context7? [y/N]").strip()):
        prompter.notify("Skipped - you can configure Context7 later")
        return ""
    key = prompter.ask("Enter Context7 API key (or press Enter to skip)").strip()
    if not key:
        prompter.notify("Skipped - you can add it later to .claude/mcp.json")
    return key


def _prompt_uipro(prompter: Prompter) -> bool:
    prompter.notify("")
    prompter.notify("UI/UX Pro Skill (Design System Guidance) - requires npm")
    if _YES.match(prompter.ask("Do you want to install UI/UX Pro? [y/N]").strip()):
        return True
    prompter.notify(f"Skipped - you can install it later with: {UIPRO_MANUAL_COMMAND}")
    return False


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _env_value(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name, "").strip()
    return value or None


def _env_flag(env: Mapping[str, str], name: str, truthy: frozenset[str] = _TRUTHY) -> bool:
    return env.get(name, "").strip().lower() in truthy


def _pick(flag: str | None, flag_name: str, env: Mapping[str, str], env_name: str) -> tuple[str | None, str]:
    """Return the winning non-empty value and a label naming where it came from."""
    if flag:
        return flag, flag_name
    value = _env_value(env, env_name)
    if value is not None:
        return value, env_name
    return None, ""


def _check_url(value: str, source: str) -> str:
    try:
        parsed = urlparse(value)
        parsed.port  # noqa: B018  ValueError on a bad port
    except ValueError as exc:
        raise InvalidOption(source, value, str(exc)) from exc
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidOption(source, value, "expected an http(s) URL with a host")
    return value.rstrip("/")


def _check_choice(value: str, source: str, valid: frozenset[str]) -> str:
    normalized = value.strip().lower()
    if normalized not in valid:
        raise InvalidOption(source, value, f"expected one of: {', '.join(sorted(valid))}")
    return normalized


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def is_interactive(flags: FlagValues, env: Mapping[str, str]) -> bool:
    """Return True unless ``-y`` was passed or ``BF_INTERACTIVE`` disables prompts."""
    if flags.non_interactive:
        return False
    return not _env_flag(env, "BF_INTERACTIVE", _FALSY)


def resolve_options(
    flags: FlagValues,
    env: Mapping[str, str],
    prompter: Prompter | None = None,
) -> InstallOptions:
    """Resolve every install option in a single pass.

    *prompter* is only consulted when the run is interactive; passing None
    forces defaults for anything not set by flags or environment.

    Raises:
        InvalidOption: a flag or environment variable holds a malformed value.
    """
    interactive = prompter is not None and is_interactive(flags, env)
    ask = prompter if interactive else None

    # Validate everything given up front so a bad value fails before any prompt.
    raw_mode, mode_src = _pick(flags.install_mode, "--team/--personal", env, "BF_INSTALL_MODE")
    mode: InstallMode | None = None
    if raw_mode is not None:
        mode = _check_choice(raw_mode, mode_src, VALID_INSTALL_MODES)  # type: ignore[assignment]

    raw_provider, provider_src = _pick(flags.provider, "--provider", env, "BF_EMBEDDING_PROVIDER")
    provider: Provider | None = None
    if raw_provider is not None:
        provider = _check_choice(raw_provider, provider_src, VALID_PROVIDERS)  # type: ignore[assignment]

    model, _ = _pick(flags.model, "--model", env, "BF_EMBEDDING_MODEL")

    raw_ollama, ollama_src = _pick(flags.ollama_url, "--ollama-url", env, "BF_OLLAMA_URL")
    ollama_url = _check_url(raw_ollama, ollama_src) if raw_ollama else DEFAULT_OLLAMA_URL
    raw_llamacpp, llamacpp_src = _pick(flags.llamacpp_url, "--llamacpp-url", env, "BF_LLAMACPP_URL")
    llamacpp_url = _check_url(raw_llamacpp, llamacpp_src) if raw_llamacpp else DEFAULT_LLAMACPP_URL

    context7_key, _ = _pick(flags.context7_key, "--context7-key", env, "BF_CONTEXT7_API_KEY")
    skip_context7 = flags.skip_context7 or _env_flag(env, "BF_SKIP_CONTEXT7")
    skip_embedding_check = flags.skip_ollama or _env_flag(env, "BF_SKIP_OLLAMA_CHECK")
    skip_uipro = flags.skip_uipro or _env_flag(env, "BF_SKIP_UIPRO")
    uipro: bool | None = True if (flags.uipro or _env_flag(env, "BF_INSTALL_UIPRO")) else None

    custom_dims: int | None = None
    if ask is not None:
        if mode is None:
            mode = _prompt_install_mode(ask)
        if provider is None:
            provider = _prompt_provider(ask)
        if model is None:
            model, custom_dims = _prompt_model(ask, provider)
        if not skip_context7 and not context7_key:
            context7_key = _prompt_context7(ask)
        if not skip_uipro and uipro is None:
            uipro = _prompt_uipro(ask)

    mode = mode or DEFAULT_INSTALL_MODE
    provider = provider or DEFAULT_PROVIDER
    model = model or default_model(provider)
    dimensions = custom_dims if custom_dims is not None else lookup_dimensions(provider, model)

    options = InstallOptions(
        install_mode=mode,
        embedding_provider=provider,
        embedding_model=model,
        embedding_dimensions=dimensions,
        ollama_url=ollama_url,
        llamacpp_url=llamacpp_url,
        context7_api_key=context7_key or "",
        install_uipro=bool(uipro),
        skip_embedding_check=skip_embedding_check,
        skip_context7=skip_context7,
        non_interactive=not is_interactive(flags, env),
    )
    logger.info(
        "Resolved install options",
        extra={
            "args_data": {
                "install_mode": options.install_mode,
                "provider": options.embedding_provider,
                "model": options.embedding_model,
                "dimensions": options.embedding_dimensions,
                "context7": options.context7_configured,
                "uipro": options.install_uipro,
            }
        },
    )
    return options
