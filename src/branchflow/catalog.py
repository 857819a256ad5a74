"""Known embedding providers and models.

Pure data plus lookup helpers, no I/O. The tables are compiled in and are
not user-editable at run time; unknown models fall back to
``DEFAULT_DIMENSIONS``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Provider = Literal["ollama", "llamacpp"]

VALID_PROVIDERS: frozenset[str] = frozenset({"ollama", "llamacpp"})

DEFAULT_PROVIDER: Provider = "ollama"
DEFAULT_DIMENSIONS = 768

PROVIDER_LABELS: dict[Provider, str] = {
    "ollama": "Ollama",
    "llamacpp": "llama.cpp",
}


@dataclass(frozen=True)
class CatalogEntry:
    """A known embedding model."""

    name: str
    dimensions: int
    description: str
    filename: str = ""
    download_url: str = ""

    @property
    def model_id(self) -> str:
        """Identifier written to config: the GGUF filename when there is one."""
        return self.filename or self.name


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

_OLLAMA_MODELS: tuple[CatalogEntry, ...] = (
    CatalogEntry("nomic-embed-text", 768, "Default, good balance"),
    CatalogEntry("mxbai-embed-large", 1024, "Higher quality"),
    CatalogEntry("all-minilm", 384, "Faster, smaller"),
    CatalogEntry("snowflake-arctic-embed", 1024, "Good for code"),
    CatalogEntry("bge-m3", 1024, "Multilingual"),
)

_LLAMACPP_MODELS: tuple[CatalogEntry, ...] = (
    CatalogEntry(
        "nomic-embed-text-v1.5",
        768,
        "Nomic, good quality",
        filename="nomic-embed-text-v1.5.Q8_0.gguf",
        download_url="https://huggingface.co/nomic-ai/nomic-embed-text-v1.5-GGUF",
    ),
    CatalogEntry(
        "bge-small-en-v1.5",
        384,
        "BGE small, fast",
        filename="bge-small-en-v1.5.Q8_0.gguf",
        download_url="https://huggingface.co/second-state/bge-small-en-v1.5-GGUF",
    ),
    CatalogEntry(
        "all-MiniLM-L6-v2",
        384,
        "MiniLM, popular",
        filename="all-MiniLM-L6-v2.Q8_0.gguf",
        download_url="https://huggingface.co/second-state/all-MiniLM-L6-v2-GGUF",
    ),
    CatalogEntry(
        "bge-base-en-v1.5",
        768,
        "BGE base, balanced",
        filename="bge-base-en-v1.5.Q8_0.gguf",
        download_url="https://huggingface.co/second-state/bge-base-en-v1.5-GGUF",
    ),
)

CATALOG: dict[Provider, tuple[CatalogEntry, ...]] = {
    "ollama": _OLLAMA_MODELS,
    "llamacpp": _LLAMACPP_MODELS,
}


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def models_for(provider: Provider) -> tuple[CatalogEntry, ...]:
    """Return the catalog entries for *provider*, in menu order."""
    return CATALOG[provider]


def default_model(provider: Provider) -> str:
    """Return the model identifier used when nothing else is chosen."""
    return CATALOG[provider][0].model_id


def _matches(provider: Provider, entry: CatalogEntry, model_name: str) -> bool:
    if provider == "ollama":
        # "mxbai-embed-large:335m" is a tagged variant of "mxbai-embed-large"
        return model_name == entry.name or model_name.startswith(entry.name + ":")
    # GGUF files carry quantization suffixes: "bge-m3.Q8_0.gguf", ".f16.gguf", ...
    return model_name.startswith(entry.name)


def find_entry(provider: Provider, model_name: str) -> CatalogEntry | None:
    """Find the catalog entry for *model_name*.

    The provider's own table is searched first, then the others, so a GGUF
    name given with the Ollama provider still resolves. The longest
    matching name wins within a table.
    """
    search_order = [provider, *(p for p in CATALOG if p != provider)]
    for candidate in search_order:
        hits = [e for e in CATALOG[candidate] if _matches(candidate, e, model_name)]
        if hits:
            return max(hits, key=lambda e: len(e.name))
    return None


def lookup_dimensions(provider: Provider, model_name: str) -> int:
    """Return the embedding dimensions for *model_name* (768 when unknown)."""
    entry = find_entry(provider, model_name)
    return entry.dimensions if entry else DEFAULT_DIMENSIONS
