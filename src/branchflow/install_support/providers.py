"""Embedding backend availability checks (Ollama, llama.cpp).

Best effort only: every failure becomes an advisory :class:`CheckResult`
with a manual remediation hint. Nothing here raises.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

import httpx

from branchflow.install_support import PROBE_TIMEOUT, CheckResult
from branchflow.options import InstallOptions

logger = logging.getLogger(__name__)

OLLAMA_LIST_TIMEOUT = 10
OLLAMA_PULL_TIMEOUT = 600

OLLAMA_INSTALL_URL = "https://ollama.ai"
GGUF_SEARCH_URL = "https://huggingface.co/models?search=gguf+embedding"


def _endpoint_ok(client: httpx.Client, url: str) -> bool:
    """GET *url*; True on a 2xx answer within the probe timeout."""
    start = time.monotonic()
    try:
        response = client.get(url, timeout=PROBE_TIMEOUT)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.info(
            "Probe failed",
            extra={"probe": url, "error": str(exc), "duration_ms": round((time.monotonic() - start) * 1000, 1)},
        )
        return False
    logger.info(
        "Probe answered %s",
        response.status_code,
        extra={"probe": url, "duration_ms": round((time.monotonic() - start) * 1000, 1)},
    )
    return response.is_success


def llamacpp_server_hint(model: str) -> str:
    return f"llama-server -m {model} --embedding --port 8080"


def _check_llamacpp(options: InstallOptions, client: httpx.Client) -> list[CheckResult]:
    url = options.llamacpp_url
    if _endpoint_ok(client, f"{url}/health"):
        return [CheckResult("llama.cpp server", "ok", f"Running at {url}")]
    download = options.model_download_url or GGUF_SEARCH_URL
    return [
        CheckResult(
            "llama.cpp server",
            "advisory",
            f"Not running at {url}",
            fix_hint=f"Start it with: {llamacpp_server_hint(options.embedding_model)} (models: {download})",
        )
    ]


def _ollama_has_model(ollama_bin: str, model: str) -> bool:
    try:
        result = subprocess.run(
            [ollama_bin, "list"],
            capture_output=True,
            text=True,
            timeout=OLLAMA_LIST_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, OSError):
        logger.warning("ollama list failed", exc_info=True)
        return False
    return result.returncode == 0 and model in result.stdout


def _pull_ollama_model(ollama_bin: str, model: str) -> bool:
    """Try ``ollama pull`` exactly once."""
    try:
        result = subprocess.run(
            [ollama_bin, "pull", model],
            capture_output=True,
            text=True,
            timeout=OLLAMA_PULL_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.warning("ollama pull %s failed: %s", model, exc)
        return False
    if result.returncode != 0:
        logger.warning("ollama pull %s exited %d: %s", model, result.returncode, result.stderr.strip())
        return False
    return True


def _check_ollama(options: InstallOptions, client: httpx.Client) -> list[CheckResult]:
    model = options.embedding_model
    ollama_bin = shutil.which("ollama")
    if ollama_bin is None:
        return [
            CheckResult(
                "Ollama",
                "advisory",
                "Ollama is not installed",
                fix_hint=f"Install from {OLLAMA_INSTALL_URL}, then run: ollama pull {model}",
            )
        ]

    results = [CheckResult("Ollama", "ok", "Ollama is installed")]
    url = options.ollama_url
    if not _endpoint_ok(client, f"{url}/api/version"):
        results.append(
            CheckResult("Ollama server", "advisory", f"Not running at {url}", fix_hint="Start it with: ollama serve")
        )
        return results
    results.append(CheckResult("Ollama server", "ok", f"Running at {url}"))

    if _ollama_has_model(ollama_bin, model):
        results.append(CheckResult("Embedding model", "ok", f"Model {model} is available"))
    elif _pull_ollama_model(ollama_bin, model):
        results.append(CheckResult("Embedding model", "ok", f"Pulled model {model}"))
    else:
        results.append(
            CheckResult(
                "Embedding model",
                "advisory",
                f"Failed to pull model {model}",
                fix_hint=f"Run manually: ollama pull {model}",
            )
        )
    return results


def check_embedding_provider(options: InstallOptions, client: httpx.Client | None = None) -> list[CheckResult]:
    """Check that the configured embedding backend is usable.

    *client* is injectable for tests; by default a short-lived client with
    the probe timeout is used.
    """
    if options.skip_embedding_check:
        return [CheckResult("Embedding provider", "skipped", "Skipped embedding provider check (--skip-ollama)")]

    check = _check_llamacpp if options.embedding_provider == "llamacpp" else _check_ollama
    if client is not None:
        return check(options, client)
    with httpx.Client(timeout=PROBE_TIMEOUT) as own_client:
        return check(options, own_client)
