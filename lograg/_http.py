"""
lograg/_http.py
---------------
Centralized HTTP transport for every language-model call.

Provides `ollama_post()` as the single point of control for timeouts,
authentication headers and error translation. The query cleaner and the
generator delegate here — no urllib boilerplate is duplicated in
business-logic modules.

Requests are never retried. Callers see the first failure:
    ConnectionError — host unreachable
    PermissionError — credentials rejected (HTTP 401 / 403)
    RuntimeError    — any other HTTP error or an undecodable body
"""

import json
import urllib.error
import urllib.request
from typing import Any, Dict, Optional


def ollama_post(
    url: str,
    payload: Dict[str, Any],
    timeout: int = 60,
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Sends a JSON POST request to an Ollama-compatible endpoint.

    Args:
        url:     Full endpoint URL.
        payload: Request body as a Python dict (will be JSON-encoded).
        timeout: Socket timeout in seconds.
        api_key: Optional bearer token for hosted endpoints.

    Returns:
        Parsed JSON response as a dict.

    Raises:
        ConnectionError: If the host is unreachable.
        PermissionError: If the host rejects the credentials.
        RuntimeError:    On other HTTP errors or a non-JSON response.
    """
    body    = json.dumps(payload).encode("utf-8")
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    request = urllib.request.Request(url, data=body, headers=headers, method="POST")

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))

    except urllib.error.HTTPError as exc:
        if exc.code in (401, 403):
            raise PermissionError(
                f"LLM host at {url} rejected the credentials (HTTP {exc.code}).\n"
                "  → Check LOGRAG_API_KEY."
            ) from exc
        raise RuntimeError(f"LLM host at {url} returned HTTP {exc.code}: {exc.reason}") from exc

    except urllib.error.URLError as exc:
        raise ConnectionError(
            f"LLM host is not reachable at {url}.\n"
            "  → Make sure Ollama is running:  ollama serve\n"
            f"  Original error: {exc}"
        ) from exc

    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Could not parse LLM response as JSON: {exc}") from exc
