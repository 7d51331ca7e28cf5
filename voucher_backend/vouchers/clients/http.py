# vouchers/clients/http.py

"""
JSON-over-HTTP helper shared by the issuer and storefront clients.

Every call is a blocking round trip with an enforced timeout.
Timeouts, network errors and non-2xx statuses raise the caller's
transport error class; a 2xx body that is not a JSON object raises
the caller's response error class.
"""

from __future__ import annotations

import json
import socket
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

DEFAULT_TIMEOUT = 25


def safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def parse_json_or_text(raw: str) -> dict[str, Any]:
    raw = raw or ""
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"kind": "text", "raw": raw}
    if isinstance(parsed, dict):
        return {"kind": "json", "json": parsed, "raw": raw}
    return {"kind": "json_non_object", "json": parsed, "raw": raw}


def error_message(payload: dict, default: str = "request rejected") -> str:
    """Issuer bodies carry ErrorText; storefront bodies nest error.message."""
    err = payload.get("error")
    if isinstance(err, dict):
        err = err.get("message")
    data = payload.get("data")
    data_msg = data.get("message") if isinstance(data, dict) else None
    return str(
        payload.get("ErrorText") or payload.get("message") or err or data_msg or default
    )


def request_json(
    method: str,
    url: str,
    *,
    body: dict | None = None,
    bearer: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    label: str,
    transport_error: type[Exception],
    response_error: type[Exception],
) -> dict[str, Any]:
    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if bearer:
        headers["Authorization"] = f"Bearer {bearer}"

    req = Request(url, data=data, headers=headers, method=method)

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        try:
            raw = e.read().decode("utf-8", errors="replace")
        except OSError:
            raw = ""
        parsed_any = parse_json_or_text(raw)

        if parsed_any.get("kind") == "json":
            msg = error_message(parsed_any.get("json") or {})
            raise transport_error(
                f"{label} HTTP {e.code}: {msg}", status_code=e.code
            ) from e

        preview = safe_preview(parsed_any.get("raw") or str(e.reason))
        raise transport_error(
            f"{label} HTTP {e.code}: {preview}", status_code=e.code
        ) from e
    except (socket.timeout, TimeoutError) as e:
        raise transport_error(f"{label} timed out after {timeout}s") from e
    except URLError as e:
        raise transport_error(f"{label} network error: {e.reason}") from e
    except OSError as e:
        raise transport_error(f"{label} request failed: {e}") from e

    parsed_any = parse_json_or_text(raw)
    if parsed_any.get("kind") != "json":
        raise response_error(
            f"{label} returned non-JSON: {safe_preview(parsed_any.get('raw') or '')}"
        )

    return parsed_any.get("json") or {}
