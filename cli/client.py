from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the monitoring service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(
        self,
        temperature: float,
        level_percent: float,
        ntu: float,
        level_status: Optional[str] = None,
        turb_status: Optional[str] = None,
    ) -> str:
        body: Dict[str, Any] = {
            "temperature": temperature,
            "levelPercent": level_percent,
            "ntu": ntu,
        }
        if level_status is not None:
            body["levelStatus"] = level_status
        if turb_status is not None:
            body["turbStatus"] = turb_status

        response = self._request("POST", "/api/sensor", json=body)
        return response.json().get("message", "")

    def get_latest(self) -> tuple[Dict[str, Any], bool]:
        """Return the latest reading and whether the service had real data."""
        response = self._send("GET", "/api/sensor/latest")
        if response.status_code == 404:
            return response.json(), False
        self._raise_for_status(response)
        return response.json(), True

    def get_history(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/sensor/history").json()

    def get_status(self) -> Dict[str, Any]:
        return self._request("GET", "/").json()

    def probe_store(self) -> Dict[str, Any]:
        return self._request("GET", "/api/test-firebase").json()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = self._send(method, path, **kwargs)
        self._raise_for_status(response)
        return response

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail") or data.get("message")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
