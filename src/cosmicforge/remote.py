"""Client for the remote save server.

Round trips run on a daemon thread (``save_async``/``load_async``) so the
tick loop never waits on the network. ``saving``/``loading`` flags mark a
request in flight; a second submission of the same kind while one is pending
is ignored. Every failure comes back as a ``RemoteResult``.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from cosmicforge.errors import RemoteError

log = logging.getLogger(__name__)

SAVE_PATH = "/api/testgame/save"
LOAD_PATH = "/api/testgame/load"


@dataclass(frozen=True)
class RemoteResult:
    ok: bool
    status: int = 0
    message: str = ""
    state: Optional[Dict[str, Any]] = None


Callback = Callable[[RemoteResult], None]


def _clean_identity(identity: Any) -> str:
    if not isinstance(identity, str):
        return ""
    return identity.strip()


class RemoteStore:
    def __init__(self, base_url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self._lock = threading.Lock()
        self.saving = False
        self.loading = False

    @property
    def in_flight(self) -> bool:
        return self.saving or self.loading

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            r = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError(f"request failed: {e}") from e
        try:
            data = r.json()
        except ValueError as e:
            raise RemoteError(f"invalid response from server (HTTP {r.status_code})",
                              r.status_code) from e
        if r.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            raise RemoteError(message or f"HTTP {r.status_code}", r.status_code)
        if not isinstance(data, dict):
            raise RemoteError("unexpected response from server", r.status_code)
        return data

    def save(self, identity: str, snapshot: Dict[str, Any]) -> RemoteResult:
        identity = _clean_identity(identity)
        if not identity:
            return RemoteResult(False, message="Email is required")
        payload = dict(snapshot)
        payload["identity"] = identity
        try:
            data = self._post(SAVE_PATH, payload)
        except RemoteError as e:
            log.warning("remote save failed: %s", e)
            return RemoteResult(False, status=e.status, message=str(e))
        log.info("saved remotely for %s", identity)
        return RemoteResult(True, status=200, message=str(data.get("message", "")))

    def load(self, identity: str) -> RemoteResult:
        identity = _clean_identity(identity)
        if not identity:
            return RemoteResult(False, message="Email is required")
        try:
            data = self._post(LOAD_PATH, {"identity": identity})
        except RemoteError as e:
            log.warning("remote load failed: %s", e)
            return RemoteResult(False, status=e.status, message=str(e))
        return RemoteResult(True, status=200, state=data)

    def save_async(self, identity: str, snapshot: Dict[str, Any], callback: Callback) -> bool:
        """Start a background save. Returns False if a save is already pending."""
        with self._lock:
            if self.saving:
                return False
            self.saving = True
        self._spawn(lambda: self.save(identity, snapshot), "saving", callback)
        return True

    def load_async(self, identity: str, callback: Callback) -> bool:
        """Start a background load. Returns False if a load is already pending."""
        with self._lock:
            if self.loading:
                return False
            self.loading = True
        self._spawn(lambda: self.load(identity), "loading", callback)
        return True

    def _spawn(self, job: Callable[[], RemoteResult], flag: str,
               callback: Callback) -> threading.Thread:
        def run() -> None:
            try:
                result = job()
            except Exception as e:
                log.exception("remote %s crashed", flag)
                result = RemoteResult(False, message=str(e))
            finally:
                with self._lock:
                    setattr(self, flag, False)
            try:
                callback(result)
            except Exception:
                log.exception("remote %s callback failed", flag)

        thread = threading.Thread(target=run, name=f"cosmicforge-{flag}", daemon=True)
        thread.start()
        return thread
