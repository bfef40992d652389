"""Remote save server.

    POST /api/testgame/save   {identity, ...snapshot}  -> {message}
    POST /api/testgame/load   {identity}               -> snapshot
    GET  /api/testgame/load?identity=...               -> snapshot

Saves are stored as ``{serializedState, integrityTag}`` envelopes where the
tag is a base64 HMAC-SHA-256 of ``serializedState`` under the server secret.
A load whose recomputed tag differs from the stored one is rejected.

Identity is whatever string the client sends (``email`` is accepted as an
alias). Nothing proves the caller owns it: any client can read or overwrite
any identity's save.

Run with ``python -m cosmicforge.server`` or
``uvicorn cosmicforge.server:create_app --factory``.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cosmicforge.config import ServerConfig
from cosmicforge.errors import SaveNotFoundError, TamperError, ValidationError
from cosmicforge.signing import generate_hash, verify_hash
from cosmicforge.storage import FileSaveBucket, SaveBucket

log = logging.getLogger(__name__)

API_PREFIX = "/api/testgame"
DEFAULT_STORAGE_DIR = Path("save_data")


def _identity(source: Dict[str, Any]) -> str:
    identity = source.get("identity") or source.get("email")
    if not isinstance(identity, str) or not identity.strip():
        raise ValidationError("Email is required")
    return identity.strip()


class SaveService:
    """Signs, stores, verifies and returns snapshots; no HTTP involved."""

    def __init__(self, secret: str, bucket: SaveBucket) -> None:
        self._secret = secret
        self.bucket = bucket

    def save(self, identity: str, fields: Dict[str, Any]) -> None:
        serialized = json.dumps(fields, separators=(",", ":"))
        envelope = {
            "serializedState": serialized,
            "integrityTag": generate_hash(serialized, self._secret),
        }
        self.bucket.put(identity, json.dumps(envelope))

    def load(self, identity: str) -> Dict[str, Any]:
        stored = self.bucket.get(identity)
        if stored is None:
            raise SaveNotFoundError("No save data found for this email")
        try:
            envelope = json.loads(stored)
            serialized = envelope["serializedState"]
            tag = envelope["integrityTag"]
        except (ValueError, KeyError, TypeError) as e:
            raise TamperError("Save data has been tampered with!") from e
        if not isinstance(serialized, str) or not isinstance(tag, str) \
                or not verify_hash(serialized, tag, self._secret):
            raise TamperError("Save data has been tampered with!")
        return json.loads(serialized)


def _error(message: str, status: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Invalid JSON body") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def create_app(config: Optional[ServerConfig] = None,
               bucket: Optional[SaveBucket] = None) -> FastAPI:
    """Build the API. Raises ConfigError when no save secret is configured."""
    if config is None:
        config = ServerConfig.from_env()
    if bucket is None:
        bucket = FileSaveBucket(config.storage_dir or DEFAULT_STORAGE_DIR)
    service = SaveService(config.save_secret, bucket)

    app = FastAPI(title="Cosmic Forge Save API")
    app.state.save_service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post(f"{API_PREFIX}/save")
    async def save_game(request: Request) -> JSONResponse:
        try:
            body = await _json_body(request)
            identity = _identity(body)
            fields = {k: v for k, v in body.items() if k not in ("identity", "email")}
            service.save(identity, fields)
        except ValidationError as e:
            return _error(str(e), 400)
        except Exception as e:
            log.exception("Error in save_game")
            return _error(str(e), 500)
        return JSONResponse({"message": "Game saved successfully"})

    def _load(identity: str) -> JSONResponse:
        try:
            state = service.load(identity)
        except SaveNotFoundError as e:
            return _error(str(e), 404)
        except TamperError as e:
            log.warning("tampered save rejected for identity %r", identity)
            return _error(str(e), 400)
        return JSONResponse(state)

    @app.post(f"{API_PREFIX}/load")
    async def load_game(request: Request) -> JSONResponse:
        try:
            identity = _identity(await _json_body(request))
            return _load(identity)
        except ValidationError as e:
            return _error(str(e), 400)
        except Exception as e:
            log.exception("Error in load_game")
            return _error(str(e), 500)

    @app.get(f"{API_PREFIX}/load")
    def load_game_query(request: Request) -> JSONResponse:
        try:
            identity = _identity(dict(request.query_params))
            return _load(identity)
        except ValidationError as e:
            return _error(str(e), 400)
        except Exception as e:
            log.exception("Error in load_game")
            return _error(str(e), 500)

    return app


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    uvicorn.run(
        app,
        host=os.environ.get("COSMICFORGE_HOST", "127.0.0.1"),
        port=int(os.environ.get("COSMICFORGE_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
