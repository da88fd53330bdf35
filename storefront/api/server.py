from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from storefront import __version__
from storefront.config import Config, load_config, validate_config
from storefront.db import init_db
from storefront.mail.transport import Mailer, build_mailer
from storefront.routers.registry import build_procedures
from storefront.rpc.dispatch import CallResult, call_procedure
from storefront.rpc.errors import ValidationFailed


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def _cors_headers(cfg: Config) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": cfg.CORS_ALLOW_ORIGIN or "*",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


def _parse_json(raw: str | bytes | None) -> Any:
    """Decode a JSON input; blank means "no input"."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationFailed("Input is not valid JSON") from None


def _batch_status(results: List[CallResult]) -> int:
    statuses = {r.status for r in results}
    if not statuses:
        return 200
    if len(statuses) == 1:
        return statuses.pop()
    return 207


def create_app(cfg: Optional[Config] = None, mailer: Optional[Mailer] = None) -> FastAPI:
    """Build the API.

    `cfg` and `mailer` default to the environment-backed config and the mail
    transport it selects; tests pass their own.
    """
    cfg = cfg or load_config()
    mailer = mailer or build_mailer(cfg)
    procedures = build_procedures()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        # Refuse to start without a signing secret.
        for warning in validate_config(cfg):
            _debug(f"WARNING: {warning}")
        init_db(cfg.DB_DSN)
        _debug(f"Serving {len(procedures)} procedures at {cfg.RPC_ENDPOINT}")
        yield

    app = FastAPI(title="Storefront API", version=__version__, lifespan=lifespan)
    app.state.cfg = cfg
    app.state.mailer = mailer
    app.state.procedures = procedures

    cors_headers = _cors_headers(cfg)

    # Permissive CORS for browser frontends: every response carries the headers
    # and any OPTIONS preflight is answered directly with 204.
    @app.middleware("http")
    async def _cors(request: Request, call_next: Any) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=cors_headers)
        response = await call_next(request)
        response.headers.update(cors_headers)
        return response

    # -----------------------------
    # Health
    # -----------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    # -----------------------------
    # RPC
    # -----------------------------

    def _run(path: str, method: str, raw_input: Any, authorization: str | None) -> CallResult:
        return call_procedure(
            procedures,
            path=path,
            method=method,
            raw_input=raw_input,
            cfg=cfg,
            mailer=mailer,
            authorization=authorization,
        )

    @app.api_route(cfg.RPC_ENDPOINT.rstrip("/") + "/{path}", methods=["GET", "POST"])
    async def rpc(path: str, request: Request) -> JSONResponse:
        method = request.method
        authorization = request.headers.get("authorization")
        batch = request.query_params.get("batch") in ("1", "true")

        try:
            if method == "GET":
                raw = _parse_json(request.query_params.get("input"))
            else:
                raw = _parse_json(await request.body())
        except ValidationFailed as e:
            return JSONResponse({"error": e.to_dict(path)}, status_code=e.http_status)

        if not batch:
            result = await run_in_threadpool(_run, path, method, raw, authorization)
            return JSONResponse(result.body, status_code=result.status)

        # Batch: "a.b,c.d" with inputs keyed by position ({"0": ..., "1": ...}).
        paths = [p for p in path.split(",") if p]
        inputs = raw if isinstance(raw, dict) else {}
        results: List[CallResult] = []
        for i, p in enumerate(paths):
            results.append(await run_in_threadpool(_run, p, method, inputs.get(str(i)), authorization))
        return JSONResponse([r.body for r in results], status_code=_batch_status(results))

    return app


app = create_app()
