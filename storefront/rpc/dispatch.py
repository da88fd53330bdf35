from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any, Dict

from storefront.config import Config
from storefront.db import connect
from storefront.mail.transport import Mailer
from storefront.rpc import transformer
from storefront.rpc.context import create_context
from storefront.rpc.errors import InternalError, MethodNotSupported, NotFound, RpcError
from storefront.rpc.procedure import QUERY, Procedure


def _debug(msg: str) -> None:
    print(f"[rpc] {msg}")


@dataclass(frozen=True)
class CallResult:
    path: str
    status: int
    body: Dict[str, Any]


def call_procedure(
    procedures: Dict[str, Procedure],
    *,
    path: str,
    method: str,
    raw_input: Any,
    cfg: Config,
    mailer: Mailer,
    authorization: str | None,
) -> CallResult:
    """Run one procedure call and build its response envelope.

    One DB transaction per call: committed when the handler returns,
    rolled back when it raises.
    """
    try:
        proc = procedures.get(path)
        if proc is None:
            raise NotFound(f'No procedure found on path "{path}"')

        expected = "GET" if proc.kind == QUERY else "POST"
        if method.upper() != expected:
            raise MethodNotSupported(f"Unsupported {method.upper()}-request to {proc.kind} procedure at path \"{path}\"")

        raw = transformer.deserialize(raw_input)
        with connect(cfg.DB_DSN) as conn:
            ctx = create_context(cfg=cfg, conn=conn, mailer=mailer, authorization=authorization)
            data = proc(ctx, raw)

        return CallResult(path=path, status=200, body={"result": {"data": transformer.serialize(data)}})
    except RpcError as e:
        return CallResult(path=path, status=e.http_status, body={"error": e.to_dict(path)})
    except Exception as e:
        _debug(f"Unhandled error in {path}: {e!r}\n{traceback.format_exc()}")
        err = InternalError()
        return CallResult(path=path, status=err.http_status, body={"error": err.to_dict(path)})
