"""Procedure registry.

A procedure is a handler plus its declared kind (query / mutation), gate and
input model. Routers group procedures under a namespace; `merge_routers`
flattens them into the `"<namespace>.<name>"` table the dispatcher serves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from storefront.auth.deps import Gate, enforce_gate
from storefront.rpc.context import Context
from storefront.rpc.errors import ValidationFailed


QUERY = "query"
MUTATION = "mutation"

Handler = Callable[[Context, Any], Any]


@dataclass(frozen=True)
class Procedure:
    name: str
    kind: str
    gate: Gate
    handler: Handler
    input_model: Optional[Type[BaseModel]] = None
    # When True, a missing input is validated as {} (all defaults).
    input_optional: bool = False

    def parse_input(self, raw: Any) -> Any:
        if self.input_model is None:
            return None
        if raw is None and self.input_optional:
            raw = {}
        try:
            return self.input_model.model_validate(raw)
        except ValidationError as e:
            raise ValidationFailed.from_pydantic(e) from None

    def __call__(self, ctx: Context, raw_input: Any) -> Any:
        # Gate first: anonymous callers learn nothing about input rules.
        enforce_gate(ctx, self.gate)
        return self.handler(ctx, self.parse_input(raw_input))


class Router:
    def __init__(self) -> None:
        self.procedures: Dict[str, Procedure] = {}

    def _register(
        self,
        kind: str,
        name: str,
        gate: Gate,
        input: Optional[Type[BaseModel]],
        input_optional: bool,
    ) -> Callable[[Handler], Handler]:
        def decorator(fn: Handler) -> Handler:
            if name in self.procedures:
                raise ValueError(f"duplicate procedure: {name}")
            self.procedures[name] = Procedure(
                name=name,
                kind=kind,
                gate=gate,
                handler=fn,
                input_model=input,
                input_optional=input_optional,
            )
            return fn

        return decorator

    def query(
        self,
        name: str,
        *,
        gate: Gate = Gate.PUBLIC,
        input: Optional[Type[BaseModel]] = None,
        input_optional: bool = False,
    ) -> Callable[[Handler], Handler]:
        return self._register(QUERY, name, gate, input, input_optional)

    def mutation(
        self,
        name: str,
        *,
        gate: Gate = Gate.PUBLIC,
        input: Optional[Type[BaseModel]] = None,
    ) -> Callable[[Handler], Handler]:
        return self._register(MUTATION, name, gate, input, False)


def merge_routers(**routers: Router) -> Dict[str, Procedure]:
    table: Dict[str, Procedure] = {}
    for namespace, router in routers.items():
        for name, proc in router.procedures.items():
            table[f"{namespace}.{name}"] = proc
    return table
