"""FastAPI application entrypoint for propdoc service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ParserOptions
from ..parser import DocParser, ParseResult


class ParseRequest(BaseModel):
    paths: List[str] = Field(default_factory=list)
    sources: Dict[str, str] = Field(default_factory=dict)
    expand_enum_literals: bool = False
    include_tags: bool = False
    include_parent: bool = False


class ParseResponse(BaseModel):
    components: List[Dict[str, Any]]
    diagnostics: List[Dict[str, Any]]
    failures: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str


def _default_parser_factory(options: ParserOptions) -> DocParser:
    return DocParser(options)


def create_app(
    parser_factory: Callable[[ParserOptions], DocParser] = _default_parser_factory,
    base_options: Optional[Callable[[], ParserOptions]] = None,
) -> FastAPI:
    """Create the FastAPI application exposing propdoc extraction."""

    app = FastAPI(title="propdoc Service", version="1.0.0")

    async def get_options() -> ParserOptions:
        # fresh options per request; request flags are applied on top
        return base_options() if base_options is not None else ParserOptions()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/parse", response_model=ParseResponse)
    async def parse(
        payload: ParseRequest,
        options: ParserOptions = Depends(get_options),
    ) -> ParseResponse:
        if not payload.paths and not payload.sources:
            raise ValueError("Provide at least one of 'paths' or 'sources'")
        if payload.paths and payload.sources:
            raise ValueError("Provide either 'paths' or 'sources', not both")
        options.expand_enum_literals = options.expand_enum_literals or payload.expand_enum_literals
        options.include_tags = options.include_tags or payload.include_tags
        options.include_parent = options.include_parent or payload.include_parent
        doc_parser = parser_factory(options)

        def _run_parse() -> ParseResult:
            if payload.sources:
                return doc_parser.parse_sources(payload.sources)
            return doc_parser.parse(payload.paths)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_parse)
        data = result.to_dict(include_tags=options.include_tags, include_parent=options.include_parent)
        return ParseResponse(**data)

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["HealthResponse", "ParseRequest", "ParseResponse", "create_app", "run_service"]
