"""
HTTP endpoint for editor integrations

Exposes the organizer over plain-text HTTP:

- GET  /health     liveness check
- POST /organize   body is C# source, response is the organized source
- POST /ignore     body is a file path, response is true, false or invalid
"""

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from fastapi.concurrency import run_in_threadpool

from csharply import __version__
from csharply.core.config import Config
from csharply.core.engine import reorganize_and_format
from csharply.core.processor import CSharpProcessor

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None) -> FastAPI:
    """Build the FastAPI application bound to a configuration"""
    config = config or Config()
    processor = CSharpProcessor(config)

    app = FastAPI(
        title="CSharply",
        description="Organizes C# source: usings, members and blank lines.",
        version=__version__,
    )

    @app.get("/health", tags=["meta"])
    async def health_check():
        return Response(status_code=200)

    @app.post("/organize", response_class=PlainTextResponse, tags=["organize"])
    async def organize(request: Request):
        """Return the organized form of the C# source in the request body."""
        try:
            code = (await request.body()).decode("utf-8-sig")
            if not code.strip():
                return PlainTextResponse("", status_code=400)
            organized = await run_in_threadpool(reorganize_and_format, code, config.organize)
            return PlainTextResponse(organized)
        except Exception as e:
            logger.error(f"Error organizing request body: {e}")
            return PlainTextResponse(str(e), status_code=500)

    @app.post("/ignore", response_class=PlainTextResponse, tags=["organize"])
    async def ignore(request: Request):
        """Tell whether the file named in the request body would be skipped."""
        try:
            file_path = Path((await request.body()).decode("utf-8").strip())
            if not file_path.is_file():
                return PlainTextResponse("invalid")
            ignored = not await run_in_threadpool(processor.can_process, file_path)
            return PlainTextResponse("true" if ignored else "false")
        except Exception as e:
            logger.error(f"Error checking ignore state: {e}")
            return PlainTextResponse(str(e), status_code=500)

    return app


def run(config: Config | None = None, host: str | None = None, port: int | None = None) -> None:
    """Serve the application with uvicorn until interrupted"""
    import uvicorn

    config = config or Config()
    host = host or config.serve.host
    port = port or config.serve.port

    logger.info(f"Serving CSharply on http://{host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port, log_level="info")
