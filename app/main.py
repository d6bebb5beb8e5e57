from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
import logging
from pydantic import BaseModel, ConfigDict, ValidationError
import uvicorn

from config.settings import Settings, get_settings
from relay.errors import RelayError, UpstreamTransportError
from relay.gemini import COMMUNICATION_FAILED_MESSAGE, generate_reply


LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(message)s"
logger = logging.getLogger("chat_relay")


class ChatRequest(BaseModel):
    """Incoming chat body. ``contents`` is forwarded to Gemini as-is."""

    model_config = ConfigDict(extra="ignore")

    contents: Any = None


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    # httpx logs request URLs at INFO, and the URL carries the API key.
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def _read_contents(request: Request) -> Optional[Any]:
    # Bodies that are not a JSON object count as having no "contents".
    try:
        raw = await request.json()
    except ValueError:
        return None
    try:
        return ChatRequest.model_validate(raw).contents
    except ValidationError:
        return None


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def create_app(settings: Settings) -> FastAPI:
    configure_logging(settings)

    app = FastAPI(title="Gemini Chat Relay", version="1.0.0")
    app.state.settings = settings
    app.add_exception_handler(RelayError, relay_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/chat")
    async def chat(request: Request) -> Dict[str, Any]:
        contents = await _read_contents(request)
        try:
            text = await generate_reply(settings, contents)
        except RelayError:
            raise
        except Exception as e:
            logger.exception("Chat relay failed: %s", e)
            raise UpstreamTransportError(COMMUNICATION_FAILED_MESSAGE) from e

        logger.info(
            "Relayed chat: model=%s turns=%s reply_chars=%s",
            settings.gemini_model,
            len(contents) if isinstance(contents, list) else 1,
            len(text),
        )
        return {"text": text}

    @app.get("/health", response_class=PlainTextResponse)
    def health() -> str:
        return "OK"

    @app.get("/")
    def index() -> FileResponse:
        document = settings.static_dir / settings.index_document
        if not document.is_file():
            logger.warning("Index document missing: %s", document)
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(document)

    # Registered last so the routes above take precedence.
    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir), name="static")
    else:
        logger.warning("Static directory not found, file serving disabled: %s", settings.static_dir)

    return app


app = create_app(get_settings())


def run() -> None:
    settings = get_settings()
    logger.info("Server listening on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
