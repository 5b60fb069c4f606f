"""FastAPI application entry point.

Startup sequence: load settings → build upload handler → build completion
gateway → mount routes. Dependencies are created here and handed to the
routes through app.state, so tests can inject their own.
"""

from contextlib import asynccontextmanager

import structlog
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response

from backend.api.routes import MAX_JSON_BYTES, router
from backend.core.config import Settings
from backend.core.gateway import CompletionGateway, build_gateway
from backend.core.uploads import UploadHandler

load_dotenv()

logger = structlog.get_logger(__name__)


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers accepted preflight requests with 204."""

    def preflight_response(self, request_headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {k: v for k, v in response.headers.items() if k.lower() != "content-length"}
        return Response(status_code=204, headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    gateway = app.state.gateway
    configured = gateway is not None and gateway.is_configured()
    if not configured:
        logger.warning("startup.gateway_unconfigured", hint="/api/chat will answer 500 until GROQ_API_KEY is set")
    logger.info("startup.complete", gateway_configured=configured,
                upload_dir=str(app.state.uploads.upload_dir))
    yield
    logger.info("shutdown.complete")


def _init_gateway(settings: Settings) -> CompletionGateway | None:
    if not settings.groq_api_key:
        logger.warning("startup.missing_api_key", hint="Set GROQ_API_KEY in .env")
    try:
        gateway = build_gateway(settings)
        logger.info("startup.gateway_initialized", text_model=settings.text_model,
                    vision_model=settings.vision_model)
        return gateway
    except Exception as e:
        logger.error("startup.gateway_failed", error=str(e))
        return None


def create_app(
    settings: Settings | None = None,
    gateway: CompletionGateway | None = None,
    uploads: UploadHandler | None = None,
) -> FastAPI:
    """Build the application with explicitly constructed dependencies."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="FreeGPT API",
        description="Chat proxy in front of a hosted completion service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.uploads = uploads or UploadHandler(settings.upload_dir)
    app.state.gateway = gateway or _init_gateway(settings)

    @app.middleware("http")
    async def json_size_middleware(request: Request, call_next):
        """Reject JSON bodies whose Content-Length exceeds the limit.

        Chunked bodies carry no Content-Length; the chat route checks the
        length of the received body for those.
        """
        content_type = request.headers.get("content-type", "")
        length = request.headers.get("content-length", "")
        if content_type.startswith("application/json") and length.isdigit() and int(length) > MAX_JSON_BYTES:
            logger.warning("request.too_large", path=request.url.path, content_length=int(length))
            return JSONResponse(status_code=413, content={"error": "Payload too large"})
        return await call_next(request)

    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Serve the module-level app on the configured host and port."""
    settings = app.state.settings
    logger.info("server.listening", url=f"http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
