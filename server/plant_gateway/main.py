import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import get_config
from .errors import DiagnosisError, UpstreamError, ValidationError
from .io_schemas import DiagnosisResponse, ErrorResponse, HealthResponse
from .runtime import DiagnosisProvider, ImagePayload, get_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    cfg = get_config()
    if not cfg["GEMINI_API_KEY"]:
        logger.warning("GEMINI_API_KEY is not set; every diagnosis will fail until it is configured.")
    yield


def mount_static(app: FastAPI, directory: Path) -> bool:
    """Serve the client bundle from the same origin. Must run after the API routes are registered."""
    if not Path(directory).is_dir():
        logger.info("No static directory at %s, skipping static mount", directory)
        return False
    app.mount("/", StaticFiles(directory=str(directory), html=True), name="static")
    return True


def _error_response(err: DiagnosisError) -> JSONResponse:
    return JSONResponse(status_code=err.http_status, content={"error": err.public_message})


def create_app(static_dir: Optional[Path] = None) -> FastAPI:
    app = FastAPI(title="Plant Diagnosis API", version="1.0",
                  description="Image + message relay to a multimodal plant doctor",
                  lifespan=lifespan)

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(DiagnosisError)
    async def _diagnosis_error(request: Request, err: DiagnosisError):
        logger.warning("%s %s -> %s (%s): %s", request.method, request.url.path,
                       err.http_status, err.code, err.detail)
        return _error_response(err)

    @app.exception_handler(RequestValidationError)
    async def _malformed_form(_request: Request, err: RequestValidationError):
        # a non-file "image" part or an unparseable body counts as a missing field
        logger.info("Rejected malformed diagnosis request: %s", err.errors())
        return _error_response(ValidationError())

    @app.get("/health", response_model=HealthResponse)
    def health(provider: DiagnosisProvider = Depends(get_provider)):
        return {
            "status": "ok",
            "model": getattr(provider, "model_name", "unknown"),
            "provider_configured": bool(getattr(provider, "configured", True)),
        }

    @app.post("/api/plant-diagnosis", response_model=DiagnosisResponse,
              responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
    def plant_diagnosis(image: Optional[UploadFile] = File(None),
                        message: Optional[str] = Form(None),
                        provider: DiagnosisProvider = Depends(get_provider)):
        if image is None or not message:
            raise ValidationError()
        data = image.file.read()
        if not data:
            raise ValidationError("Uploaded image is empty.")

        payload = ImagePayload(data=data,
                               mime_type=image.content_type or "application/octet-stream",
                               filename=image.filename)
        try:
            solution = provider.diagnose(payload, message)
        except UpstreamError:
            logger.exception("Diagnosis failed upstream")
            raise
        except Exception as e:
            logger.exception("Diagnosis failed")
            raise UpstreamError(str(e)) from e

        return {"solution": solution}

    mount_static(app, static_dir if static_dir is not None else get_config()["STATIC_DIR"])
    return app


logging.basicConfig(level=get_config()["LOG_LEVEL"],
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_config()["PORT"])
