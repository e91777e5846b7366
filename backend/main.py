import logging
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import get_settings, parse_allowed_origins
from app.routes.chat import router as chat_router

settings = get_settings()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("dialogue-backend")

app = FastAPI(title="dialogue backend", version="0.1.0")

origins = parse_allowed_origins(settings.allowed_origins, settings.frontend_url)
logger.info("cors_allowed_origins=%s", origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning("http_error request_id=%s path=%s detail=%s", request_id, request.url.path, exc.detail)
    message = exc.detail if isinstance(exc.detail, str) else "The request could not be processed."
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"message": message, "request_id": request_id}},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.exception("unhandled_error request_id=%s path=%s", request_id, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "message": "Something went wrong on our side. Please try again in a moment.",
                "request_id": request_id,
            }
        },
    )


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


app.include_router(chat_router)
