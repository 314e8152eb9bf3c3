from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from routers.rooms import rooms_router
from routers.messages import messages_router
from backend import redis_backend
from constants import CORS_ORIGINS
from errors import ChatError
from logging_config import get_logger, setup_logging
import os

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    redis_backend.ping()
    yield


app = FastAPI(title="RoomChat", lifespan=lifespan)

# Browser clients poll from any origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["content-type"],
)

app.include_router(rooms_router)
app.include_router(messages_router)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    logger.warning(f"{request.method} {request.url.path} failed with {exc.status_code} {exc.code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are bad input like any other, so they share the 400 class
    logger.warning(f"{request.method} {request.url.path} rejected: malformed request")
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "detail": "malformed request", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]


@app.get("/health")
async def health():
    return {"status": "ok"}


logger.info("FastAPI application initialized")
