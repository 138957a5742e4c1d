import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import routers as auth_router
from .users import routers as users_router
from .chat import routers as chat_router

from .core import config
from .core.errors import InvalidRequest
from .core.middleware import logging_middleware
from .utils.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

logger.info(f"starting store_backend={config.STORE_BACKEND}")

app = FastAPI(title="Echo Messenger API")
app.include_router(auth_router.router, prefix="/auth", tags=["Authentication"])
app.include_router(users_router.router, prefix="/users", tags=["Users"])
app.include_router(chat_router.router, prefix="/chat", tags=["Chat"])

app.middleware("http")(logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as invalid_request (400) rather than 422."""
    error = InvalidRequest("Request validation failed.", errors=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


@app.get("/")
def root():
    return {"message": "Welcome to the Echo Messenger API!"}
