import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from rovigram.config import settings
from rovigram.database import create_tables
from rovigram.exceptions import RovigramError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.require_secret_key()
    await create_tables()
    logger.info("%s %s started", settings.APP_NAME, settings.VERSION)
    yield

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Rovigram Messenger API",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RovigramError)
async def rovigram_error_handler(request: Request, exc: RovigramError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{location}: {errors[0].get('msg')}" if location else errors[0].get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=422, content={"error": message})


from rovigram.api.v1 import auth, users, chats, messages

app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(chats.router, prefix="/api/v1/chats", tags=["chats"])
app.include_router(messages.router, prefix="/api/v1/messages", tags=["messages"])

@app.get("/")
async def root():
    return {"message": "Rovigram Messenger API", "version": settings.VERSION}

@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("rovigram.main:app", host="0.0.0.0", port=8000)
