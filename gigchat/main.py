import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gigchat.core.config import settings
from gigchat.core.database import init_db
from gigchat.core.errors import AuthenticationRequired, FetchError
from gigchat.api import auth, conversations, inbox, jobs, media
from gigchat.services.messaging.feed import get_feed, reset_feed


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure logging based on debug setting
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s" if settings.debug
        else "%(levelname)-8s %(name)s: %(message)s",
    )

    init_db()
    settings.attachments_dir.mkdir(parents=True, exist_ok=True)

    # Fresh change feed per application run
    reset_feed()

    yield

    # Release every open realtime subscription on shutdown
    get_feed().shutdown()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthenticationRequired)
async def authentication_required(request: Request, exc: AuthenticationRequired):
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message, "login_url": settings.login_url},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(FetchError)
async def store_unavailable(request: Request, exc: FetchError):
    return JSONResponse(status_code=502, content={"detail": exc.message})


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(conversations.router, prefix="/api/conversations", tags=["conversations"])
app.include_router(inbox.router, prefix="/api/inbox", tags=["inbox"])
app.include_router(jobs.router, prefix="/api", tags=["jobs"])
app.include_router(media.router, prefix=settings.media_prefix, tags=["media"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
