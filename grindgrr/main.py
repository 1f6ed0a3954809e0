import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from grindgrr.core.config import settings
from grindgrr.core.db import init_db
from grindgrr.core.errors import GrindgrrError
from grindgrr.routers import (
    auth,
    candidates,
    conversations,
    dogs,
    matches,
    messages,
    swipes,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("grindgrr")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    yield


app = FastAPI(title=f"{settings.app_name} API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GrindgrrError)
async def grindgrr_error_handler(request: Request, exc: GrindgrrError) -> JSONResponse:
    # store failures surface as "please retry"
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=503,
        content={"detail": exc.detail, "retry": exc.retryable},
    )


@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    return RedirectResponse(url="/docs")


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}


app.include_router(auth.router, prefix=settings.api_v1_str)
app.include_router(dogs.router, prefix=settings.api_v1_str)
app.include_router(candidates.router, prefix=settings.api_v1_str)
app.include_router(swipes.router, prefix=settings.api_v1_str)
app.include_router(matches.router, prefix=settings.api_v1_str)
app.include_router(conversations.router, prefix=settings.api_v1_str)
app.include_router(messages.router, prefix=settings.api_v1_str)
