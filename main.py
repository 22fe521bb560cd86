import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings
from core.database import engine
from core.state import init_realtime, shutdown_realtime
from models.base import Base
import models  # noqa: F401  регистрирует все таблицы в Base.metadata

from routers.auth import router as auth_router
from routers.profile import router as profile_router
from routers.messages import router as messages_router
from routers.realtime import router as realtime_router
from routers.health import router as health_router

app = FastAPI(
    title="Tandem Backend",
    version="0.1.0",
    description="Backend приложения знакомств «Tandem»: лента, матчи и чат",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL.rstrip("/")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")

# реестр присутствия и нотификатор доступны сразу, startup их пересоздаёт
init_realtime(app)


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    detail = str(exc) if settings.DEBUG else "Internal server error"
    return JSONResponse(status_code=500, content={"detail": detail})


app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(messages_router)
app.include_router(realtime_router)
app.include_router(health_router)


@app.on_event("startup")
async def on_startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    init_realtime(app)


@app.get("/")
async def root():
    return {"message": "Tandem Backend"}


@app.on_event("shutdown")
async def shutdown():
    await shutdown_realtime(app)
    # Закрываем все соединения пула
    await engine.dispose()
