import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.database import engine
from models.base import Base

from routers.auth import router as auth_router
from routers.home import router as home_router
from routers.battle import router as battle_router
from routers.interactions import router as interactions_router
from routers.knight import router as knight_router, stigma_router
from routers.member import router as member_router
from routers.admin import router as admin_router
from routers.health import router as health_router

app = FastAPI(
    title="Knight Battles Backend",
    version="0.1.0",
    description="Backend for the knight battles community: battles, knights, members and comments",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")
if settings.LOG_LEVEL:
    logger.setLevel(settings.LOG_LEVEL.upper())


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response

app.include_router(home_router)
app.include_router(auth_router)
app.include_router(battle_router)
app.include_router(interactions_router)
app.include_router(knight_router)
app.include_router(stigma_router)
app.include_router(member_router)
app.include_router(admin_router)
app.include_router(health_router)


@app.on_event("startup")
async def on_startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables are ready")


@app.on_event("shutdown")
async def shutdown():
    # Close every pooled connection
    await engine.dispose()
