# src/main.py
import os
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from src.routers.auth_router import router as auth_router
from src.routers.user_router import router as user_router
from src.routers.media_router import router as media_router
from src.routers.post_router import router as post_router
from src.routers.connect_router import router as connect_router
from src.infrastructure.database import init_db
from src.infrastructure.object_storage import LOCAL_STORAGE_PATH, LOCAL_STORAGE_URL, STORAGE_BACKEND
from src.middleware.error_handlers import register_error_handlers
from src.middleware.logging import RequestIdMiddleware
import structlog

def configure_structlog():
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
    )

configure_structlog()
logger = structlog.get_logger()

app = FastAPI(title="PostPilot API")

app.add_middleware(RequestIdMiddleware)
register_error_handlers(app)

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(media_router)
app.include_router(post_router)
app.include_router(connect_router)

if STORAGE_BACKEND == "local":
    # uploaded blobs are served from disk when R2 is not in use
    app.mount(LOCAL_STORAGE_URL, StaticFiles(directory=LOCAL_STORAGE_PATH, check_dir=False), name="media")


@app.on_event("startup")
async def on_startup():
    await init_db()
    logger.info("app_startup", storage_backend=STORAGE_BACKEND)

if __name__ == "__main__":
    uvicorn.run("src.main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)), reload=True)
