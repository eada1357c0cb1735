# app/main.py
import shutil
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.db import init_db, close_db
from app.core.errors import register_error_handlers

from app.api.v1.routers import auth, users, storage, imports, conversations

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

@app.on_event("startup")
async def on_startup():
    # ffmpeg is required to convert uploaded audio before transcription
    if shutil.which("ffmpeg"):
        logger.info("[ffmpeg] found on PATH: %s", shutil.which("ffmpeg"))
    else:
        logger.warning("[ffmpeg] not found on PATH; audio imports will fail")
    if not settings.openai_api_key:
        logger.warning("[asr] OPENAI_API_KEY not set; import endpoints will return 503")
    await init_db()

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(storage.router, prefix="/api/v1")
app.include_router(imports.router, prefix="/api/v1")
app.include_router(conversations.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
