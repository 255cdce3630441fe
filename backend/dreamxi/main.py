import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from dreamxi.api.v1.api import api_router
from dreamxi.core.config import get_settings


settings = get_settings()
logging.getLogger("dreamxi").setLevel(settings.log_level.upper())

app = FastAPI(title="Dream XI", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/ping", response_class=PlainTextResponse)
def ping() -> str:
    return "pong"


if settings.static_dir.is_dir():
    # Mounted last so API routes take precedence over files
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
else:
    @app.get("/")
    def root() -> dict:
        return {"service": "dream-xi", "version": app.version}
