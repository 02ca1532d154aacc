"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from file_converter.api import analytics_router, router, tools_router
from file_converter.config import CORS_ORIGINS, logger as config_logger
from file_converter.conversion import get_dispatcher
from file_converter.db import init_db

logging.getLogger("uvicorn").setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    # Builds and validates the routing table before the first request.
    get_dispatcher()
    config_logger.info("Converter API started")
    yield
    config_logger.info("Converter API shutting down")


app = FastAPI(
    title="File Converter API",
    description="Convert images, icons, video, audio, documents and source code between formats; merge and stamp PDFs, OCR images, zip and unzip files.",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if CORS_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)
app.include_router(router)
app.include_router(analytics_router)
app.include_router(tools_router)


if __name__ == "__main__":
    import uvicorn
    from file_converter.config import HOST, PORT
    uvicorn.run("file_converter.main:app", host=HOST, port=PORT, reload=True)
