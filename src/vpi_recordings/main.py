"""FastAPI application entry point."""

from ddtrace import patch_all
from fastapi import FastAPI

from vpi_recordings.routes import recordings_router

patch_all()

app = FastAPI(title="VPI Recording Delivery API")
app.include_router(recordings_router)
