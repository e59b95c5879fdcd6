"""Genie Studio: FastAPI Backend Entry Point."""
import os
import logging
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import init_db
from routers import admin, guided, interviewers, projects, sessions, settings, users
from services.errors import ServiceError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("genie")

app = FastAPI(
    title="Genie Studio",
    description="AI interviewer configuration and research insights API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        os.getenv("FRONTEND_URL", "http://localhost:3000"),
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(projects.router)
app.include_router(interviewers.router)
app.include_router(sessions.router)
app.include_router(sessions.public_router)
app.include_router(guided.router)
app.include_router(settings.router)
app.include_router(admin.router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    logger.debug(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.on_event("startup")
async def on_startup():
    init_db()
    logger.info("Database ready")


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0", "service": "genie-studio"}


@app.get("/api/v1/health")
async def api_health():
    return {"status": "ok", "version": "1.0.0", "service": "genie-studio"}
