import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import LOG_LEVEL, SESSION_TTL_SECONDS, STAGING_DIR, UPLOAD_DIR
from routers import upload_router, project_router
from services.errors import (
    ArchiveFormatError,
    AssetExistsError,
    DocumentValidationError,
    NotFoundError,
    ShowComposerError,
    UploadRejectedError,
)
from services.session_service import get_session_store, sweep_expired_sessions

# Import DB init function
from database import Base, engine
from models.session_db_model import ImportSessionDB

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

def create_db():
    Base.metadata.create_all(bind=engine, tables=[ImportSessionDB.__table__])

app = FastAPI(
    title="Show Composer Project Service",
    description="Export projects with their image assets as zip archives and import them back safely.",
    version="0.1.0",
)

# Run create_db() once when app starts, then drop imports nobody finished
@app.on_event("startup")
def on_startup():
    logger.info("Initializing database...")
    create_db()
    swept = sweep_expired_sessions(get_session_store(), SESSION_TTL_SECONDS, STAGING_DIR)
    logger.info(f"Database initialized; {len(swept)} stale import session(s) discarded.")

_STATUS_BY_ERROR = [
    (NotFoundError, 404),
    (AssetExistsError, 409),
    (DocumentValidationError, 400),
    (ArchiveFormatError, 400),
    (UploadRejectedError, 400),
]

@app.exception_handler(ShowComposerError)
async def show_composer_error_handler(request: Request, exc: ShowComposerError):
    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR if isinstance(exc, error_type)), 500
    )
    if status_code == 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": str(exc)})

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload_router.router)
app.include_router(project_router.router)

# Asset references in documents are /uploads/<filename>
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

@app.get("/")
async def root():
    return {"message": "Show Composer project service is running"}
