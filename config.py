import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Shared asset pool; referenced from documents as /uploads/<filename>
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
PROJECTS_DIR = os.getenv("PROJECTS_DIR", "./projects")
# Uploaded archives and import workspaces (temp_<session id>)
STAGING_DIR = os.getenv("STAGING_DIR", "./staging")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./showcomposer.db")

SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))
MAX_ARCHIVE_BYTES = int(os.getenv("MAX_ARCHIVE_BYTES", str(50 * 1024 * 1024)))

API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")

for _dir in (UPLOAD_DIR, PROJECTS_DIR, STAGING_DIR):
    os.makedirs(_dir, exist_ok=True)
