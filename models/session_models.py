from typing import Dict, Any
from pydantic import BaseModel

# Key added to a staged document so the client can hand the session id back
SESSION_ANNOTATION = "_tempImportId"

class StagingSession(BaseModel):
    session_id: str
    workspace: str
    document: Dict[str, Any]       # parsed data.json, annotated, not yet finalized
    created_at: float
