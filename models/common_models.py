from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class UploadedFile(BaseModel):
    path: str
    original_filename: Optional[str] = None
    declared_mime_type: Optional[str] = None
    size: int

class UploadResponse(BaseModel):
    filePath: str            # "/uploads/<fileName>", as stored in documents
    fileName: str

class ImageList(BaseModel):
    images: List[str]

class ProjectInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filePath")     # relative url "./projects/<name>.json"
    project_name: str = Field(alias="projectName")
    last_modified: datetime = Field(alias="lastModified")
    created: datetime

class ConfirmImportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="tempId")
    confirm: bool = False