from sqlalchemy import Column, Float, String
from database import Base

class ImportSessionDB(Base):
    __tablename__ = "import_sessions"

    session_id = Column(String, primary_key=True, index=True)
    workspace_path = Column(String, nullable=False)
    created_at = Column(Float, nullable=False, index=True)   # epoch seconds
    status = Column(String, nullable=False, default="staged", index=True)
