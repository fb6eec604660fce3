from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import DATABASE_URL


def build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # requests are served from the threadpool
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args)


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base = declarative_base()
