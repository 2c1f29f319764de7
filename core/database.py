from sqlalchemy import create_engine, Column, Uuid
from sqlalchemy.orm import sessionmaker, declarative_base
import uuid
from config.settings import settings

# Create engine
_db_config = settings.get_database_config()
engine = create_engine(_db_config.pop("url"), **_db_config)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class
Base = declarative_base()

class BaseModel(Base):
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
