# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

# Local default is SQLite, deployments pass a PostgreSQL URL
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# SQLAlchemy requires the postgresql:// scheme
if SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # SQLite only
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def import_models():
    # Registers every table on Base.metadata
    import models.users  # noqa: F401
    import models.product  # noqa: F401
    import models.stock  # noqa: F401
    import models.customer  # noqa: F401
    import models.order  # noqa: F401
    import models.cart  # noqa: F401
    import models.activity  # noqa: F401
    import models.settings  # noqa: F401
    import models.reference  # noqa: F401
    import models.checkout  # noqa: F401

def init_db(bind=None):
    import_models()
    Base.metadata.create_all(bind=bind or engine)
