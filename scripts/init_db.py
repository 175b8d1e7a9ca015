import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from swapapi.config import settings
from swapapi.database.connection import engine
from swapapi.database.schema import create_schema


def init_db():
    """Create the schema and all tables"""
    try:
        create_schema(engine, settings.POSTGRES_SCHEMA)
        print(f"Database initialized successfully: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
