"""Initialize the database - creates the posts and post_versions tables."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from content_engine.config import settings
from content_engine.database import init_db as create_tables


def init_db():
    print(f"Creating content engine tables on {settings.DATABASE_URL} ...")
    create_tables()
    print("Database initialized successfully.")


if __name__ == "__main__":
    init_db()
