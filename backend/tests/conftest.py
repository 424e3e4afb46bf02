import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from content_engine.database import Base
import content_engine.models  # noqa: F401 - 모델 import로 metadata 등록
from content_engine.models.post import Post
from content_engine.models.post_version import PostVersion
from content_engine.schemas.post import PostCreate
from content_engine.schemas.principal import Principal, Role
from content_engine.services import post_service

TEST_DB_URL = "sqlite:///./test_content_engine.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def session_factory():
    return TestingSession


@pytest.fixture
def principals():
    return {
        "admin": Principal(id=1, role=Role.ADMIN),
        "editor": Principal(id=2, role=Role.EDITOR),
        "user": Principal(id=3, role=Role.USER),
        "other_user": Principal(id=4, role=Role.USER),
    }


@pytest.fixture
def make_post(db, principals):
    def _make(title="Hello World", content="A", author="editor", **kwargs):
        return post_service.create_post(
            db,
            PostCreate(title=title, content=content, **kwargs),
            principals[author],
        )

    return _make


def assert_ledger_consistent(db):
    """Every head points at an existing version and numbers run 1..N."""
    db.expire_all()
    for post in db.query(Post).all():
        numbers = [
            row[0]
            for row in db.query(PostVersion.version_number)
            .filter(PostVersion.post_id == post.id)
            .order_by(PostVersion.version_number.asc())
            .all()
        ]
        assert numbers == list(range(1, len(numbers) + 1))
        assert post.current_version_number in numbers
