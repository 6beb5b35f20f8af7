import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

import pytest  # noqa: E402
from fastapi import BackgroundTasks  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from account_service.auth.jwt_handler import TokenPurpose, get_token_issuer  # noqa: E402
from account_service.auth.passwords import hash_password  # noqa: E402
from account_service.database import Base, get_db  # noqa: E402
from account_service.main import app  # noqa: E402
from account_service.models.user import User, UserRole  # noqa: E402

DEFAULT_PASSWORD = 'secret1'
DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


@pytest.fixture
def db():
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def background_tasks() -> BackgroundTasks:
    return BackgroundTasks()


@pytest.fixture
def make_user(db):
    def _make_user(
        *,
        email: str | None = 'a@x.com',
        phone: str | None = None,
        password: str = DEFAULT_PASSWORD,
        name: str | None = 'Alice',
        role: UserRole = UserRole.UNVERIFIED,
        avatar: str | None = None,
    ) -> User:
        user = User(
            name=name,
            email=email,
            phone=phone,
            password=DEFAULT_PASSWORD_HASH if password == DEFAULT_PASSWORD else hash_password(password),
            role=role.value,
            avatar=avatar,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User, purpose: TokenPurpose = TokenPurpose.ACCESS) -> dict:
        token = get_token_issuer().issue(user.id, purpose)[purpose.value]
        return {'Authorization': f'Bearer {token}'}

    return _auth_headers
