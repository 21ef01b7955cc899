import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="lernova-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["GMAIL_USER"] = "noreply@lernova.test"
os.environ["GMAIL_APP_PASSWORD"] = "app-password"
os.environ["ESEWA_SECRET_KEY"] = "8gBm/:&EnhH.1/q"
os.environ["KHALTI_SECRET_KEY"] = "khalti-test-key"
os.environ["SITE_URL"] = "http://localhost:8080"

import pytest  # noqa: E402
from sqlalchemy import delete, select  # noqa: E402

from lernova.database import Base, init_db, session_scope  # noqa: E402
from lernova.models.schema.order import OrderEntry  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    init_db()
    yield
    with session_scope() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(delete(table))


@pytest.fixture
def batch_orders():
    def select_batch(batch_id):
        with session_scope() as session:
            return (
                session.execute(
                    select(OrderEntry)
                    .where(OrderEntry.transaction_uuid == batch_id)
                    .order_by(OrderEntry.course_id)
                )
                .scalars()
                .all()
            )

    return select_batch
