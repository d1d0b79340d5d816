from leasedesk.db import get_engine
from leasedesk.models import ApprovalLog  # noqa: F401
from leasedesk.models.base import Base


def init_db():
    engine = get_engine()
    print(f"Connecting to {engine.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=engine)
    print(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    init_db()
