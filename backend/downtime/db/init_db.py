from downtime.db.base import Base
from downtime.db.session import engine
from downtime.models import *  # noqa: F403


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    init_db()
