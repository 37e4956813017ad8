from sqlalchemy import CheckConstraint, Column, Integer, String, Date, DateTime, Text, event, inspect
from sqlalchemy.orm import attributes, column_property, validates
from datetime import date, datetime
from authors_api.database import Base

FIRST_NAME_MAX_LENGTH = 25


class Author(Base):
    __tablename__ = "author_tbl"
    __table_args__ = (
        # String(25) не ограничивает длину в SQLite
        CheckConstraint(
            f"length(first_name) <= {FIRST_NAME_MAX_LENGTH}",
            name="ck_author_tbl_first_name_length"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column("first_name", String(FIRST_NAME_MAX_LENGTH), nullable=False)
    last_name = Column("last_name", String(255))
    email = Column("email", String(255), unique=True)
    # старое значение нужно before_update, поэтому active_history
    created_at = column_property(
        Column("dbCreated_at", Date, default=date.today, info={"updatable": False}),
        active_history=True
    )

    @validates("id")
    def validate_id(self, key, value):
        identity = inspect(self).identity
        if identity is not None and value != identity[0]:
            raise ValueError(f"Author id {identity[0]} is assigned on insert and cannot be changed")
        return value

    def __repr__(self):
        return f"<Author id={self.id} {self.first_name} {self.last_name}>"


class IdempotencyKey(Base):
    __tablename__ = "idempotency_keys"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(255), unique=True, index=True, nullable=False)
    resource_type = Column(String(50), nullable=False)
    response_data = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


@event.listens_for(Author, "before_update")
def keep_non_updatable_columns(mapper, connection, target):
    """Откат изменений колонок с info["updatable"] = False перед UPDATE."""
    for prop in mapper.column_attrs:
        if prop.columns[0].info.get("updatable", True):
            continue
        history = attributes.get_history(target, prop.key)
        if history.has_changes() and history.deleted:
            attributes.set_committed_value(target, prop.key, history.deleted[0])
