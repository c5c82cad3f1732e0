from sqlalchemy import Column, DateTime, Integer, Text, func

from .database import Base


class User(Base):
    """A row of the `users` table.

    The column names match the table the service has always used, so an
    existing table is picked up as-is by `create_all`.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(Text)
    email = Column(Text)
    create_timestamp = Column("createtimestamp", DateTime, server_default=func.now())
