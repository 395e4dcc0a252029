"""User and Group models (read-only here; managed by the admin service)."""
import uuid

from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import relationship

from arena.db.session import Base


def new_id() -> str:
    return str(uuid.uuid4())


user_groups = Table(
    "user_groups",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", String(36), ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    firstname = Column(String(50), nullable=False)
    lastname = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)

    groups = relationship("Group", secondary=user_groups, back_populates="users")
    tries = relationship("Attempt", back_populates="user")


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(50), nullable=False)
    description = Column(String(255), nullable=True)

    users = relationship("User", secondary=user_groups, back_populates="groups")
