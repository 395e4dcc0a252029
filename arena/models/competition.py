"""Competition and Catalog models: a competition draws its puzzles from one catalog theme."""
from sqlalchemy import Boolean, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from arena.db.session import Base
from arena.models.user import new_id


class Catalog(Base):
    __tablename__ = "catalogs"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False)
    address = Column(String(255), nullable=False)  # base URL of the remote catalog service
    description = Column(String(255), nullable=False, default="")

    competitions = relationship("Competition", back_populates="catalog")


class Competition(Base):
    __tablename__ = "competitions"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)
    catalog_id = Column(String(36), ForeignKey("catalogs.id"), nullable=False, index=True)
    catalog_theme = Column(String(50), nullable=False)
    show = Column(Boolean, nullable=False, default=False)
    finished = Column(Boolean, nullable=False, default=False)

    catalog = relationship("Catalog", back_populates="competitions")
    tries = relationship("Attempt", back_populates="competition", cascade="all, delete-orphan", passive_deletes=True)
