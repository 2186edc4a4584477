"""Database layer — engine, session factory, ORM base."""

from cellar_rebalancer.db.base import Base
from cellar_rebalancer.db.engine import get_engine, get_sessionmaker, init_engine

__all__ = ["Base", "get_engine", "get_sessionmaker", "init_engine"]
