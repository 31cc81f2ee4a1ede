"""
Declarative base shared by all ORM models of the Submission Analyzer service.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
