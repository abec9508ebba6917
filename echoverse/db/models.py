"""Declarative base shared by all ORM models"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

# ORM model classes live in infrastructure/orm/ so the domain stays free of
# persistence details. No model imports here to avoid circular imports.
