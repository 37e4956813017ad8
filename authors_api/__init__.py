"""Реестр авторов: SQLAlchemy-модель Author и HTTP API поверх нее."""
