"""Visualize SQLAlchemy schemas as shareable schema documents."""
