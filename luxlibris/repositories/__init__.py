"""SQLAlchemy repositories for assessment content and student results."""
