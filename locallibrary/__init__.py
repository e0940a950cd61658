"""Local Library - catalog web application package

This package contains the application modules:
- Web app and routes (api.py)
- Entity handlers (handlers/)
- Document store (store.py, database.py)
- Form field validation (validators.py)
- Data models (models.py)
- CLI interface (cli.py)
"""

__version__ = "1.0.0"
