"""
Shared module for the ambient concerns of the bridge service.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging

- shared.infrastructure: Cross-cutting request plumbing
  - correlation.py: Request/client correlation IDs for logs

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.config.logging import get_logger
    from shared.utils.exceptions import NotFoundError, ConflictError
"""
