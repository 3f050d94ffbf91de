"""
Shared module for code used by the REST API and the CLI.

STRUCTURE:
- shared.security: Authentication, authorization, rate limiting
  - auth.py: JWT sign/verify, current_user_context, role checks
  - password.py: Bcrypt hashing
  - rate_limit.py: Login rate limiting (slowapi)

- shared.infrastructure: Database and request correlation
  - db.py: SQLAlchemy sessions, transaction(), safe_commit()
  - correlation.py: X-Request-ID middleware and logging filter

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Roles, tender types, log events, limits

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Input cleaning, LIKE escaping
  - money.py / clock.py: Cents arithmetic, UTC timestamps
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import current_user_context, require_role
    from shared.infrastructure.db import get_db, transaction
    from shared.config.settings import settings
    from shared.config.constants import Role, TenderType
    from shared.utils.exceptions import NotFoundError, ConflictError
"""
