"""Application environment types.

Environments:
- DEVELOPMENT: Local development, colored console logs
- TESTING: Automated test execution with isolated database
- CI: Continuous integration environment
- PRODUCTION: Production deployment
"""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    CI = "ci"
    PRODUCTION = "production"
