"""
Shared dependencies for admin endpoints.
"""
import logging

from ielts_mock.core.auth import require_roles
from ielts_mock.models import UserRole

logger = logging.getLogger(__name__)

# Band tables are authored by instructors as well as admins
require_test_author = require_roles(UserRole.INSTRUCTOR, UserRole.ADMIN)
