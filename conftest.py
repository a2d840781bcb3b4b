"""
Pytest configuration for the Heron Wellnest authentication tests.
Sets up the Python path and the environment read by ApplicationSettings.
"""

import os
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Must be set before heron_auth.core.config_manager is imported
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DATABASE_HOST", "localhost")
os.environ.setdefault("DATABASE_PORT", "5432")
os.environ.setdefault("DATABASE_NAME", "heron_auth_test")
os.environ.setdefault("DATABASE_USER", "heron")
os.environ.setdefault("DATABASE_PASSWORD", "heron")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
