"""
Centralized test credentials and secrets.

All test-only credentials are loaded from environment variables when available,
with clearly non-production placeholders as fallbacks.
"""

from __future__ import annotations

import os

# Passwords: signup requires at least 8 characters
TEST_PASSWORD = os.environ.get("TEST_PASSWORD") or "placeholder-pw-1"
TEST_PASSWORD_WRONG = os.environ.get("TEST_PASSWORD_WRONG") or "placeholder-pw-2"

TEST_EMAIL = "owner@example.com"

# App config used by conftest
TEST_SECRET_KEY = os.environ.get("TEST_SECRET_KEY") or "test-secret-key"
