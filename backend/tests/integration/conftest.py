"""
Conftest for integration tests.

Automatically applies the 'integration' and 'api' markers to all tests in this directory.
"""

import pytest

# Apply markers to all tests in this directory
pytestmark = [pytest.mark.integration, pytest.mark.api]
