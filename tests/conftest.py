"""Common utilities for tests."""

from tests.mock_utils import (  # noqa: F401
    CATEGORY,
    CATEGORY_TEAMS,
    PARTICIPANTS,
    MockFirestoreBuilder,
    patch_mockfirestore,
)

patch_mockfirestore()
