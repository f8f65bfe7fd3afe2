"""Collaborator directory: vendors, fee schedule, price history and users.

Order workflows only read from these collaborators, through the ports in
``marketplace.directory.port``. The concrete adapter is chosen once per
process.
"""

import os

_directory_instance = None


def get_directory():
    """Return the configured directory adapter (singleton).

    Uses FakeDirectory by default. Configure via the
    MARKETPLACE_DIRECTORY_ADAPTER environment variable.
    """
    global _directory_instance
    if _directory_instance is None:
        adapter = os.environ.get("MARKETPLACE_DIRECTORY_ADAPTER", "fake")
        if adapter == "fake":
            from marketplace.directory.fake_adapter import FakeDirectory

            _directory_instance = FakeDirectory()
        else:
            raise ValueError(f"Unknown directory adapter: {adapter}")
    return _directory_instance


def reset_directory():
    """Reset the directory singleton (useful for testing)."""
    global _directory_instance
    _directory_instance = None
