"""Test configuration: point the app at the test config before anything imports it."""

import os
import tempfile
from pathlib import Path

os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ["STOREFRONT_CONFIG"] = str(Path(__file__).parent / "config.test.yaml")
os.environ.setdefault("STOREFRONT_TEST_MEDIA", tempfile.mkdtemp(prefix="storefront-media-"))

from tests.fixtures import *  # noqa: E402,F401,F403
