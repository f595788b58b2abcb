import os
import warnings

# Ignore warnings from third-party ODM internals
warnings.filterwarnings("ignore", category=DeprecationWarning, module="beanie.*")

# Set test environment variables before any streamhub module reads its config
os.environ.update(
    {
        "DEMO_MODE": "true",
        "NOTIFICATION_QUEUE_ENABLED": "false",
        "LOGFIRE_ENABLE": "false",
        "DEFAULT_CALENDAR_ID": "primary",
    }
)

# Import fixtures so they are available to all tests
from tests.fixtures.mongo_fixtures import *  # noqa: E402, F403
from tests.fixtures.stream_fixtures import *  # noqa: E402, F403
