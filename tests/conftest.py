import warnings

# Ignore warnings from instrumentation libraries
warnings.filterwarnings("ignore", category=DeprecationWarning, module="logfire.*")

# Import upstream fixtures so they are available to all tests
from tests.fixtures.upstream_fixtures import *  # noqa: E402, F403
