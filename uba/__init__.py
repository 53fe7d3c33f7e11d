"""UBA fee engine - balancing fees and running-balance reconciliation."""

__version__ = "0.1.0"

from uba.client import DEFAULT_CLIENT_CONFIG, UBAClient, UBAClientConfig  # noqa: E402

__all__ = ["UBAClient", "UBAClientConfig", "DEFAULT_CLIENT_CONFIG", "__version__"]
