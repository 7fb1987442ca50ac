"""
API Configuration - Shared constants for the trace API server.
"""

# Network configuration
API_HOST = "127.0.0.1"
API_PORT = 19877

# Seconds to wait for the server thread on shutdown
SERVER_SHUTDOWN_TIMEOUT = 5

# Largest number of pages a single load request may pull ("all" is unbounded)
MAX_PAGES_PER_REQUEST = 1000


def get_base_url(host: str = API_HOST, port: int = API_PORT) -> str:
    """Get the base URL for API requests."""
    return f"http://{host}:{port}"
