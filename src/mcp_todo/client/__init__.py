from .http import StreamableHTTPClient, create_http_client
from .session import ClientSession

__all__ = ["ClientSession", "StreamableHTTPClient", "create_http_client"]
