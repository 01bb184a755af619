import uuid


def extract_client_id(client_id: str | None) -> str:
    """
    If the caller provided a client_id, use it.
    If not, generate a short readable one like 'client-a3f29c1e'
    so anonymous subscribers are still traceable in the logs.
    """
    if client_id:
        return client_id
    return f"client-{uuid.uuid4().hex[:8]}"


def ws_url_from_http(base_url: str) -> str:
    """`http://host:port` -> `ws://host:port` (and https -> wss)."""
    return base_url.rstrip("/").replace("https://", "wss://").replace("http://", "ws://")
