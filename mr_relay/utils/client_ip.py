from fastapi import Request


def get_client_ip(request: Request, trust_proxy_headers: bool = True) -> str:
    """Extract client IP address from request."""
    if trust_proxy_headers:
        # Check for forwarded headers (when behind proxy)
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

    if request.client:
        return request.client.host

    return "unknown"
