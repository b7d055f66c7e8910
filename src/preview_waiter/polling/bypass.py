"""
Password protection bypass for Vercel previews.

Vercel answers a form POST carrying ``_vercel_password`` with a 303 redirect
and a ``_vercel_jwt`` cookie. See
https://vercel.com/docs/errors#errors/bypassing-password-protection-programmatically
"""

import httpx
import structlog

from ..exceptions import BypassRequestFailed, BypassTokenMissing

logger = structlog.get_logger(__name__)

BYPASS_FORM_FIELD = "_vercel_password"
BYPASS_COOKIE_NAME = "_vercel_jwt"


def _is_accepted_status(status_code: int) -> bool:
    # 303 carries the cookie, so the whole 2xx range and 300-306 are accepted
    return 200 <= status_code < 307


async def fetch_bypass_token(
    url: str,
    shared_secret: str,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    Exchange the shared secret for a ``_vercel_jwt`` token.

    Args:
        url: Preview deployment URL
        shared_secret: Password configured on the deployment
        timeout: Request timeout in seconds
        transport: Optional transport override, used by tests

    Returns:
        The bypass token value

    Raises:
        BypassRequestFailed: The request failed or returned an unexpected status
        BypassTokenMissing: The response carried no usable ``_vercel_jwt`` cookie
    """
    logger.info("Requesting vercel JWT", url=url)

    try:
        async with httpx.AsyncClient(
            transport=transport, timeout=timeout, follow_redirects=False
        ) as client:
            response = await client.post(url, data={BYPASS_FORM_FIELD: shared_secret})
    except httpx.HTTPError as e:
        raise BypassRequestFailed(
            f"Bypass request to {url} failed: {e}", context={"url": url}
        ) from e

    if not _is_accepted_status(response.status_code):
        raise BypassRequestFailed(
            f"Bypass request to {url} returned status {response.status_code}",
            status_code=response.status_code,
            context={"url": url},
        )

    if not response.headers.get_list("set-cookie"):
        raise BypassTokenMissing("no vercel JWT in response", context={"url": url})

    token = response.cookies.get(BYPASS_COOKIE_NAME)
    if not token:
        raise BypassTokenMissing("no vercel JWT in response", context={"url": url})

    logger.info("Received vercel JWT", url=url)
    return token
