from typing import List, Optional
import logging
import threading
import time

from web3 import HTTPProvider

logger = logging.getLogger(__name__)

# JSON-RPC error text that means "this endpoint is throttling us"
RATE_LIMIT_HINTS = (
    "rate limit", "too many requests", "request limit", "over capacity",
    "daily request count exceeded", "project id request rate exceeded",
)
RATE_LIMIT_CODES = (-32005, 429)


class RotatingHTTPProvider(HTTPProvider):
    """
    HTTP provider over a list of RPC endpoints. Moves to the next endpoint on
    connection errors or rate-limit responses and gives up once every endpoint
    has been tried for the same request.

    Transaction submission is not retried on another endpoint when the node
    answered with a regular error, so a signed tx is never broadcast twice
    because of this class.
    """

    def __init__(self, rpc_urls: List[str], request_kwargs: Optional[dict] = None):
        urls = list(dict.fromkeys([u.strip() for u in rpc_urls if u and u.strip()]))
        if not urls:
            raise ValueError("rpc_urls must contain at least one endpoint")
        super().__init__(endpoint_uri=urls[0], request_kwargs=request_kwargs)
        self._urls: List[str] = urls
        self._idx: int = 0
        self._lock = threading.Lock()

    @property
    def urls(self) -> List[str]:
        return list(self._urls)

    @property
    def current_url(self) -> str:
        with self._lock:
            return self._urls[self._idx]

    def _advance(self) -> None:
        with self._lock:
            previous = self._urls[self._idx]
            self._idx = (self._idx + 1) % len(self._urls)
            self.endpoint_uri = self._urls[self._idx]
        if len(self._urls) > 1:
            logger.warning(f"RPC {previous} unavailable, switching to {self.endpoint_uri}")

    @staticmethod
    def is_rate_limited(error_obj: Optional[dict]) -> bool:
        if not error_obj:
            return False
        msg = str(error_obj.get("message", "")).lower()
        if any(tok in msg for tok in RATE_LIMIT_HINTS):
            return True
        return error_obj.get("code") in RATE_LIMIT_CODES

    def make_request(self, method, params):  # type: ignore[override]
        last_exc: Optional[BaseException] = None
        last_error_resp: Optional[dict] = None

        for _ in range(len(self._urls)):
            try:
                response = super().make_request(method, params)
            except Exception as e:  # connection errors, timeouts
                last_exc = e
                self._advance()
                time.sleep(0.1)
                continue

            if isinstance(response, dict) and self.is_rate_limited(response.get("error")):
                last_error_resp = response
                self._advance()
                time.sleep(0.1)
                continue
            return response

        if last_error_resp is not None:
            return last_error_resp
        raise last_exc
