"""
Firebase Realtime Database storage for the peddy-paper client.

Talks to the database REST API with httpx.
Key points:
- Reads are GET <url>/<path>.json
- Transactions use ETag conditional requests: read with
  'X-Firebase-ETag: true', write with 'if-match', retry on 412
- push() is a POST; the server generates the time-ordered key
- Subscriptions use the text/event-stream streaming API, one daemon
  thread per subscription, reconnecting after a back-off

Requires: FIREBASE_DATABASE_URL (and FIREBASE_AUTH_TOKEN for locked-down
databases)
"""

import copy
import json
import logging
import os
import threading
from typing import Any, Dict, List, Optional

import httpx

from .base import (
    RemoteStoreInterface,
    Subscription,
    SnapshotCallback,
    TransactionResult,
    TransactionUpdate,
    split_path,
)
from .exceptions import ConfigurationError, TransportError
from .. import config

logger = logging.getLogger(__name__)


class FirebaseStore(RemoteStoreInterface):
    """
    Firebase Realtime Database implementation.

    Implements the RemoteStoreInterface abstract base class.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        auth_token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_seconds: Optional[float] = None
    ):
        """
        Create Firebase store instance.

        Falls back to environment variables:
        - FIREBASE_DATABASE_URL: e.g. https://my-game-default-rtdb.firebaseio.com
        - FIREBASE_AUTH_TOKEN: database secret or ID token

        Args:
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self._url = (url or os.environ.get('FIREBASE_DATABASE_URL', '')).rstrip('/')
        self._token = auth_token if auth_token is not None else os.environ.get('FIREBASE_AUTH_TOKEN', '')
        self._transport = transport
        self._timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS
        self._max_retries = max_retries if max_retries is not None else config.TRANSACTION_MAX_RETRIES
        self._retry_seconds = retry_seconds if retry_seconds is not None else config.SUBSCRIPTION_RETRY_SECONDS
        self._client: Optional[httpx.Client] = None
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Validate configuration and open the HTTP client."""
        if self._initialized:
            return

        if not self._url:
            raise ConfigurationError(
                "FIREBASE_DATABASE_URL environment variable is required for Firebase backend"
            )

        self._get_client()
        self._initialized = True

    def _get_client(self) -> httpx.Client:
        """Get or create the shared HTTP client."""
        if self._client is None:
            self._client = self._new_client()
        return self._client

    def _new_client(self, timeout: Optional[httpx.Timeout] = None) -> httpx.Client:
        kwargs: Dict[str, Any] = {
            'timeout': timeout or self._timeout,
            'follow_redirects': True,
        }
        if self._transport is not None:
            kwargs['transport'] = self._transport
        return httpx.Client(**kwargs)

    def close(self) -> None:
        """Cancel subscriptions and close the HTTP client."""
        with self._lock:
            subscriptions = list(self._subscriptions)
            self._subscriptions.clear()
        for sub in subscriptions:
            sub.cancel()

        if self._client is not None:
            self._client.close()
            self._client = None

    def health_check(self) -> bool:
        """Check if the database answers a shallow read."""
        try:
            response = self._get_client().get(
                self._endpoint(''), params=self._params(shallow='true')
            )
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    # =========================================================================
    # REQUEST HELPERS
    # =========================================================================

    def _endpoint(self, path: str) -> str:
        return f"{self._url}/{'/'.join(split_path(path))}.json"

    def _params(self, **extra: str) -> Dict[str, str]:
        params = dict(extra)
        if self._token:
            params['auth'] = self._token
        return params

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, mapping failures to TransportError."""
        try:
            response = self._get_client().request(
                method, self._endpoint(path), params=self._params(), **kwargs
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} /{path} failed: {e}") from e

        if response.status_code >= 400 and response.status_code != 412:
            raise TransportError(
                f"{method} /{path} failed with HTTP {response.status_code}: "
                f"{self._error_detail(response)}"
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        """Decoded body; an empty body is the JSON null the database stores."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{response.request.method} {response.request.url.path} returned invalid JSON: {e}"
            ) from e

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict) and 'error' in body:
            return str(body['error'])
        return response.text

    # =========================================================================
    # RemoteStoreInterface
    # =========================================================================

    def get(self, path: str) -> Any:
        return self._json(self._request('GET', path))

    def transaction(self, path: str, update: TransactionUpdate) -> TransactionResult:
        response = self._request('GET', path, headers={'X-Firebase-ETag': 'true'})
        etag = response.headers.get('ETag', '')
        current = self._json(response)

        for attempt in range(self._max_retries):
            new_value = update(copy.deepcopy(current))
            if new_value is None:
                return TransactionResult(committed=False, snapshot=current)

            response = self._request(
                'PUT', path,
                headers={'if-match': etag},
                content=json.dumps(new_value, ensure_ascii=False).encode('utf-8')
            )
            if response.status_code != 412:
                return TransactionResult(committed=True, snapshot=self._json(response))

            # Another writer got there first: retry on the value it left
            logger.debug(f"Transaction on /{path} lost ETag race (attempt {attempt + 1})")
            etag = response.headers.get('ETag', '')
            current = self._json(response)

        raise TransportError(
            f"Transaction on /{path} gave up after {self._max_retries} attempts"
        )

    def push(self, path: str, value: Any) -> str:
        response = self._request(
            'POST', path,
            content=json.dumps(value, ensure_ascii=False).encode('utf-8')
        )
        body = self._json(response)
        if not isinstance(body, dict) or 'name' not in body:
            raise TransportError(f"POST /{path} did not return a generated key")
        return body['name']

    def subscribe(self, path: str, callback: SnapshotCallback) -> Subscription:
        sub = Subscription(path, callback)
        with self._lock:
            self._subscriptions.append(sub)

        thread = threading.Thread(
            target=self._stream_loop,
            args=(sub,),
            name=f"firebase-stream-{path}",
            daemon=True
        )
        thread.start()
        return sub

    # =========================================================================
    # STREAMING
    # =========================================================================

    def _stream_loop(self, sub: Subscription) -> None:
        """Keep a stream open until the subscription is cancelled."""
        while sub.active:
            try:
                self._stream_once(sub)
            except (httpx.HTTPError, httpx.StreamError, TransportError, ValueError) as e:
                if not sub.active:
                    break
                logger.warning(f"Stream on /{sub.path} dropped: {e}")

            if sub.wait_cancelled(self._retry_seconds):
                break
            logger.info(f"Reconnecting stream on /{sub.path}")

    def _stream_once(self, sub: Subscription) -> None:
        # Streams stay open indefinitely; only the connect phase is bounded
        timeout = httpx.Timeout(self._timeout, read=None)
        with self._new_client(timeout=timeout) as client:
            with client.stream(
                'GET',
                self._endpoint(sub.path),
                params=self._params(),
                headers={'Accept': 'text/event-stream'}
            ) as response:
                if response.status_code >= 400:
                    raise TransportError(
                        f"Stream on /{sub.path} refused with HTTP {response.status_code}"
                    )
                sub.on_cancel(response.close)
                logger.info(f"Stream open on /{sub.path}")

                event = None
                for line in response.iter_lines():
                    if not sub.active:
                        return
                    if line.startswith('event:'):
                        event = line[len('event:'):].strip()
                    elif line.startswith('data:'):
                        if self._handle_event(sub, event, line[len('data:'):].strip()):
                            return
                        event = None

    def _handle_event(self, sub: Subscription, event: Optional[str], data: str) -> bool:
        """
        Deliver a full snapshot for put/patch events.

        Returns:
            True if the stream must stop
        """
        if event in ('put', 'patch'):
            payload = json.loads(data) if data and data != 'null' else {}
            if event == 'put' and payload.get('path') == '/':
                snapshot = payload.get('data')
            else:
                snapshot = self.get(sub.path)
            sub.deliver(snapshot)
            return False

        if event in ('cancel', 'auth_revoked'):
            logger.error(f"Stream on /{sub.path} closed by server: {event}")
            sub.cancel()
            return True

        # keep-alive
        return False
