# =========================================================
# AUDIT NOTIFIER
# - Reports every ledger action to the history service
# - Fire-and-forget: sends run on a small worker pool
# - One attempt, bounded timeout, no retry
# - Failures are logged and dropped, never raised to callers
# =========================================================

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

import requests

from inventory_api.core.errors import NotificationError
from inventory_api.core.logging import LOGGER_NAME
from inventory_api.schemas.audit import AuditRecord

DEFAULT_TIMEOUT_SECONDS = 5.0


class AuditNotifier:
    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = 4,
        http=None,
        logger: logging.Logger | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.http = http or requests
        self.logger = logger or logging.getLogger(LOGGER_NAME)

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="audit",
        )
        self._lock = threading.Lock()
        self._closed = False

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def notify(self, store_id, plu, action: str, description: str):
        record = AuditRecord(
            store_id=store_id,
            plu=plu,
            action=action,
            description=description,
        )
        payload = record.model_dump()

        self.logger.info(f"Payload for logging action to the server: {payload}")

        if not self.enabled:
            self.logger.info(f"History service not configured, dropped action: {action}")
            return

        with self._lock:
            if self._closed:
                self.logger.error(f"Notifier is shut down, dropped action: {action}")
                return

            future = self._executor.submit(self._send, payload)

        future.add_done_callback(self._report_crash)

    def _send(self, payload: dict):
        try:
            self._post(payload)
        except NotificationError as e:
            self.logger.error(f"Failed to log action: {e.message}")
            return False

        self.logger.info(
            f"Logged action: store_id={payload['store_id']}, "
            f"plu={payload['plu']}, action={payload['action']}"
        )
        return True

    def _post(self, payload: dict):
        try:
            response = self.http.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(str(e)) from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(
                f"History service responded with status {response.status_code}"
            )

    def _report_crash(self, future: Future):
        if future.cancelled():
            return

        exc = future.exception()
        if exc is not None:
            self.logger.error(f"Audit worker crashed: {exc!r}")

    def shutdown(self, wait: bool = True):
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._executor.shutdown(wait=wait)
        self.logger.info("Audit notifier stopped")
