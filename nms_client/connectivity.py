"""
Background health polling.

An offline → online transition starts a sync on a worker thread so the
monitor loop never blocks on uploads.
"""
import logging
import threading

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    def __init__(self, api, sync_manager=None, interval=30):
        self.api = api
        self.sync_manager = sync_manager
        self.interval = interval
        self.online = False
        self.last_status = None
        self._callbacks = []
        self._stop = threading.Event()
        self._thread = None

    def on_change(self, callback):
        """``callback(online)`` fired on every online/offline transition"""
        self._callbacks.append(callback)

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name='nms-connectivity')
        self._thread.start()
        logger.info(f"Connectivity monitor started (interval={self.interval}s)")

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def _run(self):
        while not self._stop.is_set():
            self.check()
            self._stop.wait(self.interval)

    def check(self):
        """Check the backend once and handle a state change. Returns the health dict."""
        status = self.api.check_health()
        self.last_status = status
        was_online = self.online
        self.online = status['is_healthy']
        if self.sync_manager is not None:
            self.sync_manager.online = self.online

        if self.online != was_online:
            logger.info(f"Connectivity changed: {'online' if self.online else 'offline'} ({status['status']})")
            for callback in list(self._callbacks):
                try:
                    callback(self.online)
                except Exception as e:
                    logger.error(f"Connectivity callback failed: {str(e)}", exc_info=True)
            if self.online and self.sync_manager is not None:
                self.trigger_sync()
        return status

    def trigger_sync(self):
        worker = threading.Thread(target=self.sync_manager.start_sync, daemon=True, name='nms-sync')
        worker.start()
        return worker
