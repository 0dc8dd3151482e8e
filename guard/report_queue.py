import queue
import threading
import logging

logger = logging.getLogger(__name__)


class ReportQueue:
    """
    Report ingestion channel.

    Features:
    - One event per incoming report
    - Single consumer by default (per-machine ordering preserved)
    - Queue backpressure handling
    - Failed reports are logged and dropped, never retried
    - Health metrics
    """

    def __init__(
        self,
        maxsize=100,
        worker_count=1,
        drop_policy="drop_oldest",  # drop_new / drop_oldest
    ):
        if drop_policy not in ("drop_new", "drop_oldest"):
            raise ValueError(f"unknown drop_policy: {drop_policy}")

        self.queue = queue.Queue(maxsize=maxsize)
        self.worker_count = worker_count
        self.drop_policy = drop_policy

        self._workers = []
        self._running = False
        self._metrics_lock = threading.Lock()

        # Metrics
        self.metrics = {
            "reports_processed": 0,
            "reports_failed": 0,
            "reports_dropped": 0,
            "queue_maxsize": maxsize,
        }

    def _count(self, key):
        with self._metrics_lock:
            self.metrics[key] += 1

    # =========================================================
    # START
    # =========================================================
    def start(self, handler):
        if self._workers:
            return

        self._running = True

        for i in range(self.worker_count):
            t = threading.Thread(
                target=self._worker_loop,
                args=(handler,),
                daemon=True,
                name=f"ReportWorker-{i+1}",
            )
            t.start()
            self._workers.append(t)

        logger.info(f"Report queue started with {self.worker_count} worker(s)")

    # =========================================================
    # WORKER LOOP
    # =========================================================
    def _worker_loop(self, handler):
        while self._running:
            try:
                report = self.queue.get(timeout=0.2)
            except queue.Empty:
                continue

            try:
                handler(report)
                self._count("reports_processed")

            except Exception:
                self._count("reports_failed")
                logger.exception("Report processing failed, report dropped")

            finally:
                self.queue.task_done()

    # =========================================================
    # PUBLIC API
    # =========================================================
    def enqueue(self, report) -> bool:
        try:
            self.queue.put(report, block=False)
            return True
        except queue.Full:
            pass

        self._count("reports_dropped")

        if self.drop_policy == "drop_new":
            logger.warning("Report queue full, new report dropped")
            return False

        try:
            self.queue.get_nowait()
            self.queue.task_done()
        except queue.Empty:
            pass

        try:
            self.queue.put(report, block=False)
        except queue.Full:
            logger.warning("Report queue full, new report dropped")
            return False

        logger.warning("Report queue full, oldest report dropped")
        return True

    # =========================================================
    # METRICS
    # =========================================================
    def get_status(self):
        with self._metrics_lock:
            metrics = dict(self.metrics)
        return {
            "queue_size": self.queue.qsize(),
            "running": self._running,
            "metrics": metrics,
        }

    # =========================================================
    # STOP
    # =========================================================
    def stop(self, drain=True):
        """
        Finish-then-stop: with drain=True queued reports are
        processed before workers exit. In-flight work is never cut.
        """
        if drain and self._workers:
            self.queue.join()

        self._running = False
        for t in self._workers:
            t.join(timeout=2)
        self._workers = []
        logger.info("Report queue stopped cleanly")
