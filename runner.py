import logging
import sys
import threading
import time

from config.config_loader import load_config, setup_logging

from core.errors import ReportValidationError
from core.machine_cache import MachineCache

from storage.log_store import InMemoryLogStore
from storage.machine_store import InMemoryMachineStore

from raw_ingest.mqtt_listener import start_mqtt_listener
from raw_ingest.validator import parse_report

from guard.report_queue import ReportQueue
from guard.security_guard import SecurityGuard

from publish.mqtt_publisher import MQTTPublisher

logger = logging.getLogger("machine_guard")


def build_guard(config, log_store=None, machine_store=None, publisher=None):
    """
    Wire store -> cache -> guard from a loaded config dict.
    """
    log_store = log_store or InMemoryLogStore()
    machine_store = machine_store or InMemoryMachineStore.from_config(
        config.get("machines", []),
        log_store=log_store,
    )

    machines = MachineCache(machine_store)
    machine_store.add_listener(machines.invalidate)
    machines.refresh()

    return SecurityGuard(
        machines=machines,
        log_store=log_store,
        publisher=publisher,
        stale_after_sec=config.get("guard", {}).get("stale_after_sec"),
    )


def make_report_handler(report_queue):
    """
    Listener callback: payload -> Report -> queue.
    Malformed payloads are dropped here, before they reach the guard.
    """

    def on_report(machine_id, payload):
        try:
            report = parse_report(payload, machine_id=machine_id)
        except ReportValidationError as exc:
            if exc.out_of_range:
                logger.error("Out-of-range report from %s dropped: %s", machine_id, exc)
            else:
                logger.warning("Malformed report from %s dropped: %s", machine_id, exc)
            return
        report_queue.enqueue(report)

    return on_report


def main(config_path=None):
    # =========================
    # LOAD CONFIG
    # =========================
    config = load_config(config_path)
    setup_logging(config)

    mqtt_cfg = config["mqtt"]

    # =========================
    # PUBLISHER
    # =========================
    publisher = MQTTPublisher(
        broker=mqtt_cfg["broker"],
        port=mqtt_cfg["port"],
        base_topic=mqtt_cfg.get("base_topic", "machines"),
    )

    # =========================
    # GUARD + QUEUE
    # =========================
    guard = build_guard(config, publisher=publisher)

    queue_cfg = config.get("queue", {})
    report_queue = ReportQueue(
        maxsize=queue_cfg.get("maxsize", 100),
        drop_policy=queue_cfg.get("drop_policy", "drop_oldest"),
    )
    report_queue.start(guard.process_report)

    # =========================
    # HEARTBEAT
    # =========================
    interval = config.get("heartbeat", {}).get("interval_sec", 10)
    stop_event = threading.Event()

    def heartbeat_loop():
        while not stop_event.wait(interval):
            publisher.publish_heartbeat(
                {
                    "service": "machine-guard",
                    "timestamp": time.time(),
                    "queue": report_queue.get_status(),
                    "guard": guard.metrics.snapshot(),
                }
            )

    threading.Thread(target=heartbeat_loop, daemon=True, name="Heartbeat").start()

    # =========================
    # START MQTT LISTENER
    # =========================
    logger.info("Security guard started: monitoring %d machines", len(guard.machines))
    try:
        start_mqtt_listener(
            callback=make_report_handler(report_queue),
            broker=mqtt_cfg["broker"],
            port=mqtt_cfg["port"],
            topic=mqtt_cfg["report_topic"],
        )
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        stop_event.set()
        report_queue.stop(drain=True)
        publisher.stop()


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
