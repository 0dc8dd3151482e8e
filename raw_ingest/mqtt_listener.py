import json
import logging

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)


def start_mqtt_listener(
    callback,
    broker: str,
    port: int,
    topic: str,
    client=None,
    block=True,
):
    """
    Report Feed Listener
    --------------------
    Expected report topic:
        machines/reports/{site}/{machine_id}
        machines/reports/{machine_id}

    Callback signature:
        callback(
            machine_id: str,
            payload: dict
        )

    block=False starts the network loop in a background thread
    and returns the client.
    """

    # =========================================================
    # ON CONNECT
    # =========================================================
    def on_connect(client, userdata, flags, reason_code, properties=None):
        if reason_code == 0:
            logger.info(f"[MQTT] Connected to {broker}:{port}")
            client.subscribe(topic)
            logger.info(f"[MQTT] Subscribed to: {topic}")
        else:
            logger.error(f"[MQTT] Connection failed with code {reason_code}")

    # =========================================================
    # ON MESSAGE
    # =========================================================
    def on_message(client, userdata, msg):
        try:
            payload = json.loads(msg.payload.decode())
            _, machine_id = _parse_topic(msg.topic)
        except (UnicodeDecodeError, ValueError):
            logger.warning("[MQTT] Undecodable report on %s dropped", msg.topic)
            return

        try:
            callback(machine_id=machine_id, payload=payload)
        except Exception:
            logger.exception("[MQTT] Report handling error")

    # =========================================================
    # CLIENT INIT
    # =========================================================
    if client is None:
        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    client.on_connect = on_connect
    client.on_message = on_message

    client.connect(broker, port, keepalive=60)

    if block:
        client.loop_forever()
    else:
        client.loop_start()
    return client


# =========================================================
# TOPIC PARSER
# =========================================================
def _parse_topic(topic: str):
    """
    Supported formats:

    Multi-site:
        machines/reports/<SITE>/<MACHINE_ID>

    Single-site:
        machines/reports/<MACHINE_ID>
    """

    parts = topic.split("/")

    if len(parts) == 4:
        _, _, site, machine_id = parts
        return site, machine_id

    elif len(parts) == 3:
        _, _, machine_id = parts
        return "default", machine_id

    else:
        raise ValueError(f"Invalid report topic format: {topic}")
