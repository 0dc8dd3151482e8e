import json
import time
import paho.mqtt.client as mqtt


class MQTTPublisher:
    """
    MQTT Publisher

    Responsibility:
    - Publish issue events and dashboard light status
    - NO business logic
    - NO merge knowledge
    - Flat JSON only
    """

    def __init__(self, broker, port, base_topic="machines", client=None):
        self.base_topic = base_topic

        self.client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        self.client.connect(broker, port)
        self.client.loop_start()

    # =========================================================
    # INTERNAL
    # =========================================================
    def _publish(self, topic, payload, qos=1, retain=False):
        self.client.publish(
            topic,
            json.dumps(payload),
            qos=qos,
            retain=retain,
        )

    # =========================================================
    # ISSUE EVENTS
    # =========================================================
    def publish_issue(self, machine_id, payload):
        """
        Issue created / merged.
        payload = {"action": "created" | "updated", "issue": {...}}
        """
        topic = f"{self.base_topic}/issues/{machine_id}"
        self._publish(topic, payload)

    # =========================================================
    # LIGHT STATUS (DASHBOARD STATE)
    # =========================================================
    def publish_light_status(self, machine_id, payload):
        """
        Retained, so a dashboard connecting later sees the
        current lights immediately.
        """
        topic = f"{self.base_topic}/lights/{machine_id}"

        final_payload = {
            "machineId": machine_id,
            "status": payload["status"],    # green | yellow | red
            "lights": payload["lights"],
            "timestamp": payload.get("timestamp", time.time()),
        }

        self._publish(topic, final_payload, retain=True)

    # =========================================================
    # HEARTBEAT
    # =========================================================
    def publish_heartbeat(self, payload):
        """
        System liveness only.
        """
        topic = f"{self.base_topic}/heartbeat"
        self._publish(topic, payload, qos=0, retain=False)

    # =========================================================
    # SHUTDOWN
    # =========================================================
    def stop(self):
        self.client.loop_stop()
        self.client.disconnect()
