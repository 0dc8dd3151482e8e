# simulator/report_publisher.py

import json
import time
import uuid

import numpy as np
import paho.mqtt.publish as publish

from core.models import SoundLevel
from simulator.config import SIM_CONFIG

SOUND_LABELS = [SoundLevel.NORMAL.value, SoundLevel.NOISE.value, SoundLevel.BAD.value]


def generate_reading(machine, rng, fault_chance=0.1, excursion=0.15, sound_weights=None):
    """
    Random reading for one machine.

    Inside [min, max] most of the time; with probability fault_chance
    the value is drawn from a band widened by `excursion` on both sides.
    """
    temp_range = machine["maxTemp"] - machine["minTemp"]
    vib_range = machine["maxVib"] - machine["minVib"]

    if rng.random() < fault_chance:
        temp = machine["minTemp"] + rng.uniform(-excursion, 1 + excursion) * temp_range
        vib = machine["minVib"] + rng.uniform(-excursion, 1 + excursion) * vib_range
    else:
        temp = machine["minTemp"] + rng.random() * temp_range
        vib = machine["minVib"] + rng.random() * vib_range

    sound = rng.choice(SOUND_LABELS, p=sound_weights or SIM_CONFIG["sound_weights"])

    return {
        "temp": round(float(temp), 2),
        "vib": round(max(float(vib), 0.0), 3),
        "sound": str(sound),
    }


def build_payload(machine, reading):
    return {
        "id": uuid.uuid4().hex,
        "machineId": machine["id"],
        "temp": reading["temp"],
        "vib": reading["vib"],
        "sound": reading["sound"],
        "source": "Simulator (Testing)",
        "timestamp": time.time(),
    }


def publish_report(cfg, payload):
    publish.single(
        f"{cfg['topic_prefix']}/{payload['machineId']}",
        json.dumps(payload),
        hostname=cfg["broker"],
        port=cfg["port"],
    )


def main(cfg=SIM_CONFIG, cycles=None):
    rng = np.random.default_rng(cfg["seed"])
    count = 0

    print(f"Simulating {len(cfg['machines'])} machines -> {cfg['broker']}")

    while cycles is None or count < cycles:
        for machine in cfg["machines"]:
            reading = generate_reading(
                machine,
                rng,
                fault_chance=cfg["fault_chance"],
                excursion=cfg["excursion"],
                sound_weights=cfg["sound_weights"],
            )
            payload = build_payload(machine, reading)
            publish_report(cfg, payload)

            print(
                f"TX {machine['id']} | temp={reading['temp']} "
                f"vib={reading['vib']} sound={reading['sound']}"
            )

        count += 1
        time.sleep(cfg["cycle_sec"])


if __name__ == "__main__":
    main()
