# simulator/config.py

SIM_CONFIG = {
    # ======================
    # Machines (limits must match the guard config)
    # ======================
    "machines": [
        {"id": "m1", "minTemp": 10, "maxTemp": 90, "minVib": 0.1, "maxVib": 5},
        {"id": "m2", "minTemp": 5, "maxTemp": 80, "minVib": 0.2, "maxVib": 4},
        {"id": "m3", "minTemp": 0, "maxTemp": 70, "minVib": 0.05, "maxVib": 3},
    ],

    # ======================
    # Fault injection
    # ======================
    "fault_chance": 0.1,        # share of readings pushed outside the band
    "excursion": 0.15,          # how far past the band an excursion may go

    # Normal / Noise / Bad
    "sound_weights": [0.85, 0.1, 0.05],

    # ======================
    # Timing
    # ======================
    "cycle_sec": 5.0,
    "seed": None,

    # ======================
    # MQTT
    # ======================
    "broker": "localhost",
    "port": 1883,
    "topic_prefix": "machines/reports",
}
