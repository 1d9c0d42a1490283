"""sensorec: fixed-rate recorder for accelerometer, gyroscope and magnetometer streams."""

__version__ = "0.1.0"
