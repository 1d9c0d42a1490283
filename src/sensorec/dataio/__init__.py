"""Data input/output helpers (CSV encoding, storage and file paths).

Utility modules here keep disk-level concerns isolated from the recorder:
- :mod:`csv_writer` encodes rows into CSV bytes.
- :mod:`storage` hands those bytes to a directory (or any other sink).
- :mod:`log_loader` parses finished recordings for offline review.
- :mod:`file_paths` centralises output names and locations.
"""
