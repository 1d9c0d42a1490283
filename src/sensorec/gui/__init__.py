"""Qt bindings for the recorder.

:mod:`recorder_controller` adapts the session hooks to Qt signals so any
PySide6 front end can render progress, live values and the saved file.
"""
