"""
Packager supervisor for packagerctl.

Everything that happens between "start the packager" and "Ctrl+C":

Modules:
    - session: SessionState, the flags and handles shared by the callbacks
    - dispatch: decides what to do with each log event
    - progress: the bundle progress bar and build lifecycle callbacks
    - lifecycle: interrupt handling and packager shutdown
    - preflight: file-watch limit checks before starting
    - runner: run(), wiring all of the above to a Packager

Architecture:
    The callbacks are invoked one at a time from the runner's thread, so
    SessionState is plain mutable data with no locking.
"""
