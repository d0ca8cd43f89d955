"""Background poller for a single USB HID peripheral.

The package discovers the device through hidapi, exchanges write-then-read
report frames with it, and polls its state on a background thread while
forwarding state-change events to a notification sink (a Qt signal in the
bundled application shell).
"""
