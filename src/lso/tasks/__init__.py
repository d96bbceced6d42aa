"""Async service tasks: pair detection, recording and the reconnect loop."""
