"""Ports - contracts between the adapter core and the outside world."""
