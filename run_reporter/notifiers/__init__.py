"""Notification senders for finished runs."""
