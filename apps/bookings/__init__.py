"""Bookings app package.

The equipment reservation scheduler: availability checks, the chronological
booking chain per item, handover resolution between consecutive bookings and
the booking lifecycle. Creation re-validates availability inside the write
transaction and retries a bounded number of times when another writer
changes the same item's schedule.
"""
