"""Equipment app package.

Shared zone equipment (jumps, tents, trailers, sound systems and so on) that
members reserve through the bookings app. Each item carries a
``schedule_version`` counter bumped by every write that changes its booking
schedule.
"""
