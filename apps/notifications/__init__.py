"""Notifications app package.

Delivers booking events to requesters as in-app notifications and email.
Delivery runs in Celery and never affects the booking write that produced
the event.
"""
