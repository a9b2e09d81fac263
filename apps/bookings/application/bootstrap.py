"""
Wires booking command and event handlers onto a message bus.

Called from BookingsConfig.ready(); safe to call more than once.
"""

import logging

from shared.application.message_bus import MessageBus, message_bus
from apps.bookings.application import command_handlers as commands
from apps.bookings.application.event_handlers import notify_handover_neighbours, notify_requester
from apps.bookings.domain.events import BOOKING_EVENTS, HANDOVER_CHANGE_EVENTS

logger = logging.getLogger(__name__)

COMMAND_HANDLERS = {
    commands.CreateBookingCommand: commands.CreateBookingHandler,
    commands.ApproveBookingCommand: commands.ApproveBookingHandler,
    commands.RejectBookingCommand: commands.RejectBookingHandler,
    commands.CancelBookingCommand: commands.CancelBookingHandler,
    commands.AdvanceBookingCommand: commands.AdvanceBookingHandler,
    commands.RescheduleBookingCommand: commands.RescheduleBookingHandler,
    commands.UpdateAutomationSettingCommand: commands.UpdateAutomationSettingHandler,
}

_wired_buses: set[int] = set()


def bootstrap(bus: MessageBus = message_bus) -> MessageBus:
    if id(bus) in _wired_buses:
        return bus

    for command_type, handler_class in COMMAND_HANDLERS.items():
        if not bus.has_command_handler(command_type):
            # Handlers build their Django repositories lazily, per command
            bus.register_command_handler(
                command_type,
                lambda command, handler_class=handler_class: handler_class().handle(command),
            )

    for event_type in BOOKING_EVENTS:
        bus.register_event_handler(event_type, notify_requester)
    for event_type in HANDOVER_CHANGE_EVENTS:
        bus.register_event_handler(event_type, notify_handover_neighbours)

    _wired_buses.add(id(bus))
    logger.debug(f"Booking handlers registered on bus {id(bus)}")
    return bus
