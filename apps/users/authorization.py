"""Zone-manager authorization used by the booking scheduler."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model  # type: ignore

logger = logging.getLogger(__name__)


class UserZoneAuthorizer:
    """Answers whether a caller may manage a zone's equipment."""

    def is_zone_manager(self, caller_id, zone_id) -> bool:
        if caller_id is None:
            return False
        User = get_user_model()
        user = User.objects.filter(pk=caller_id).first()
        if user is None:
            logger.info(f"Authorization check for unknown user {caller_id}")
            return False
        return user.manages_zone(zone_id)
