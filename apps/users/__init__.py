"""Users app package.

Holds the custom user model with club and zone roles, the Zone model that
owns equipment, and the zone-manager authorization check consumed by the
booking scheduler. Use ``apps.users.models.CustomUser`` as the
AUTH_USER_MODEL throughout the project.
"""
