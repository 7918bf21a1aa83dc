"""Users app package.

Defines the custom user model with the driver and owner roles, JWT
authentication endpoints and the profile API. Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout the
project.
"""
