"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

INVITE_CODE_LENGTH = 6
INVITE_CODE_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DEFAULT_UPCOMING_DAYS = 7
DEFAULT_DELETE_REASON = "Requested to delete office day"
DEFAULT_USER_NAME = "User"

# Document store collections.
USERS = "users"
ROOMS = "rooms"
ROOM_MEMBERS = "roomMembers"
OFFICE_SCHEDULES = "officeSchedules"
CHANGE_REQUESTS = "changeRequests"
NOTIFICATIONS = "notifications"
CREDENTIALS = "credentials"
