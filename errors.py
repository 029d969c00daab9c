"""
Domain errors raised by the membership services
"""


class MembershipError(Exception):
    """Base class for membership domain errors"""


class MemberNotFound(MembershipError):
    def __init__(self, user_id):
        super().__init__(f"Member {user_id} not found")
        self.user_id = user_id


class MemberAlreadyExists(MembershipError):
    def __init__(self, email):
        super().__init__(f"A member with email {email} already exists")
        self.email = email


class PushNotConfigured(MembershipError):
    """Raised when no push service has been attached to the app"""
