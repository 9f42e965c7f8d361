from ninja_extra.throttling import AnonRateThrottle, UserRateThrottle


class AnonDefaultThrottle(AnonRateThrottle):
    rate = "60/min"


class UserDefaultThrottle(UserRateThrottle):
    rate = "100/min"


class BookingThrottle(AnonRateThrottle):
    rate = "20/min"


class WaitlistThrottle(AnonRateThrottle):
    rate = "10/min"


class WriteThrottle(UserRateThrottle):
    rate = "100/min"
