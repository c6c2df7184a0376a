# ecocreds/services/errors.py


class EcoCredsError(Exception):
    """Base for every rejection raised by the loyalty and checkout core."""
    code = "ECOCREDS_ERROR"
    http_status = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_api(self) -> dict:
        return {"code": self.code, **self.details}


class InvalidCart(EcoCredsError):
    # empty or malformed cart; the shopper has to fix the cart first
    code = "INVALID_CART"
    http_status = 422


class InvalidRedemption(EcoCredsError):
    # requested points exceed what can be redeemed on this order
    code = "INVALID_REDEMPTION"
    http_status = 422


class StaleInstrument(EcoCredsError):
    # flat credit already consumed, or not held by the account
    code = "STALE_INSTRUMENT"
    http_status = 409


class InsufficientPoints(EcoCredsError):
    # a negative delta larger than the balance; callers must clamp before spending
    code = "INSUFFICIENT_POINTS"
    http_status = 409


class RewardUnavailable(EcoCredsError):
    code = "REWARD_UNAVAILABLE"
    http_status = 404
