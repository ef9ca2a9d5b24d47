# garden_backend/errors.py
"""Error kinds raised by the garden core.

Every error carries a ``reason`` code so callers can render precise feedback.
"""


class GardenError(Exception):
    kind = "GardenError"
    status_code = 400

    def __init__(self, reason, message=None):
        self.reason = reason
        self.message = message or reason
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.kind, "reason": self.reason, "detail": self.message}


class ValidationError(GardenError):
    kind = "ValidationError"
    status_code = 400


class StateConflictError(GardenError):
    kind = "StateConflictError"
    status_code = 409


class AuthorizationError(GardenError):
    kind = "AuthorizationError"
    status_code = 403


class NotFoundError(GardenError):
    kind = "NotFoundError"
    status_code = 404


class ConcurrencyConflict(GardenError):
    kind = "ConcurrencyConflict"
    status_code = 503


class InvariantViolation(GardenError):
    kind = "InvariantViolation"
    status_code = 500


# Reason codes
INVALID_POSITION = "InvalidPosition"
INVALID_AMOUNT = "InvalidAmount"
INVALID_SIZE = "InvalidSize"
INVALID_UPGRADE = "InvalidUpgrade"
INVALID_ENVIRONMENT = "InvalidEnvironment"

SLOT_OCCUPIED = "SlotOccupied"
NOT_HARVESTABLE = "NotHarvestable"
COOLDOWN_ACTIVE = "CooldownActive"
WATER_FULL = "WaterFull"
PLANT_WITHERED = "PlantWithered"
UPGRADE_INSTALLED = "UpgradeInstalled"

NOT_OWNER = "NotOwner"
LEVEL_TOO_LOW = "LevelTooLow"

GARDEN_NOT_FOUND = "GardenNotFound"
PLANT_NOT_FOUND = "PlantNotFound"
PLANT_TYPE_NOT_FOUND = "PlantTypeNotFound"
OWNER_NOT_FOUND = "OwnerNotFound"

VERSION_MISMATCH = "VersionMismatch"
