"""Domain errors raised by the directory services.

Services raise these and leave the transaction uncommitted; route modules
translate them to HTTP responses.  Each error carries a stable ``code`` that
clients can branch on.
"""

from __future__ import annotations


class HerbariumError(Exception):
	code = "herbarium_error"

	def __init__(self, message: str):
		super().__init__(message)
		self.message = message

	def as_detail(self) -> dict[str, str]:
		return {"error": self.code, "message": self.message}


class NotFoundError(HerbariumError, LookupError):
	code = "not_found"


class ConflictError(HerbariumError, ValueError):
	code = "conflict"


class AlreadyExistsError(ConflictError):
	code = "already_exists"


class PositionOccupiedError(ConflictError):
	code = "plant_position_already_occupied"


class AlreadyRemovedError(ConflictError):
	code = "plant_already_removed"


class ConstraintViolationError(HerbariumError, ValueError):
	"""A value rejected by a schema constraint (range check, enum, foreign key)."""

	code = "constraint_violation"


class UnknownPlantError(HerbariumError, ValueError):
	"""A pushed record names a plant that does not exist in its greenhouse."""

	code = "unknown_plant"
