"""
Exception types for label sheet generation and the tag inventory.
"""


class LabelSheetError(Exception):
	"""
	Base class for all label sheet failures.
	"""


class InputError(LabelSheetError):
	"""
	Missing or invalid input, rejected before any drawing begins.
	"""


class NothingToRenderError(InputError):
	"""
	The record list is empty.
	"""


class EncodingError(LabelSheetError):
	"""
	A destination URL could not be turned into a QR raster.
	"""

	def __init__(self, message: str, code: str | None = None):
		super().__init__(message)
		self.code = code


class TransportError(LabelSheetError):
	"""
	The finished byte stream could not be written out.
	"""


class InventoryError(LabelSheetError):
	"""
	The inventory file is unreadable or malformed.
	"""


class ClaimError(LabelSheetError):
	"""
	A short code cannot be claimed.
	"""
