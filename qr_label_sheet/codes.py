"""
Short code generation and destination URLs.
"""

# Standard Library
import os
import secrets

# local repo modules
import qr_label_sheet as qls
import qr_label_sheet.config


SHORT_CODE_ALPHABET = qls.config.SHORT_CODE_ALPHABET
SHORT_CODE_LENGTH = qls.config.SHORT_CODE_LENGTH
DEFAULT_BASE_URL = qls.config.DEFAULT_BASE_URL
BASE_URL_ENV = qls.config.BASE_URL_ENV


#============================================
def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
	"""
	Generate a random short code from the fixed alphabet.

	Args:
		length: Number of characters.

	Returns:
		Short code string.
	"""
	return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


#============================================
def normalize_short_code(value: str) -> str:
	"""
	Normalize a scanned or typed short code.

	Args:
		value: Raw code.

	Returns:
		Trimmed, lowercase code.
	"""
	return value.strip().lower()


#============================================
def is_valid_short_code(value: str) -> bool:
	if len(value) != SHORT_CODE_LENGTH:
		return False
	return all(char in SHORT_CODE_ALPHABET for char in value)


#============================================
def resolve_base_url(base_url: str | None = None) -> str:
	"""
	Pick the base URL for new destination URLs.

	Args:
		base_url: Explicit base URL, if any.

	Returns:
		Base URL without a trailing slash.
	"""
	value = base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
	return value.rstrip("/")


#============================================
def build_destination_url(base_url: str, code: str) -> str:
	"""
	Build the public redirect URL for a short code.

	Args:
		base_url: Site base URL.
		code: Short code.

	Returns:
		Absolute URL of the form "<base>/r/<code>".
	"""
	return f"{base_url.rstrip('/')}/r/{code}"
