"""
Pytest configuration for local imports.
"""

# Standard Library
import os
import sys

# PIP3 modules
import PIL.Image
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()
import qr_label_sheet.layout


class BlankEncoder:
	"""
	Encoder stand-in that returns white rasters and records its calls.
	"""

	def __init__(self):
		self.calls: list[tuple[str, int]] = []

	def encode(self, text: str, size: int) -> PIL.Image.Image:
		self.calls.append((text, size))
		return PIL.Image.new("L", (size, size), 255)


#============================================
@pytest.fixture
def blank_encoder() -> BlankEncoder:
	return BlankEncoder()


#============================================
@pytest.fixture
def make_records():
	"""
	Factory for label records with distinct codes.
	"""
	def factory(count: int) -> list[qr_label_sheet.layout.LabelRecord]:
		return [
			qr_label_sheet.layout.LabelRecord(
				code=f"c{index:07d}",
				destination_url=f"https://example.org/r/c{index:07d}",
			)
			for index in range(count)
		]
	return factory
