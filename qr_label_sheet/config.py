"""
Shared configuration and constants.
"""

import dataclasses
import math


POINTS_PER_INCH = 72.0
CM_PER_INCH = 2.54

A4_WIDTH = 595.28
A4_HEIGHT = 841.89

DEFAULT_CELL_CM = 1.5
DEFAULT_PADDING = 2.0
TARGET_CODE_RATIO = 0.7

DEFAULT_FONT_REGULAR = "Helvetica"
LABEL_FONT_SIZE = 7.0
LABEL_FONT_MIN_SIZE = 4.0
CAPTION_FONT_SIZE = 5.0
CAPTION_TEXT = "Scan"
LABEL_CODE_GAP = 2.0
CODE_CAPTION_GAP = 1.0
# gaps around the code plus one point of slack
CODE_VERTICAL_RESERVE = 4.0

CODE_RASTER_PIXELS = 100

DEFAULT_FILENAME = "petpaw-qr-labels.pdf"
PDF_MEDIA_TYPE = "application/pdf"
DEFAULT_TITLE = "QR labels"

PROGRESS_BAR_WIDTH = 20
PROGRESS_UPDATE_EVERY = 10

SHORT_CODE_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
SHORT_CODE_LENGTH = 8
DEFAULT_BASE_URL = "http://localhost:3000"
BASE_URL_ENV = "QR_LABEL_BASE_URL"

BATCH_MAX = 500
SELECT_HARD_CAP = 2000
SELECT_FALLBACK_COUNT = 50
SELECT_DEFAULT_UNPRINTED = 500
SELECT_DEFAULT_ALL = 200
STATS_RECENT_LIMIT = 50
INVENTORY_VERSION = 1


@dataclasses.dataclass(frozen=True)
class PageGeometry:
	page_width: float
	page_height: float
	cell_side: float
	columns: int
	rows: int
	cells_per_page: int
	padding: float = DEFAULT_PADDING

	@property
	def usable_side(self) -> float:
		return self.cell_side - 2.0 * self.padding

	@property
	def target_code_size(self) -> float:
		return float(math.floor(self.cell_side * TARGET_CODE_RATIO))


@dataclasses.dataclass
class SheetConfig:
	label_font: str
	label_font_size: float
	label_font_min_size: float
	caption_font: str
	caption_font_size: float
	caption_text: str
	raster_pixels: int
	title: str
	filename: str
	workers: int
	invariant: bool


@dataclasses.dataclass
class SheetResult:
	total_labels: int
	pages: int
	cells_per_page: int
	byte_length: int


#============================================
def cm_to_points(value: float) -> float:
	"""
	Convert centimeters to points.

	Args:
		value: Centimeter value.

	Returns:
		Points value.
	"""
	return value / CM_PER_INCH * POINTS_PER_INCH


#============================================
def build_page_geometry(
	page_width: float = A4_WIDTH,
	page_height: float = A4_HEIGHT,
	cell_cm: float = DEFAULT_CELL_CM,
	padding: float = DEFAULT_PADDING,
) -> PageGeometry:
	"""
	Derive a consistent page geometry from page and cell sizes.

	The cell must fit on the page at least once in each direction;
	this is not checked here.

	Args:
		page_width: Page width in points.
		page_height: Page height in points.
		cell_cm: Cell side in centimeters.
		padding: Inset applied to all four sides of a cell.

	Returns:
		PageGeometry.
	"""
	cell_side = cm_to_points(cell_cm)
	columns = int(math.floor(page_width / cell_side))
	rows = int(math.floor(page_height / cell_side))
	return PageGeometry(
		page_width=page_width,
		page_height=page_height,
		cell_side=cell_side,
		columns=columns,
		rows=rows,
		cells_per_page=columns * rows,
		padding=padding,
	)


#============================================
def build_default_sheet_config() -> SheetConfig:
	"""
	Build the sheet config used for printed tag stock.

	Returns:
		SheetConfig.
	"""
	return SheetConfig(
		label_font=DEFAULT_FONT_REGULAR,
		label_font_size=LABEL_FONT_SIZE,
		label_font_min_size=LABEL_FONT_MIN_SIZE,
		caption_font=DEFAULT_FONT_REGULAR,
		caption_font_size=CAPTION_FONT_SIZE,
		caption_text=CAPTION_TEXT,
		raster_pixels=CODE_RASTER_PIXELS,
		title=DEFAULT_TITLE,
		filename=DEFAULT_FILENAME,
		workers=1,
		invariant=False,
	)


DEFAULT_GEOMETRY = build_page_geometry()
