"""
Cell placement and draw instruction planning.

Everything here is pure: placement depends only on the record index and
the page geometry, and the draw instructions depend only on the record,
its QR raster, and the sheet config. Coordinates use a top-left origin
with y growing downward, in points.
"""

# Standard Library
import dataclasses
import typing

# PIP3 modules
import reportlab.pdfbase.pdfmetrics

# local repo modules
import qr_label_sheet as qls
import qr_label_sheet.config


PageGeometry = qls.config.PageGeometry
SheetConfig = qls.config.SheetConfig

LABEL_CODE_GAP = qls.config.LABEL_CODE_GAP
CODE_CAPTION_GAP = qls.config.CODE_CAPTION_GAP
CODE_VERTICAL_RESERVE = qls.config.CODE_VERTICAL_RESERVE


@dataclasses.dataclass(frozen=True)
class LabelRecord:
	code: str
	destination_url: str


@dataclasses.dataclass(frozen=True)
class CellPlacement:
	index: int
	page: int
	position: int
	column: int
	row: int


@dataclasses.dataclass(frozen=True)
class TextInstruction:
	text: str
	x: float
	y: float
	width: float
	font_name: str
	font_size: float


@dataclasses.dataclass(frozen=True)
class ImageInstruction:
	raster: typing.Any
	x: float
	y: float
	size: float


@dataclasses.dataclass
class CellDrawing:
	record: LabelRecord
	placement: CellPlacement
	label: TextInstruction
	code: ImageInstruction
	caption: TextInstruction


@dataclasses.dataclass
class PageBatch:
	page: int
	cells: list[CellDrawing] = dataclasses.field(default_factory=list)


#============================================
def compute_placement(index: int, geometry: PageGeometry) -> CellPlacement:
	"""
	Compute the page, row and column of the index-th record.

	Args:
		index: Zero-based record index within the job.
		geometry: Page geometry.

	Returns:
		CellPlacement.
	"""
	page = index // geometry.cells_per_page
	position = index % geometry.cells_per_page
	return CellPlacement(
		index=index,
		page=page,
		position=position,
		column=position % geometry.columns,
		row=position // geometry.columns,
	)


#============================================
def count_pages(total: int, geometry: PageGeometry) -> int:
	"""
	Number of pages needed for total records.
	"""
	if total <= 0:
		return 0
	return (total + geometry.cells_per_page - 1) // geometry.cells_per_page


#============================================
def compute_cell_origin(placement: CellPlacement, geometry: PageGeometry) -> tuple[float, float]:
	"""
	Compute the padded top-left corner of a cell.

	Args:
		placement: Cell placement.
		geometry: Page geometry.

	Returns:
		Tuple of (x, y) in points from the page's top-left corner.
	"""
	x = placement.column * geometry.cell_side + geometry.padding
	y = placement.row * geometry.cell_side + geometry.padding
	return (x, y)


#============================================
def compute_code_size(geometry: PageGeometry, config: SheetConfig) -> float:
	"""
	Compute the drawn QR side length for a cell.

	The target size is clamped to the usable width and to the vertical
	space left after both text lines, so the code never overflows the
	padded cell.

	Args:
		geometry: Page geometry.
		config: Sheet config.

	Returns:
		QR side length in points.
	"""
	usable = geometry.usable_side
	remaining_height = usable - config.label_font_size - config.caption_font_size - CODE_VERTICAL_RESERVE
	return min(geometry.target_code_size, usable, remaining_height)


#============================================
def fit_font_size(text: str, font_name: str, font_size: float, min_size: float, width: float) -> float:
	"""
	Shrink a font size until the text fits the given width.

	Args:
		text: Text to fit.
		font_name: ReportLab font name.
		font_size: Preferred font size.
		min_size: Smallest allowed font size.
		width: Available width in points.

	Returns:
		Font size in points.
	"""
	text_width = reportlab.pdfbase.pdfmetrics.stringWidth(text, font_name, font_size)
	if text_width <= width or text_width <= 0.0:
		return font_size
	scaled = font_size * width / text_width
	return max(min_size, scaled)


#============================================
def build_cell_drawing(
	record: LabelRecord,
	raster: typing.Any,
	placement: CellPlacement,
	geometry: PageGeometry,
	config: SheetConfig,
) -> CellDrawing:
	"""
	Build the draw instructions for one record.

	Args:
		record: Label record.
		raster: QR raster for the record's destination URL.
		placement: Cell placement.
		geometry: Page geometry.
		config: Sheet config.

	Returns:
		CellDrawing.
	"""
	x, y = compute_cell_origin(placement, geometry)
	cell_width = geometry.usable_side

	label_text = record.code.upper()
	label_size = fit_font_size(
		label_text,
		config.label_font,
		config.label_font_size,
		config.label_font_min_size,
		cell_width,
	)
	label = TextInstruction(
		text=label_text,
		x=x,
		y=y,
		width=cell_width,
		font_name=config.label_font,
		font_size=label_size,
	)

	code_size = compute_code_size(geometry, config)
	code_y = y + config.label_font_size + LABEL_CODE_GAP
	code = ImageInstruction(
		raster=raster,
		x=x + (cell_width - code_size) / 2.0,
		y=code_y,
		size=code_size,
	)

	caption = TextInstruction(
		text=config.caption_text,
		x=x,
		y=code_y + code_size + CODE_CAPTION_GAP,
		width=cell_width,
		font_name=config.caption_font,
		font_size=config.caption_font_size,
	)
	return CellDrawing(record=record, placement=placement, label=label, code=code, caption=caption)


#============================================
def layout_pages(
	records: typing.Sequence[LabelRecord],
	rasters: typing.Sequence[typing.Any],
	geometry: PageGeometry,
	config: SheetConfig,
) -> list[PageBatch]:
	"""
	Group per-record draw instructions into page batches.

	Args:
		records: Ordered label records.
		rasters: QR rasters in the same order as records.
		geometry: Page geometry.
		config: Sheet config.

	Returns:
		Ordered list of PageBatch, one per page.
	"""
	if len(records) != len(rasters):
		raise ValueError(f"Got {len(rasters)} rasters for {len(records)} records")
	batches: list[PageBatch] = []
	for index, record in enumerate(records):
		placement = compute_placement(index, geometry)
		if placement.position == 0:
			batches.append(PageBatch(page=placement.page))
		drawing = build_cell_drawing(record, rasters[index], placement, geometry, config)
		batches[-1].cells.append(drawing)
	return batches
