import math

import pytest

import qr_label_sheet.config
import qr_label_sheet.layout


GEOMETRY = qr_label_sheet.config.DEFAULT_GEOMETRY
EPSILON = 0.001


#============================================
def compute_cell_box(row: int, col: int) -> tuple[float, float, float, float]:
	"""
	Compute the bounding box for a cell slot, top-left origin.

	Args:
		row: Row index.
		col: Column index.

	Returns:
		Tuple of (x0, y0, x1, y1).
	"""
	x0 = col * GEOMETRY.cell_side
	y0 = row * GEOMETRY.cell_side
	return (x0, y0, x0 + GEOMETRY.cell_side, y0 + GEOMETRY.cell_side)


#============================================
def test_a4_grid_counts() -> None:
	"""
	A4 with 1.5 cm cells packs 14 columns by 19 rows.
	"""
	assert GEOMETRY.cell_side == pytest.approx(42.5197, abs=1e-3)
	assert GEOMETRY.columns == 14
	assert GEOMETRY.rows == 19
	assert GEOMETRY.cells_per_page == 266
	assert GEOMETRY.padding == 2.0
	assert GEOMETRY.target_code_size == 29.0


#============================================
def test_build_page_geometry_is_consistent() -> None:
	geometry = qr_label_sheet.config.build_page_geometry(200.0, 100.0, 2.0, 1.0)
	cell_side = 2.0 / 2.54 * 72.0
	assert geometry.columns == math.floor(200.0 / cell_side)
	assert geometry.rows == math.floor(100.0 / cell_side)
	assert geometry.cells_per_page == geometry.columns * geometry.rows
	assert geometry.usable_side == pytest.approx(cell_side - 2.0)


#============================================
def test_grid_boxes_within_page() -> None:
	"""
	Ensure all cell slots are on-page.
	"""
	for row in range(GEOMETRY.rows):
		for col in range(GEOMETRY.columns):
			x0, y0, x1, y1 = compute_cell_box(row, col)
			assert 0.0 <= x0 < x1 <= GEOMETRY.page_width + EPSILON
			assert 0.0 <= y0 < y1 <= GEOMETRY.page_height + EPSILON


#============================================
def test_grid_boxes_non_overlapping() -> None:
	"""
	Ensure adjacent slots do not overlap.
	"""
	for col in range(GEOMETRY.columns - 1):
		left_box = compute_cell_box(0, col)
		right_box = compute_cell_box(0, col + 1)
		assert right_box[0] >= left_box[2] - EPSILON

	for row in range(GEOMETRY.rows - 1):
		upper_box = compute_cell_box(row, 0)
		lower_box = compute_cell_box(row + 1, 0)
		assert lower_box[1] >= upper_box[3] - EPSILON


#============================================
def test_code_size_clamped_to_remaining_height() -> None:
	"""
	The QR code shrinks to the space left after both text lines.
	"""
	config = qr_label_sheet.config.build_default_sheet_config()
	size = qr_label_sheet.layout.compute_code_size(GEOMETRY, config)
	remaining = GEOMETRY.usable_side - 7.0 - 5.0 - 4.0
	assert size == pytest.approx(remaining)
	assert size < GEOMETRY.target_code_size


#============================================
def test_code_size_uses_target_when_cell_is_large() -> None:
	geometry = qr_label_sheet.config.build_page_geometry(cell_cm=5.0)
	config = qr_label_sheet.config.build_default_sheet_config()
	size = qr_label_sheet.layout.compute_code_size(geometry, config)
	assert size == geometry.target_code_size


#============================================
def test_cell_content_within_padded_bounds(blank_encoder) -> None:
	"""
	Every instruction of every cell on a full page stays inside the padded cell.
	"""
	config = qr_label_sheet.config.build_default_sheet_config()
	record = qr_label_sheet.layout.LabelRecord(code="mmmmmmmm", destination_url="https://example.org/r/mmmmmmmm")
	raster = blank_encoder.encode(record.destination_url, config.raster_pixels)
	for index in range(GEOMETRY.cells_per_page):
		placement = qr_label_sheet.layout.compute_placement(index, GEOMETRY)
		drawing = qr_label_sheet.layout.build_cell_drawing(record, raster, placement, GEOMETRY, config)
		x0, y0, x1, y1 = compute_cell_box(placement.row, placement.column)
		inner = (
			x0 + GEOMETRY.padding,
			y0 + GEOMETRY.padding,
			x1 - GEOMETRY.padding,
			y1 - GEOMETRY.padding,
		)
		code = drawing.code
		assert inner[0] - EPSILON <= code.x
		assert code.x + code.size <= inner[2] + EPSILON
		assert inner[1] - EPSILON <= code.y
		caption_bottom = drawing.caption.y + drawing.caption.font_size
		assert caption_bottom <= inner[3] + EPSILON
		for text in (drawing.label, drawing.caption):
			assert text.x == pytest.approx(inner[0])
			assert text.x + text.width == pytest.approx(inner[2])


#============================================
def test_wide_label_text_shrinks_to_fit() -> None:
	config = qr_label_sheet.config.build_default_sheet_config()
	size = qr_label_sheet.layout.fit_font_size(
		"MMMMMMMM",
		config.label_font,
		config.label_font_size,
		config.label_font_min_size,
		GEOMETRY.usable_side,
	)
	assert config.label_font_min_size <= size < config.label_font_size
	narrow = qr_label_sheet.layout.fit_font_size(
		"AB12CD34",
		config.label_font,
		config.label_font_size,
		config.label_font_min_size,
		GEOMETRY.usable_side,
	)
	assert narrow == config.label_font_size
