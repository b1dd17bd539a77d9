import pathlib

import fitz
import PIL.Image

import qr_label_sheet.codes
import qr_label_sheet.config
import qr_label_sheet.layout
import qr_label_sheet.render


DPI = 300
INK_THRESHOLD = 240
EDGE_RATIO_LIMIT = 0.01


#============================================
def _render_pdf_first_page(path: pathlib.Path) -> PIL.Image.Image:
	"""
	Render the first page of a PDF to an image.

	Args:
		path: PDF path.

	Returns:
		PIL image.
	"""
	document = fitz.open(path)
	page = document[0]
	scale = DPI / 72.0
	matrix = fitz.Matrix(scale, scale)
	pixmap = page.get_pixmap(matrix=matrix, alpha=False)
	image = PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
	document.close()
	return image


#============================================
def _count_ink_ratio(gray: PIL.Image.Image, threshold: int) -> float:
	"""
	Compute the ink ratio for a grayscale strip.

	Args:
		gray: Grayscale image region.
		threshold: Pixel intensity threshold.

	Returns:
		Ink ratio.
	"""
	histogram = gray.histogram()
	total = sum(histogram)
	if total == 0:
		return 0.0
	ink = sum(histogram[:threshold])
	return ink / total


#============================================
def test_rendered_page_edge_strips(tmp_path: pathlib.Path) -> None:
	"""
	Smoke test a full page for ink bleeding onto cell edges.
	"""
	records = []
	for _index in range(qr_label_sheet.config.DEFAULT_GEOMETRY.cells_per_page):
		code = qr_label_sheet.codes.generate_short_code()
		records.append(
			qr_label_sheet.layout.LabelRecord(
				code=code,
				destination_url=qr_label_sheet.codes.build_destination_url("https://example.org", code),
			)
		)
	document = qr_label_sheet.render.build_label_document(records)
	output_pdf = tmp_path / "smoke.pdf"
	qr_label_sheet.render.write_document(document, output_pdf)

	image = _render_pdf_first_page(output_pdf)
	gray = image.convert("L")
	scale = DPI / 72.0
	strip = 2

	geometry = qr_label_sheet.config.DEFAULT_GEOMETRY
	total_ink = _count_ink_ratio(gray, INK_THRESHOLD)
	assert total_ink > 0.0

	violations = []
	for row in range(geometry.rows):
		for col in range(geometry.columns):
			x0 = int(round(col * geometry.cell_side * scale))
			x1 = min(gray.width, int(round((col + 1) * geometry.cell_side * scale)))
			y0 = int(round(row * geometry.cell_side * scale))
			y1 = min(gray.height, int(round((row + 1) * geometry.cell_side * scale)))
			if x1 <= x0 or y1 <= y0:
				continue
			left = gray.crop((x0, y0, x0 + strip, y1))
			right = gray.crop((x1 - strip, y0, x1, y1))
			top = gray.crop((x0, y0, x1, y0 + strip))
			bottom = gray.crop((x0, y1 - strip, x1, y1))
			for edge_name, edge in (
				("left", left),
				("right", right),
				("top", top),
				("bottom", bottom),
			):
				ratio = _count_ink_ratio(edge, INK_THRESHOLD)
				if ratio > EDGE_RATIO_LIMIT:
					violations.append(
						f"row {row} col {col} edge {edge_name} ratio {ratio:.3f}"
					)

	if violations:
		message = "Edge strip ink detected in rendered page:\n"
		message += "\n".join(violations[:10])
		raise AssertionError(message)


#============================================
def _boundary_ink(gray: PIL.Image.Image, geometry, scale: float) -> tuple[float, float]:
	"""
	Ink ratio along the first interior vertical and horizontal cell boundaries.

	Args:
		gray: Grayscale page image.
		geometry: Page geometry.
		scale: Pixels per point.

	Returns:
		Tuple of (vertical ratio, horizontal ratio).
	"""
	half = 2
	boundary_x = int(round(geometry.cell_side * scale))
	boundary_y = int(round(geometry.cell_side * scale))
	span = int(round(geometry.cell_side * scale))
	vertical = gray.crop((boundary_x - half, 0, boundary_x + half, span))
	horizontal = gray.crop((0, boundary_y - half, span, boundary_y + half))
	return (
		_count_ink_ratio(vertical, INK_THRESHOLD),
		_count_ink_ratio(horizontal, INK_THRESHOLD),
	)


#============================================
def test_outlines_draw_cut_guides_on_cell_boundaries(tmp_path: pathlib.Path, make_records, blank_encoder) -> None:
	"""
	Cut guides put ink on cell boundaries only when enabled.
	"""
	geometry = qr_label_sheet.config.DEFAULT_GEOMETRY
	records = make_records(4)
	scale = DPI / 72.0

	ratios = {}
	for draw_outlines in (True, False):
		sink = qr_label_sheet.render.ReportLabSink(draw_outlines=draw_outlines)
		content = qr_label_sheet.render.generate_label_sheet(records, geometry, blank_encoder, sink)
		output_pdf = tmp_path / f"outlines_{draw_outlines}.pdf"
		output_pdf.write_bytes(content)
		gray = _render_pdf_first_page(output_pdf).convert("L")
		ratios[draw_outlines] = _boundary_ink(gray, geometry, scale)

	for ratio in ratios[True]:
		assert ratio > 0.15
	for ratio in ratios[False]:
		assert ratio <= EDGE_RATIO_LIMIT
