"""
Rendering of label sheets to PDF.
"""

# Standard Library
import concurrent.futures
import dataclasses
import io
import json
import os
import pathlib
import typing

# PIP3 modules
import pypdf
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import qr_label_sheet as qls
import qr_label_sheet.config
import qr_label_sheet.encoder
import qr_label_sheet.errors
import qr_label_sheet.layout


PageGeometry = qls.config.PageGeometry
SheetConfig = qls.config.SheetConfig
SheetResult = qls.config.SheetResult
LabelRecord = qls.layout.LabelRecord
PageBatch = qls.layout.PageBatch
TextInstruction = qls.layout.TextInstruction
ImageInstruction = qls.layout.ImageInstruction

DEFAULT_GEOMETRY = qls.config.DEFAULT_GEOMETRY
DEFAULT_FILENAME = qls.config.DEFAULT_FILENAME
PDF_MEDIA_TYPE = qls.config.PDF_MEDIA_TYPE
PROGRESS_BAR_WIDTH = qls.config.PROGRESS_BAR_WIDTH
PROGRESS_UPDATE_EVERY = qls.config.PROGRESS_UPDATE_EVERY


class CodeEncoder(typing.Protocol):
	def encode(self, text: str, size: int) -> typing.Any:
		...


class DocumentSink(typing.Protocol):
	def render(self, batches: list[PageBatch], geometry: PageGeometry) -> bytes:
		...


@dataclasses.dataclass
class LabelSheetDocument:
	content: bytes
	filename: str = DEFAULT_FILENAME
	media_type: str = PDF_MEDIA_TYPE

	@property
	def content_length(self) -> int:
		return len(self.content)

	def headers(self) -> dict[str, str]:
		return {
			"Content-Type": self.media_type,
			"Content-Disposition": f'attachment; filename="{self.filename}"',
			"Content-Length": str(self.content_length),
		}


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


class ReportLabSink:
	"""
	Draw page batches onto a ReportLab canvas held in memory.
	"""

	def __init__(self, title: str | None = None, invariant: bool = False, draw_outlines: bool = False):
		self.title = title
		self.invariant = invariant
		self.draw_outlines = draw_outlines

	#============================================
	def render(self, batches: list[PageBatch], geometry: PageGeometry) -> bytes:
		"""
		Render page batches to PDF bytes.

		Args:
			batches: Ordered page batches.
			geometry: Page geometry.

		Returns:
			Complete PDF document bytes.
		"""
		buffer = io.BytesIO()
		pdf = reportlab.pdfgen.canvas.Canvas(
			buffer,
			pagesize=(geometry.page_width, geometry.page_height),
			invariant=1 if self.invariant else 0,
		)
		if self.title:
			pdf.setTitle(self.title)
		for batch in batches:
			if self.draw_outlines:
				self.draw_cell_outlines(pdf, geometry)
			for cell in batch.cells:
				self.draw_text(pdf, cell.label, geometry)
				self.draw_image(pdf, cell.code, geometry)
				self.draw_text(pdf, cell.caption, geometry)
			pdf.showPage()
		pdf.save()
		return buffer.getvalue()

	#============================================
	def draw_text(
		self,
		pdf: reportlab.pdfgen.canvas.Canvas,
		instruction: TextInstruction,
		geometry: PageGeometry,
	) -> None:
		"""
		Draw one centered line of text with its top edge at instruction.y.
		"""
		ascent = reportlab.pdfbase.pdfmetrics.getAscent(instruction.font_name) * instruction.font_size / 1000.0
		baseline_y = geometry.page_height - instruction.y - ascent
		center_x = instruction.x + instruction.width / 2.0
		pdf.setFont(instruction.font_name, instruction.font_size)
		pdf.drawCentredString(center_x, baseline_y, instruction.text)

	#============================================
	def draw_image(
		self,
		pdf: reportlab.pdfgen.canvas.Canvas,
		instruction: ImageInstruction,
		geometry: PageGeometry,
	) -> None:
		image_reader = reportlab.lib.utils.ImageReader(instruction.raster)
		pdf_y = geometry.page_height - instruction.y - instruction.size
		pdf.drawImage(
			image_reader,
			instruction.x,
			pdf_y,
			width=instruction.size,
			height=instruction.size,
		)

	#============================================
	def draw_cell_outlines(self, pdf: reportlab.pdfgen.canvas.Canvas, geometry: PageGeometry) -> None:
		"""
		Draw light cut guides around every cell of the current page.
		"""
		pdf.setLineWidth(0.3)
		pdf.setStrokeColorRGB(0.7, 0.7, 0.7)
		for row in range(geometry.rows):
			for col in range(geometry.columns):
				cell_x = col * geometry.cell_side
				cell_y = geometry.page_height - (row + 1) * geometry.cell_side
				pdf.rect(cell_x, cell_y, geometry.cell_side, geometry.cell_side, stroke=1, fill=0)


#============================================
def encode_record(encoder: CodeEncoder, record: LabelRecord, size: int) -> typing.Any:
	"""
	Encode one record's destination URL, tagging failures with its code.

	Args:
		encoder: QR encoder.
		record: Label record.
		size: Raster side length in pixels.

	Returns:
		Encoded raster.
	"""
	try:
		return encoder.encode(record.destination_url, size)
	except qls.errors.EncodingError as error:
		if error.code is None:
			error.code = record.code
		raise


#============================================
def render_code_rasters(
	records: typing.Sequence[LabelRecord],
	encoder: CodeEncoder,
	size: int,
	workers: int = 1,
	verbose: bool = False,
) -> list[typing.Any]:
	"""
	Encode QR rasters for all records, keeping input order.

	The first failure aborts the whole job.

	Args:
		records: Ordered label records.
		encoder: QR encoder.
		size: Raster side length in pixels.
		workers: Thread count; 1 encodes inline.
		verbose: Print a progress bar.

	Returns:
		Rasters in the same order as records.
	"""
	total = len(records)
	rasters: list[typing.Any] = []
	if verbose and total > 0:
		print_progress("QR codes", 0, total)

	def collect(results: typing.Iterable[typing.Any]) -> None:
		for index, raster in enumerate(results, start=1):
			rasters.append(raster)
			if verbose and (index % PROGRESS_UPDATE_EVERY == 0 or index == total):
				print_progress("QR codes", index, total)

	if workers > 1:
		with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
			collect(executor.map(lambda record: encode_record(encoder, record, size), records))
	else:
		collect(encode_record(encoder, record, size) for record in records)
	if verbose and total > 0:
		print()
	return rasters


#============================================
def plan_label_sheet(
	records: typing.Sequence[LabelRecord],
	geometry: PageGeometry = DEFAULT_GEOMETRY,
	encoder: CodeEncoder | None = None,
	config: SheetConfig | None = None,
	verbose: bool = False,
) -> list[PageBatch]:
	"""
	Encode and lay out records without producing a document.

	Args:
		records: Ordered label records.
		geometry: Page geometry.
		encoder: QR encoder, defaults to QrEncoder.
		config: Sheet config, defaults to the printed tag stock config.
		verbose: Print a progress bar while encoding.

	Returns:
		Ordered page batches.
	"""
	if not records:
		raise qls.errors.NothingToRenderError("No records to render")
	if encoder is None:
		encoder = qls.encoder.QrEncoder()
	if config is None:
		config = qls.config.build_default_sheet_config()
	rasters = render_code_rasters(records, encoder, config.raster_pixels, config.workers, verbose)
	return qls.layout.layout_pages(records, rasters, geometry, config)


#============================================
def generate_label_sheet(
	records: typing.Sequence[LabelRecord],
	geometry: PageGeometry = DEFAULT_GEOMETRY,
	encoder: CodeEncoder | None = None,
	sink: DocumentSink | None = None,
	config: SheetConfig | None = None,
	verbose: bool = False,
) -> bytes:
	"""
	Generate a paginated PDF of QR labels.

	Args:
		records: Ordered label records, at least one.
		geometry: Page geometry.
		encoder: QR encoder, defaults to QrEncoder.
		sink: Document sink, defaults to ReportLabSink.
		config: Sheet config.
		verbose: Print a progress bar while encoding.

	Returns:
		PDF bytes.
	"""
	if config is None:
		config = qls.config.build_default_sheet_config()
	batches = plan_label_sheet(records, geometry, encoder, config, verbose)
	if sink is None:
		sink = ReportLabSink(title=config.title, invariant=config.invariant)
	return sink.render(batches, geometry)


#============================================
def build_label_document(
	records: typing.Sequence[LabelRecord],
	geometry: PageGeometry = DEFAULT_GEOMETRY,
	encoder: CodeEncoder | None = None,
	sink: DocumentSink | None = None,
	config: SheetConfig | None = None,
	verbose: bool = False,
) -> LabelSheetDocument:
	"""
	Generate a label sheet and wrap it for transport.

	Returns:
		LabelSheetDocument with the fully materialized PDF.
	"""
	if config is None:
		config = qls.config.build_default_sheet_config()
	content = generate_label_sheet(records, geometry, encoder, sink, config, verbose)
	return LabelSheetDocument(content=content, filename=config.filename)


#============================================
def count_pdf_pages(content: bytes) -> int:
	"""
	Count the pages of a PDF byte stream.

	Args:
		content: PDF bytes.

	Returns:
		Page count.
	"""
	reader = pypdf.PdfReader(io.BytesIO(content))
	return len(reader.pages)


#============================================
def write_document(document: LabelSheetDocument, output_path: pathlib.Path) -> None:
	"""
	Write a document to disk, replacing any existing file only on success.

	Args:
		document: Finished label sheet document.
		output_path: Output PDF path.
	"""
	temp_path = output_path.with_name(output_path.name + ".part")
	try:
		with temp_path.open("wb") as handle:
			handle.write(document.content)
		os.replace(temp_path, output_path)
	except OSError as error:
		if temp_path.exists():
			temp_path.unlink()
		raise qls.errors.TransportError(f"Could not write {output_path}: {error}") from error


#============================================
def summarize_document(
	records: typing.Sequence[LabelRecord],
	document: LabelSheetDocument,
	geometry: PageGeometry,
) -> SheetResult:
	"""
	Read the finished document back and check its page count.

	Args:
		records: Records placed on the sheet.
		document: Finished label sheet document.
		geometry: Page geometry.

	Returns:
		SheetResult.
	"""
	pages = count_pdf_pages(document.content)
	expected = qls.layout.count_pages(len(records), geometry)
	if pages != expected:
		raise qls.errors.LabelSheetError(
			f"Document has {pages} pages, expected {expected} for {len(records)} labels"
		)
	return SheetResult(
		total_labels=len(records),
		pages=pages,
		cells_per_page=geometry.cells_per_page,
		byte_length=document.content_length,
	)


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	records: typing.Sequence[LabelRecord],
	result: SheetResult,
	geometry: PageGeometry,
	config: SheetConfig,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		records: Records placed on the sheet.
		result: Sheet result.
		geometry: Page geometry.
		config: Sheet config.
	"""
	data = {
		"codes": [record.code for record in records],
		"total_labels": result.total_labels,
		"pages": result.pages,
		"cells_per_page": result.cells_per_page,
		"byte_length": result.byte_length,
		"layout": {
			"page_width": geometry.page_width,
			"page_height": geometry.page_height,
			"cell_side": geometry.cell_side,
			"columns": geometry.columns,
			"rows": geometry.rows,
			"padding": geometry.padding,
			"code_raster_pixels": config.raster_pixels,
		},
		"fonts": {
			"label": config.label_font,
			"label_size": config.label_font_size,
			"caption": config.caption_font,
			"caption_size": config.caption_font_size,
		},
	}
	try:
		with manifest_path.open("w", encoding="utf-8") as handle:
			json.dump(data, handle, indent=2, sort_keys=True)
	except OSError as error:
		raise qls.errors.TransportError(f"Could not write {manifest_path}: {error}") from error
