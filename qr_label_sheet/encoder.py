"""
QR raster encoding.
"""

# PIP3 modules
import PIL.Image
import qrcode
import qrcode.constants
import qrcode.exceptions

# local repo modules
import qr_label_sheet as qls
import qr_label_sheet.errors


EncodingError = qls.errors.EncodingError


class QrEncoder:
	"""
	Encode text into a square black and white QR raster.

	Any object with a matching encode(text, size) method can be used
	in place of this class by the layout code.
	"""

	def __init__(self, error_correction: int = qrcode.constants.ERROR_CORRECT_M, border: int = 0):
		self.error_correction = error_correction
		self.border = border

	#============================================
	def encode(self, text: str, size: int) -> PIL.Image.Image:
		"""
		Encode text as a QR raster.

		Args:
			text: Text to encode, usually an absolute URL.
			size: Output side length in pixels.

		Returns:
			PIL image of size x size pixels.
		"""
		if not text:
			raise EncodingError("Cannot encode empty text")
		if size <= 0:
			raise EncodingError(f"Invalid raster size: {size}")
		qr = qrcode.QRCode(
			version=None,
			error_correction=self.error_correction,
			box_size=1,
			border=self.border,
		)
		try:
			qr.add_data(text)
			qr.make(fit=True)
		except (qrcode.exceptions.DataOverflowError, ValueError) as error:
			raise EncodingError(f"Cannot encode {text!r}: {error}") from error
		image: PIL.Image.Image = qr.make_image(fill_color="black", back_color="white").convert("1")
		return image.resize((size, size), PIL.Image.Resampling.NEAREST)
