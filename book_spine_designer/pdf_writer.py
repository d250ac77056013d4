"""
Minimal multi-page PDF writer for full-sheet JPEG pages.

Each page is one DCT image XObject scaled to fill the media box. Byte
offsets for the cross-reference table are recorded as objects are written.
"""

# Standard Library
import dataclasses
import io

# PIP3 modules
import PIL.Image
import pypdf

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.geometry


PDF_HEADER = b"%PDF-1.4\n"
CATALOG_OBJECT = 1
PAGES_OBJECT = 2
FIRST_PAGE_OBJECT = 3
OBJECTS_PER_PAGE = 3
XREF_OFFSET_WIDTH = 10


@dataclasses.dataclass(frozen=True)
class RasterPage:
	jpeg_bytes: bytes
	width_px: int
	height_px: int
	book_id: int | None = None


#============================================
def pad_offset(value: int) -> str:
	"""
	Zero-pad a byte offset for the cross-reference table.
	"""
	return str(value).zfill(XREF_OFFSET_WIDTH)


#============================================
def format_number(value: float) -> str:
	return f"{value:.2f}"


class PdfDocumentBuilder:
	"""
	Sequential PDF object writer that tracks byte offsets as it goes.
	"""

	def __init__(self):
		self.buffer = bytearray()
		self.offsets: dict[int, int] = {}

	@property
	def position(self) -> int:
		return len(self.buffer)

	def write(self, value: str | bytes) -> None:
		if isinstance(value, str):
			value = value.encode("latin-1")
		self.buffer.extend(value)

	def begin_object(self, number: int) -> None:
		"""
		Record the offset of an object header and write it.

		Args:
			number: Object number.
		"""
		if number in self.offsets:
			raise ValueError(f"Object {number} written twice.")
		self.offsets[number] = self.position
		self.write(f"{number} 0 obj\n")

	def write_object(self, number: int, body: str) -> None:
		self.begin_object(number)
		self.write(f"{body}\nendobj\n")

	def write_stream_object(self, number: int, dictionary: str, payload: bytes) -> None:
		"""
		Write a stream object whose /Length matches the payload exactly.

		Args:
			number: Object number.
			dictionary: Dictionary entries without /Length.
			payload: Stream bytes.
		"""
		entries = f"{dictionary} " if dictionary else ""
		self.begin_object(number)
		self.write(f"<< {entries}/Length {len(payload)} >>\nstream\n")
		self.write(payload)
		self.write("\nendstream\nendobj\n")

	def finish(self, root_object: int) -> bytes:
		"""
		Write the cross-reference table and trailer.

		Args:
			root_object: Catalog object number.

		Returns:
			Complete document bytes.
		"""
		total_objects = max(self.offsets, default=0)
		missing = [number for number in range(1, total_objects + 1) if number not in self.offsets]
		if missing:
			raise ValueError(f"Objects never written: {missing}")
		start_xref = self.position
		self.write(f"xref\n0 {total_objects + 1}\n")
		self.write("0000000000 65535 f \n")
		for number in range(1, total_objects + 1):
			self.write(f"{pad_offset(self.offsets[number])} 00000 n \n")
		self.write(f"trailer\n<< /Size {total_objects + 1} /Root {root_object} 0 R >>\n")
		self.write(f"startxref\n{start_xref}\n%%EOF\n")
		return bytes(self.buffer)


#============================================
def page_object_numbers(index: int) -> tuple[int, int, int]:
	"""
	Object numbers for the page, image and content stream of page index.
	"""
	page_number = FIRST_PAGE_OBJECT + index * OBJECTS_PER_PAGE
	return (page_number, page_number + 1, page_number + 2)


#============================================
def build_content_stream(page_width_points: str, page_height_points: str) -> bytes:
	"""
	Content stream that scales the image to fill the page.
	"""
	return f"q\n{page_width_points} 0 0 {page_height_points} 0 0 cm\n/Im0 Do\nQ\n".encode("latin-1")


#============================================
def build_multi_page_pdf(
	pages: list[RasterPage],
	page_width_mm: float,
	page_height_mm: float,
) -> bytes:
	"""
	Build a PDF with one full-bleed JPEG image per page.

	Args:
		pages: Page rasters in output order.
		page_width_mm: Page width in millimetres.
		page_height_mm: Page height in millimetres.

	Returns:
		PDF document bytes.
	"""
	width_points = format_number(bsd.geometry.mm_to_points(page_width_mm))
	height_points = format_number(bsd.geometry.mm_to_points(page_height_mm))
	media_box = f"[0 0 {width_points} {height_points}]"
	content_stream = build_content_stream(width_points, height_points)

	builder = PdfDocumentBuilder()
	builder.write(PDF_HEADER)
	builder.write_object(CATALOG_OBJECT, f"<< /Type /Catalog /Pages {PAGES_OBJECT} 0 R >>")

	kids = " ".join(f"{page_object_numbers(index)[0]} 0 R" for index in range(len(pages)))
	builder.write_object(PAGES_OBJECT, f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>")

	for index, page in enumerate(pages):
		page_number, image_number, content_number = page_object_numbers(index)
		builder.write_object(
			page_number,
			f"<< /Type /Page /Parent {PAGES_OBJECT} 0 R /MediaBox {media_box} "
			f"/Resources << /XObject << /Im0 {image_number} 0 R >> /ProcSet [/PDF /ImageC] >> "
			f"/Contents {content_number} 0 R >>",
		)
		builder.write_stream_object(
			image_number,
			f"/Type /XObject /Subtype /Image /Width {page.width_px} /Height {page.height_px} "
			"/ColorSpace /DeviceRGB /BitsPerComponent 8 /Filter /DCTDecode",
			page.jpeg_bytes,
		)
		builder.write_stream_object(content_number, "", content_stream)

	return builder.finish(CATALOG_OBJECT)


#============================================
def extract_page_previews(pdf_bytes: bytes) -> list[PIL.Image.Image]:
	"""
	Re-derive one preview raster per page from a built document.

	Args:
		pdf_bytes: PDF document bytes.

	Returns:
		One Pillow image per page, in page order.
	"""
	reader = pypdf.PdfReader(io.BytesIO(pdf_bytes))
	previews: list[PIL.Image.Image] = []
	for page in reader.pages:
		image_file = page.images[0]
		previews.append(image_file.image)
	return previews
