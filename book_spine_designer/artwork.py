"""
Artwork decoding.
"""

# Standard Library
import dataclasses
import io
import pathlib

# PIP3 modules
import PIL.Image

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.errors


@dataclasses.dataclass(frozen=True)
class ArtworkImage:
	image: PIL.Image.Image
	width_px: int
	height_px: int


#============================================
def _to_artwork(image: PIL.Image.Image) -> ArtworkImage:
	image.load()
	if image.mode != "RGB":
		image = image.convert("RGB")
	return ArtworkImage(image=image, width_px=image.width, height_px=image.height)


#============================================
def decode_artwork(data: bytes, source: str = "<bytes>") -> ArtworkImage | None:
	"""
	Decode artwork bytes.

	Args:
		data: Encoded image bytes.
		source: Name used in the warning message.

	Returns:
		ArtworkImage, or None when the data cannot be decoded.
	"""
	try:
		image = PIL.Image.open(io.BytesIO(data))
		return _to_artwork(image)
	except (OSError, ValueError, PIL.Image.DecompressionBombError) as error:
		print(f"Artwork unavailable ({source}): {error}")
		return None


#============================================
def load_artwork(path: pathlib.Path) -> ArtworkImage | None:
	"""
	Load and decode an artwork file.

	Args:
		path: Image path.

	Returns:
		ArtworkImage, or None when the file is missing or not an image.
	"""
	try:
		data = pathlib.Path(path).read_bytes()
	except OSError as error:
		print(f"Artwork unavailable ({path}): {error}")
		return None
	return decode_artwork(data, source=str(path))


#============================================
def require_artwork(artwork: ArtworkImage | None, source: str) -> ArtworkImage:
	"""
	Turn the no-artwork signal into an error for callers that need an image.

	Args:
		artwork: Decoded artwork or None.
		source: Name used in the error message.

	Returns:
		The artwork.

	Raises:
		ArtworkUnavailableError: When artwork is None.
	"""
	if artwork is None:
		raise bsd.errors.ArtworkUnavailableError(f"Artwork could not be decoded: {source}")
	return artwork
