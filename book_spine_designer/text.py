"""
Large spine text: fonts, size limits, box geometry and word wrapping.
"""

# Standard Library
import dataclasses
import functools
import pathlib
import re
import typing

# PIP3 modules
import PIL.ImageFont
import reportlab

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.config
import book_spine_designer.geometry
import book_spine_designer.layout


LARGE_TEXT_MIN_SIZE_PT = bsd.config.LARGE_TEXT_MIN_SIZE_PT
LARGE_TEXT_DEFAULT_SIZE_PT = bsd.config.LARGE_TEXT_DEFAULT_SIZE_PT
LARGE_TEXT_HEIGHT_FRACTION = bsd.config.LARGE_TEXT_HEIGHT_FRACTION
LARGE_TEXT_WIDTH_FRACTION = bsd.config.LARGE_TEXT_WIDTH_FRACTION
LARGE_TEXT_LINE_HEIGHT = bsd.config.LARGE_TEXT_LINE_HEIGHT
DEFAULT_LARGE_TEXT = bsd.config.DEFAULT_LARGE_TEXT
DEFAULT_FONT = bsd.config.DEFAULT_FONT
CLEARANCE_SIDE_MM = bsd.config.CLEARANCE_SIDE_MM
CLEARANCE_TOP_MM = bsd.config.CLEARANCE_TOP_MM

StackMetrics = bsd.layout.StackMetrics
Rect = bsd.geometry.Rect
clamp = bsd.geometry.clamp

# TrueType files bundled with reportlab
REPORTLAB_FONT_DIR = pathlib.Path(reportlab.__file__).resolve().parent / "fonts"
FONT_OPTIONS = {
	"sans": "Vera.ttf",
	"sans-bold": "VeraBd.ttf",
	"sans-italic": "VeraIt.ttf",
	"sans-bold-italic": "VeraBI.ttf",
}

PARAGRAPH_SPLIT = re.compile(r"\r?\n")


@dataclasses.dataclass(frozen=True)
class LargeTextState:
	enabled: bool = False
	text: str = DEFAULT_LARGE_TEXT
	font: str = DEFAULT_FONT
	size_pt: float = LARGE_TEXT_DEFAULT_SIZE_PT
	max_size_pt: float = LARGE_TEXT_DEFAULT_SIZE_PT

	@property
	def is_visible(self) -> bool:
		return self.enabled and bool(self.text.strip())


#============================================
def resolve_font_path(font_key: str) -> pathlib.Path:
	"""
	Resolve a font key to a bundled TrueType path.

	Args:
		font_key: Key from FONT_OPTIONS. Unknown keys use the default font.

	Returns:
		Font file path.
	"""
	filename = FONT_OPTIONS.get(font_key, FONT_OPTIONS[DEFAULT_FONT])
	return REPORTLAB_FONT_DIR / filename


#============================================
@functools.lru_cache(maxsize=64)
def load_font(font_key: str, size_px: int) -> PIL.ImageFont.FreeTypeFont:
	"""
	Load a scalable font at a pixel size.

	Args:
		font_key: Key from FONT_OPTIONS.
		size_px: Font size in pixels.

	Returns:
		Pillow font. Falls back to Pillow's bundled scalable font when the
		TrueType file is not on disk.
	"""
	size_px = max(1, int(size_px))
	path = resolve_font_path(font_key)
	if path.is_file():
		return PIL.ImageFont.truetype(str(path), size_px)
	return PIL.ImageFont.load_default(size=size_px)


#============================================
def compute_max_text_size(min_height_mm: float) -> float:
	"""
	Largest text size allowed by the shortest spine.

	Args:
		min_height_mm: Shortest book height.

	Returns:
		Maximum size in points.
	"""
	if min_height_mm <= 0.0:
		return LARGE_TEXT_DEFAULT_SIZE_PT
	limit = bsd.geometry.mm_to_points(min_height_mm * LARGE_TEXT_HEIGHT_FRACTION)
	return max(LARGE_TEXT_MIN_SIZE_PT, limit)


#============================================
def clamp_text_size(state: LargeTextState, max_size_pt: float) -> LargeTextState:
	"""
	Re-clamp the text size after the size ceiling changed.
	"""
	size_pt = clamp(state.size_pt, LARGE_TEXT_MIN_SIZE_PT, max_size_pt)
	return dataclasses.replace(state, size_pt=size_pt, max_size_pt=max_size_pt)


#============================================
def large_text_box(metrics: StackMetrics) -> Rect:
	"""
	Text box spanning the spines, as tall as the shortest book.

	Args:
		metrics: Stack metrics.

	Returns:
		Rect in stack coordinates (relative to the required area).
	"""
	top = CLEARANCE_TOP_MM + (metrics.max_height_mm - metrics.min_height_mm) / 2.0
	return Rect(CLEARANCE_SIDE_MM, top, metrics.total_width_mm, metrics.min_height_mm)


#============================================
def wrap_text_into_lines(
	text: str,
	measure: typing.Callable[[str], float],
	max_width: float,
) -> list[str]:
	"""
	Wrap text at word boundaries while keeping explicit line breaks.

	A single word wider than max_width gets a line of its own. Blank
	paragraphs become empty lines except at the end.

	Args:
		text: Input text.
		measure: Returns the rendered width of a string.
		max_width: Maximum line width, in the units of measure.

	Returns:
		Wrapped lines.
	"""
	paragraphs = PARAGRAPH_SPLIT.split(text)
	lines: list[str] = []
	for index, paragraph in enumerate(paragraphs):
		words = paragraph.split()
		if not words:
			if index < len(paragraphs) - 1:
				lines.append("")
			continue
		current = words[0]
		for word in words[1:]:
			candidate = f"{current} {word}"
			if measure(candidate) <= max_width:
				current = candidate
				continue
			lines.append(current)
			current = word
		lines.append(current)
	return lines


#============================================
def layout_line_centers(line_count: int, line_height: float, center_y: float) -> list[float]:
	"""
	Vertical centers for a block of lines centered on center_y.

	Args:
		line_count: Number of lines.
		line_height: Distance between line centers.
		center_y: Center of the block.

	Returns:
		Center y for each line.
	"""
	block_height = line_height * line_count
	return [
		center_y + index * line_height - (block_height - line_height) / 2.0
		for index in range(line_count)
	]
