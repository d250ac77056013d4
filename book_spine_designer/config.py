"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses

# PIP3 modules
import reportlab.lib.pagesizes
import reportlab.lib.units


POINTS_PER_INCH = 72.0
MM_PER_INCH = 25.4
POINTS_PER_MM = reportlab.lib.units.mm
CM_TO_MM = 10.0

GAP_MM = 2.0
CLEARANCE_SIDE_MM = 20.0
CLEARANCE_TOP_MM = 2.0
CLEARANCE_BOTTOM_MM = 2.0
ART_SAFE_MARGIN_SIDE_MM = 10.0
ART_SAFE_MARGIN_VERTICAL_MM = 2.0
MAX_BOOK_HEIGHT_MM = 260.0

# 11x17 in sheet turned landscape
SHEET_WIDTH_POINTS, SHEET_HEIGHT_POINTS = reportlab.lib.pagesizes.landscape(
	reportlab.lib.pagesizes.ELEVENSEVENTEEN
)
SHEET_WIDTH_MM = SHEET_WIDTH_POINTS / POINTS_PER_MM
SHEET_HEIGHT_MM = SHEET_HEIGHT_POINTS / POINTS_PER_MM

PDF_RENDER_SCALE = 5.0
ARTWORK_PIXELS_PER_MM = 2.0
ART_CLIP_OVERHANG_MM = 2.0
JPEG_QUALITY = 95
ZOOM_MAX = 1.25

WATERMARK_TEXT = "SAMPLE"
WATERMARK_ANGLE = 12.0
WATERMARK_OPACITY = 0.1
WATERMARK_COLOR = "#0F172A"
WATERMARK_SIZE_MM = 60.0

OUTLINE_WIDTH_MM = 0.4
LABEL_CHIP_WIDTH_FRACTION = 0.9
LABEL_CHIP_HEIGHT_MM = 7.0
LABEL_CHIP_BOTTOM_MM = 2.0
LABEL_CHIP_TEXT_MM = 5.5
LABEL_CHIP_FILL = "#FFFFFF"
LABEL_CHIP_FILL_OPACITY = 0.85
LABEL_CHIP_TEXT_COLOR = "#0F172A"
LABEL_CHIP_TEXT_OPACITY = 0.75

LARGE_TEXT_MIN_SIZE_PT = 36.0
LARGE_TEXT_DEFAULT_SIZE_PT = 96.0
LARGE_TEXT_HEIGHT_FRACTION = 0.8
LARGE_TEXT_WIDTH_FRACTION = 0.92
LARGE_TEXT_LINE_HEIGHT = 1.1
LARGE_TEXT_COLOR = "#F8FAFC"
LARGE_TEXT_SHADOW_COLOR = "#0F172A"
LARGE_TEXT_SHADOW_OPACITY = 0.35
LARGE_TEXT_SHADOW_BLUR_MM = 4.0
DEFAULT_LARGE_TEXT = "Collection Title"
DEFAULT_FONT = "sans"

PROGRESS_BAR_WIDTH = 20
PROGRESS_UPDATE_EVERY = 1


@dataclasses.dataclass
class RenderConfig:
	sheet_width_mm: float
	sheet_height_mm: float
	scale: float
	jpeg_quality: int
	clip_overhang_mm: float
	draw_watermark: bool
	draw_outlines: bool
	verbose: bool


@dataclasses.dataclass
class RenderResult:
	pdf_bytes: bytes
	pages: list
	generation: int


#============================================
def build_render_config(
	draw_watermark: bool = True,
	draw_outlines: bool = True,
	verbose: bool = False,
) -> RenderConfig:
	"""
	Build a render config from the fixed sheet constants.

	Args:
		draw_watermark: Whether to paint the sample watermark.
		draw_outlines: Whether to stroke spine outlines and label chips.
		verbose: Print progress while rendering.

	Returns:
		RenderConfig.
	"""
	return RenderConfig(
		sheet_width_mm=SHEET_WIDTH_MM,
		sheet_height_mm=SHEET_HEIGHT_MM,
		scale=PDF_RENDER_SCALE,
		jpeg_quality=JPEG_QUALITY,
		clip_overhang_mm=ART_CLIP_OVERHANG_MM,
		draw_watermark=draw_watermark,
		draw_outlines=draw_outlines,
		verbose=verbose,
	)
