"""
Per-book page rendering.

Every page centers one spine on the sheet. The artwork and the large text
are shifted by the same delta that re-centers the spine, so their position
relative to the stack is identical across pages.
"""

# Standard Library
import threading

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.artwork
import book_spine_designer.bounds
import book_spine_designer.config
import book_spine_designer.errors
import book_spine_designer.geometry
import book_spine_designer.layout
import book_spine_designer.pdf_writer
import book_spine_designer.surface
import book_spine_designer.text


RenderConfig = bsd.config.RenderConfig
StackLayout = bsd.layout.StackLayout
PlacedRect = bsd.layout.PlacedRect
ArtworkBounds = bsd.bounds.ArtworkBounds
ResolvedArtwork = bsd.bounds.ResolvedArtwork
LargeTextState = bsd.text.LargeTextState
ArtworkImage = bsd.artwork.ArtworkImage
RasterPage = bsd.pdf_writer.RasterPage
RasterSurface = bsd.surface.RasterSurface
Rect = bsd.geometry.Rect

DEFAULT_FONT = bsd.config.DEFAULT_FONT
PROGRESS_BAR_WIDTH = bsd.config.PROGRESS_BAR_WIDTH
PROGRESS_UPDATE_EVERY = bsd.config.PROGRESS_UPDATE_EVERY


class RenderCancelled(Exception):
	"""
	Raised inside a render superseded by a newer request.
	"""


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


#============================================
def stack_origin_on_sheet(layout: StackLayout, config: RenderConfig) -> tuple[float, float]:
	"""
	Top-left of the required area when the whole stack is centered on the sheet.
	"""
	left = (config.sheet_width_mm - layout.metrics.required_width_mm) / 2.0
	top = (config.sheet_height_mm - layout.metrics.required_height_mm) / 2.0
	return (left, top)


#============================================
def compute_page_geometry(
	layout: StackLayout,
	rect: PlacedRect,
	bounds: ArtworkBounds,
	resolved: ResolvedArtwork,
	config: RenderConfig,
) -> dict[str, Rect | tuple[float, float]]:
	"""
	Compute the sheet-space geometry for one book's page.

	Args:
		layout: Stack layout.
		rect: Book rectangle to center.
		bounds: Artwork bounds.
		resolved: Resolved zoom and offset.
		config: Render configuration.

	Returns:
		Dict with "book", "art", "clip" rects and the "delta" that maps
		stack-centered positions onto this page.
	"""
	origin_x, origin_y = stack_origin_on_sheet(layout, config)
	book_center_x = origin_x + rect.x_mm + rect.width_mm / 2.0
	book_center_y = origin_y + rect.y_mm + rect.height_mm / 2.0
	sheet_center_x = config.sheet_width_mm / 2.0
	sheet_center_y = config.sheet_height_mm / 2.0
	delta = (sheet_center_x - book_center_x, sheet_center_y - book_center_y)

	book = bsd.geometry.centered_rect(
		config.sheet_width_mm,
		config.sheet_height_mm,
		rect.width_mm,
		rect.height_mm,
	)
	art_center_x = origin_x + layout.metrics.required_width_mm / 2.0 + resolved.offset_x
	art_center_y = origin_y + layout.metrics.required_height_mm / 2.0 + resolved.offset_y
	art = bsd.geometry.rect_from_center(
		art_center_x + delta[0],
		art_center_y + delta[1],
		bounds.base_width_mm * resolved.zoom,
		bounds.base_height_mm * resolved.zoom,
	)
	sheet = Rect(0.0, 0.0, config.sheet_width_mm, config.sheet_height_mm)
	column = Rect(
		book.left,
		book.top - config.clip_overhang_mm,
		book.width,
		book.height + config.clip_overhang_mm,
	)
	return {
		"book": book,
		"art": art,
		"clip": column.intersect(sheet),
		"delta": delta,
	}


#============================================
def build_text_command(
	layout: StackLayout,
	text_state: LargeTextState,
	delta: tuple[float, float],
	measure,
	config: RenderConfig,
) -> bsd.surface.DrawTextBlock | None:
	"""
	Wrap and position the large text for one page.

	Args:
		layout: Stack layout.
		text_state: Large text state.
		delta: Page delta from compute_page_geometry.
		measure: Callable (text, font, size_mm) -> width in mm.
		config: Render configuration.

	Returns:
		DrawTextBlock, or None when the text is hidden or empty.
	"""
	if not text_state.is_visible:
		return None
	origin_x, origin_y = stack_origin_on_sheet(layout, config)
	box = bsd.text.large_text_box(layout.metrics).translate(origin_x + delta[0], origin_y + delta[1])
	size_mm = bsd.geometry.points_to_mm(text_state.size_pt)
	max_width = box.width * bsd.config.LARGE_TEXT_WIDTH_FRACTION
	lines = bsd.text.wrap_text_into_lines(
		text_state.text.strip(),
		lambda value: measure(value, text_state.font, size_mm),
		max_width,
	)
	center_x, center_y = box.center
	line_centers = bsd.text.layout_line_centers(
		len(lines),
		size_mm * bsd.config.LARGE_TEXT_LINE_HEIGHT,
		center_y,
	)
	return bsd.surface.DrawTextBlock(
		lines=tuple(lines),
		center_x=center_x,
		line_centers=tuple(line_centers),
		size_mm=size_mm,
		font=text_state.font,
		color=bsd.config.LARGE_TEXT_COLOR,
		shadow_color=bsd.config.LARGE_TEXT_SHADOW_COLOR,
		shadow_opacity=bsd.config.LARGE_TEXT_SHADOW_OPACITY,
		shadow_blur_mm=bsd.config.LARGE_TEXT_SHADOW_BLUR_MM,
	)


#============================================
def build_label_chip(book: Rect, label: str) -> bsd.surface.DrawLabelChip:
	chip_width = book.width * bsd.config.LABEL_CHIP_WIDTH_FRACTION
	chip_height = bsd.config.LABEL_CHIP_HEIGHT_MM
	center_x = book.center[0]
	center_y = book.bottom - chip_height / 2.0 - bsd.config.LABEL_CHIP_BOTTOM_MM
	return bsd.surface.DrawLabelChip(
		rect=bsd.geometry.rect_from_center(center_x, center_y, chip_width, chip_height),
		text=label,
		fill=bsd.config.LABEL_CHIP_FILL,
		fill_opacity=bsd.config.LABEL_CHIP_FILL_OPACITY,
		text_color=bsd.config.LABEL_CHIP_TEXT_COLOR,
		text_opacity=bsd.config.LABEL_CHIP_TEXT_OPACITY,
		text_size_mm=bsd.config.LABEL_CHIP_TEXT_MM,
		font=DEFAULT_FONT,
	)


#============================================
def build_page_commands(
	layout: StackLayout,
	rect: PlacedRect,
	bounds: ArtworkBounds,
	resolved: ResolvedArtwork,
	text_state: LargeTextState,
	artwork: ArtworkImage | None,
	measure,
	config: RenderConfig,
) -> list[bsd.surface.DrawCommand]:
	"""
	Build the ordered drawing commands for one book's page.

	Args:
		layout: Stack layout.
		rect: Book to center on this page.
		bounds: Artwork bounds.
		resolved: Resolved zoom and offset.
		text_state: Large text state.
		artwork: Decoded artwork, or None to skip the artwork layer.
		measure: Callable (text, font, size_mm) -> width in mm.
		config: Render configuration.

	Returns:
		List of drawing commands.
	"""
	geometry = compute_page_geometry(layout, rect, bounds, resolved, config)
	book = geometry["book"]
	commands: list[bsd.surface.DrawCommand] = [bsd.surface.FillBackground("#FFFFFF")]

	art = geometry["art"]
	clip = geometry["clip"]
	if artwork is not None and not clip.is_empty and not art.is_empty:
		commands.append(bsd.surface.DrawClippedImage(image=artwork.image, dest=art, clip=clip))

	if config.draw_watermark:
		commands.append(
			bsd.surface.DrawWatermark(
				text=bsd.config.WATERMARK_TEXT,
				center_x=config.sheet_width_mm / 2.0,
				center_y=config.sheet_height_mm / 2.0,
				size_mm=bsd.config.WATERMARK_SIZE_MM,
				angle=bsd.config.WATERMARK_ANGLE,
				color=bsd.config.WATERMARK_COLOR,
				opacity=bsd.config.WATERMARK_OPACITY,
				font=DEFAULT_FONT,
			)
		)

	text_command = build_text_command(layout, text_state, geometry["delta"], measure, config)
	if text_command is not None:
		commands.append(text_command)

	if config.draw_outlines:
		commands.append(bsd.surface.StrokeRect(rect=book, color=rect.color, width_mm=bsd.config.OUTLINE_WIDTH_MM))
		commands.append(build_label_chip(book, rect.label))
	return commands


#============================================
def page_pixel_size(config: RenderConfig) -> tuple[int, int]:
	width_px = int(round(bsd.geometry.mm_to_pixels(config.sheet_width_mm, config.scale)))
	height_px = int(round(bsd.geometry.mm_to_pixels(config.sheet_height_mm, config.scale)))
	return (width_px, height_px)


#============================================
def render_pages(
	layout: StackLayout,
	bounds: ArtworkBounds,
	resolved: ResolvedArtwork,
	text_state: LargeTextState,
	artwork: ArtworkImage | None,
	config: RenderConfig,
	cancel_event: threading.Event | None = None,
) -> list[RasterPage]:
	"""
	Render one sheet-sized JPEG page per book.

	Args:
		layout: Stack layout.
		bounds: Artwork bounds.
		resolved: Resolved zoom and offset.
		text_state: Large text state.
		artwork: Decoded artwork or None.
		config: Render configuration.
		cancel_event: Set by a newer request to abandon this render.

	Returns:
		Pages in book order.

	Raises:
		GeometryDegenerateError: The layout has no books.
		SurfaceAcquisitionError: A page surface could not be allocated; no
			pages are returned.
		RenderCancelled: cancel_event was set.
	"""
	if not layout.rects:
		raise bsd.errors.GeometryDegenerateError("Cannot render a stack with no books.")
	width_px, height_px = page_pixel_size(config)
	total = len(layout.rects)
	pages: list[RasterPage] = []
	if config.verbose:
		print_progress("Pages", 0, total)
	for index, rect in enumerate(layout.rects, start=1):
		if cancel_event is not None and cancel_event.is_set():
			raise RenderCancelled(f"Render cancelled before page {index}.")
		surface = bsd.surface.acquire_surface(width_px, height_px, config.scale)
		commands = build_page_commands(
			layout,
			rect,
			bounds,
			resolved,
			text_state,
			artwork,
			surface.measure_text,
			config,
		)
		surface.draw_all(commands)
		pages.append(
			RasterPage(
				jpeg_bytes=surface.encode_jpeg(config.jpeg_quality),
				width_px=width_px,
				height_px=height_px,
				book_id=rect.id,
			)
		)
		if config.verbose and (index % PROGRESS_UPDATE_EVERY == 0 or index == total):
			print_progress("Pages", index, total)
	if config.verbose:
		print()
	return pages
