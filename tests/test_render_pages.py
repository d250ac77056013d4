import dataclasses
import io
import threading

import PIL.Image
import pytest

import book_spine_designer.artwork
import book_spine_designer.bounds
import book_spine_designer.errors
import book_spine_designer.layout
import book_spine_designer.render
import book_spine_designer.surface
import book_spine_designer.text


LargeTextState = book_spine_designer.text.LargeTextState


#============================================
def build_design(books: list, natural: tuple[float, float] = (0.0, 0.0)) -> tuple:
	"""
	Layout, bounds and resolved artwork for a book list.

	Returns:
		Tuple of (layout, bounds, resolved).
	"""
	layout = book_spine_designer.layout.compute_stack_layout(books)
	bounds = book_spine_designer.bounds.compute_artwork_bounds(layout.metrics, *natural)
	state = book_spine_designer.bounds.ArtworkState(*natural)
	_state, resolved = book_spine_designer.bounds.reclamp_artwork(state, bounds)
	return layout, bounds, resolved


#============================================
def solid_artwork(color: tuple[int, int, int]) -> book_spine_designer.artwork.ArtworkImage:
	buffer = io.BytesIO()
	PIL.Image.new("RGB", (400, 500), color).save(buffer, format="PNG")
	return book_spine_designer.artwork.decode_artwork(buffer.getvalue())


#============================================
def fake_measure(text: str, font: str, size_mm: float) -> float:
	return len(text) * size_mm * 0.5


#============================================
def test_one_page_per_book(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books)
	pages = book_spine_designer.render.render_pages(layout, bounds, resolved, LargeTextState(), None, fast_config)
	assert len(pages) == 4
	assert [page.book_id for page in pages] == [1, 2, 3, 4]
	for page in pages:
		assert (page.width_px, page.height_px) == (432, 279)
		assert page.jpeg_bytes.startswith(b"\xff\xd8")
		with PIL.Image.open(io.BytesIO(page.jpeg_bytes)) as image:
			assert image.size == (432, 279)


#============================================
def test_no_artwork_skips_image_layer(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books)
	commands = book_spine_designer.render.build_page_commands(
		layout, layout.rects[0], bounds, resolved, LargeTextState(), None, fake_measure, fast_config
	)
	kinds = [type(command) for command in commands]
	assert book_spine_designer.surface.DrawClippedImage not in kinds
	assert kinds[0] is book_spine_designer.surface.FillBackground
	assert book_spine_designer.surface.StrokeRect in kinds
	assert book_spine_designer.surface.DrawWatermark in kinds


#============================================
def test_layers_follow_config(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books, (400.0, 300.0))
	artwork = solid_artwork((200, 20, 20))
	config = dataclasses.replace(fast_config, draw_watermark=False, draw_outlines=False)
	commands = book_spine_designer.render.build_page_commands(
		layout, layout.rects[1], bounds, resolved, LargeTextState(), artwork, fake_measure, config
	)
	kinds = [type(command) for command in commands]
	assert kinds == [
		book_spine_designer.surface.FillBackground,
		book_spine_designer.surface.DrawClippedImage,
	]


#============================================
def test_book_centered_and_art_follows_stack(default_books: list, fast_config) -> None:
	"""
	Each page centers its spine; the artwork keeps its place relative to the stack.
	"""
	layout, bounds, resolved = build_design(default_books, (400.0, 300.0))
	metrics = layout.metrics
	sheet_center = (fast_config.sheet_width_mm / 2.0, fast_config.sheet_height_mm / 2.0)
	for rect in layout.rects:
		geometry = book_spine_designer.render.compute_page_geometry(layout, rect, bounds, resolved, fast_config)
		book = geometry["book"]
		assert book.center[0] == pytest.approx(sheet_center[0])
		assert book.center[1] == pytest.approx(sheet_center[1])
		assert book.width == pytest.approx(rect.width_mm)
		art = geometry["art"]
		stack_dx = metrics.required_width_mm / 2.0 + resolved.offset_x - (rect.x_mm + rect.width_mm / 2.0)
		stack_dy = metrics.required_height_mm / 2.0 + resolved.offset_y - (rect.y_mm + rect.height_mm / 2.0)
		assert art.center[0] - book.center[0] == pytest.approx(stack_dx)
		assert art.center[1] - book.center[1] == pytest.approx(stack_dy)
		assert art.width == pytest.approx(400.0 * resolved.zoom)


#============================================
def test_clip_is_column_with_overhang(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books)
	geometry = book_spine_designer.render.compute_page_geometry(layout, layout.rects[2], bounds, resolved, fast_config)
	book = geometry["book"]
	clip = geometry["clip"]
	assert clip.left == pytest.approx(book.left)
	assert clip.width == pytest.approx(book.width)
	assert clip.top == pytest.approx(book.top - 2.0)
	assert clip.bottom == pytest.approx(book.bottom)


#============================================
def test_artwork_covers_spine(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books, (200.0, 250.0))
	artwork = solid_artwork((220, 20, 20))
	config = dataclasses.replace(fast_config, draw_watermark=False, draw_outlines=False)
	pages = book_spine_designer.render.render_pages(layout, bounds, resolved, LargeTextState(), artwork, config)
	with PIL.Image.open(io.BytesIO(pages[0].jpeg_bytes)) as image:
		rgb = image.convert("RGB")
		red, green, blue = rgb.getpixel((216, 139))
		assert red > 180 and green < 70 and blue < 70
		# outside the spine column the sheet stays white
		red, green, blue = rgb.getpixel((20, 139))
		assert min(red, green, blue) > 230


#============================================
def test_text_command_lines_fit(default_books: list, fast_config) -> None:
	layout, _bounds, _resolved = build_design(default_books)
	state = LargeTextState(enabled=True, text="The Complete Collected Works Volume One", size_pt=36.0)
	command = book_spine_designer.render.build_text_command(layout, state, (0.0, 0.0), fake_measure, fast_config)
	assert command is not None
	assert len(command.lines) == len(command.line_centers)
	max_width = layout.metrics.total_width_mm * 0.92
	for line in command.lines:
		if " " in line:
			assert fake_measure(line, state.font, command.size_mm) <= max_width
	hidden = book_spine_designer.render.build_text_command(layout, LargeTextState(), (0.0, 0.0), fake_measure, fast_config)
	assert hidden is None


#============================================
def test_render_with_text(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books)
	state = LargeTextState(enabled=True, text="Saga", size_pt=72.0)
	pages = book_spine_designer.render.render_pages(layout, bounds, resolved, state, None, fast_config)
	assert len(pages) == 4


#============================================
def test_empty_layout_is_degenerate(fast_config) -> None:
	layout, bounds, resolved = build_design([])
	with pytest.raises(book_spine_designer.errors.GeometryDegenerateError):
		book_spine_designer.render.render_pages(layout, bounds, resolved, LargeTextState(), None, fast_config)


#============================================
def test_surface_failure_returns_nothing(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books)
	config = dataclasses.replace(fast_config, scale=0.0)
	with pytest.raises(book_spine_designer.errors.SurfaceAcquisitionError):
		book_spine_designer.render.render_pages(layout, bounds, resolved, LargeTextState(), None, config)


#============================================
def test_cancelled_render(default_books: list, fast_config) -> None:
	layout, bounds, resolved = build_design(default_books)
	event = threading.Event()
	event.set()
	with pytest.raises(book_spine_designer.render.RenderCancelled):
		book_spine_designer.render.render_pages(
			layout, bounds, resolved, LargeTextState(), None, fast_config, cancel_event=event
		)


#============================================
def test_parse_hex_color() -> None:
	assert book_spine_designer.surface.parse_hex_color("#2563EB") == (0x25, 0x63, 0xEB)
	assert book_spine_designer.surface.parse_hex_color("blue") == (0, 0, 0)
	assert book_spine_designer.surface.rgba("#FFFFFF", 0.5) == (255, 255, 255, 128)


#============================================
def test_print_progress_bar(capsys: pytest.CaptureFixture) -> None:
	book_spine_designer.render.print_progress("Pages", 2, 4)
	book_spine_designer.render.print_progress("Pages", 1, 0)
	output = capsys.readouterr().out
	assert output.startswith("Pages [")
	assert "2/4 (50%)" in output
	assert output.count("\r") == 1
