"""
CLI entry points for book spine stack export.
"""

# Standard Library
import argparse
import json
import math
import pathlib
import time

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.bounds
import book_spine_designer.config
import book_spine_designer.errors
import book_spine_designer.layout
import book_spine_designer.pdf_writer
import book_spine_designer.pipeline
import book_spine_designer.text


BookSpec = bsd.layout.BookSpec
DesignSession = bsd.pipeline.DesignSession
DesignSnapshot = bsd.pipeline.DesignSnapshot
RenderResult = bsd.config.RenderResult
InvalidInputError = bsd.errors.InvalidInputError

DEFAULT_FONT = bsd.config.DEFAULT_FONT
FONT_OPTIONS = bsd.text.FONT_OPTIONS

DEFAULT_BOOK_COLOR = "#64748B"


#============================================
def load_books(books_path: pathlib.Path) -> list[BookSpec]:
	"""
	Load a book list from JSON.

	The file holds a list of objects with label, height_cm, spine_width_cm
	and an optional color. Ids follow list order starting at 1.

	Args:
		books_path: JSON file path.

	Returns:
		Validated book list.

	Raises:
		InvalidInputError: When the file is not a list of book objects.
	"""
	with open(books_path, "r", encoding="utf-8") as handle:
		try:
			data = json.load(handle)
		except json.JSONDecodeError as error:
			raise InvalidInputError(f"{books_path}: invalid JSON ({error})") from error
	if not isinstance(data, list):
		raise InvalidInputError(f"{books_path}: expected a list of books.")
	books: list[BookSpec] = []
	for index, entry in enumerate(data, start=1):
		if not isinstance(entry, dict):
			raise InvalidInputError(f"{books_path}: book {index} is not an object.")
		try:
			height_cm = float(entry["height_cm"])
			spine_width_cm = float(entry["spine_width_cm"])
		except (KeyError, TypeError, ValueError) as error:
			raise InvalidInputError(f"{books_path}: book {index} needs numeric height_cm and spine_width_cm.") from error
		books.append(
			BookSpec.from_cm(
				index,
				str(entry.get("label", f"Book {index}")),
				height_cm,
				spine_width_cm,
				str(entry.get("color", DEFAULT_BOOK_COLOR)),
			)
		)
	bsd.layout.validate_books(books)
	return books


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, None for sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Export a book spine stack design as a multi-page PDF.")
	parser.add_argument("books", nargs="?", default=None, help="Books JSON file (default: sample stack).")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("-r", "--preview-dir", dest="preview_dir", default=None, help="Write per-page JPEG previews here.")

	artwork_group = parser.add_argument_group("Artwork")
	artwork_group.add_argument("-a", "--artwork", dest="artwork_path", default=None, help="Artwork image path.")
	artwork_group.add_argument("-z", "--zoom", dest="zoom", type=float, default=None, help="Manual zoom (clamped to the legal range).")
	artwork_group.add_argument("-x", "--offset-x", dest="offset_x", type=float, default=None, help="Horizontal artwork offset in mm.")
	artwork_group.add_argument("-y", "--offset-y", dest="offset_y", type=float, default=None, help="Vertical artwork offset in mm.")

	text_group = parser.add_argument_group("Large text")
	text_group.add_argument("-t", "--text", dest="text", default=None, help="Large text across the spines.")
	text_group.add_argument("-f", "--font", dest="font", choices=sorted(FONT_OPTIONS), default=DEFAULT_FONT, help="Large text font.")
	text_group.add_argument("-s", "--text-size", dest="text_size", type=float, default=None, help="Large text size in points.")

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument("-w", "--watermark", dest="draw_watermark", action="store_true", help="Draw the sample watermark.")
	behavior_group.add_argument("-W", "--no-watermark", dest="draw_watermark", action="store_false", help="Disable the sample watermark.")
	behavior_group.add_argument("-d", "--draw-outlines", dest="draw_outlines", action="store_true", help="Draw spine outlines and labels.")
	behavior_group.add_argument("-D", "--no-draw-outlines", dest="draw_outlines", action="store_false", help="Disable spine outlines and labels.")

	parser.set_defaults(
		draw_watermark=True,
		draw_outlines=True,
	)

	args = parser.parse_args(argv)
	return args


#============================================
def apply_args(session: DesignSession, args: argparse.Namespace) -> DesignSnapshot:
	"""
	Apply artwork and text options to a session, in the order a user would.

	Args:
		session: Design session holding the books.
		args: Parsed argparse namespace.

	Returns:
		Latest snapshot.

	Raises:
		InvalidInputError: When a numeric option is nan or infinite.
	"""
	for option, value in [
		("--zoom", args.zoom),
		("--offset-x", args.offset_x),
		("--offset-y", args.offset_y),
		("--text-size", args.text_size),
	]:
		if value is not None and not math.isfinite(value):
			raise InvalidInputError(f"{option} must be a finite number, got {value}.")
	if args.artwork_path:
		session.load_artwork(pathlib.Path(args.artwork_path))
	if args.zoom is not None:
		session.set_zoom(args.zoom)
	if args.offset_x is not None or args.offset_y is not None:
		session.set_offset(offset_x=args.offset_x, offset_y=args.offset_y)
	# font and size apply even while the large text stays disabled
	changes = {"font": args.font}
	if args.text is not None:
		changes["enabled"] = True
		changes["text"] = args.text
	if args.text_size is not None:
		changes["size_pt"] = args.text_size
	session.set_large_text(**changes)
	return session.snapshot


#============================================
def write_previews(preview_dir: pathlib.Path, pdf_bytes: bytes) -> list[pathlib.Path]:
	"""
	Write one JPEG preview per page, re-derived from the PDF.

	Args:
		preview_dir: Output directory.
		pdf_bytes: Exported document.

	Returns:
		Written preview paths.
	"""
	preview_dir.mkdir(parents=True, exist_ok=True)
	paths: list[pathlib.Path] = []
	for index, preview in enumerate(bsd.pdf_writer.extract_page_previews(pdf_bytes), start=1):
		path = preview_dir / f"page_{index:03d}.jpg"
		preview.convert("RGB").save(path, format="JPEG")
		paths.append(path)
	return paths


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	books_path: pathlib.Path | None,
	artwork_path: pathlib.Path | None,
	snapshot: DesignSnapshot,
	result: RenderResult,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		books_path: Books JSON input, None for the sample stack.
		artwork_path: Artwork input or None.
		snapshot: Exported design.
		result: Render result.
	"""
	metrics = snapshot.layout.metrics
	resolved = snapshot.resolved
	data = {
		"books_input": str(books_path) if books_path else None,
		"artwork_input": str(artwork_path) if artwork_path else None,
		"books": [
			{
				"id": rect.id,
				"label": rect.label,
				"color": rect.color,
				"x_mm": rect.x_mm,
				"y_mm": rect.y_mm,
				"width_mm": rect.width_mm,
				"height_mm": rect.height_mm,
			}
			for rect in snapshot.layout.rects
		],
		"metrics": {
			"total_width_mm": metrics.total_width_mm,
			"max_height_mm": metrics.max_height_mm,
			"min_height_mm": metrics.min_height_mm,
			"required_width_mm": metrics.required_width_mm,
			"required_height_mm": metrics.required_height_mm,
			"collection_width_cm": metrics.collection_width_cm,
			"fits_target_sheet": metrics.fits_target_sheet,
		},
		"artwork": {
			"zoom": resolved.zoom,
			"min_zoom": snapshot.bounds.min_zoom,
			"zoom_mode": "manual" if isinstance(snapshot.artwork_state.zoom, bsd.bounds.Manual) else "auto",
			"offset_x_mm": resolved.offset_x,
			"offset_y_mm": resolved.offset_y,
			"offset_mode": "manual" if isinstance(snapshot.artwork_state.offset, bsd.bounds.Manual) else "auto",
		},
		"large_text": {
			"enabled": snapshot.text_state.enabled,
			"text": snapshot.text_state.text,
			"font": snapshot.text_state.font,
			"size_pt": snapshot.text_state.size_pt,
			"max_size_pt": snapshot.text_state.max_size_pt,
		},
		"pages": len(result.pages),
		"pdf_bytes": len(result.pdf_bytes),
	}
	manifest_path.parent.mkdir(parents=True, exist_ok=True)
	with open(manifest_path, "w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)


#============================================
def run_pipeline(args: argparse.Namespace) -> RenderResult:
	"""
	Run the full pipeline from books input to PDF output.

	Args:
		args: Parsed argparse namespace.

	Returns:
		RenderResult of the export.
	"""
	print("Book spine stack export")
	print(f"Output PDF: {args.output_path}")
	if args.manifest_path:
		print(f"Manifest: {args.manifest_path}")
	print(f"Books: {args.books or 'sample stack'}")
	if args.artwork_path:
		print(f"Artwork: {args.artwork_path}")
	print(f"Watermark: {args.draw_watermark}")
	print(f"Draw outlines: {args.draw_outlines}")

	start_time = time.perf_counter()
	books_path = pathlib.Path(args.books) if args.books else None
	books = load_books(books_path) if books_path else list(bsd.layout.DEFAULT_BOOKS)
	session = DesignSession(books)
	snapshot = apply_args(session, args)
	layout_end = time.perf_counter()

	metrics = snapshot.layout.metrics
	print(f"Books loaded: {len(books)}")
	print(f"Collection width: {bsd.layout.format_millimetres(metrics.total_width_mm)}")
	print(bsd.layout.format_clearance_summary(metrics))
	if not metrics.fits_target_sheet:
		print("Warning: stack does not fit the target sheet.")
	print(f"Zoom: {snapshot.resolved.zoom:.3f} (min {snapshot.bounds.min_zoom:.3f})")

	config = bsd.config.build_render_config(
		draw_watermark=args.draw_watermark,
		draw_outlines=args.draw_outlines,
		verbose=True,
	)
	print("Rendering pages")
	render_start = time.perf_counter()
	result = session.export(config)
	render_end = time.perf_counter()
	print(f"Pages written: {len(result.pages)}")

	output_path = pathlib.Path(args.output_path)
	output_path.parent.mkdir(parents=True, exist_ok=True)
	output_path.write_bytes(result.pdf_bytes)

	if args.preview_dir:
		previews = write_previews(pathlib.Path(args.preview_dir), result.pdf_bytes)
		print(f"Previews written: {len(previews)}")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	artwork_path = pathlib.Path(args.artwork_path) if args.artwork_path else None
	write_manifest(pathlib.Path(manifest_path), books_path, artwork_path, snapshot, result)

	total_time = time.perf_counter() - start_time
	print(
		"Timing: layout={:.2f}s render={:.2f}s total={:.2f}s".format(
			layout_end - start_time,
			render_end - render_start,
			total_time,
		)
	)
	print(f"Manifest written: {manifest_path}")
	return result


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	run_pipeline(args)
