"""
Drawing commands and the raster surfaces that execute them.
"""

# Standard Library
import abc
import dataclasses
import io
import math

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFilter

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.errors
import book_spine_designer.geometry
import book_spine_designer.text


Rect = bsd.geometry.Rect
SurfaceAcquisitionError = bsd.errors.SurfaceAcquisitionError


@dataclasses.dataclass(frozen=True)
class FillBackground:
	color: str


@dataclasses.dataclass(frozen=True)
class DrawClippedImage:
	image: PIL.Image.Image
	dest: Rect
	clip: Rect


@dataclasses.dataclass(frozen=True)
class DrawWatermark:
	text: str
	center_x: float
	center_y: float
	size_mm: float
	angle: float
	color: str
	opacity: float
	font: str


@dataclasses.dataclass(frozen=True)
class DrawTextBlock:
	lines: tuple[str, ...]
	center_x: float
	line_centers: tuple[float, ...]
	size_mm: float
	font: str
	color: str
	shadow_color: str
	shadow_opacity: float
	shadow_blur_mm: float


@dataclasses.dataclass(frozen=True)
class StrokeRect:
	rect: Rect
	color: str
	width_mm: float


@dataclasses.dataclass(frozen=True)
class DrawLabelChip:
	rect: Rect
	text: str
	fill: str
	fill_opacity: float
	text_color: str
	text_opacity: float
	text_size_mm: float
	font: str


DrawCommand = (
	FillBackground | DrawClippedImage | DrawWatermark | DrawTextBlock | StrokeRect | DrawLabelChip
)


#============================================
def parse_hex_color(value: str) -> tuple[int, int, int]:
	"""
	Parse a hex color string into RGB bytes.

	Args:
		value: Color string like "#AABBCC".

	Returns:
		Tuple of (r, g, b) in 0-255 range, black when malformed.
	"""
	if not value or not value.startswith("#") or len(value) != 7:
		return (0, 0, 0)
	try:
		return (int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16))
	except ValueError:
		return (0, 0, 0)


#============================================
def rgba(value: str, opacity: float) -> tuple[int, int, int, int]:
	red, green, blue = parse_hex_color(value)
	return (red, green, blue, int(round(255 * opacity)))


class RasterSurface(abc.ABC):
	"""
	Drawing target sized to one sheet. Coordinates are millimetres.
	"""

	def __init__(self, width_px: int, height_px: int, scale: float):
		self.width_px = width_px
		self.height_px = height_px
		self.scale = scale

	def draw(self, command: DrawCommand) -> None:
		"""
		Dispatch one drawing command.

		Args:
			command: Drawing command.
		"""
		if isinstance(command, FillBackground):
			self.fill_background(command)
		elif isinstance(command, DrawClippedImage):
			self.draw_clipped_image(command)
		elif isinstance(command, DrawWatermark):
			self.draw_watermark(command)
		elif isinstance(command, DrawTextBlock):
			self.draw_text_block(command)
		elif isinstance(command, StrokeRect):
			self.stroke_rect(command)
		elif isinstance(command, DrawLabelChip):
			self.draw_label_chip(command)
		else:
			raise TypeError(f"Unknown drawing command: {command!r}")

	def draw_all(self, commands: list[DrawCommand]) -> None:
		for command in commands:
			self.draw(command)

	@abc.abstractmethod
	def measure_text(self, text: str, font: str, size_mm: float) -> float:
		"""
		Width of a single line of text in millimetres.
		"""

	@abc.abstractmethod
	def fill_background(self, command: FillBackground) -> None:
		pass

	@abc.abstractmethod
	def draw_clipped_image(self, command: DrawClippedImage) -> None:
		pass

	@abc.abstractmethod
	def draw_watermark(self, command: DrawWatermark) -> None:
		pass

	@abc.abstractmethod
	def draw_text_block(self, command: DrawTextBlock) -> None:
		pass

	@abc.abstractmethod
	def stroke_rect(self, command: StrokeRect) -> None:
		pass

	@abc.abstractmethod
	def draw_label_chip(self, command: DrawLabelChip) -> None:
		pass

	@abc.abstractmethod
	def encode_jpeg(self, quality: int) -> bytes:
		pass


class PillowSurface(RasterSurface):
	"""
	RasterSurface backed by a Pillow RGB image.
	"""

	def __init__(self, width_px: int, height_px: int, scale: float):
		super().__init__(width_px, height_px, scale)
		self.image = PIL.Image.new("RGB", (width_px, height_px), (255, 255, 255))

	def _px(self, value_mm: float) -> float:
		return bsd.geometry.mm_to_pixels(value_mm, self.scale)

	def _font(self, font: str, size_mm: float):
		return bsd.text.load_font(font, max(1, int(round(self._px(size_mm)))))

	def _overlay(self) -> PIL.Image.Image:
		return PIL.Image.new("RGBA", self.image.size, (0, 0, 0, 0))

	def _composite(self, layer: PIL.Image.Image) -> None:
		self.image.paste(layer, (0, 0), layer)

	def measure_text(self, text: str, font: str, size_mm: float) -> float:
		pil_font = self._font(font, size_mm)
		return pil_font.getlength(text) / self.scale

	def fill_background(self, command: FillBackground) -> None:
		self.image.paste(parse_hex_color(command.color), (0, 0, self.width_px, self.height_px))

	def draw_clipped_image(self, command: DrawClippedImage) -> None:
		dest = command.dest
		if dest.is_empty:
			return
		sheet = Rect(0.0, 0.0, self.width_px / self.scale, self.height_px / self.scale)
		visible = dest.intersect(command.clip).intersect(sheet)
		if visible.is_empty:
			return
		x0, y0, x1, y1 = visible.to_pixel_box(self.scale)
		if x1 <= x0 or y1 <= y0:
			return
		source = command.image
		# map the visible pixel box back into source image coordinates
		ratio_x = source.width / self._px(dest.width)
		ratio_y = source.height / self._px(dest.height)
		dest_x = self._px(dest.left)
		dest_y = self._px(dest.top)
		box = (
			max((x0 - dest_x) * ratio_x, 0.0),
			max((y0 - dest_y) * ratio_y, 0.0),
			min((x1 - dest_x) * ratio_x, float(source.width)),
			min((y1 - dest_y) * ratio_y, float(source.height)),
		)
		if box[2] <= box[0] or box[3] <= box[1]:
			return
		region = source.resize((x1 - x0, y1 - y0), PIL.Image.Resampling.LANCZOS, box=box)
		self.image.paste(region, (x0, y0))

	def draw_watermark(self, command: DrawWatermark) -> None:
		font = self._font(command.font, command.size_mm)
		left, top, right, bottom = font.getbbox(command.text)
		pad = 4
		stamp_size = (int(math.ceil(right - left)) + 2 * pad, int(math.ceil(bottom - top)) + 2 * pad)
		stamp = PIL.Image.new("RGBA", stamp_size, (0, 0, 0, 0))
		draw = PIL.ImageDraw.Draw(stamp)
		draw.text((pad - left, pad - top), command.text, font=font, fill=rgba(command.color, command.opacity))
		stamp = stamp.rotate(command.angle, resample=PIL.Image.Resampling.BICUBIC, expand=True)
		center_x = self._px(command.center_x)
		center_y = self._px(command.center_y)
		origin = (int(round(center_x - stamp.width / 2.0)), int(round(center_y - stamp.height / 2.0)))
		self.image.paste(stamp, origin, stamp)

	def draw_text_block(self, command: DrawTextBlock) -> None:
		font = self._font(command.font, command.size_mm)
		center_x = self._px(command.center_x)

		shadow = self._overlay()
		shadow_draw = PIL.ImageDraw.Draw(shadow)
		text_layer = self._overlay()
		text_draw = PIL.ImageDraw.Draw(text_layer)
		shadow_fill = rgba(command.shadow_color, command.shadow_opacity)
		text_fill = rgba(command.color, 1.0)
		for line, center_y_mm in zip(command.lines, command.line_centers):
			if not line:
				continue
			position = (center_x, self._px(center_y_mm))
			shadow_draw.text(position, line, font=font, fill=shadow_fill, anchor="mm")
			text_draw.text(position, line, font=font, fill=text_fill, anchor="mm")

		blur_px = self._px(command.shadow_blur_mm) / 2.0
		if blur_px > 0:
			shadow = shadow.filter(PIL.ImageFilter.GaussianBlur(blur_px))
		self._composite(shadow)
		self._composite(text_layer)

	def stroke_rect(self, command: StrokeRect) -> None:
		box = command.rect.to_pixel_box(self.scale)
		width_px = max(1, int(round(self._px(command.width_mm))))
		draw = PIL.ImageDraw.Draw(self.image)
		draw.rectangle(box, outline=parse_hex_color(command.color), width=width_px)

	def draw_label_chip(self, command: DrawLabelChip) -> None:
		box = command.rect.to_pixel_box(self.scale)
		if box[2] <= box[0] or box[3] <= box[1]:
			return
		layer = self._overlay()
		draw = PIL.ImageDraw.Draw(layer)
		draw.rectangle(box, fill=rgba(command.fill, command.fill_opacity))
		if command.text:
			font = self._font(command.font, command.text_size_mm)
			center = ((box[0] + box[2]) / 2.0, (box[1] + box[3]) / 2.0)
			draw.text(center, command.text, font=font, fill=rgba(command.text_color, command.text_opacity), anchor="mm")
		self._composite(layer)

	def encode_jpeg(self, quality: int) -> bytes:
		buffer = io.BytesIO()
		self.image.save(buffer, format="JPEG", quality=quality)
		return buffer.getvalue()


#============================================
def acquire_surface(width_px: int, height_px: int, scale: float) -> PillowSurface:
	"""
	Allocate a drawing surface for one sheet.

	Args:
		width_px: Surface width in pixels.
		height_px: Surface height in pixels.
		scale: Pixels per millimetre.

	Returns:
		PillowSurface.

	Raises:
		SurfaceAcquisitionError: When the backend cannot allocate the surface.
	"""
	if width_px <= 0 or height_px <= 0:
		raise SurfaceAcquisitionError(f"Invalid surface size {width_px}x{height_px} px.")
	try:
		return PillowSurface(width_px, height_px, scale)
	except (ValueError, MemoryError, OSError) as error:
		raise SurfaceAcquisitionError(f"Unable to allocate {width_px}x{height_px} px surface: {error}") from error
